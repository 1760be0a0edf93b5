"""
Deterministic resource naming.

Secret names and watch keys are derived from the owning cluster's name plus
fixed suffixes so that every pass finds the same resources without an index.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field

from transportca.constants import (
    DEFAULT_CLUSTER_SUFFIX,
    MAX_NAME_LENGTH,
    TRUNCATED_NAME_HASH_LENGTH,
)
from transportca.exceptions import NamingError


def _name_digest(owner_name: str) -> str:
    return hashlib.sha256(owner_name.encode()).hexdigest()[:TRUNCATED_NAME_HASH_LENGTH]


@dataclass(frozen=True)
class Namer:
    """Builds ``<owner>-<default suffixes>-<suffixes>`` names.

    When the full name would exceed ``max_length`` the owner part is
    shortened to ``<prefix>-<hash>``, where the hash is taken over the full
    owner name, so distinct owners keep distinct names. Suffixes are never
    truncated.

    Example:
        >>> Namer().suffix("prod", "transport", "ca-internal")
        'prod-ts-transport-ca-internal'
    """

    default_suffixes: tuple[str, ...] = (DEFAULT_CLUSTER_SUFFIX,)
    max_length: int = MAX_NAME_LENGTH
    separator: str = field(default="-")

    def suffix(self, owner_name: str, *suffixes: str) -> str:
        parts = [s for s in (*self.default_suffixes, *suffixes) if s]
        tail = "".join(self.separator + s for s in parts)
        budget = self.max_length - len(tail)
        if len(owner_name) <= budget:
            return owner_name + tail

        digest = _name_digest(owner_name)
        prefix_length = budget - len(digest) - len(self.separator)
        if prefix_length < 1:
            raise NamingError(
                f"suffix {tail!r} leaves no room for an owner name "
                f"within {self.max_length} characters"
            )
        return owner_name[:prefix_length] + self.separator + digest + tail


CLUSTER_NAMER = Namer()
