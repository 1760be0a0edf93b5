"""
CA Rotation Parameters

Validity duration and renewal threshold for operator-managed CAs, plus the
reuse check that decides whether an existing CA can stay in place.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field, model_validator

from transportca.certificates.ca import CertificateAuthority
from transportca.constants import DEFAULT_CA_VALIDITY, DEFAULT_ROTATE_BEFORE

logger = logging.getLogger(__name__)


class RotationParams(BaseModel):
    """How long a CA is valid and how long before expiry it is renewed.

    Attributes:
        validity: Lifetime of a newly generated CA.
        rotate_before: Renew once the remaining lifetime drops below this.
    """

    model_config = ConfigDict(frozen=True)

    validity: timedelta = Field(default=DEFAULT_CA_VALIDITY)
    rotate_before: timedelta = Field(default=DEFAULT_ROTATE_BEFORE)

    @model_validator(mode="after")
    def _check_window(self) -> "RotationParams":
        if self.validity <= timedelta(0):
            raise ValueError("validity must be positive")
        if self.rotate_before < timedelta(0):
            raise ValueError("rotate_before must not be negative")
        if self.rotate_before >= self.validity:
            raise ValueError("rotate_before must be shorter than validity")
        return self

    @classmethod
    def from_renew_threshold(cls, validity: timedelta, threshold: float) -> "RotationParams":
        """Build params that renew once ``threshold`` of the validity has elapsed.

        Args:
            validity: CA lifetime.
            threshold: Fraction of the lifetime in (0, 1] after which to renew.
        """
        if not 0 < threshold <= 1:
            raise ValueError("threshold must be in (0, 1]")
        return cls(validity=validity, rotate_before=validity * (1 - threshold))

    def renewal_time(self, ca: CertificateAuthority) -> datetime:
        """Point in time after which ``ca`` must be renewed."""
        return ca.not_after - self.rotate_before


def can_reuse_ca(
    ca: CertificateAuthority,
    expected_common_name: str,
    rotation: RotationParams,
    now: datetime,
) -> bool:
    """Return True if an operator-managed CA can be kept for this pass.

    The CA must be able to sign, carry the expected subject, and ``now`` must
    lie in ``[not_before, not_after - rotate_before)``.
    """
    if not ca.key_matches_certificate():
        logger.debug("CA %s has no matching private key", ca.common_name)
        return False
    if ca.common_name != expected_common_name:
        logger.debug(
            "CA subject %r does not match expected %r", ca.common_name, expected_common_name
        )
        return False
    if now < ca.not_before:
        logger.debug("CA %s is not valid yet", ca.common_name)
        return False
    if now >= rotation.renewal_time(ca):
        logger.debug("CA %s reached its renewal time", ca.common_name)
        return False
    return True
