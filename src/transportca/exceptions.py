# Copyright (c) Transport-CA Contributors. All rights reserved.
# Licensed under the MIT License.
"""Centralized exception hierarchy for transportca.

All transportca exceptions inherit from TransportCAError. The hierarchy
separates errors the reconciliation driver should simply retry
(TransientError) from errors caused by user configuration
(ConfigurationError), which are surfaced to the user as events before
being raised.
"""


class TransportCAError(Exception):
    """Base exception for all transportca errors."""


class TransientError(TransportCAError):
    """Infrastructure error; the reconciliation pass should be retried."""


class StoreUnavailableError(TransientError):
    """The secret store could not be reached or failed to answer."""


class DeadlineExceededError(TransientError):
    """A store operation did not finish before the pass deadline."""


class SecretNotFoundError(TransportCAError):
    """The requested secret does not exist in the store."""

    def __init__(self, namespace: str, name: str) -> None:
        super().__init__(f"Secret {namespace}/{name} not found")
        self.namespace = namespace
        self.name = name


class ConfigurationError(TransportCAError):
    """User configuration error, reported to the user via an event."""


class CustomCASecretNotFoundError(ConfigurationError):
    """A custom CA reference points to a secret that does not exist."""


class CAValidationError(ConfigurationError):
    """Secret contents could not be parsed or validated as a CA."""


class WatchError(TransportCAError):
    """A dynamic watch could not be installed or removed."""


class NamingError(TransportCAError):
    """A resource name could not be built within the length limit."""


class OwnershipConflictError(TransportCAError):
    """An operator-managed secret belongs to a different cluster."""


__all__ = [
    "TransportCAError",
    "TransientError",
    "StoreUnavailableError",
    "DeadlineExceededError",
    "SecretNotFoundError",
    "ConfigurationError",
    "CustomCASecretNotFoundError",
    "CAValidationError",
    "WatchError",
    "NamingError",
    "OwnershipConflictError",
]
