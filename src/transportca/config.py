"""
Operator configuration.

Loaded from a YAML file; the path defaults to ``$TRANSPORTCA_CONFIG``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from transportca.certificates.rotation import RotationParams
from transportca.constants import DEFAULT_CLUSTER_SUFFIX, DEFAULT_OPERATION_TIMEOUT_SECONDS
from transportca.context import ReconcileContext
from transportca.exceptions import ConfigurationError
from transportca.naming import Namer
from transportca.storage import StorageConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TRANSPORTCA_CONFIG"


class OperatorConfig(BaseModel):
    """Top-level operator settings.

    Example:
        >>> cfg = OperatorConfig.model_validate({"rotation": {"validity": "P30D"}})
        >>> cfg.rotation.validity.days
        30
    """

    rotation: RotationParams = Field(default_factory=RotationParams)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    operation_timeout_seconds: float = Field(
        default=DEFAULT_OPERATION_TIMEOUT_SECONDS, gt=0, description="Bound for one store call"
    )
    pass_timeout_seconds: Optional[float] = Field(
        default=None, gt=0, description="Bound for a whole reconciliation pass"
    )
    cluster_suffix: str = Field(default=DEFAULT_CLUSTER_SUFFIX, min_length=1)
    log_level: str = Field(default="INFO")

    def namer(self) -> Namer:
        return Namer(default_suffixes=(self.cluster_suffix,))

    def new_context(self) -> ReconcileContext:
        """Deadline for a new reconciliation pass."""
        if self.pass_timeout_seconds is None:
            return ReconcileContext(operation_timeout=self.operation_timeout_seconds)
        return ReconcileContext.with_timeout(
            self.pass_timeout_seconds, operation_timeout=self.operation_timeout_seconds
        )


def load_config(path: Optional[str] = None) -> OperatorConfig:
    """Load the operator config from YAML.

    Falls back to ``$TRANSPORTCA_CONFIG`` and then to defaults when no file
    is given.

    Raises:
        ConfigurationError: If the file cannot be read or is invalid.
    """
    path = path or os.getenv(CONFIG_ENV_VAR)
    if not path:
        return OperatorConfig()

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"cannot read config {path}: {exc}") from exc

    try:
        config = OperatorConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid config {path}: {exc}") from exc
    logger.debug("Loaded config from %s", Path(path).resolve())
    return config
