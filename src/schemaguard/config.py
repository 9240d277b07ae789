"""Settings for schemaguard.

Settings are read from a YAML file and can be overridden with environment
variables:

- ``SCHEMAGUARD_CONFIG``: path of the settings file
- ``SCHEMAGUARD_READY_TIMEOUT``: seconds to wait for the schema store
  (``none`` waits indefinitely)
- ``SCHEMAGUARD_LOG_LEVEL``: log level name

Example settings file::

    schemaguard:
      ready_timeout: 5
      cache_validators: true
      log_level: INFO
"""

import logging
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, ValidationError

from .models import GuardBaseModel

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "schemaguard.yaml"


class GuardSettingsModel(GuardBaseModel):
    """Runtime settings.

    Attributes:
        ready_timeout: Seconds a validation waits for the schema store to
            finish loading. None waits indefinitely; 0 fails immediately.
        cache_validators: Whether compiled named types are memoized.
        log_level: Log level applied by the command line.
    """

    ready_timeout: float | None = Field(default=0.0, ge=0)
    cache_validators: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    timeout = os.environ.get("SCHEMAGUARD_READY_TIMEOUT")
    if timeout is not None:
        overrides["ready_timeout"] = None if timeout.strip().lower() == "none" else timeout
    log_level = os.environ.get("SCHEMAGUARD_LOG_LEVEL")
    if log_level:
        overrides["log_level"] = log_level.upper()
    return overrides


def load_settings(config_path: Path | None = None) -> GuardSettingsModel:
    """Load settings from a YAML file and the environment.

    Args:
        config_path: Optional path to the settings file. If not provided,
            looks for:
            1. SCHEMAGUARD_CONFIG environment variable
            2. ./schemaguard.yaml

    Returns:
        GuardSettingsModel with defaults applied

    Raises:
        FileNotFoundError: If an explicitly given file doesn't exist
        ValueError: If the settings are invalid
    """
    if config_path is None:
        env_path = os.environ.get("SCHEMAGUARD_CONFIG")
        if env_path:
            config_path = Path(env_path)
        else:
            candidate = Path.cwd() / DEFAULT_CONFIG_NAME
            if candidate.exists():
                config_path = candidate

    raw: dict[str, Any] = {}
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Settings file not found at {config_path}")
        logger.debug(f"Loading settings from: {config_path}")
        try:
            with open(config_path) as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse YAML settings file {config_path}: {e}") from e
        if loaded:
            if not isinstance(loaded, dict):
                raise ValueError(f"Settings file {config_path} must contain a mapping")
            raw = dict(loaded.get("schemaguard", loaded))
    else:
        logger.debug("No settings file found, using defaults")

    raw.update(_env_overrides())
    try:
        return GuardSettingsModel.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid schemaguard settings: {e}") from e
