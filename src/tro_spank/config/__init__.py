"""Configuration module for tro-spank.

Resolves the plugin argument vector (plugstack.conf ``key=value`` entries) into a
validated PluginConfig, and loads process-level operator settings from
environment variables with pydantic-settings.

Plugin arguments:
-----------------
- xalt_dir: XALT installation directory (must exist)
- gpg_home: GnuPG home holding the signing key
- gpg_fingerprint: Signing key fingerprint
- gpg_passphrase: Signing key passphrase
- trs_caps: TRS capabilities profile
- tro_utils: tro-utils executable

Unknown keys are ignored so newer plugstack.conf lines keep working with older
plugin releases.

Example:
--------
>>> from tro_spank.config import parse_plugin_args, load_settings
>>> config = parse_plugin_args(["xalt_dir=/opt/xalt", "gpg_fingerprint=ABCD"])
>>> settings = load_settings()  # reads TRO_SPANK_* variables
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain import PluginConfig
from ..exceptions import InvalidPathError

__all__ = [
    "HookSettings",
    "load_settings",
    "parse_plugin_args",
    "parse_xalt_dir",
    "ENV_PREFIX",
    "PLUGIN_KEYS",
]

logger = logging.getLogger(__name__)

ENV_PREFIX = "TRO_SPANK_"

PLUGIN_KEYS = ("xalt_dir", "gpg_home", "gpg_fingerprint", "gpg_passphrase", "trs_caps", "tro_utils")

VALID_LOGGING_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


# ============================================================================
# Operator Settings
# ============================================================================


class HookSettings(BaseSettings):
    """Process-level settings for the plugin, read from TRO_SPANK_* variables."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    log_level: str = Field(default="INFO")
    log_structured: bool = Field(default=False)
    tool_timeout_s: Optional[float] = Field(default=None, gt=0)
    option_name: str = Field(default="generate-tro", min_length=1)
    trace_dir_name: str = Field(default=".xalt.d", min_length=1)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the logging level name."""
        level = v.upper()
        if level not in VALID_LOGGING_LEVELS:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {sorted(VALID_LOGGING_LEVELS)}")
        return level


def load_settings(**overrides: Any) -> HookSettings:
    """Load operator settings from the environment.

    Args:
        **overrides: Explicit values that take precedence over the environment

    Returns:
        HookSettings instance
    """
    return HookSettings(**overrides)


# ============================================================================
# Plugin Argument Resolution
# ============================================================================


def parse_xalt_dir(value: str) -> Path:
    """Validate that xalt_dir points at an existing directory.

    Raises:
        InvalidPathError: If the path is not a directory
    """
    xalt_dir = Path(value)
    # Path("") resolves to the current directory
    if not value or not xalt_dir.is_dir():
        raise InvalidPathError(f"xalt_dir={value} is not a valid directory", context={"entry": f"xalt_dir={value}"})
    return xalt_dir


def parse_plugin_args(argv: Sequence[str], generate_enabled: bool = False) -> PluginConfig:
    """Resolve plugin arguments into a PluginConfig.

    Entries are processed in order; a repeated key overrides the earlier value.

    Args:
        argv: Plugin argument vector (``key=value`` strings)
        generate_enabled: Initial value of the capture flag

    Returns:
        Validated PluginConfig

    Raises:
        InvalidPathError: If xalt_dir is not an existing directory
    """
    values: Dict[str, Any] = {}

    for arg in argv:
        key, sep, value = arg.partition("=")
        if not sep or key not in PLUGIN_KEYS:
            logger.debug(f"Ignoring unknown plugin argument: {key}")
            continue

        if key == "xalt_dir":
            values[key] = parse_xalt_dir(value)
        elif key in ("gpg_home", "trs_caps", "tro_utils"):
            values[key] = Path(os.path.expanduser(value))
        else:
            values[key] = value

    return PluginConfig(generate_enabled=generate_enabled, **values)
