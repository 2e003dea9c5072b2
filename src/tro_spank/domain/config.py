"""Plugin configuration domain model.

PluginConfig is resolved once per job-hook instance from the plugin argument
vector (see tro_spank.config.parse_plugin_args) and is immutable afterwards.

Usage:
------
>>> from tro_spank.config import parse_plugin_args
>>> config = parse_plugin_args(["xalt_dir=/opt/xalt", "tro_utils=/usr/bin/tro-utils"])
>>> config.xalt_dir
PosixPath('/opt/xalt')
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

__all__ = ["PluginConfig"]


class PluginConfig(BaseModel):
    """Per-job plugin configuration.

    Attributes:
        generate_enabled: Whether TRO capture was requested for the job (--generate-tro)
        xalt_dir: XALT installation directory (holds lib64/libxalt_init.so)
        gpg_home: GnuPG home directory holding the signing key
        gpg_fingerprint: Fingerprint of the signing key
        gpg_passphrase: Passphrase of the signing key
        trs_caps: Trusted Research System capabilities profile
        tro_utils: Path to the tro-utils executable
    """

    model_config = {"frozen": True, "extra": "forbid"}

    generate_enabled: bool = Field(default=False, description="TRO capture requested for this job")
    xalt_dir: Optional[Path] = Field(default=None, description="XALT installation directory")
    gpg_home: Optional[Path] = Field(default=None, description="GnuPG home directory")
    gpg_fingerprint: str = Field(default="", description="Signing key fingerprint")
    gpg_passphrase: str = Field(default="", repr=False, description="Signing key passphrase")
    trs_caps: Optional[Path] = Field(default=None, description="TRS capabilities profile")
    tro_utils: Optional[Path] = Field(default=None, description="tro-utils executable")
