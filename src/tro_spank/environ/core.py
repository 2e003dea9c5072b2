"""Environment injection for XALT tracing.

Computes the job environment changes that activate XALT for the job's tasks.
compute_mutations is pure; the host-facing adapter applies the result with
apply_mutations through its setenv capability.

Mutation order:
---------------
1. GNUPGHOME, GPG_HOME  <- gpg_home
2. XALT_DIR             <- xalt_dir
3. LD_PRELOAD           <- libxalt_init.so shim prepended to any existing list
4. USER                 <- job owner resolved from the job uid
5. XALT_EXECUTABLE_TRACKING=yes, XALT_TRACING=no
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
import pwd
from typing import Callable, Iterable, List, Optional

from ..domain import PluginConfig
from ..exceptions import EnvInjectionError
from .models import EnvMutation

logger = logging.getLogger(__name__)

GPG_HOME_VARS = ("GNUPGHOME", "GPG_HOME")
PRELOAD_VAR = "LD_PRELOAD"
PRELOAD_SEPARATOR = os.pathsep
XALT_SHIM = Path("lib64") / "libxalt_init.so"
XALT_FLAGS = (
    ("XALT_EXECUTABLE_TRACKING", "yes"),
    ("XALT_TRACING", "no"),
)

Getenv = Callable[[str], Optional[str]]
Setenv = Callable[[str, str, bool], None]


def xalt_shim_path(xalt_dir: Path) -> Path:
    """Path of the XALT init library under an XALT installation."""
    return Path(xalt_dir) / XALT_SHIM


def compose_preload(shim: str, existing: Optional[str]) -> str:
    """Prepend the shim to a preload list without dropping existing entries.

    Args:
        shim: Library to load first
        existing: Current LD_PRELOAD value, None or empty when unset

    Returns:
        ``shim`` alone, or ``shim:existing``
    """
    if not existing:
        return shim
    return f"{shim}{PRELOAD_SEPARATOR}{existing}"


def resolve_job_user(uid: int) -> str:
    """Resolve the job owner's name from the password database.

    USER is sometimes missing from the job environment, which trips XALT, so
    the name is always taken from the numeric owner.

    Raises:
        EnvInjectionError: If the uid has no password entry
    """
    try:
        return pwd.getpwuid(uid).pw_name
    except (KeyError, OverflowError, TypeError) as e:
        raise EnvInjectionError(f"Cannot resolve user name for uid {uid}", context={"uid": uid}) from e


def compute_mutations(config: PluginConfig, getenv: Getenv, job_user: str) -> List[EnvMutation]:
    """Compute the environment changes that enable XALT for the job.

    Args:
        config: Resolved plugin configuration
        getenv: Read access to the job environment
        job_user: Name of the job owner

    Returns:
        Ordered list of mutations

    Raises:
        EnvInjectionError: If xalt_dir or gpg_home is not configured, or job_user is empty
    """
    if config.xalt_dir is None:
        raise EnvInjectionError("xalt_dir is not configured")
    if config.gpg_home is None:
        raise EnvInjectionError("gpg_home is not configured")
    if not job_user:
        raise EnvInjectionError("Job user name is empty")

    mutations = [EnvMutation(name=name, value=str(config.gpg_home)) for name in GPG_HOME_VARS]
    mutations.append(EnvMutation(name="XALT_DIR", value=str(config.xalt_dir)))

    preload = compose_preload(str(xalt_shim_path(config.xalt_dir)), getenv(PRELOAD_VAR))
    mutations.append(EnvMutation(name=PRELOAD_VAR, value=preload))

    mutations.append(EnvMutation(name="USER", value=job_user))
    mutations.extend(EnvMutation(name=name, value=value) for name, value in XALT_FLAGS)

    return mutations


def apply_mutations(mutations: Iterable[EnvMutation], setenv: Setenv) -> None:
    """Apply mutations in order through the host's setenv capability.

    Raises:
        EnvInjectionError: If the host rejects an assignment
    """
    for mutation in mutations:
        try:
            setenv(mutation.name, mutation.value, mutation.overwrite)
        except OSError as e:
            raise EnvInjectionError(f"Failed to set {mutation.name}", context={"name": mutation.name}) from e
        logger.debug(f"Set {mutation.name}={mutation.value}")
