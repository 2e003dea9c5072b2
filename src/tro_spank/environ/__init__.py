"""Job environment injection for XALT tracing.

Public API:
-----------
    from tro_spank.environ import (
        EnvMutation,
        apply_mutations,
        compose_preload,
        compute_mutations,
        resolve_job_user,
    )

See core and models modules for detailed documentation.
"""

from ..exceptions import EnvInjectionError
from .core import GPG_HOME_VARS, PRELOAD_SEPARATOR, PRELOAD_VAR, apply_mutations, compose_preload, compute_mutations, resolve_job_user, xalt_shim_path
from .models import EnvMutation

__all__ = [
    # Models
    "EnvMutation",
    # Exceptions
    "EnvInjectionError",
    # Constants
    "GPG_HOME_VARS",
    "PRELOAD_VAR",
    "PRELOAD_SEPARATOR",
    # Core functions
    "apply_mutations",
    "compose_preload",
    "compute_mutations",
    "resolve_job_user",
    "xalt_shim_path",
]
