"""Exception hierarchy for tro-spank.

All errors raised by the package derive from TroError and carry a human-readable
message plus a context dict with the values that explain the failure. The hook
dispatcher logs every TroError at the callback boundary and converts it into
"skip the remaining provenance work", so none of these ever fail the job itself.

Hierarchy:
----------
TroError
├── ConfigError
│   └── InvalidPathError
├── EnvInjectionError
├── TraceLookupError
│   └── TraceReadError
├── ToolInvocationError
└── ProvenanceOrderError

Example:
--------
>>> from tro_spank.exceptions import ConfigError
>>> try:
...     parse_plugin_args(["xalt_dir=/nope"])
... except ConfigError as e:
...     print(e.message, e.context)
"""

from typing import Any, Dict, Optional

__all__ = [
    "TroError",
    "ConfigError",
    "InvalidPathError",
    "EnvInjectionError",
    "TraceLookupError",
    "TraceReadError",
    "ToolInvocationError",
    "ProvenanceOrderError",
]


class TroError(Exception):
    """Base exception for all tro-spank errors.

    Attributes:
        message: Human-readable description
        context: Values relevant to the failure (paths, job ids, return codes)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value!r}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class ConfigError(TroError):
    """Invalid or missing plugin configuration value."""

    pass


class InvalidPathError(ConfigError):
    """A configured path does not point at what it must (e.g. xalt_dir is not a directory)."""

    pass


class EnvInjectionError(TroError):
    """The tracing environment for the job could not be prepared."""

    pass


class TraceLookupError(TroError):
    """Base exception for execution trace lookup failures."""

    pass


class TraceReadError(TraceLookupError):
    """The trace directory could not be opened or a trace file could not be parsed."""

    pass


class ToolInvocationError(TroError):
    """The external provenance tool failed or could not be started."""

    def __init__(self, message: str, phase: str, returncode: Optional[int] = None, stderr: str = "", context: Optional[Dict[str, Any]] = None):
        context = dict(context or {})
        context.setdefault("phase", phase)
        if returncode is not None:
            context.setdefault("returncode", returncode)
        super().__init__(message, context)
        self.phase = phase
        self.returncode = returncode
        self.stderr = stderr


class ProvenanceOrderError(TroError):
    """A provenance phase was requested out of protocol order."""

    pass
