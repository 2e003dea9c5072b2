"""XALT execution trace lookup.

Public API:
-----------
    from tro_spank.trace import ExecutionTrace, locate_trace, parse_trace

Example:
    >>> from tro_spank.trace import locate_trace
    >>> trace = locate_trace(job_id=1234, user="alice")
    >>> if trace is not None:
    ...     print(trace.start_time, trace.end_time)
"""

from ..exceptions import TraceLookupError, TraceReadError
from .core import DEFAULT_TRACE_DIR_NAME, locate_trace, parse_trace, record_job_id, trace_dir_for_user
from .models import ExecutionTrace

__all__ = [
    # Models
    "ExecutionTrace",
    # Exceptions
    "TraceLookupError",
    "TraceReadError",
    # Core functions
    "DEFAULT_TRACE_DIR_NAME",
    "locate_trace",
    "parse_trace",
    "record_job_id",
    "trace_dir_for_user",
]
