"""XALT trace lookup.

XALT writes one JSON record per traced run into the owner's ``~/.xalt.d``
directory. The record's ``userT.job_id`` holds the Slurm job id as a string and
``userDT`` holds the measured start and end times in epoch seconds.

Files are visited in reverse name order and the first matching record wins.
XALT file names carry a timestamp, so when several runs of the same job were
traced the most recent one is used.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..exceptions import TraceReadError
from .models import ExecutionTrace

logger = logging.getLogger(__name__)

DEFAULT_TRACE_DIR_NAME = ".xalt.d"


def trace_dir_for_user(user: str, dir_name: str = DEFAULT_TRACE_DIR_NAME) -> Path:
    """Resolve ``~<user>/<dir_name>``.

    Raises:
        TraceReadError: If the user has no home directory
    """
    home = os.path.expanduser(f"~{user}")
    if home.startswith("~"):
        raise TraceReadError(f"Cannot resolve home directory of user {user}", context={"user": user})
    return Path(home) / dir_name


def record_job_id(record: Any) -> Optional[str]:
    """Return the job id embedded in a raw XALT record, as a string."""
    if not isinstance(record, dict):
        return None
    user_t = record.get("userT")
    if not isinstance(user_t, dict) or user_t.get("job_id") is None:
        return None
    return str(user_t["job_id"])


def parse_trace(record: Dict[str, Any], source: Optional[Path] = None) -> ExecutionTrace:
    """Convert a raw XALT record into an ExecutionTrace.

    Args:
        record: Parsed XALT JSON record
        source: File the record was read from

    Returns:
        ExecutionTrace

    Raises:
        TraceReadError: If the job id or the userDT times are missing or malformed
    """
    job_id = record_job_id(record)
    user_dt = record.get("userDT")
    if job_id is None or not isinstance(user_dt, dict):
        raise TraceReadError("Trace record lacks userT.job_id or userDT", context={"source": str(source)})

    start_time = user_dt.get("start_time")
    end_time = user_dt.get("end_time")
    for name, value in (("start_time", start_time), ("end_time", end_time)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TraceReadError(f"Trace record has no numeric userDT.{name}", context={"source": str(source), name: value})

    command_line = record.get("cmdlineA")
    if isinstance(command_line, str):
        command_line = [command_line]
    elif isinstance(command_line, list):
        command_line = [str(part) for part in command_line]
    else:
        command_line = None

    try:
        return ExecutionTrace(
            job_id=int(job_id),
            start_time=float(start_time),
            end_time=float(end_time),
            command_line=command_line,
            source=source,
        )
    except (ValueError, ValidationError) as e:
        raise TraceReadError(f"Invalid trace record: {e}", context={"source": str(source)}) from e


def locate_trace(job_id: int, user: str, trace_root: Optional[Path] = None, dir_name: str = DEFAULT_TRACE_DIR_NAME) -> Optional[ExecutionTrace]:
    """Find the XALT trace of a job.

    Args:
        job_id: Slurm job id to look for
        user: Job owner, whose home holds the trace directory
        trace_root: Explicit trace directory, overrides ``~<user>/<dir_name>``
        dir_name: Trace directory name under the user's home

    Returns:
        The matching ExecutionTrace, or None when no record matches

    Raises:
        TraceReadError: If the directory cannot be listed or a file cannot be parsed
    """
    trace_dir = Path(trace_root) if trace_root is not None else trace_dir_for_user(user, dir_name)
    target = str(job_id)

    try:
        entries = sorted((entry for entry in trace_dir.iterdir() if entry.is_file()), reverse=True)
    except OSError as e:
        raise TraceReadError(f"Cannot open trace directory {trace_dir}: {e}", context={"trace_dir": str(trace_dir)}) from e

    logger.debug(f"Scanning {len(entries)} trace files in {trace_dir} for job {target}")

    for path in entries:
        try:
            with open(path, "r", encoding="utf-8") as f:
                record = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise TraceReadError(f"Cannot parse trace file {path.name}: {e}", context={"path": str(path)}) from e

        if record_job_id(record) == target:
            logger.info(f"Found trace for job {target}: {path.name}")
            return parse_trace(record, source=path)

    logger.info(f"No trace found for job {target} in {trace_dir}")
    return None
