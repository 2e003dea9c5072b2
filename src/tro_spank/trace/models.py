"""Execution trace model.

Defines ExecutionTrace, the subset of an XALT run record needed to correlate a
TRO performance with the job's measured execution window.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

__all__ = ["ExecutionTrace"]


class ExecutionTrace(BaseModel):
    """Measured execution of one job.

    Attributes:
        job_id: Slurm job id the record belongs to
        start_time: Execution start, epoch seconds
        end_time: Execution end, epoch seconds
        command_line: Traced command line, if recorded
        source: Trace file the record was read from
    """

    model_config = {"frozen": True, "extra": "forbid"}

    job_id: int = Field(..., ge=0, description="Slurm job id")
    start_time: float = Field(..., description="Execution start (epoch seconds)")
    end_time: float = Field(..., description="Execution end (epoch seconds)")
    command_line: Optional[List[str]] = Field(default=None, description="Traced command line")
    source: Optional[Path] = Field(default=None, description="Trace file path")

    @model_validator(mode="after")
    def validate_window(self) -> "ExecutionTrace":
        """Ensure end_time is not before start_time."""
        if self.end_time < self.start_time:
            raise ValueError(f"end_time ({self.end_time}) precedes start_time ({self.start_time})")
        return self
