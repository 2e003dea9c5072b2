"""Job lifecycle domain models.

Defines the SPANK execution contexts, the dispatcher's lifecycle states, and the
per-job context derived from the host handle.
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

__all__ = ["ExecutionContext", "HookState", "JobContext", "DOCUMENT_NAME_TEMPLATE"]

DOCUMENT_NAME_TEMPLATE = "tro-{job_id}.jsonld"


class ExecutionContext(str, Enum):
    """Context a SPANK callback runs in.

    Values follow the names Slurm uses for spank_context().
    """

    SUBMISSION = "local"
    ALLOCATION = "allocator"
    EXECUTION = "remote"
    OTHER = "other"

    @classmethod
    def from_host(cls, value: str) -> "ExecutionContext":
        """Map a host context name onto the closed set, unknown names become OTHER."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.OTHER


class HookState(str, Enum):
    """Lifecycle states of one TroPlugin instance, in order."""

    CREATED = "created"
    CONFIGURED = "configured"
    OPTION_RESOLVED = "option_resolved"
    ACTIVE = "active"
    FINALIZED = "finalized"


class JobContext(BaseModel):
    """Job identity as seen by the plugin.

    Attributes:
        job_id: Slurm job id
        submit_dir: Directory the job was submitted from (SLURM_SUBMIT_DIR)
        job_user: Name of the job owner
    """

    model_config = {"frozen": True, "extra": "forbid"}

    job_id: int = Field(..., ge=0, description="Slurm job id")
    submit_dir: Path = Field(..., description="Job submission directory")
    job_user: str = Field(..., min_length=1, description="Job owner user name")

    @property
    def document_path(self) -> Path:
        """TRO declaration path for this job: {submit_dir}/tro-{job_id}.jsonld."""
        return self.submit_dir / DOCUMENT_NAME_TEMPLATE.format(job_id=self.job_id)
