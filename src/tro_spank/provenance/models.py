"""Provenance tool invocation models.

Defines the TRO construction phases and ToolInvocation, the record of one
tro-utils run.
"""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field

__all__ = ["ProvenancePhase", "ToolInvocation"]


class ProvenancePhase(str, Enum):
    """TRO construction phases, in protocol order."""

    OPEN = "open"
    CLOSE = "close"
    CORRELATE = "correlate"
    SEAL = "seal"


class ToolInvocation(BaseModel):
    """Result of one tro-utils run.

    Attributes:
        phase: Protocol phase the run belongs to
        argv: Command line with secrets redacted
        returncode: Process exit status
        stdout: Captured standard output
        stderr: Captured standard error
    """

    model_config = {"frozen": True, "extra": "forbid"}

    phase: ProvenancePhase = Field(..., description="Protocol phase")
    argv: List[str] = Field(..., description="Redacted command line")
    returncode: int = Field(..., description="Exit status")
    stdout: str = Field(default="", description="Captured stdout")
    stderr: str = Field(default="", description="Captured stderr")
