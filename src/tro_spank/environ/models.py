"""Environment mutation model.

Defines EnvMutation, one variable assignment produced by the environment
injector and applied through the host's setenv capability.
"""

from pydantic import BaseModel, Field

__all__ = ["EnvMutation"]


class EnvMutation(BaseModel):
    """A single job environment assignment.

    Attributes:
        name: Variable name
        value: Value to assign
        overwrite: Replace an existing value when set
    """

    model_config = {"frozen": True, "extra": "forbid"}

    name: str = Field(..., min_length=1, description="Environment variable name")
    value: str = Field(..., description="Value to assign")
    overwrite: bool = Field(default=True, description="Replace an existing value")
