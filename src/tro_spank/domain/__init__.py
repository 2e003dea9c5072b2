"""Domain models for tro-spank.

Pydantic models shared by the configuration, environment, and hook layers.
All models are immutable (frozen=True) and strict (extra="forbid").

Package Structure:
-----------------
- config: PluginConfig
- job: ExecutionContext, HookState, JobContext

Import Patterns:
---------------
from tro_spank.domain.config import PluginConfig
from tro_spank.domain import JobContext, ExecutionContext
"""

from tro_spank.domain.config import PluginConfig
from tro_spank.domain.job import DOCUMENT_NAME_TEMPLATE, ExecutionContext, HookState, JobContext

__all__ = [
    "PluginConfig",
    "ExecutionContext",
    "HookState",
    "JobContext",
    "DOCUMENT_NAME_TEMPLATE",
]
