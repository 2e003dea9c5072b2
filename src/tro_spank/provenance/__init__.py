"""TRO declaration construction and signing.

Public API:
-----------
All public names are re-exported at the package level:

    from tro_spank.provenance import (
        ProvenanceCoordinator,
        ProvenancePhase,
        ToolInvocation,
    )

See core and models modules for detailed documentation.
"""

# Exceptions
from ..exceptions import ProvenanceOrderError, ToolInvocationError

# Core
from .core import END_ARRANGEMENT_REF, START_ARRANGEMENT_REF, ProvenanceCoordinator, performance_message

# Models
from .models import ProvenancePhase, ToolInvocation

__all__ = [
    # Models
    "ProvenancePhase",
    "ToolInvocation",
    # Exceptions
    "ToolInvocationError",
    "ProvenanceOrderError",
    # Core
    "ProvenanceCoordinator",
    "performance_message",
    "START_ARRANGEMENT_REF",
    "END_ARRANGEMENT_REF",
]
