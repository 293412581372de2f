"""System functionality: definitions, fault records and builder."""

from ecsforge.core.system.core import system
from ecsforge.core.system.models import FaultKind, FaultRecord, SystemDefinition

__all__ = [
    # Models
    "SystemDefinition",
    "FaultRecord",
    "FaultKind",
    # Core
    "system",
]
