"""Error hierarchy shared by registry, world, engine and synthesis layers.

Every error names the offending component/system (``subject``) and carries a
human-readable message, so failure reports can be surfaced verbatim.

Usage:
    try:
        registry.register_system(defn)
    except MissingDependencyError as e:
        print(e.subject, e.missing)
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecsforge.core.system.models import FaultRecord


class EcsForgeError(Exception):
    """Base class for all ecsforge errors.

    Attributes:
        subject: Name of the component, system, relation or entity at fault.
        message: Human-readable cause.
    """

    def __init__(self, message: str, subject: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.subject = subject


class SchemaError(EcsForgeError):
    """Raised when a component name or value violates the registered schema."""

    pass


class InvalidSchemaError(SchemaError):
    """Raised when a definition itself is malformed (empty/duplicate properties, bad names)."""

    pass


class LogicRejectedError(SchemaError):
    """Raised when system logic fails sandbox validation."""

    def __init__(self, message: str, subject: str | None = None, line: int | None = None) -> None:
        super().__init__(message, subject)
        self.line = line


class DuplicateNameError(EcsForgeError):
    """Raised when registering a name that is already taken."""

    pass


class MissingDependencyError(EcsForgeError):
    """Raised when a system requires components that are not registered."""

    def __init__(self, subject: str, missing: Iterable[str]) -> None:
        self.missing: tuple[str, ...] = tuple(missing)
        super().__init__(
            f"System {subject} requires unregistered components: {', '.join(self.missing)}",
            subject,
        )


class InUseError(EcsForgeError):
    """Raised when unregistering a component that systems still require."""

    def __init__(self, subject: str, dependents: Iterable[str]) -> None:
        self.dependents: tuple[str, ...] = tuple(dependents)
        super().__init__(
            f"Component {subject} is still required by: {', '.join(self.dependents)}",
            subject,
        )


class NotFoundError(EcsForgeError, KeyError):
    """Raised when a named definition does not exist."""

    def __str__(self) -> str:
        return self.message


class AccessError(EcsForgeError):
    """Raised on out-of-bounds access: dead entities or unattached components."""

    pass


class AccessViolationError(AccessError):
    """Raised when system logic touches components it did not declare."""

    pass


class RuntimeFault(EcsForgeError):
    """A fault raised while running a system tick.

    The engine never raises it: a failed tick carries its FaultRecord, and
    callers that prefer exceptions call ``TickResult.raise_for_fault``.
    """

    def __init__(self, fault: FaultRecord, subject: str) -> None:
        super().__init__(fault.message, subject)
        self.fault = fault


class StepLimitExceeded(EcsForgeError):
    """Raised inside sandboxed logic when its loop step budget is exhausted."""

    pass


class SynthesisTimeoutError(EcsForgeError):
    """Raised when the external synthesis call does not answer in time."""

    pass
