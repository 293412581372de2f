"""Diagnostic report models."""

from __future__ import annotations

from dataclasses import dataclass

from ecsforge.core.system import FaultRecord
from ecsforge.core.types import JSONDict


@dataclass(frozen=True, slots=True)
class SystemDiagnosis:
    """Findings for one system.

    ``missing_components`` and ``last_error`` are problems; ``warnings`` are
    advisory only and never make a system count as broken.
    """

    name: str
    missing_components: tuple[str, ...] = ()
    last_error: FaultRecord | None = None
    warnings: tuple[str, ...] = ()

    @property
    def has_problems(self) -> bool:
        return bool(self.missing_components) or self.last_error is not None

    def to_dict(self) -> JSONDict:
        return {
            "name": self.name,
            "missingComponents": list(self.missing_components),
            "lastError": self.last_error.to_dict() if self.last_error else None,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True, slots=True)
class ComponentDiagnosis:
    """Findings for one component schema."""

    name: str
    issues: tuple[str, ...] = ()

    @property
    def has_problems(self) -> bool:
        return bool(self.issues)

    def to_dict(self) -> JSONDict:
        return {"name": self.name, "issues": list(self.issues)}


@dataclass(frozen=True, slots=True)
class DiagnosticReport:
    """Consistency and advisory scan over a registry."""

    systems: tuple[SystemDiagnosis, ...] = ()
    components: tuple[ComponentDiagnosis, ...] = ()

    @property
    def has_problems(self) -> bool:
        """True if any system is broken or any component schema is malformed."""
        return any(s.has_problems for s in self.systems) or any(
            c.has_problems for c in self.components
        )

    @property
    def broken_systems(self) -> list[str]:
        return [s.name for s in self.systems if s.has_problems]

    def system(self, name: str) -> SystemDiagnosis | None:
        """Findings for one system, if it was part of the scan."""
        for diagnosis in self.systems:
            if diagnosis.name == name:
                return diagnosis
        return None

    def to_dict(self) -> JSONDict:
        """``{systems: [...], components: [...]}`` JSON shape."""
        return {
            "systems": [s.to_dict() for s in self.systems],
            "components": [c.to_dict() for c in self.components],
        }
