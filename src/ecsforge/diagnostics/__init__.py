"""Consistency and advisory-warning scan over a registry.

Usage:
    from ecsforge.diagnostics import diagnose

    report = diagnose(registry)
    report.system("Move").missing_components
"""

from ecsforge.diagnostics.analysis import analyze_logic
from ecsforge.diagnostics.core import diagnose, diagnose_component, diagnose_system
from ecsforge.diagnostics.models import ComponentDiagnosis, DiagnosticReport, SystemDiagnosis

__all__ = [
    # Entry points
    "diagnose",
    "diagnose_system",
    "diagnose_component",
    "analyze_logic",
    # Models
    "DiagnosticReport",
    "SystemDiagnosis",
    "ComponentDiagnosis",
]
