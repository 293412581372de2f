"""Registry diagnostics.

Usage:
    report = diagnose(registry)
    if report.has_problems:
        for s in report.systems:
            print(s.name, s.missing_components, s.last_error, s.warnings)

    report.to_dict()  # {"systems": [...], "components": [...]}
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ecsforge.core.component import ComponentDefinition, duplicate_property_names
from ecsforge.core.system import SystemDefinition
from ecsforge.diagnostics.analysis import analyze_logic
from ecsforge.diagnostics.models import ComponentDiagnosis, DiagnosticReport, SystemDiagnosis
from ecsforge.registry import SchemaRegistry

logger = logging.getLogger(__name__)


def diagnose_component(defn: ComponentDefinition) -> ComponentDiagnosis:
    """Schema issues for one component: empty property list, duplicate names."""
    issues: list[str] = []
    if not defn.properties:
        issues.append("Component has no properties")
    dupes = duplicate_property_names(defn.properties)
    if dupes:
        issues.append(f"Duplicate property names: {', '.join(dupes)}")
    return ComponentDiagnosis(defn.name, tuple(issues))


def diagnose_system(defn: SystemDefinition, components: Sequence[str]) -> SystemDiagnosis:
    """Findings for one system against the current set of component names."""
    present = set(components)
    missing = tuple(name for name in defn.required_components if name not in present)
    warnings = analyze_logic(defn.logic, defn.required_components, components, defn.name)
    return SystemDiagnosis(defn.name, missing, defn.last_error, tuple(warnings))


def diagnose(registry: SchemaRegistry, systems: Sequence[str] | None = None) -> DiagnosticReport:
    """Scan a registry for broken systems, malformed schemas and risky logic.

    Args:
        registry: Registry to scan.
        systems: Restrict the system scan to these names (default: all).
            Unknown names are skipped.

    Returns:
        DiagnosticReport covering the selected systems and every component.
    """
    names = registry.list_components()
    selected = registry.list_systems() if systems is None else list(systems)

    system_reports = []
    for name in selected:
        defn = registry.get_system(name)
        if defn is not None:
            system_reports.append(diagnose_system(defn, names))

    component_reports = []
    for name in names:
        defn = registry.get_component(name)
        if defn is not None:
            component_reports.append(diagnose_component(defn))

    report = DiagnosticReport(tuple(system_reports), tuple(component_reports))
    if report.has_problems:
        broken = ", ".join(report.broken_systems) or "schemas"
        logger.info("Diagnostics found problems in %s", broken)
    return report
