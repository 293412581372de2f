"""System builder.

Usage:
    move = system(
        "Move",
        requires=("Position",),
        logic='''
for eid in entities:
    Position.x[eid] += 1
''',
    )
    registry.register_system(move)
"""

from __future__ import annotations

import textwrap
from collections.abc import Iterable

from ecsforge.core.query import Query
from ecsforge.core.system.models import SystemDefinition


def system(
    name: str,
    logic: str,
    requires: Iterable[str] | Query = (),
    description: str = "",
) -> SystemDefinition:
    """Build a SystemDefinition (not yet registered).

    Logic text is dedented so it can be written inline in triple-quoted strings.

    Args:
        name: System name.
        logic: Restricted-Python logic body run once per tick.
        requires: Component names the logic operates on.
        description: What the system does.

    Returns:
        New system definition with run_count 0 and no error.
    """
    required = requires.required if isinstance(requires, Query) else tuple(requires)
    return SystemDefinition(
        name=name,
        logic=textwrap.dedent(logic).strip("\n"),
        required_components=required,
        description=description,
    )
