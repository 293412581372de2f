"""Query functionality: component-name queries."""

from ecsforge.core.query.models import Query

__all__ = [
    "Query",
]
