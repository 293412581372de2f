"""Entity identity models.

Usage:
    entity = EntityId(42)
    assert entity == 42
"""

from typing import NewType

EntityId = NewType("EntityId", int)
"""Opaque, monotonically assigned entity identifier.

Ids are plain integers so they order naturally (queries yield ascending ids)
and serialize without conversion. An id is never reused while its world lives.
"""

FIRST_ENTITY_ID = EntityId(1)
