"""Tests for synthesis payload contracts.

Critical Invariants:
- Payloads accept camelCase aliases external generators emit
- Names must be identifiers; logic must pass sandbox validation
- Defaults must conform to their declared type
"""

import pytest
from pydantic import ValidationError

from ecsforge import PropertyType
from ecsforge.core.system import FaultRecord
from ecsforge.synthesis import ComponentPayload, PropertyPayload, RepairFocus, SystemPayload


def test_system_payload_accepts_aliases_and_dedupes():
    payload = SystemPayload.model_validate(
        {
            "name": "Move",
            "requiredComponents": ["Position", "Position", "Velocity"],
            "code": "pass",
            "extra": "ignored",
        }
    )

    defn = payload.to_definition()
    assert defn.required_components == ("Position", "Velocity")
    assert defn.logic == "pass"


def test_system_payload_rejects_unsafe_logic():
    with pytest.raises(ValidationError, match="logic rejected"):
        SystemPayload(name="Leak", logic="__import__('os')")


@pytest.mark.parametrize("name", ["bad name", "class", "__init__"])
def test_invalid_identifiers_rejected(name):
    with pytest.raises(ValidationError, match="not a valid identifier"):
        SystemPayload(name=name, logic="pass")


def test_property_payload_parses_type_and_checks_default():
    prop = PropertyPayload.model_validate({"name": "hp", "type": "int", "default": 10})
    assert prop.type is PropertyType.NUMBER
    assert prop.to_definition().default == 10

    with pytest.raises(ValidationError, match="not a valid boolean"):
        PropertyPayload.model_validate({"name": "alive", "type": "bool", "default": "yes"})


def test_component_payload_needs_unique_properties():
    with pytest.raises(ValidationError):
        ComponentPayload.model_validate({"name": "Empty", "properties": []})

    with pytest.raises(ValidationError, match="duplicate properties: x"):
        ComponentPayload.model_validate(
            {
                "name": "Twice",
                "properties": [
                    {"name": "x", "type": "number"},
                    {"name": "x", "type": "string"},
                ],
            }
        )


def test_repair_focus_dict():
    focus = RepairFocus(
        "Move", "pass", ("Position",), FaultRecord("boom", line=1), ("warn",), attempt=2
    )

    data = focus.to_dict()

    assert data["requiredComponents"] == ["Position"]
    assert data["lastError"]["message"] == "boom"
    assert data["attempt"] == 2
