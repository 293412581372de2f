"""Synthesis contracts.

Payload models are the fixed structural contract every synthesized entry
must satisfy before it can reach the registry. They accept the camelCase
keys external generators tend to emit (``requiredComponents``, ``code``)
alongside the snake_case field names.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Any, Literal

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from ecsforge.core.component import (
    ComponentDefinition,
    PropertyDefinition,
    PropertyType,
    duplicate_property_names,
    is_valid_name,
)
from ecsforge.core.component.models import conforms
from ecsforge.core.errors import LogicRejectedError
from ecsforge.core.relation import RelationDefinition
from ecsforge.core.system import FaultRecord, SystemDefinition
from ecsforge.core.types import JSONDict
from ecsforge.execution.sandbox import validate_logic

EntryKind = Literal["component", "system", "relation"]


def _check_name(value: str) -> str:
    if not is_valid_name(value):
        raise ValueError(f"{value!r} is not a valid identifier")
    return value


Identifier = Annotated[str, AfterValidator(_check_name)]


# Payloads


class PropertyPayload(BaseModel):
    """One property of a synthesized component."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: Identifier
    type: PropertyType
    description: str = ""
    default: Any = None

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, value: Any) -> PropertyType:
        if isinstance(value, str | PropertyType):
            return PropertyType.parse(value)
        raise ValueError(f"Property type must be a string, got {type(value).__name__}")

    @model_validator(mode="after")
    def _check_default(self) -> PropertyPayload:
        if self.default is not None and not conforms(self.type, self.default):
            raise ValueError(
                f"default {self.default!r} of {self.name} is not a valid {self.type.value}"
            )
        return self

    def to_definition(self) -> PropertyDefinition:
        if self.default is None:
            return PropertyDefinition(self.name, self.type, self.description)
        return PropertyDefinition(self.name, self.type, self.description, self.default)


class ComponentPayload(BaseModel):
    """A synthesized component schema."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: Identifier
    description: str = ""
    properties: list[PropertyPayload] = Field(min_length=1)

    @model_validator(mode="after")
    def _check_duplicates(self) -> ComponentPayload:
        definitions = tuple(p.to_definition() for p in self.properties)
        dupes = duplicate_property_names(definitions)
        if dupes:
            raise ValueError(f"duplicate properties: {', '.join(dupes)}")
        return self

    def to_definition(self) -> ComponentDefinition:
        return ComponentDefinition(
            name=self.name,
            properties=tuple(p.to_definition() for p in self.properties),
            description=self.description,
        )


class SystemPayload(BaseModel):
    """A synthesized system. Logic must pass sandbox validation."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    name: Identifier
    description: str = ""
    required_components: list[Identifier] = Field(
        default_factory=list,
        validation_alias=AliasChoices("required_components", "requiredComponents"),
    )
    logic: str = Field(min_length=1, validation_alias=AliasChoices("logic", "code"))

    @field_validator("required_components")
    @classmethod
    def _dedupe_required(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    @model_validator(mode="after")
    def _check_logic(self) -> SystemPayload:
        try:
            validate_logic(self.logic, self.name)
        except LogicRejectedError as e:
            raise ValueError(f"logic rejected: {e.message}") from e
        return self

    def to_definition(self) -> SystemDefinition:
        return SystemDefinition(
            name=self.name,
            logic=self.logic,
            required_components=tuple(self.required_components),
            description=self.description,
        )


class RelationPayload(BaseModel):
    """A synthesized relation type."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: Identifier
    description: str = ""
    exclusive: bool = False

    def to_definition(self) -> RelationDefinition:
        return RelationDefinition(self.name, self.exclusive, self.description)


class RawProposal(BaseModel):
    """Unvalidated synthesizer response.

    Entries stay untyped so one malformed entry cannot sink the rest;
    the gateway validates each individually.
    """

    model_config = ConfigDict(extra="ignore")

    components: list[Any] = Field(default_factory=list)
    systems: list[Any] = Field(default_factory=list)
    relations: list[Any] = Field(default_factory=list)
    notes: str = ""


# Requests and results


@dataclass(frozen=True, slots=True)
class RepairFocus:
    """Scope of a repair request: one broken system and what went wrong."""

    system: str
    logic: str
    required_components: tuple[str, ...] = ()
    error: FaultRecord | None = None
    warnings: tuple[str, ...] = ()
    attempt: int = 1

    def to_dict(self) -> JSONDict:
        return {
            "system": self.system,
            "logic": self.logic,
            "requiredComponents": list(self.required_components),
            "lastError": self.error.to_dict() if self.error else None,
            "warnings": list(self.warnings),
            "attempt": self.attempt,
        }


@dataclass(frozen=True, slots=True)
class SynthesisRequest:
    """Input to a Synthesizer.

    Attributes:
        intent: Natural-language request.
        registry_snapshot: ``SchemaRegistry.snapshot()`` at request time.
        focus: Set for repair requests.
        model: Forced model for this call (None uses the synthesizer default).
    """

    intent: str
    registry_snapshot: JSONDict = field(default_factory=dict)
    focus: RepairFocus | None = None
    model: str | None = None


@dataclass(frozen=True, slots=True)
class Rejection:
    """An entry refused by validation or registration."""

    kind: EntryKind
    name: str
    reason: str

    def to_dict(self) -> JSONDict:
        return {"kind": self.kind, "name": self.name, "reason": self.reason}


@dataclass(slots=True)
class Proposal:
    """Validated entries ready to commit, plus what was refused.

    ``repair_target`` names the system a repair proposal replaces.
    """

    components: list[ComponentDefinition] = field(default_factory=list)
    systems: list[SystemDefinition] = field(default_factory=list)
    relations: list[RelationDefinition] = field(default_factory=list)
    rejections: list[Rejection] = field(default_factory=list)
    repair_target: str | None = None
    notes: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.components or self.systems or self.relations)


@dataclass(slots=True)
class CommitResult:
    """What actually reached the registry."""

    components: list[str] = field(default_factory=list)
    systems: list[str] = field(default_factory=list)
    relations: list[str] = field(default_factory=list)
    replaced: list[str] = field(default_factory=list)
    rejections: list[Rejection] = field(default_factory=list)

    @property
    def registered(self) -> list[str]:
        """Every newly registered name, components first."""
        return [*self.components, *self.relations, *self.systems]

    def to_dict(self) -> JSONDict:
        return {
            "components": list(self.components),
            "systems": list(self.systems),
            "relations": list(self.relations),
            "replaced": list(self.replaced),
            "rejections": [r.to_dict() for r in self.rejections],
        }
