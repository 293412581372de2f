"""Synthesis gateway: the single choke point between synthesized structure and the registry.

Usage:
    gateway = SynthesisGateway(synthesizer, LoopSettings(synthesis_timeout=30))

    request = SynthesisRequest("particles that fall", registry.snapshot())
    proposal = await gateway.propose(request)   # validated, nothing registered yet
    result = gateway.commit(proposal, registry)  # partial success allowed

    result.registered   # ["Position", "Velocity", "Gravity"]
    result.rejections   # [Rejection(kind="system", name="Bad", reason="...")]
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any, TypeVar

import tenacity
from pydantic import BaseModel, ValidationError

from ecsforge.config import LoopSettings
from ecsforge.core.errors import EcsForgeError, SchemaError, SynthesisTimeoutError
from ecsforge.core.types import JSONDict
from ecsforge.registry import SchemaRegistry
from ecsforge.synthesis.models import (
    CommitResult,
    ComponentPayload,
    EntryKind,
    Proposal,
    RawProposal,
    Rejection,
    RelationPayload,
    RepairFocus,
    SynthesisRequest,
    SystemPayload,
)
from ecsforge.synthesis.protocol import Synthesizer

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _entry_name(entry: Any) -> str:
    if isinstance(entry, dict) and isinstance(entry.get("name"), str):
        return entry["name"]
    return "<unnamed>"


def _reason(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def _snapshot_names(snapshot: JSONDict, section: str) -> set[str]:
    return {entry["name"] for entry in snapshot.get(section, []) if "name" in entry}


class SynthesisGateway:
    """Calls a Synthesizer under a timeout and validates its output per entry.

    Args:
        synthesizer: External drafting capability.
        settings: Timeout and retry configuration.
    """

    def __init__(self, synthesizer: Synthesizer, settings: LoopSettings | None = None):
        self._synthesizer = synthesizer
        self._settings = settings or LoopSettings()

    @property
    def settings(self) -> LoopSettings:
        return self._settings

    # Synthesis call

    async def _attempt(self, request: SynthesisRequest) -> RawProposal:
        try:
            result = await asyncio.wait_for(
                self._synthesizer.synthesize(request), self._settings.synthesis_timeout
            )
        except TimeoutError as e:
            raise SynthesisTimeoutError(
                f"Synthesis did not answer within {self._settings.synthesis_timeout}s",
                request.focus.system if request.focus else None,
            ) from e

        if isinstance(result, RawProposal):
            return result
        try:
            return RawProposal.model_validate(result)
        except ValidationError as e:
            raise SchemaError(f"Synthesis response is malformed: {_reason(e)}") from e

    def _build_retryer(self) -> tenacity.AsyncRetrying:
        delay = self._settings.synthesis_retry_delay
        wait: tenacity.wait.wait_base
        if delay > 0:
            wait = tenacity.wait_exponential(multiplier=delay, min=delay)
        else:
            wait = tenacity.wait_none()
        return tenacity.AsyncRetrying(
            stop=tenacity.stop_after_attempt(self._settings.synthesis_retries + 1),
            wait=wait,
            retry=tenacity.retry_if_exception_type(SynthesisTimeoutError),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=False,
        )

    async def synthesize(self, request: SynthesisRequest) -> RawProposal:
        """Await the synthesizer, retrying timed-out calls.

        A timed-out call is abandoned; nothing it might later return is used.

        Raises:
            SynthesisTimeoutError: If every attempt timed out.
            SchemaError: If the response is not a proposal at all.
        """
        attempts = self._settings.synthesis_retries + 1
        try:
            async for attempt in self._build_retryer():
                with attempt:
                    return await self._attempt(request)
        except tenacity.RetryError as e:
            msg = f"Synthesis timed out after {attempts} attempt(s)"
            raise SynthesisTimeoutError(msg) from e.last_attempt.exception()
        raise SynthesisTimeoutError("Synthesis produced no attempt")  # pragma: no cover

    # Validation

    def _validate_entries(
        self,
        kind: EntryKind,
        model: type[M],
        entries: Iterable[Any],
        proposal: Proposal,
    ) -> list[M]:
        accepted: list[M] = []
        for entry in entries:
            if not isinstance(entry, dict):
                proposal.rejections.append(Rejection(kind, "<unnamed>", "entry must be an object"))
                continue
            try:
                accepted.append(model.model_validate(entry))
            except ValidationError as e:
                proposal.rejections.append(Rejection(kind, _entry_name(entry), _reason(e)))
        return accepted

    def validate(
        self,
        raw: RawProposal,
        snapshot: JSONDict,
        focus: RepairFocus | None = None,
    ) -> Proposal:
        """Validate every raw entry against the payload contracts and the snapshot.

        Names already in the snapshot are refused (except the repair target),
        as are duplicates within the batch and systems requiring components
        that are neither in the snapshot nor accepted in this batch.

        Args:
            raw: Synthesizer output.
            snapshot: Registry snapshot the request was made against.
            focus: Repair scope, if this is a repair proposal.

        Returns:
            Proposal holding accepted definitions and per-entry rejections.
        """
        proposal = Proposal(repair_target=focus.system if focus else None, notes=raw.notes)
        taken = set().union(
            *(_snapshot_names(snapshot, s) for s in ("components", "systems", "relations"))
        )
        known_components = _snapshot_names(snapshot, "components")

        def claim(kind: EntryKind, name: str) -> bool:
            if name in taken:
                proposal.rejections.append(Rejection(kind, name, f"Name {name} already exists"))
                return False
            taken.add(name)
            return True

        components = self._validate_entries("component", ComponentPayload, raw.components, proposal)
        for payload in components:
            if claim("component", payload.name):
                proposal.components.append(payload.to_definition())
                known_components.add(payload.name)

        for payload in self._validate_entries("relation", RelationPayload, raw.relations, proposal):
            if claim("relation", payload.name):
                proposal.relations.append(payload.to_definition())

        for payload in self._validate_entries("system", SystemPayload, raw.systems, proposal):
            is_target = payload.name == proposal.repair_target
            if is_target:
                if any(s.name == payload.name for s in proposal.systems):
                    proposal.rejections.append(
                        Rejection("system", payload.name, "Repair target proposed twice")
                    )
                    continue
            elif not claim("system", payload.name):
                continue
            missing = [c for c in payload.required_components if c not in known_components]
            if missing:
                proposal.rejections.append(
                    Rejection(
                        "system",
                        payload.name,
                        f"Requires undeclared components: {', '.join(missing)}",
                    )
                )
                continue
            proposal.systems.append(payload.to_definition())

        for rejection in proposal.rejections:
            logger.warning(
                "Rejected %s %s: %s", rejection.kind, rejection.name, rejection.reason
            )
        return proposal

    async def propose(self, request: SynthesisRequest) -> Proposal:
        """Synthesize and validate. Registers nothing.

        Raises:
            SynthesisTimeoutError: If synthesis timed out on every attempt.
            SchemaError: If the response is not a proposal at all.
        """
        raw = await self.synthesize(request)
        return self.validate(raw, request.registry_snapshot, request.focus)

    # Commit

    def commit(self, proposal: Proposal, registry: SchemaRegistry) -> CommitResult:
        """Register accepted entries: components, then relations, then systems.

        Registration errors become rejections; sibling entries still
        register. The repair target replaces the existing system's logic.

        Returns:
            CommitResult listing what was registered, replaced and rejected
            (validation rejections included).
        """
        result = CommitResult(rejections=list(proposal.rejections))

        def refuse(kind: EntryKind, name: str, error: EcsForgeError) -> None:
            result.rejections.append(Rejection(kind, name, error.message))
            logger.warning("Registration of %s %s failed: %s", kind, name, error.message)

        for component in proposal.components:
            try:
                registry.register_component(component)
                result.components.append(component.name)
            except EcsForgeError as e:
                refuse("component", component.name, e)

        for relation in proposal.relations:
            try:
                registry.register_relation(relation)
                result.relations.append(relation.name)
            except EcsForgeError as e:
                refuse("relation", relation.name, e)

        for system in proposal.systems:
            try:
                if (
                    system.name == proposal.repair_target
                    and registry.get_system(system.name) is not None
                ):
                    registry.replace_system(system)
                    result.replaced.append(system.name)
                else:
                    registry.register_system(system)
                    result.systems.append(system.name)
            except EcsForgeError as e:
                refuse("system", system.name, e)

        return result
