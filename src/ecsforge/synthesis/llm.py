"""LLM-backed Synthesizer.

Usage:
    adapter = InstructorAdapter.from_openai(LLMSettings(model="gpt-4o-mini"))
    gateway = SynthesisGateway(LLMSynthesizer(adapter), LoopSettings())
"""

from __future__ import annotations

import json
import logging

from ecsforge.adapters import LLMClient, Message
from ecsforge.execution.sandbox import PRIMITIVE_NAMES
from ecsforge.synthesis.models import RawProposal, SynthesisRequest

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = f"""\
You design entity-component simulations. Answer with JSON holding three lists:

components: {{"name", "description", "properties": [{{"name", "type", "description"}}]}}
  type is one of number, string, boolean, entity (an entity id or null).
relations:  {{"name", "description", "exclusive"}}
systems:    {{"name", "description", "requiredComponents": [...], "logic"}}

System logic is a block of restricted Python run once per tick. No imports,
no try/with/lambda/class, no names starting with an underscore.
Available names: {", ".join(PRIMITIVE_NAMES)}, math, ABSENT, and one view per
required component, e.g. Position.x[eid]. Example:

    for eid in entities:
        Position.x[eid] += Velocity.dx[eid]

List every component the logic touches in requiredComponents. Reuse
components that already exist instead of redefining them.
"""


def render_request(request: SynthesisRequest) -> str:
    """User message for a synthesis or repair request."""
    parts = [
        f"Intent: {request.intent}",
        "Registry:",
        json.dumps(request.registry_snapshot, indent=2, default=str),
    ]
    if request.focus is not None:
        focus = request.focus
        parts += [
            f"Repair system {focus.system} (attempt {focus.attempt}).",
            "Return exactly one system with that name, with fixed logic.",
            "Current logic:",
            focus.logic,
        ]
        if focus.error is not None:
            parts.append(f"Last error: {focus.error.message}")
            if focus.error.excerpt:
                parts.append(f"Offending code: {focus.error.excerpt}")
        if focus.warnings:
            parts.append("Warnings: " + "; ".join(focus.warnings))
    return "\n".join(parts)


class LLMSynthesizer:
    """Synthesizer that asks an LLMClient for a RawProposal.

    Args:
        client: Structured-output LLM client.
        system_prompt: Override the default contract description.
    """

    def __init__(self, client: LLMClient, system_prompt: str = SYSTEM_PROMPT):
        self._client = client
        self._system_prompt = system_prompt

    async def synthesize(self, request: SynthesisRequest) -> RawProposal:
        messages = [Message.system(self._system_prompt), Message.user(render_request(request))]
        logger.info(
            "Requesting synthesis%s",
            f" (repair of {request.focus.system})" if request.focus else "",
        )
        return await self._client.call_async(
            messages, response_model=RawProposal, model=request.model
        )
