"""Tests for the LLM-backed synthesizer.

Focus: request rendering and the structured-output call contract.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from ecsforge.adapters import MessageRole
from ecsforge.core.system import FaultRecord
from ecsforge.synthesis import (
    SYSTEM_PROMPT,
    LLMSynthesizer,
    RawProposal,
    RepairFocus,
    SynthesisRequest,
    render_request,
)


def test_system_prompt_lists_primitives():
    assert "has_component" in SYSTEM_PROMPT
    assert "requiredComponents" in SYSTEM_PROMPT


def test_render_plain_request(registry):
    text = render_request(SynthesisRequest("things fall", registry.snapshot()))

    assert text.startswith("Intent: things fall")
    assert '"Position"' in text
    assert "Repair" not in text


def test_render_repair_request(registry):
    fault = FaultRecord("NameError: name 'g' is not defined", excerpt="y -= g")
    focus = RepairFocus("Fall", "y -= g", ("Position",), fault, ("Calls undefined helper g",))

    text = render_request(SynthesisRequest("things fall", registry.snapshot(), focus))

    assert "Repair system Fall (attempt 1)." in text
    assert "Last error: NameError" in text
    assert "Offending code: y -= g" in text
    assert "Warnings: Calls undefined helper g" in text


@pytest.mark.asyncio
async def test_synthesize_calls_client_with_raw_proposal(registry):
    """Why: the gateway relies on a RawProposal-shaped answer and the model override."""
    client = MagicMock()
    client.call_async = AsyncMock(return_value=RawProposal(notes="ok"))
    synthesizer = LLMSynthesizer(client)

    result = await synthesizer.synthesize(
        SynthesisRequest("things fall", registry.snapshot(), model="gpt-4o")
    )

    assert result.notes == "ok"
    args, kwargs = client.call_async.call_args
    messages = args[0]
    assert [m.role for m in messages] == [MessageRole.SYSTEM, MessageRole.USER]
    assert messages[0].content == SYSTEM_PROMPT
    assert kwargs["response_model"] is RawProposal
    assert kwargs["model"] == "gpt-4o"
