"""Code synthesis gateway: intent to validated component/system definitions.

Usage:
    from ecsforge.synthesis import SynthesisGateway, SynthesisRequest

    gateway = SynthesisGateway(synthesizer)
    proposal = await gateway.propose(SynthesisRequest(intent, registry.snapshot()))
    result = gateway.commit(proposal, registry)
"""

from ecsforge.synthesis.gateway import SynthesisGateway
from ecsforge.synthesis.llm import SYSTEM_PROMPT, LLMSynthesizer, render_request
from ecsforge.synthesis.models import (
    CommitResult,
    ComponentPayload,
    PropertyPayload,
    Proposal,
    RawProposal,
    Rejection,
    RelationPayload,
    RepairFocus,
    SynthesisRequest,
    SystemPayload,
)
from ecsforge.synthesis.protocol import Synthesizer

__all__ = [
    # Gateway
    "SynthesisGateway",
    "Synthesizer",
    "LLMSynthesizer",
    "SYSTEM_PROMPT",
    "render_request",
    # Requests and results
    "SynthesisRequest",
    "RepairFocus",
    "RawProposal",
    "Proposal",
    "Rejection",
    "CommitResult",
    # Payload contracts
    "PropertyPayload",
    "ComponentPayload",
    "SystemPayload",
    "RelationPayload",
]
