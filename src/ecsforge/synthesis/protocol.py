"""Synthesizer protocol: the external capability that drafts definitions."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from ecsforge.synthesis.models import RawProposal, SynthesisRequest


@runtime_checkable
class Synthesizer(Protocol):
    """Turns an intent (plus registry context) into unvalidated entries.

    Implementations may return a RawProposal or a plain mapping with
    ``components``, ``systems`` and ``relations`` lists. Nothing they return
    is trusted; the gateway validates every entry.

    Usage:
        class Scripted:
            async def synthesize(self, request: SynthesisRequest) -> RawProposal:
                return RawProposal(components=[{"name": "Position", ...}])

        gateway = SynthesisGateway(Scripted())
    """

    async def synthesize(self, request: SynthesisRequest) -> RawProposal | dict[str, Any]:
        """Draft entries for a request.

        Args:
            request: Intent, registry snapshot, optional repair focus and model.

        Returns:
            Raw proposal; validated entry by entry downstream.
        """
        ...
