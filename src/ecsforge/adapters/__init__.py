"""LLM integration adapters.

Usage:
    from ecsforge.adapters import LLMClient, Message

    # Implementation (requires the llm extra)
    from ecsforge.adapters.instructor import InstructorAdapter  # pip install ecsforge[llm]
"""

from ecsforge.adapters.models import Message, MessageRole, as_payload
from ecsforge.adapters.protocol import LLMClient

__all__ = [
    # Protocols
    "LLMClient",
    # Message types
    "Message",
    "MessageRole",
    "as_payload",
]
