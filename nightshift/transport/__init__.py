"""
Transport - Talks to the generative service that owns scenario content.

The transport:
1. Opens a conversation in one of three start modes
2. Sends one player input per turn
3. Validates every response against a strict schema
4. Reports faults as TransportError and bad payloads as ParseResult failures

The service decides everything clinical. Nothing here interprets it.
"""

from .client import Transport, Conversation, GeminiTransport, GeminiConversation
from .schema import ParseResult, parse_turn_payload, TURN_RESPONSE_SCHEMA
from .prompts import ScenarioPrompts

__all__ = [
    "Transport",
    "Conversation",
    "GeminiTransport",
    "GeminiConversation",
    "ParseResult",
    "parse_turn_payload",
    "TURN_RESPONSE_SCHEMA",
    "ScenarioPrompts",
]
