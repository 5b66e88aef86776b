"""
Session Transport - Conversations with the generative service.

A Transport opens a Conversation; a Conversation exchanges one
request/response pair per player turn. The conversation is an explicit
object owned by whoever started it, never a module-level handle, so
sessions stay independent and tests can substitute a scripted transport.

Failure modes:
- Service unreachable, rejected the call, or sent no text: TransportError
- Service sent text that does not match the schema: ParseResult(ok=False)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
import logging
from typing import Any

from ..config import Settings
from ..engine_core.state import ScenarioMode
from ..errors import TransportError
from .prompts import ScenarioPrompts
from .schema import ParseResult, TURN_RESPONSE_SCHEMA, parse_turn_payload

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"


class Conversation(ABC):
    """One ongoing scenario conversation."""

    @abstractmethod
    async def advance_turn(self, text: str) -> ParseResult:
        """Send the player's input and return the next turn."""


class Transport(ABC):
    """Factory for conversations."""

    @abstractmethod
    async def begin_session(
        self,
        mode: ScenarioMode,
        payload: str | bytes | None = None,
    ) -> tuple[Conversation, ParseResult]:
        """
        Start a new scenario.

        Args:
            mode: How the opening scenario is generated
            payload: Topic hint (random) or PDF bytes (upload)

        Returns:
            (conversation, opening turn)
        """


def build_opening_message(mode: ScenarioMode, payload: str | bytes | None) -> Any:
    """
    Build the first message for a start mode.

    Returns a string, or for uploads a list of [pdf part, instruction].
    """
    mode = ScenarioMode(mode)
    if mode == ScenarioMode.CLASS:
        return ScenarioPrompts.class_start()

    if mode == ScenarioMode.UPLOAD:
        if not isinstance(payload, (bytes, bytearray)) or not payload:
            raise ValueError("Upload mode requires non-empty PDF bytes")
        from google.genai import types
        return [
            types.Part.from_bytes(data=bytes(payload), mime_type=PDF_MIME_TYPE),
            ScenarioPrompts.upload_start(),
        ]

    if isinstance(payload, (bytes, bytearray)):
        raise ValueError("Random mode takes a topic string, not bytes")
    return ScenarioPrompts.random_start(payload)


class GeminiConversation(Conversation):
    """Conversation backed by a google-genai async chat."""

    def __init__(self, chat: Any, model: str):
        self._chat = chat
        self.model = model

    async def _send(self, message: Any) -> ParseResult:
        try:
            response = await self._chat.send_message(message)
        except Exception as e:
            logger.error("Simulation service call failed: %s", e)
            raise TransportError(f"Simulation service call failed: {e}") from e

        text = response.text
        if not text:
            raise TransportError("No response from simulation service")

        result = parse_turn_payload(text)
        if not result.ok:
            logger.error("Simulation service returned invalid format: %s", result.error)
        return result

    async def open(self, message: Any) -> ParseResult:
        return await self._send(message)

    async def advance_turn(self, text: str) -> ParseResult:
        return await self._send(ScenarioPrompts.advance(text))


class GeminiTransport(Transport):
    """
    Transport for the Gemini API.

    Usage:
        transport = GeminiTransport.from_settings(load_settings())
        conversation, opening = await transport.begin_session(ScenarioMode.RANDOM, "Sepsis")
        if opening.ok:
            result = await conversation.advance_turn("What are the breath sounds?")
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        thinking_budget: int = 1024,
        client: Any = None,
    ):
        if client is None:
            from google import genai
            client = genai.Client(api_key=api_key)
        self._client = client
        self.model = model
        self.thinking_budget = thinking_budget

    @classmethod
    def from_settings(cls, settings: Settings) -> GeminiTransport:
        return cls(
            api_key=settings.require_api_key(),
            model=settings.model,
            thinking_budget=settings.thinking_budget,
        )

    def _chat_config(self):
        from google.genai import types
        return types.GenerateContentConfig(
            system_instruction=ScenarioPrompts.system_instruction(),
            response_mime_type="application/json",
            response_schema=TURN_RESPONSE_SCHEMA,
            thinking_config=types.ThinkingConfig(thinking_budget=self.thinking_budget),
        )

    async def begin_session(
        self,
        mode: ScenarioMode,
        payload: str | bytes | None = None,
    ) -> tuple[GeminiConversation, ParseResult]:
        try:
            message = build_opening_message(mode, payload)
        except ValueError as e:
            raise TransportError(f"Cannot start {ScenarioMode(mode).value} scenario: {e}") from e

        logger.info("Starting %s scenario on %s", ScenarioMode(mode).value, self.model)
        try:
            chat = self._client.aio.chats.create(model=self.model, config=self._chat_config())
        except Exception as e:
            logger.error("Could not open simulation chat: %s", e)
            raise TransportError(f"Could not open simulation chat: {e}") from e

        conversation = GeminiConversation(chat, self.model)
        return conversation, await conversation.open(message)
