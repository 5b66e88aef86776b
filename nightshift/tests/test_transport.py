"""
Tests for the transport: payload validation, prompts and the Gemini adapter.

The Gemini client is replaced with a small fake chat; no network calls.
"""

import asyncio
import json
from types import SimpleNamespace

import pytest

from ..engine_core.board import SUBMISSION_MARKER
from ..engine_core.state import GameStatus, ScenarioMode, VisualState, VitalsCondition
from ..errors import TransportError
from ..session import GameLoop
from ..transport import (
    GeminiTransport,
    ScenarioPrompts,
    TURN_RESPONSE_SCHEMA,
    parse_turn_payload,
)
from ..transport.client import build_opening_message
from .conftest import turn_payload


class FakeChat:
    def __init__(self, replies):
        self.replies = list(replies)
        self.sent = []

    async def send_message(self, message):
        self.sent.append(message)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(text=reply)


class FakeChats:
    def __init__(self, chat, error=None):
        self.chat = chat
        self.error = error
        self.calls = []

    def create(self, model, config=None):
        self.calls.append((model, config))
        if self.error is not None:
            raise self.error
        return self.chat


def fake_client(*replies):
    chat = FakeChat(replies)
    chats = FakeChats(chat)
    return SimpleNamespace(aio=SimpleNamespace(chats=chats)), chats, chat


class TestParseTurnPayload:
    def test_valid_payload(self):
        result = parse_turn_payload(json.dumps(turn_payload()))
        assert result.ok
        assert result.turn.patient_health == 80
        assert result.turn.vital_signs.condition == VitalsCondition.DETERIORATING
        assert result.turn.visual_state == VisualState.FLUSHED
        assert len(result.turn.bowtie.potential_actions) == 5

    def test_fenced_payload(self):
        raw = "```json\n" + json.dumps(turn_payload()) + "\n```"
        assert parse_turn_payload(raw).ok

    def test_lowercase_enums_accepted(self):
        payload = turn_payload(visualState="pale")
        payload["vitalSigns"]["condition"] = "critical"
        result = parse_turn_payload(json.dumps(payload))
        assert result.ok
        assert result.turn.visual_state == VisualState.PALE

    def test_empty_payload(self):
        result = parse_turn_payload("  ")
        assert not result.ok
        assert result.error == "Empty response from simulation service"

    def test_not_json(self):
        result = parse_turn_payload("The patient looks unwell.")
        assert not result.ok
        assert result.error.startswith("Invalid turn format")

    def test_missing_required_field(self):
        payload = turn_payload()
        del payload["vitalSigns"]
        result = parse_turn_payload(json.dumps(payload))
        assert not result.ok
        assert "vitalSigns" in result.error

    def test_wrong_candidate_count(self):
        """A bowtie with three conditions is a parse error, not a short board."""
        payload = turn_payload()
        payload["bowtie"] = dict(payload["bowtie"], potentialConditions=["Sepsis", "MI", "PE"])
        assert not parse_turn_payload(json.dumps(payload)).ok

    def test_health_out_of_range(self):
        assert not parse_turn_payload(json.dumps(turn_payload(patientHealth=130))).ok

    def test_unknown_visual_state(self):
        assert not parse_turn_payload(json.dumps(turn_payload(visualState="GREEN"))).ok

    def test_raw_kept_on_failure(self):
        result = parse_turn_payload("{}")
        assert result.raw == "{}"


class TestResponseSchema:
    def test_enums_match_model(self):
        props = TURN_RESPONSE_SCHEMA["properties"]
        assert props["visualState"]["enum"] == [
            "NORMAL", "PALE", "FLUSHED", "CYANOTIC", "SWEATING", "UNCONSCIOUS",
        ]
        assert props["vitalSigns"]["properties"]["condition"]["enum"] == [
            "STABLE", "DETERIORATING", "CRITICAL", "FLATLINE",
        ]

    def test_optional_fields_not_required(self):
        required = TURN_RESPONSE_SCHEMA["required"]
        assert "bowtie" not in required
        assert "learningReport" not in required
        assert "narrative" in required


class TestPrompts:
    def test_system_instruction_names_marker(self):
        assert SUBMISSION_MARKER in ScenarioPrompts.system_instruction()

    def test_random_with_topic(self):
        message = ScenarioPrompts.random_start("Heart Failure")
        assert '"Heart Failure"' in message
        assert "Bowtie" in message

    def test_random_without_topic(self):
        message = ScenarioPrompts.random_start()
        assert "Sepsis" in message and "Stroke" in message

    def test_class_start_uses_fixed_case(self):
        assert "Missing Call Bell" in ScenarioPrompts.missing_bell_scenario()

    def test_advance_wraps_input(self):
        message = ScenarioPrompts.advance("Check lung sounds")
        assert message.startswith("User Selection: Check lung sounds.")
        assert "NEXT Bowtie" in message


class TestOpeningMessage:
    def test_random_is_text(self):
        message = build_opening_message(ScenarioMode.RANDOM, "Sepsis")
        assert isinstance(message, str)
        assert '"Sepsis"' in message

    def test_class_ignores_payload(self):
        assert build_opening_message("class", None) == ScenarioPrompts.class_start()

    def test_upload_attaches_pdf(self):
        parts = build_opening_message(ScenarioMode.UPLOAD, b"%PDF-1.4 lesson")
        assert len(parts) == 2
        assert parts[0].inline_data.mime_type == "application/pdf"
        assert parts[0].inline_data.data == b"%PDF-1.4 lesson"
        assert parts[1] == ScenarioPrompts.upload_start()

    def test_upload_requires_bytes(self):
        with pytest.raises(ValueError):
            build_opening_message(ScenarioMode.UPLOAD, b"")
        with pytest.raises(ValueError):
            build_opening_message(ScenarioMode.UPLOAD, "lesson.pdf")

    def test_random_rejects_bytes(self):
        with pytest.raises(ValueError):
            build_opening_message(ScenarioMode.RANDOM, b"%PDF")


class TestGeminiTransport:
    def test_begin_session_opens_chat(self):
        client, chats, chat = fake_client(json.dumps(turn_payload()))
        transport = GeminiTransport(api_key="test", model="gemini-test", client=client)

        conversation, opening = asyncio.run(
            transport.begin_session(ScenarioMode.RANDOM, "Stroke")
        )

        assert opening.ok
        model, config = chats.calls[0]
        assert model == "gemini-test"
        assert config.response_mime_type == "application/json"
        assert config.thinking_config.thinking_budget == 1024
        assert '"Stroke"' in chat.sent[0]

    def test_advance_turn_wraps_text(self):
        client, _, chat = fake_client(
            json.dumps(turn_payload()),
            json.dumps(turn_payload(feedback="Correct.")),
        )
        transport = GeminiTransport(api_key="test", client=client)

        async def play():
            conversation, _ = await transport.begin_session(ScenarioMode.CLASS)
            return await conversation.advance_turn("Raise the head of the bed")

        result = asyncio.run(play())
        assert result.ok
        assert result.turn.feedback == "Correct."
        assert chat.sent[1] == ScenarioPrompts.advance("Raise the head of the bed")

    def test_service_error_becomes_transport_error(self):
        client, _, _ = fake_client(RuntimeError("503 UNAVAILABLE"))
        transport = GeminiTransport(api_key="test", client=client)

        with pytest.raises(TransportError, match="503 UNAVAILABLE"):
            asyncio.run(transport.begin_session(ScenarioMode.RANDOM))

    def test_empty_text_is_transport_error(self):
        client, _, _ = fake_client(None)
        transport = GeminiTransport(api_key="test", client=client)

        with pytest.raises(TransportError, match="No response"):
            asyncio.run(transport.begin_session(ScenarioMode.RANDOM))

    def test_chat_creation_fault_becomes_transport_error(self):
        client, chats, chat = fake_client()
        chats.error = RuntimeError("client closed")
        transport = GeminiTransport(api_key="test", client=client)

        with pytest.raises(TransportError, match="client closed"):
            asyncio.run(transport.begin_session(ScenarioMode.CLASS))
        assert chat.sent == []

    def test_bad_opening_payload_becomes_transport_error(self):
        client, chats, _ = fake_client()
        transport = GeminiTransport(api_key="test", client=client)

        with pytest.raises(TransportError, match="random"):
            asyncio.run(transport.begin_session(ScenarioMode.RANDOM, b"%PDF"))
        assert chats.calls == []

    def test_game_loop_errors_on_chat_fault(self):
        client, chats, _ = fake_client()
        chats.error = RuntimeError("client closed")
        loop = GameLoop(GeminiTransport(api_key="test", client=client))

        state = asyncio.run(loop.start(ScenarioMode.CLASS))
        assert state.status == GameStatus.ERROR
        assert not state.is_awaiting

    def test_bad_payload_is_parse_failure(self):
        client, _, _ = fake_client('{"narrative": "x"}')
        transport = GeminiTransport(api_key="test", client=client)

        _, opening = asyncio.run(transport.begin_session(ScenarioMode.RANDOM))
        assert not opening.ok
