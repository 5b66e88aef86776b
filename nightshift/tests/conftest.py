"""
Pytest fixtures for Night Shift tests.
"""

import asyncio

import pytest

from ..engine_core.state import BowtieExercise, ScenarioMode
from ..engine_core.turn import TurnResult
from ..transport import Conversation, ParseResult, Transport


SEPSIS_BOWTIE = {
    "potentialConditions": ["Sepsis", "MI", "PE", "Stroke"],
    "potentialActions": ["O2", "IVF", "Antibiotics", "Position", "Call MD"],
    "potentialMonitoring": ["SpO2", "Temp", "BP", "UO", "LOC"],
}

EDEMA_BOWTIE = {
    "potentialConditions": [
        "Acute Pulmonary Edema", "Pulmonary Embolism", "Pneumonia", "COPD Exacerbation",
    ],
    "potentialActions": [
        "High Fowler's", "Furosemide IV", "Fluid bolus", "Look under the bed", "Call RT",
    ],
    "potentialMonitoring": ["SpO2", "Lung sounds", "Urine output", "Potassium", "LOC"],
}


def turn_payload(**overrides) -> dict:
    """A valid wire-format turn, camelCase as the service sends it."""
    payload = {
        "narrative": "**Assessment**: Patient is febrile and tachycardic.",
        "feedback": "",
        "question": "Complete the diagram based on the current assessment.",
        "vitalSigns": {
            "heartRate": 118,
            "bpSystolic": 92,
            "bpDiastolic": 58,
            "spo2": 93,
            "respRate": 24,
            "temperature": 38.9,
            "condition": "DETERIORATING",
        },
        "visualState": "FLUSHED",
        "bowtie": SEPSIS_BOWTIE,
        "patientHealth": 80,
        "isGameOver": False,
        "isVictory": False,
        "learningReport": None,
    }
    payload.update(overrides)
    return payload


def make_turn(**overrides) -> TurnResult:
    return TurnResult.model_validate(turn_payload(**overrides))


class ScriptedConversation(Conversation):
    """
    Replays queued results in order.

    Each queued item is a ParseResult to return or an exception to raise.
    If `gate` is set, each call waits on it before answering.
    """

    def __init__(self, script: list, gate: asyncio.Event | None = None):
        self.script = script
        self.gate = gate
        self.sent: list[str] = []

    async def advance_turn(self, text: str) -> ParseResult:
        self.sent.append(text)
        if self.gate is not None:
            await self.gate.wait()
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class ScriptedTransport(Transport):
    """Substitute transport: the first queued item answers begin_session."""

    def __init__(self, *items, gate: asyncio.Event | None = None):
        self.items = list(items)
        self.gate = gate
        self.started: list[tuple[ScenarioMode, object]] = []
        self.conversation: ScriptedConversation | None = None

    def queue(self, *items):
        self.items.extend(items)

    async def begin_session(self, mode, payload=None):
        self.started.append((ScenarioMode(mode), payload))
        opening = self.items.pop(0)
        if isinstance(opening, Exception):
            raise opening
        # Later turns share the same queue
        self.conversation = ScriptedConversation(self.items, gate=self.gate)
        return self.conversation, opening


def ok(**overrides) -> ParseResult:
    return ParseResult.success(make_turn(**overrides))


@pytest.fixture
def sepsis_exercise() -> BowtieExercise:
    return BowtieExercise.model_validate(SEPSIS_BOWTIE)


@pytest.fixture
def edema_exercise() -> BowtieExercise:
    return BowtieExercise.model_validate(EDEMA_BOWTIE)


@pytest.fixture
def opening_turn() -> TurnResult:
    return make_turn()
