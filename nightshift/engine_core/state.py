"""
Simulation State - Snapshot types for one play-through.

Design principles:
- Immutable: every transition returns a new SimulationState
- Wire-compatible: VitalSigns and BowtieExercise validate the service payload
- Presentation-agnostic: nothing here knows how state is rendered
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class GameStatus(str, Enum):
    """High-level session status. Exactly one holds at a time."""
    IDLE = "idle"
    LOADING = "loading"  # Waiting for the opening turn
    PLAYING = "playing"
    GAME_OVER = "game_over"
    VICTORY = "victory"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in {GameStatus.GAME_OVER, GameStatus.VICTORY}


class VitalsCondition(str, Enum):
    """Qualitative tag the monitor shows next to the vitals."""
    STABLE = "stable"
    DETERIORATING = "deteriorating"
    CRITICAL = "critical"
    FLATLINE = "flatline"


class VisualState(str, Enum):
    """Patient appearance."""
    NORMAL = "normal"
    PALE = "pale"  # Shock, hypoglycemia
    FLUSHED = "flushed"  # Fever, sepsis
    CYANOTIC = "cyanotic"  # Hypoxia
    SWEATING = "sweating"  # MI, pain
    UNCONSCIOUS = "unconscious"


class ScenarioMode(str, Enum):
    """How the opening scenario is generated."""
    RANDOM = "random"  # Procedural, optionally topic-directed
    CLASS = "class"  # Fixed named scenario
    UPLOAD = "upload"  # Derived from a PDF lesson plan


def lower_enum_value(value: Any) -> Any:
    # The service emits upper-case enum values
    if isinstance(value, str):
        return value.strip().lower()
    return value


class VitalSigns(BaseModel):
    """Physiologic readout. Replaced wholesale each turn."""
    heart_rate: int = Field(alias="heartRate")
    bp_systolic: int = Field(alias="bpSystolic")
    bp_diastolic: int = Field(alias="bpDiastolic")
    spo2: int
    resp_rate: int = Field(alias="respRate")
    temperature: float
    condition: VitalsCondition

    model_config = {"populate_by_name": True, "frozen": True}

    @field_validator("condition", mode="before")
    @classmethod
    def normalize_condition(cls, value: Any) -> Any:
        return lower_enum_value(value)

    @property
    def blood_pressure(self) -> str:
        return f"{self.bp_systolic}/{self.bp_diastolic}"

    @property
    def is_tachycardic(self) -> bool:
        return self.heart_rate > 120

    @property
    def is_bradycardic(self) -> bool:
        return self.heart_rate < 50

    @property
    def is_febrile(self) -> bool:
        return self.temperature > 38


INITIAL_VITALS = VitalSigns(
    heart_rate=80,
    bp_systolic=120,
    bp_diastolic=80,
    spo2=98,
    resp_rate=16,
    temperature=37.0,
    condition=VitalsCondition.STABLE,
)


class BowtieExercise(BaseModel):
    """
    One turn's clinical judgment challenge.

    Candidate lists keep the order the service sent them in; two
    exercises are the same only if every list matches element by element.
    """
    potential_conditions: tuple[str, ...] = Field(
        alias="potentialConditions", min_length=4, max_length=4
    )
    potential_actions: tuple[str, ...] = Field(
        alias="potentialActions", min_length=5, max_length=5
    )
    potential_monitoring: tuple[str, ...] = Field(
        alias="potentialMonitoring", min_length=5, max_length=5
    )

    model_config = {"populate_by_name": True, "frozen": True}

    def fingerprint(self) -> tuple[tuple[str, ...], ...]:
        """Structural identity used to decide whether selections reset."""
        return (
            self.potential_conditions,
            self.potential_actions,
            self.potential_monitoring,
        )


class Sender(str, Enum):
    """Who produced a transcript entry."""
    USER = "user"
    SYSTEM = "system"
    AI = "ai"


@dataclass(frozen=True)
class MessageEntry:
    """One transcript item. Never mutated once appended."""
    entry_id: str
    sender: Sender
    text: str
    timestamp: float


@dataclass(frozen=True)
class SimulationState:
    """
    Complete simulation snapshot at a point in time.

    All changes go through the reducer functions, which return a copy.
    """
    status: GameStatus = GameStatus.IDLE
    vitals: VitalSigns = INITIAL_VITALS
    visual_state: VisualState = VisualState.NORMAL
    health: int = 100
    messages: tuple[MessageEntry, ...] = ()
    bowtie: BowtieExercise | None = None
    question: str | None = None
    learning_report: tuple[str, ...] = ()

    # Set while a transport call is outstanding
    is_awaiting: bool = False

    error_message: str | None = None
    scenario_mode: ScenarioMode | None = None
    turn_number: int = 0

    @property
    def is_active(self) -> bool:
        return self.status in {GameStatus.LOADING, GameStatus.PLAYING}

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def last_message(self) -> MessageEntry | None:
        return self.messages[-1] if self.messages else None

    def _copy_with(self, **kwargs) -> SimulationState:
        """Create a copy with some fields changed."""
        return replace(self, **kwargs)
