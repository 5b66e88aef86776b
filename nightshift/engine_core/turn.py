"""
Turn Result - One validated response from the generative service.

Field aliases match the camelCase wire format the service is
constrained to; Python code uses the snake_case names.
"""

from __future__ import annotations
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .state import BowtieExercise, VisualState, VitalSigns, lower_enum_value


class TurnResult(BaseModel):
    """
    Everything the service decides for one turn.

    Optional fields:
    - feedback: only after a bowtie submission
    - visual_state: previous appearance is kept when absent
    - bowtie: absent once the scenario ends
    - learning_report: only on the final turn
    """
    narrative: str
    feedback: str | None = None
    question: str | None = None
    vital_signs: VitalSigns = Field(alias="vitalSigns")
    visual_state: VisualState | None = Field(default=None, alias="visualState")
    bowtie: BowtieExercise | None = None
    patient_health: int = Field(alias="patientHealth", ge=0, le=100)
    is_game_over: bool = Field(alias="isGameOver")
    is_victory: bool = Field(alias="isVictory")
    learning_report: list[str] | None = Field(default=None, alias="learningReport")

    model_config = {"populate_by_name": True, "frozen": True}

    @field_validator("visual_state", mode="before")
    @classmethod
    def normalize_visual_state(cls, value: Any) -> Any:
        return lower_enum_value(value)

    @property
    def has_feedback(self) -> bool:
        return bool(self.feedback and self.feedback.strip())
