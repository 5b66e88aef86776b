"""
Engine Core - Local state management for the simulation.

The engine is the part that does not talk to the service:
1. Holds the SimulationState snapshot
2. Folds TurnResults into it via the reducer
3. Keeps the append-only message log
4. Runs the decision board selection state machine
"""

from .state import (
    SimulationState,
    GameStatus,
    VitalSigns,
    VitalsCondition,
    VisualState,
    ScenarioMode,
    BowtieExercise,
    MessageEntry,
    Sender,
    INITIAL_VITALS,
)
from .turn import TurnResult
from .board import DecisionBoard, BoardState, BoardColumn, BoardSelection, format_submission
from .reducer import apply_turn, begin_loading, begin_turn, fail_turn, fail_start, reset

__all__ = [
    "SimulationState",
    "GameStatus",
    "VitalSigns",
    "VitalsCondition",
    "VisualState",
    "ScenarioMode",
    "BowtieExercise",
    "MessageEntry",
    "Sender",
    "INITIAL_VITALS",
    "TurnResult",
    "DecisionBoard",
    "BoardState",
    "BoardColumn",
    "BoardSelection",
    "format_submission",
    "apply_turn",
    "begin_loading",
    "begin_turn",
    "fail_turn",
    "fail_start",
    "reset",
]
