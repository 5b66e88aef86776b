"""
Reducer - Folds turn results into simulation state.

The reducer is the single point of state change.
Every transition the game loop makes goes through one of these functions.

Design principles:
- Pure function: (state, input) -> new_state
- Snapshots are frozen; nothing is mutated in place
- A failed turn touches only the transcript and the awaiting flag
"""

from __future__ import annotations
import time

from .state import GameStatus, ScenarioMode, Sender, SimulationState
from .turn import TurnResult
from .message_log import Clock, append_message


MIN_HEALTH = 0
MAX_HEALTH = 100

TURN_FAILURE_MESSAGE = (
    "System Error: Connection lost with the simulation server. Please try again."
)
START_FAILURE_MESSAGE = (
    "Failed to initialize simulation. Check your connection or API key."
)


def clamp_health(value: int) -> int:
    return max(MIN_HEALTH, min(MAX_HEALTH, int(value)))


def resolve_status(turn: TurnResult, health: int) -> GameStatus:
    """
    Outcome of a turn.

    Game over wins over victory if the service sets both flags.
    """
    if turn.is_game_over or health <= MIN_HEALTH:
        return GameStatus.GAME_OVER
    if turn.is_victory:
        return GameStatus.VICTORY
    return GameStatus.PLAYING


def apply_turn(
    state: SimulationState,
    turn: TurnResult,
    clock: Clock = time.time,
) -> SimulationState:
    """
    Fold one service response into the state.

    The narrative is appended before the feedback. A presentation layer
    may show the feedback after a pause, but the log order is fixed here.
    """
    health = clamp_health(turn.patient_health)

    messages = append_message(state.messages, Sender.AI, turn.narrative, clock)
    if turn.has_feedback:
        messages = append_message(messages, Sender.SYSTEM, turn.feedback, clock)

    # The report is a one-shot debrief, so it replaces rather than accumulates
    learning_report = state.learning_report
    if turn.learning_report is not None:
        learning_report = tuple(turn.learning_report)

    return state._copy_with(
        status=resolve_status(turn, health),
        vitals=turn.vital_signs,
        visual_state=turn.visual_state or state.visual_state,
        health=health,
        messages=messages,
        bowtie=turn.bowtie,
        question=turn.question,
        learning_report=learning_report,
        is_awaiting=False,
        error_message=None,
        turn_number=state.turn_number + 1,
    )


def begin_loading(mode: ScenarioMode) -> SimulationState:
    """Fresh snapshot for a session whose opening turn is in flight."""
    return SimulationState(
        status=GameStatus.LOADING,
        scenario_mode=ScenarioMode(mode),
        is_awaiting=True,
    )


def begin_turn(
    state: SimulationState,
    text: str,
    clock: Clock = time.time,
) -> SimulationState:
    """Record the player's input and mark the session as awaiting."""
    return state._copy_with(
        messages=append_message(state.messages, Sender.USER, text, clock),
        is_awaiting=True,
    )


def fail_turn(
    state: SimulationState,
    message: str = TURN_FAILURE_MESSAGE,
    clock: Clock = time.time,
) -> SimulationState:
    """
    Abandon the outstanding turn.

    Vitals, health, bowtie and status are left as they were so the
    player can retry.
    """
    return state._copy_with(
        messages=append_message(state.messages, Sender.SYSTEM, message, clock),
        is_awaiting=False,
    )


def fail_start(
    state: SimulationState,
    message: str = START_FAILURE_MESSAGE,
) -> SimulationState:
    """Session could not start; no partial session is kept."""
    return SimulationState(
        status=GameStatus.ERROR,
        scenario_mode=state.scenario_mode,
        error_message=message,
    )


def reset() -> SimulationState:
    """Back to the idle start screen."""
    return SimulationState()
