"""
Decision Board - Selection state for the bowtie exercise.

The board tracks which candidates the player has picked in each column:
- Condition (center): exactly 1
- Actions to take (left): exactly 2
- Parameters to monitor (right): exactly 2

States:
    EMPTY      no exercise loaded
    SELECTING  exercise loaded, picks incomplete
    READY      all picks made, can submit
    SUBMITTED  submission sent, waiting for the next exercise

Over-cap picks are ignored, not raised. The interface disables those
controls, so reaching the cap is not an error.

Selections survive a reload of an identical exercise. The service
re-sends the same bowtie when the player asks a free-text question
instead of submitting.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from .state import BowtieExercise
from ..errors import BoardNotReadyError


SUBMISSION_MARKER = "CLINICAL JUDGMENT SUBMITTED:"

MAX_CONDITIONS = 1
MAX_ACTIONS = 2
MAX_MONITORING = 2


class BoardState(Enum):
    EMPTY = "empty"
    SELECTING = "selecting"
    READY = "ready"
    SUBMITTED = "submitted"


class BoardColumn(str, Enum):
    CONDITION = "condition"
    ACTION = "action"
    MONITORING = "monitoring"


@dataclass(frozen=True)
class BoardSelection:
    """Snapshot of the player's picks. Tuples keep pick order."""
    condition: str | None = None
    actions: tuple[str, ...] = ()
    monitoring: tuple[str, ...] = ()

    @property
    def is_complete(self) -> bool:
        return (
            self.condition is not None
            and len(self.actions) == MAX_ACTIONS
            and len(self.monitoring) == MAX_MONITORING
        )

    @property
    def remaining(self) -> int:
        return (
            (0 if self.condition else MAX_CONDITIONS)
            + (MAX_ACTIONS - len(self.actions))
            + (MAX_MONITORING - len(self.monitoring))
        )


def format_submission(selection: BoardSelection) -> str:
    """
    Render a complete selection as the outbound submission text.

    The service is primed to treat input starting with the marker line
    as a structured submission rather than a question.
    """
    return "\n".join([
        SUBMISSION_MARKER,
        f"- Diagnosis/Condition: {selection.condition}",
        f"- Actions Taken: {', '.join(selection.actions)}",
        f"- Parameters Monitored: {', '.join(selection.monitoring)}",
    ])


def _toggle_capped(chosen: tuple[str, ...], item: str, cap: int) -> tuple[str, ...]:
    if item in chosen:
        return tuple(i for i in chosen if i != item)
    if len(chosen) < cap:
        return chosen + (item,)
    return chosen


@dataclass
class DecisionBoard:
    """
    Single-writer state machine for one session's bowtie board.

    Usage:
        board = DecisionBoard()
        board.load_exercise(turn.bowtie)
        board.toggle_condition("Sepsis")
        board.toggle_action("O2")
        ...
        if board.is_ready():
            text = board.submit()
    """
    exercise: BowtieExercise | None = None
    selection: BoardSelection = field(default_factory=BoardSelection)
    submitted: bool = False

    # Held by the game loop while a transport call is outstanding
    locked: bool = False

    @property
    def state(self) -> BoardState:
        if self.exercise is None:
            return BoardState.EMPTY
        if self.submitted:
            return BoardState.SUBMITTED
        if self.selection.is_complete:
            return BoardState.READY
        return BoardState.SELECTING

    @property
    def accepts_input(self) -> bool:
        return self.exercise is not None and not self.submitted and not self.locked

    def load_exercise(self, exercise: BowtieExercise | None) -> bool:
        """
        Load the exercise that arrived with a turn.

        Returns True if selections were cleared.
        """
        if self._same_exercise(exercise):
            # A turn came back, so any earlier submission is settled
            self.submitted = False
            return False

        self.exercise = exercise
        self.selection = BoardSelection()
        self.submitted = False
        return True

    def _same_exercise(self, exercise: BowtieExercise | None) -> bool:
        if self.exercise is None or exercise is None:
            return self.exercise is None and exercise is None
        return self.exercise.fingerprint() == exercise.fingerprint()

    def toggle_condition(self, item: str) -> bool:
        """Pick a condition, or clear it if already picked."""
        if not self.accepts_input or item not in self.exercise.potential_conditions:
            return False
        condition = None if self.selection.condition == item else item
        self.selection = BoardSelection(
            condition=condition,
            actions=self.selection.actions,
            monitoring=self.selection.monitoring,
        )
        return True

    def toggle_action(self, item: str) -> bool:
        """Add or remove an action; ignored when two are already picked."""
        if not self.accepts_input or item not in self.exercise.potential_actions:
            return False
        actions = _toggle_capped(self.selection.actions, item, MAX_ACTIONS)
        if actions == self.selection.actions:
            return False
        self.selection = BoardSelection(
            condition=self.selection.condition,
            actions=actions,
            monitoring=self.selection.monitoring,
        )
        return True

    def toggle_monitoring(self, item: str) -> bool:
        """Add or remove a monitoring parameter; ignored at the cap."""
        if not self.accepts_input or item not in self.exercise.potential_monitoring:
            return False
        monitoring = _toggle_capped(self.selection.monitoring, item, MAX_MONITORING)
        if monitoring == self.selection.monitoring:
            return False
        self.selection = BoardSelection(
            condition=self.selection.condition,
            actions=self.selection.actions,
            monitoring=monitoring,
        )
        return True

    def toggle(self, column: BoardColumn, item: str) -> bool:
        """Dispatch a toggle by column."""
        handlers = {
            BoardColumn.CONDITION: self.toggle_condition,
            BoardColumn.ACTION: self.toggle_action,
            BoardColumn.MONITORING: self.toggle_monitoring,
        }
        return handlers[BoardColumn(column)](item)

    def is_ready(self) -> bool:
        return self.selection.is_complete

    def remaining_picks(self) -> int:
        return self.selection.remaining

    def is_disabled(self, column: BoardColumn, item: str) -> bool:
        """True if picking this item would be ignored (the UI greys it out)."""
        if not self.accepts_input:
            return True
        column = BoardColumn(column)
        if column == BoardColumn.ACTION:
            chosen = self.selection.actions
            return item not in chosen and len(chosen) >= MAX_ACTIONS
        if column == BoardColumn.MONITORING:
            chosen = self.selection.monitoring
            return item not in chosen and len(chosen) >= MAX_MONITORING
        return False

    def build_submission_text(self) -> str:
        if not self.is_ready():
            raise BoardNotReadyError(
                f"Board incomplete: {self.remaining_picks()} pick(s) remaining"
            )
        return format_submission(self.selection)

    def submit(self) -> str:
        """
        Mark the board submitted and return the submission text.

        Selections are kept; they clear when a different exercise loads.
        """
        if self.state != BoardState.READY:
            raise BoardNotReadyError(f"Cannot submit from {self.state.value} state")
        text = self.build_submission_text()
        self.submitted = True
        return text

    def reopen(self):
        """Return a submitted board to READY after the turn failed."""
        self.submitted = False

    def lock(self):
        self.locked = True

    def unlock(self):
        self.locked = False
