"""
Game Loop - The turn-by-turn interaction driver.

The loop:
1. Player starts a scenario (random topic, classroom case, or PDF)
2. Service returns the opening turn; the board loads its bowtie
3. Player asks a question (free text) or fills and submits the board
4. Service returns the next turn; the reducer folds it into state
5. Board keeps its picks if the bowtie repeats, resets if it changed
6. Repeat until game over or victory

Only one service call may be outstanding. While it is, the board is
locked and any further start/send/submit raises TurnInProgressError.
There is no cancellation: a call always finishes before the next one.
"""

from __future__ import annotations
from typing import Callable
import logging
import time

from ..engine_core.board import BoardColumn, DecisionBoard
from ..engine_core.message_log import Clock
from ..engine_core.reducer import (
    apply_turn,
    begin_loading,
    begin_turn,
    fail_start,
    fail_turn,
    reset,
)
from ..engine_core.state import GameStatus, ScenarioMode, SimulationState
from ..engine_core.turn import TurnResult
from ..errors import GameNotActiveError, TransportError, TurnInProgressError
from ..transport import Conversation, Transport

logger = logging.getLogger(__name__)

StateListener = Callable[[SimulationState], None]


class GameLoop:
    """
    Application controller for one simulation session.

    Usage:
        loop = GameLoop(transport)
        loop.subscribe(render)

        await loop.start(ScenarioMode.RANDOM, "Heart failure")
        await loop.send_text("What are the lung sounds?")

        loop.toggle(BoardColumn.CONDITION, "Acute Pulmonary Edema")
        ...
        await loop.submit_board()
    """

    def __init__(
        self,
        transport: Transport,
        session_id: str | None = None,
        clock: Clock = time.time,
    ):
        self.transport = transport
        self.session_id = session_id
        self.clock = clock

        self.state = SimulationState()
        self.board = DecisionBoard()

        self._conversation: Conversation | None = None
        self._listeners: list[StateListener] = []
        self._in_flight = False

    # =========================================================================
    # Observers
    # =========================================================================

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, new_state: SimulationState):
        self.state = new_state
        for listener in list(self._listeners):
            listener(new_state)

    # =========================================================================
    # Single-flight guard
    # =========================================================================

    @property
    def is_awaiting(self) -> bool:
        return self._in_flight

    def _claim(self):
        if self._in_flight:
            raise TurnInProgressError("A turn is already being processed")
        self._in_flight = True
        self.board.lock()

    def _release(self):
        self._in_flight = False
        self.board.unlock()

    def _require_playing(self):
        if self.state.status != GameStatus.PLAYING or self._conversation is None:
            raise GameNotActiveError(
                f"Session is {self.state.status.value}, not accepting input"
            )

    # =========================================================================
    # Session lifecycle
    # =========================================================================

    async def start(
        self,
        mode: ScenarioMode,
        payload: str | bytes | None = None,
    ) -> SimulationState:
        """
        Start a new scenario, discarding any previous one.

        On failure the state moves to ERROR and no conversation is kept.
        """
        mode = ScenarioMode(mode)
        if mode == ScenarioMode.UPLOAD and not payload:
            raise ValueError("Please upload a valid PDF file.")

        self._claim()
        try:
            self._conversation = None
            self.board = DecisionBoard(locked=True)
            self._commit(begin_loading(mode))

            try:
                conversation, result = await self.transport.begin_session(mode, payload)
            except TransportError as e:
                logger.error("Session %s failed to start: %s", self.session_id, e)
                self._commit(fail_start(self.state))
                return self.state
            except Exception:
                logger.exception("Session %s failed to start", self.session_id)
                self._commit(fail_start(self.state))
                return self.state

            if not result.ok:
                logger.error("Session %s opening turn rejected: %s", self.session_id, result.error)
                self._commit(fail_start(self.state))
                return self.state

            self._conversation = conversation
            self._apply(result.turn)
            logger.info("Session %s started in %s mode", self.session_id, mode.value)
            return self.state
        finally:
            self._release()

    def reset(self) -> SimulationState:
        """Return to idle. Not allowed while a call is outstanding."""
        if self._in_flight:
            raise TurnInProgressError("Cannot reset while a turn is being processed")
        self._conversation = None
        self.board = DecisionBoard()
        self._commit(reset())
        return self.state

    # =========================================================================
    # Player input
    # =========================================================================

    async def send_text(self, text: str) -> SimulationState:
        """Send a free-text question or action. Blank input is ignored."""
        if not text or not text.strip():
            return self.state
        self._require_playing()

        self._claim()
        try:
            await self._run_turn(text)
            return self.state
        finally:
            self._release()

    async def submit_board(self) -> SimulationState:
        """
        Submit the completed bowtie.

        Raises BoardNotReadyError if picks are missing.
        """
        self._require_playing()
        if self._in_flight:
            raise TurnInProgressError("A turn is already being processed")

        text = self.board.submit()
        self._claim()
        try:
            await self._run_turn(text)
            return self.state
        finally:
            self._release()

    def toggle(self, column: BoardColumn, item: str) -> bool:
        """Toggle a board pick. Ignored while a turn is outstanding or after the game ends."""
        if self._in_flight or self.state.status != GameStatus.PLAYING:
            return False
        return self.board.toggle(column, item)

    # =========================================================================
    # Internals
    # =========================================================================

    async def _run_turn(self, text: str) -> bool:
        self._commit(begin_turn(self.state, text, self.clock))

        try:
            result = await self._conversation.advance_turn(text)
        except TransportError as e:
            logger.error("Session %s turn %d failed: %s", self.session_id, self.state.turn_number, e)
            self._fail_turn()
            return False

        if not result.ok:
            logger.error(
                "Session %s turn %d rejected: %s", self.session_id, self.state.turn_number, result.error
            )
            self._fail_turn()
            return False

        self._apply(result.turn)
        return True

    def _fail_turn(self):
        self.board.reopen()
        self._commit(fail_turn(self.state, clock=self.clock))

    def _apply(self, turn: TurnResult):
        new_state = apply_turn(self.state, turn, self.clock)
        if self.board.load_exercise(new_state.bowtie):
            logger.debug("Session %s loaded a new bowtie", self.session_id)
        if new_state.is_terminal:
            logger.info(
                "Session %s ended: %s (health %d)",
                self.session_id, new_state.status.value, new_state.health,
            )
        self._commit(new_state)
