"""
API Service - Business logic layer between API and game loop.

The service:
1. Translates API requests to game loop calls
2. Manages sessions
3. Formats simulation state for front ends

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
Unknown sessions come back as ErrorResponse; contract violations from
the game loop (turn in progress, board not ready) propagate as
NightShiftError subclasses for the caller to map.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .schemas import (
    BowtieInfo,
    ErrorCode,
    ErrorResponse,
    MessageInfo,
    SimulationResponse,
    ToggleResponse,
    VitalsInfo,
)
from ..config import Settings, load_settings
from ..engine_core.board import BoardColumn, DecisionBoard
from ..engine_core.state import GameStatus, ScenarioMode, SimulationState
from ..session import Session, SessionManager
from ..transport import GeminiTransport

logger = logging.getLogger(__name__)


def board_to_info(board: DecisionBoard) -> BowtieInfo | None:
    exercise = board.exercise
    if exercise is None:
        return None
    return BowtieInfo(
        potential_conditions=list(exercise.potential_conditions),
        potential_actions=list(exercise.potential_actions),
        potential_monitoring=list(exercise.potential_monitoring),
        selected_condition=board.selection.condition,
        selected_actions=list(board.selection.actions),
        selected_monitoring=list(board.selection.monitoring),
        board_state=board.state.value,
        remaining_picks=board.remaining_picks(),
        is_ready=board.is_ready(),
    )


def state_to_response(
    session_id: str,
    state: SimulationState,
    board: DecisionBoard,
) -> SimulationResponse:
    vitals = state.vitals
    return SimulationResponse(
        session_id=session_id,
        status=state.status.value,
        is_awaiting=state.is_awaiting,
        vitals=VitalsInfo(
            heart_rate=vitals.heart_rate,
            bp_systolic=vitals.bp_systolic,
            bp_diastolic=vitals.bp_diastolic,
            spo2=vitals.spo2,
            resp_rate=vitals.resp_rate,
            temperature=vitals.temperature,
            condition=vitals.condition.value,
        ),
        visual_state=state.visual_state.value,
        health=state.health,
        messages=[
            MessageInfo(
                id=m.entry_id,
                sender=m.sender.value,
                text=m.text,
                timestamp=m.timestamp,
            )
            for m in state.messages
        ],
        bowtie=board_to_info(board),
        question=state.question,
        learning_report=list(state.learning_report),
        error_message=state.error_message,
        scenario_mode=state.scenario_mode.value if state.scenario_mode else None,
        turn_number=state.turn_number,
    )


def _not_found(session_id: str) -> ErrorResponse:
    return ErrorResponse(
        error="Session not found",
        error_code=ErrorCode.SESSION_NOT_FOUND,
        details={"session_id": session_id},
    )


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        # Start a scenario
        response = await service.start_session(ScenarioMode.RANDOM, topic="Sepsis")

        # Play
        response = await service.send_message(session_id, "Check lung sounds")
        service.toggle(session_id, BoardColumn.CONDITION, "Sepsis")
        response = await service.submit_board(session_id)
    """
    settings: Settings = field(default_factory=load_settings)
    session_manager: SessionManager | None = None

    def __post_init__(self):
        if self.session_manager is None:
            self.session_manager = SessionManager(
                transport_factory=lambda: GeminiTransport.from_settings(self.settings)
            )

    def _get(self, session_id: str) -> Session | None:
        session = self.session_manager.get_session(session_id)
        if session:
            session.touch()
        return session

    def _respond(self, session: Session) -> SimulationResponse:
        return state_to_response(session.session_id, session.loop.state, session.loop.board)

    async def start_session(
        self,
        mode: ScenarioMode,
        topic: str | None = None,
        pdf_bytes: bytes | None = None,
    ) -> SimulationResponse | ErrorResponse:
        """
        Create a session and start its scenario.

        If the scenario fails to start, the session is discarded.
        """
        mode = ScenarioMode(mode)
        payload = pdf_bytes if mode == ScenarioMode.UPLOAD else topic
        if mode == ScenarioMode.UPLOAD and not pdf_bytes:
            return ErrorResponse(
                error="Please upload a valid PDF file.",
                error_code=ErrorCode.INVALID_UPLOAD,
            )

        session = self.session_manager.create_session()
        state = await session.loop.start(mode, payload)

        if state.status == GameStatus.ERROR:
            self.session_manager.end_session(session.session_id, reason="start_failed")
            return ErrorResponse(
                error=state.error_message or "Failed to start scenario",
                error_code=ErrorCode.SCENARIO_START_FAILED,
            )
        return self._respond(session)

    def get_session(self, session_id: str) -> SimulationResponse | ErrorResponse:
        session = self._get(session_id)
        if not session:
            return _not_found(session_id)
        return self._respond(session)

    def end_session(self, session_id: str, reason: str = "user_ended") -> bool:
        return self.session_manager.end_session(session_id, reason)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_sessions()

    async def send_message(self, session_id: str, text: str) -> SimulationResponse | ErrorResponse:
        session = self._get(session_id)
        if not session:
            return _not_found(session_id)
        await session.loop.send_text(text)
        return self._respond(session)

    def toggle(
        self,
        session_id: str,
        column: BoardColumn,
        item: str,
    ) -> ToggleResponse | ErrorResponse:
        session = self._get(session_id)
        if not session:
            return _not_found(session_id)
        changed = session.loop.toggle(column, item)
        return ToggleResponse(
            session_id=session_id,
            changed=changed,
            bowtie=board_to_info(session.loop.board),
        )

    async def submit_board(self, session_id: str) -> SimulationResponse | ErrorResponse:
        session = self._get(session_id)
        if not session:
            return _not_found(session_id)
        await session.loop.submit_board()
        return self._respond(session)
