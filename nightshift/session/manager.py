"""
Session Manager - Creates and tracks simulation sessions.

LIFECYCLE:
1. Player picks a start mode -> session created (in-memory only)
2. During play:
   - Player sends questions or bowtie submissions
   - Service returns the next turn
   - Reducer folds it into the session's state
3. Scenario ends (game over / victory) -> debrief shown
4. Player returns to the station -> session ended, ALL state deleted

PERSISTENCE RULES:
- NO database, no files
- Each session owns its own service conversation
- Sessions are independent; nothing is shared between them
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable
import logging
import time
import uuid

from ..transport import Transport
from .game_loop import GameLoop

logger = logging.getLogger(__name__)

TransportFactory = Callable[[], Transport]


@dataclass
class Session:
    """
    An ephemeral simulation session.

    The session is destroyed when the player leaves. State is NOT persisted.
    """
    session_id: str
    loop: GameLoop
    created_at: float
    last_active: float = 0.0

    def touch(self):
        self.last_active = time.time()

    def is_active(self) -> bool:
        """Check if the scenario is still being played."""
        return self.loop.state.is_active

    def is_busy(self) -> bool:
        return self.loop.is_awaiting


@dataclass
class SessionManager:
    """
    Manages simulation sessions.

    Responsibilities:
    - Create sessions, each with its own transport and game loop
    - Look sessions up by ID
    - Clean up ended and stale sessions
    """
    transport_factory: TransportFactory
    _sessions: dict[str, Session] = field(default_factory=dict)

    def create_session(self) -> Session:
        """Create a new idle session. The caller starts the scenario."""
        session_id = str(uuid.uuid4())
        now = time.time()
        loop = GameLoop(self.transport_factory(), session_id=session_id)
        session = Session(
            session_id=session_id,
            loop=loop,
            created_at=now,
            last_active=now,
        )
        self._sessions[session_id] = session
        logger.info("Created session %s", session_id)
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and drop it from memory.

        A session with a call outstanding is still removed; the call
        finishes against a loop nothing refers to anymore.
        """
        session = self._sessions.pop(session_id, None)
        if not session:
            return False
        logger.info("Ended session %s (%s)", session_id, reason)
        return True

    def list_sessions(self) -> list[str]:
        return list(self._sessions.keys())

    def list_active_sessions(self) -> list[str]:
        """List IDs of sessions with a scenario in progress."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        Remove idle sessions untouched for longer than max_age.

        Sessions with a call outstanding are never removed here.
        """
        current_time = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if current_time - session.last_active > max_age_seconds
            and not session.is_busy()
        ]
        for session_id in stale:
            self.end_session(session_id, reason="stale")
        return len(stale)
