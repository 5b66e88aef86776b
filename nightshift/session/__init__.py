"""
Session Module - Manages ephemeral simulation sessions.

A session represents one play-through of a scenario:
- Created when the player picks a start mode
- Holds its own service conversation and simulation state
- Processes questions and bowtie submissions one at a time
- Destroyed when the player leaves

Sessions are EPHEMERAL:
- No persistence to database
- Nothing survives the process
"""

from .manager import SessionManager, Session
from .game_loop import GameLoop

__all__ = [
    "SessionManager",
    "Session",
    "GameLoop",
]
