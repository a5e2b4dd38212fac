"""
Session Module - Manages in-memory play sessions.

A session represents one play-through of a level:
- Created from a level (or a saved game)
- Holds the current game state
- Runs pours, undo, redo and hints through the engine
- Notifies listeners so presentation can react

Sessions are EPHEMERAL; saving is done through snapshot().
"""

from .manager import SessionManager, Session, SessionState, PourOutcome
from .events import GameEventListener

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "PourOutcome",
    "GameEventListener",
]
