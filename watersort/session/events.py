"""
Game Events - Ports for side effects outside the engine.

Animation, audio and haptics hang off these hooks. The session calls
them after the engine has produced the new state; the engine itself
never does.

Every hook is a no-op by default, so listeners override only what
they care about.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..engine_core.state import GameState
    from ..engine_core.action import Move, PourResult


class GameEventListener:
    """Base class for session observers."""

    def on_pour(self, move: Move, state: GameState):
        """A pour was executed."""

    def on_invalid_pour(self, result: PourResult, state: GameState):
        """A pour was rejected; state is unchanged."""

    def on_win(self, state: GameState):
        pass

    def on_loss(self, state: GameState):
        pass

    def on_undo(self, state: GameState):
        pass

    def on_redo(self, state: GameState):
        pass

    def on_reset(self, state: GameState):
        pass
