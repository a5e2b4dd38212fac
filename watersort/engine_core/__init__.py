"""
Engine Core - Puzzle data model, pour legality and state transitions.

The engine is the runtime that:
1. Builds a GameState from a Level
2. Validates pours (attempt_pour) without mutating anything
3. Applies legal pours (execute_pour)
4. Undoes and redoes by replaying history from the initial layout
5. Detects won and lost boards
"""

from .state import (
    LiquidColor,
    LiquidLayer,
    Container,
    GameState,
    ContainerInvariantError,
)
from .action import Move, PourFailureKind, PourResult
from .level import Level
from .engine import GameEngine, IllegalPourError, find_container
from .move_generator import MoveGenerator, legal_moves, is_legal
from .canonical import canonical_key, layout_signature, compact_layout

__all__ = [
    "LiquidColor",
    "LiquidLayer",
    "Container",
    "GameState",
    "ContainerInvariantError",
    "Move",
    "PourFailureKind",
    "PourResult",
    "Level",
    "GameEngine",
    "IllegalPourError",
    "find_container",
    "MoveGenerator",
    "legal_moves",
    "is_legal",
    "canonical_key",
    "layout_signature",
    "compact_layout",
]
