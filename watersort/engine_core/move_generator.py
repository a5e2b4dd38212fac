"""
Move Generator - Enumerates all legal pours from a layout.

The move generator is used by:
1. The hint solver to expand search nodes
2. The heuristic fallback to rank candidate pours
3. Sessions to tell whether a pour is available

Design: Generates fully specified Move objects by asking the engine,
so there is exactly one legality predicate in the system.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Sequence

from .state import Container, GameState
from .action import Move
from .engine import GameEngine


@dataclass
class MoveGenerator:
    """
    Generates legal pours for a container layout.

    Pairs are scanned in container order: source-major, then target.
    """
    engine: GameEngine = field(default_factory=GameEngine)

    def generate(self, state: GameState) -> list[Move]:
        """Generate all legal pours for the current board."""
        return self.generate_for_layout(state.containers)

    def generate_for_layout(self, containers: Sequence[Container]) -> list[Move]:
        moves = []
        for source in containers:
            if source.is_empty:
                continue
            for target in containers:
                if target.id == source.id or target.is_full:
                    continue
                if not target.is_empty and target.top_color != source.top_color:
                    continue
                result = self.engine.validate_pour(containers, source.id, target.id)
                if result.success:
                    moves.append(result.move)
        return moves


def legal_moves(state: GameState, engine: GameEngine | None = None) -> list[Move]:
    """
    Convenience function to get legal pours.

    Usage:
        moves = legal_moves(state)
    """
    return MoveGenerator(engine=engine or GameEngine()).generate(state)


def is_legal(state: GameState, from_id: int, to_id: int, engine: GameEngine | None = None) -> bool:
    """Check if a pour is legal."""
    engine = engine or GameEngine()
    return engine.attempt_pour(state, from_id, to_id).success
