"""
Move Heuristics - Ranks legal pours when a full search is unaffordable.

Categories, best first:
1. Completes a container (target ends up full and single-colored)
2. Separates colors by pouring a mixed container's top into an empty one
3. Consolidates a run onto a container already topped with that color
4. Anything else that is legal
"""

from __future__ import annotations
from enum import IntEnum
from typing import Sequence

from ..engine_core.state import Container
from ..engine_core.action import Move
from ..engine_core.engine import find_container


class MoveCategory(IntEnum):
    """Heuristic tiers; lower is better."""
    COMPLETES_CONTAINER = 1
    SEPARATES_COLORS = 2
    CONSOLIDATES_RUN = 3
    OTHER = 4


def categorize_move(move: Move, containers: Sequence[Container]) -> MoveCategory:
    """Place a legal move into its heuristic tier."""
    source = find_container(containers, move.from_container_id)
    target = find_container(containers, move.to_container_id)
    if source is None or target is None:
        return MoveCategory.OTHER

    # Emptying a finished container into another one completes nothing
    if (
        target.is_sorted
        and move.volume == target.remaining_capacity
        and not source.is_completed
    ):
        return MoveCategory.COMPLETES_CONTAINER

    if target.is_empty and not source.is_sorted:
        return MoveCategory.SEPARATES_COLORS

    if not target.is_empty and target.top_color == move.color:
        return MoveCategory.CONSOLIDATES_RUN

    return MoveCategory.OTHER


def rank_moves(moves: Sequence[Move], containers: Sequence[Container]) -> list[Move]:
    """Stable sort by category; original order breaks ties."""
    return sorted(moves, key=lambda m: categorize_move(m, containers))


def pick_heuristic_move(moves: Sequence[Move], containers: Sequence[Container]) -> Move | None:
    """First candidate of the best non-empty category."""
    ranked = rank_moves(moves, containers)
    return ranked[0] if ranked else None
