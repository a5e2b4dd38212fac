"""
Empty Container Optimizer - Tightens generated levels.

Removes empty containers one at a time, keeping each removal only if
the hint solver still reaches a solved layout. Stops at the first
removal that breaks solvability.
"""

from __future__ import annotations
import logging
from typing import Sequence

from ..engine_core.state import Container
from ..engine_core.level import Level
from ..solver.hint_solver import HintSolver

logger = logging.getLogger(__name__)


def renumber(containers: Sequence[Container]) -> tuple[Container, ...]:
    """Reassign ids 0..n-1 keeping the current order."""
    return tuple(c.with_id(i) for i, c in enumerate(containers))


def without_empty_containers(containers: Sequence[Container], count: int) -> tuple[Container, ...]:
    """Drop the last `count` empty containers and renumber."""
    empty_ids = [c.id for c in containers if c.is_empty]
    if count > len(empty_ids):
        raise ValueError(f"Only {len(empty_ids)} empty containers, cannot remove {count}")
    doomed = set(empty_ids[len(empty_ids) - count:])
    return renumber([c for c in containers if c.id not in doomed])


def optimize_empty_containers(
    level: Level,
    solver: HintSolver,
    min_containers: int = 3,
) -> tuple[Level, int]:
    """
    Remove as many empty containers as possible while staying solvable.

    Returns (optimized level, number of containers removed).
    """
    if level.container_count <= min_containers:
        return level, 0

    best = level
    removed = 0
    for count in range(1, level.empty_container_count + 1):
        candidate = without_empty_containers(level.initial_containers, count)
        if not solver.is_solvable(candidate):
            logger.debug(
                f"Level {level.id}: removing {count} empty container(s) breaks solvability"
            )
            break
        best = level._copy_with(
            initial_containers=candidate,
            container_count=len(candidate),
        )
        removed = count

    if removed:
        logger.info(f"Level {level.id}: removed {removed} empty container(s)")
    return best, removed
