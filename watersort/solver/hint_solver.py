"""
Hint Solver - Breadth-first search for the next move of a shortest solution.

Search:
- Nodes are container layouts kept as an index arena (tuple of
  containers in their original order, so ids stay stable)
- Visited states are deduplicated by canonical_key(), which ignores
  container order
- Edges are exactly the pours the engine accepts
- Expansion is capped; past the cap a heuristic ranking picks the move

Every invocation owns its queue and visited set, nothing is shared
between calls.
"""

from __future__ import annotations
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Sequence

from ..engine_core.state import Container, GameState
from ..engine_core.action import Move
from ..engine_core.engine import GameEngine
from ..engine_core.move_generator import MoveGenerator
from ..engine_core.canonical import canonical_key
from .heuristics import pick_heuristic_move

logger = logging.getLogger(__name__)

DEFAULT_MAX_STATES = 10_000


@dataclass
class SolveResult:
    """
    Outcome of a search.

    moves is a shortest solution when solved is True. truncated means
    the state cap was hit before the search space was exhausted.
    """
    moves: list[Move] = field(default_factory=list)
    solved: bool = False
    states_explored: int = 0
    truncated: bool = False

    @property
    def first_move(self) -> Move | None:
        return self.moves[0] if self.moves else None

    @property
    def length(self) -> int:
        return len(self.moves)


@dataclass
class _SearchNode:
    containers: tuple[Container, ...]
    path: tuple[Move, ...]


class HintSolver:
    """
    Finds hints and full solutions.

    Usage:
        solver = HintSolver()
        move = solver.find_best_move(state)
        if move:
            show_hint(move.from_container_id, move.to_container_id)
    """

    def __init__(self, engine: GameEngine | None = None, max_states: int = DEFAULT_MAX_STATES):
        self.engine = engine or GameEngine()
        self.max_states = max_states
        self._moves = MoveGenerator(engine=self.engine)

    def find_best_move(self, state: GameState) -> Move | None:
        """
        Next move of a shortest solution, or a heuristic pick when the
        search cannot finish within the cap.

        Returns None only for a solved board or one with no legal pour.
        """
        if self.engine.check_win_condition(state):
            return None

        legal = self._moves.generate(state)
        if not legal:
            return None

        result = self.solve(state)
        if result.solved and result.first_move is not None:
            first = result.first_move
            return self.engine.attempt_pour(
                state, first.from_container_id, first.to_container_id
            ).move

        logger.info(
            f"No solution within {self.max_states} states "
            f"(explored {result.states_explored}), using heuristic hint"
        )
        return pick_heuristic_move(legal, state.containers)

    def solve(self, state: GameState) -> SolveResult:
        """Shortest solution from the current board."""
        return self.solve_layout(state.containers)

    def solve_layout(self, containers: Sequence[Container]) -> SolveResult:
        """Breadth-first search from a bare layout."""
        start = tuple(containers)
        if self.engine.is_solved(start):
            return SolveResult(solved=True)

        queue: deque[_SearchNode] = deque([_SearchNode(start, ())])
        visited = {canonical_key(start)}
        explored = 0

        while queue:
            if explored >= self.max_states:
                logger.debug(f"Search capped at {explored} states")
                return SolveResult(states_explored=explored, truncated=True)

            node = queue.popleft()
            explored += 1

            for move in self._moves.generate_for_layout(node.containers):
                successor = self.engine.apply_move(node.containers, move)
                key = canonical_key(successor)
                if key in visited:
                    continue
                path = node.path + (move,)
                if self.engine.is_solved(successor):
                    logger.debug(
                        f"Solved in {len(path)} moves after {explored} states"
                    )
                    return SolveResult(
                        moves=list(path),
                        solved=True,
                        states_explored=explored,
                    )
                visited.add(key)
                queue.append(_SearchNode(successor, path))

        return SolveResult(states_explored=explored)

    def is_solvable(self, containers: Sequence[Container]) -> bool:
        """Reachability check: a solved layout is found within the cap."""
        return self.solve_layout(containers).solved
