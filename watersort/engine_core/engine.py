"""
Game Engine - Validates and applies pours.

The engine is the single point of state transition.
All board changes go through execute_pour(), undo_last_move(),
redo_next_move() or reset().

Design principles:
- Pure functions: (state, input) -> new state, no side effects
- attempt_pour() validates without mutating and never raises
- Undo/redo replays history from the initial snapshot; no reverse deltas
- Won/Lost are recomputed from scratch after every transition
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, Sequence, TYPE_CHECKING

from .state import GameState, Container, ContainerInvariantError, LiquidColor, LiquidLayer
from .action import Move, PourResult

if TYPE_CHECKING:
    from .level import Level


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class IllegalPourError(ValueError):
    """Raised when execute_pour is called for a pour that attempt_pour rejects."""

    def __init__(self, result: PourResult):
        self.result = result
        super().__init__(result.error or "Illegal pour")


def find_container(containers: Iterable[Container], container_id: int) -> Container | None:
    """Get container by ID."""
    for container in containers:
        if container.id == container_id:
            return container
    return None


@dataclass
class GameEngine:
    """
    Sole arbiter of pour legality and game state transitions.

    Stateless - all state is in GameState.

    allow_partial_pours: when the target has less room than the
    source's top run, move only what fits (True) or reject the pour
    with INSUFFICIENT_CAPACITY (False).
    """
    allow_partial_pours: bool = True
    clock: Callable[[], datetime] = _utc_now

    # =========================================================================
    # Setup
    # =========================================================================

    def initialize_level(self, level_id: int, containers: Iterable[Container]) -> GameState:
        """Build the start state for a level: no moves, neither won nor lost."""
        return GameState.initial(level_id, containers)

    def initialize_from_level(self, level: Level) -> GameState:
        return self.initialize_level(level.id, level.initial_containers)

    def reset(self, state: GameState) -> GameState:
        """Return a fresh start state for the same level."""
        return self.initialize_level(state.level_id, state.initial_containers)

    # =========================================================================
    # Pours
    # =========================================================================

    def attempt_pour(self, state: GameState, from_id: int, to_id: int) -> PourResult:
        """
        Validate a pour against the current board.

        Returns PourResult with the Move that would result, or the
        reason the pour is rejected. Never mutates, never raises.
        """
        return self.validate_pour(state.containers, from_id, to_id)

    def validate_pour(
        self,
        containers: Sequence[Container],
        from_id: int,
        to_id: int,
    ) -> PourResult:
        """Same as attempt_pour, over a bare container layout."""
        if from_id == to_id:
            return PourResult.same_container(from_id)

        source = find_container(containers, from_id)
        if source is None:
            return PourResult.invalid_container(from_id)
        target = find_container(containers, to_id)
        if target is None:
            return PourResult.invalid_container(to_id)

        if source.is_empty:
            return PourResult.empty_source(from_id)
        if target.remaining_capacity == 0:
            return PourResult.container_full(to_id)

        top = source.top_layer
        if not target.is_empty and target.top_color != top.color:
            return PourResult.color_mismatch(top.color, target.top_color)

        run = top.volume
        available = target.remaining_capacity
        if run > available and not self.allow_partial_pours:
            return PourResult.insufficient_capacity(to_id, run, available)

        move = Move(
            from_container_id=from_id,
            to_container_id=to_id,
            liquid_moved=LiquidLayer(top.color, min(run, available)),
            timestamp=self.clock(),
        )
        return PourResult.success_with_move(move)

    def execute_pour(self, state: GameState, from_id: int, to_id: int) -> GameState:
        """
        Apply a legal pour and return the new state.

        History after current_move_index is discarded, so pouring after
        an undo drops the undone moves.

        Raises IllegalPourError if attempt_pour rejects the pour.
        """
        result = self.attempt_pour(state, from_id, to_id)
        if not result.success:
            raise IllegalPourError(result)

        history = state.move_history[: state.current_move_index + 1] + (result.move,)
        new_state = state._copy_with(
            containers=self.apply_move(state.containers, result.move),
            move_history=history,
            current_move_index=state.current_move_index + 1,
            move_count=state.move_count + 1,
        )
        return self._with_outcome(new_state)

    def apply_move(self, containers: Sequence[Container], move: Move) -> tuple[Container, ...]:
        """
        Transfer exactly move.liquid_moved from source to target.

        Raises ContainerInvariantError if the move does not fit the layout,
        which means the history is corrupt.
        """
        source = find_container(containers, move.from_container_id)
        target = find_container(containers, move.to_container_id)
        if source is None or target is None:
            raise ContainerInvariantError(f"Move references unknown container: {move}")
        if not target.can_accept(move.color, move.volume):
            raise ContainerInvariantError(f"Container {target.id} cannot accept: {move}")

        removed, new_source = source.with_removed(move.color, move.volume)
        new_target = target.with_added(removed)

        new_containers = []
        for container in containers:
            if container.id == source.id:
                new_containers.append(new_source)
            elif container.id == target.id:
                new_containers.append(new_target)
            else:
                new_containers.append(container)
        return tuple(new_containers)

    # =========================================================================
    # History
    # =========================================================================

    def replay(
        self,
        initial_containers: Sequence[Container],
        moves: Sequence[Move],
        up_to_index: int,
    ) -> tuple[Container, ...]:
        """Replay moves[0..up_to_index] from the initial layout."""
        containers = tuple(initial_containers)
        for move in moves[: up_to_index + 1]:
            containers = self.apply_move(containers, move)
        return containers

    def undo_last_move(self, state: GameState) -> GameState | None:
        """Step back one move. None if nothing to undo."""
        if state.current_move_index < 0:
            return None
        index = state.current_move_index - 1
        new_state = state._copy_with(
            containers=self.replay(state.initial_containers, state.move_history, index),
            current_move_index=index,
            is_lost=False,
        )
        return self._with_outcome(new_state)

    def redo_next_move(self, state: GameState) -> GameState | None:
        """Step forward one undone move. None if nothing to redo."""
        if state.current_move_index >= len(state.move_history) - 1:
            return None
        index = state.current_move_index + 1
        new_state = state._copy_with(
            containers=self.replay(state.initial_containers, state.move_history, index),
            current_move_index=index,
        )
        return self._with_outcome(new_state)

    def verify_history(self, state: GameState) -> GameState:
        """
        Check a state built from outside the engine (a saved game).

        The board must equal the initial layout with the history replayed
        up to current_move_index. Won/Lost flags are recomputed from the
        board rather than trusted.

        Raises ContainerInvariantError if the board and history disagree.
        """
        if not -1 <= state.current_move_index < len(state.move_history):
            raise ContainerInvariantError(
                f"Move index {state.current_move_index} is outside the history "
                f"of level {state.level_id}"
            )
        replayed = self.replay(
            state.initial_containers, state.move_history, state.current_move_index
        )
        if replayed != state.containers:
            raise ContainerInvariantError(
                f"Saved board for level {state.level_id} does not match its move history"
            )
        return self._with_outcome(state)

    # =========================================================================
    # Win / loss
    # =========================================================================

    def check_win_condition(self, state: GameState) -> bool:
        return self.is_solved(state.containers)

    def check_loss_condition(self, state: GameState) -> bool:
        """Not won and no pour between any two containers is legal."""
        if self.check_win_condition(state):
            return False
        return not self.has_legal_moves(state)

    def has_legal_moves(self, state: GameState) -> bool:
        return self.has_legal_pour(state.containers)

    def has_legal_pour(self, containers: Sequence[Container]) -> bool:
        for source in containers:
            for target in containers:
                if source.id == target.id:
                    continue
                if self.validate_pour(containers, source.id, target.id).success:
                    return True
        return False

    def is_solved(self, containers: Iterable[Container]) -> bool:
        """
        Every non-empty container is sorted and each color fills the
        fewest containers possible: all full but at most one.
        """
        groups: dict[LiquidColor, list[Container]] = {}
        for container in containers:
            if container.is_empty:
                continue
            if not container.is_sorted:
                return False
            groups.setdefault(container.top_color, []).append(container)

        for group in groups.values():
            partial = [c for c in group if not c.is_full]
            if len(partial) > 1:
                return False
            total = sum(c.current_volume for c in group)
            capacity = max(c.capacity for c in group)
            if len(group) > math.ceil(total / capacity):
                return False
        return True

    def _with_outcome(self, state: GameState) -> GameState:
        won = self.check_win_condition(state)
        lost = not won and not self.has_legal_moves(state)
        return state._copy_with(is_completed=won, is_lost=lost)
