"""
Level Validation - Checks that a level is worth handing to a player.

Validates that:
1. The layout agrees with the declared container and color counts
2. The board is not already solved
3. No container starts out completed
4. A solution exists within the solver's state cap
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

from ..engine_core.action import Move
from ..engine_core.level import Level
from ..engine_core.state import LiquidColor
from ..solver.hint_solver import HintSolver


class ValidationFailure(str, Enum):
    """Tags explaining why a level is rejected."""
    ALREADY_SOLVED = "already_solved"
    COMPLETED_CONTAINER = "completed_container"
    STRUCTURALLY_INVALID = "structurally_invalid"
    UNSOLVABLE = "unsolvable"


class LevelValidationError(Exception):
    """Raised when level validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Level validation failed with {len(errors)} error(s)")


class LevelGenerationError(Exception):
    """Raised when no valid level was produced within the attempt budget."""

    def __init__(self, failures: list[str], attempts: int):
        self.failures = failures
        self.attempts = attempts
        super().__init__(
            f"No valid level after {attempts} attempt(s): {', '.join(failures) or 'unknown'}"
        )


@dataclass
class ValidationResult:
    """Result of validation, with errors, warnings and failure tags."""
    valid: bool
    errors: list[str]
    warnings: list[str]
    failures: list[ValidationFailure] = field(default_factory=list)
    minimum_moves: int | None = None
    first_move: Move | None = None


def validate_level(
    level: Level,
    solver: HintSolver | None = None,
    check_solvable: bool = True,
    raise_on_error: bool = False,
) -> ValidationResult:
    """
    Validate a level.

    Returns ValidationResult with errors, warnings and failure tags.
    minimum_moves and first_move are filled in when the solvability
    check finds a solution. Raises LevelValidationError if
    raise_on_error=True and errors exist.
    """
    solver = solver or HintSolver()
    errors: list[str] = []
    warnings: list[str] = []
    failures: list[ValidationFailure] = []
    minimum_moves = None
    first_move = None
    containers = level.initial_containers

    structure_errors = _validate_structure(level)
    if structure_errors:
        errors.extend(structure_errors)
        failures.append(ValidationFailure.STRUCTURALLY_INVALID)

    if solver.engine.is_solved(containers):
        errors.append("Level is already solved")
        failures.append(ValidationFailure.ALREADY_SOLVED)

    completed = [c.id for c in containers if c.is_completed]
    if completed:
        errors.append(f"Containers start completed: {completed}")
        failures.append(ValidationFailure.COMPLETED_CONTAINER)

    if check_solvable and not structure_errors:
        result = solver.solve_layout(containers)
        if result.solved:
            minimum_moves = result.length
            first_move = result.first_move
        elif result.truncated:
            errors.append(
                f"No solution found within {solver.max_states} states"
            )
            failures.append(ValidationFailure.UNSOLVABLE)
        else:
            errors.append("Level cannot be solved")
            failures.append(ValidationFailure.UNSOLVABLE)

    # Warnings for unusual but playable layouts
    if not any(c.is_empty for c in containers):
        warnings.append("No empty container - the first move must pour onto a matching color")
    capacities = {c.capacity for c in containers}
    if len(capacities) == 1:
        capacity = capacities.pop()
        for color, volume in _color_volumes(level).items():
            if volume % capacity != 0:
                warnings.append(
                    f"{color.display_name} volume {volume} does not fill whole containers"
                )

    if errors and raise_on_error:
        raise LevelValidationError(errors)

    return ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
        failures=failures,
        minimum_moves=minimum_moves,
        first_move=first_move,
    )


def _validate_structure(level: Level) -> list[str]:
    """Check declared counts against the actual layout."""
    errors = []
    containers = level.initial_containers

    if len(containers) != level.container_count:
        errors.append(
            f"container_count is {level.container_count} but layout has {len(containers)}"
        )

    ids = [c.id for c in containers]
    duplicates = sorted(cid for cid, n in Counter(ids).items() if n > 1)
    if duplicates:
        errors.append(f"Duplicate container ids: {duplicates}")

    if len(level.colors) != level.color_count:
        errors.append(
            f"color_count is {level.color_count} but layout uses {len(level.colors)}"
        )

    return errors


def _color_volumes(level: Level) -> dict[LiquidColor, int]:
    volumes: Counter[LiquidColor] = Counter()
    for container in level.initial_containers:
        for layer in container.layers:
            volumes[layer.color] += layer.volume
    return dict(volumes)


def is_valid_level(level: Level, solver: HintSolver | None = None) -> bool:
    """Quick check if level is valid."""
    return validate_level(level, solver=solver).valid
