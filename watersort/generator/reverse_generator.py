"""
Reverse Level Generator - Builds levels that are solvable by construction.

The generator:
1. Starts from a solved layout (one full container per color plus empties)
2. Scrambles it with inverse operations, each the exact reverse of a
   legal forward pour
3. Removes empty containers the solution does not need
4. Validates the result and retries with fresh randomness on failure

Because every scramble step can be undone by a legal pour, walking the
steps backwards is always a solution. The validator still confirms a
solution exists within the solver's state cap.

All randomness comes from one random.Random per call, seeded from the
config seed and the generation parameters, so identical inputs give
identical levels.
"""

from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass
from enum import Enum

from ..engine_core.state import Container, LiquidColor, LiquidLayer
from ..engine_core.level import Level
from ..engine_core.engine import GameEngine, find_container
from ..engine_core.canonical import canonical_key, compact_layout
from ..solver.hint_solver import HintSolver
from .config import GenerationConfig
from .audit import GenerationAudit
from .optimizer import optimize_empty_containers
from .parameters import is_valid_configuration
from .validation import LevelGenerationError, validate_level

logger = logging.getLogger(__name__)


class InverseOperation(str, Enum):
    """Kinds of scramble steps."""
    SPLIT_UNIFIED = "split_unified"  # part of a single-color container into an empty one
    CREATE_MIXTURE = "create_mixture"  # onto a container topped with another color
    MOVE_TO_EMPTY = "move_to_empty"  # part of a mixed container's top into an empty one


@dataclass(frozen=True)
class InverseMove:
    """A candidate scramble step."""
    operation: InverseOperation
    source_id: int
    target_id: int
    color: LiquidColor
    volume: int


def scramble_budget(color_count: int, difficulty: int) -> int:
    """Scramble steps for a level, growing with difficulty."""
    return int(math.floor(color_count * 2 * (1 + difficulty / 10) + 0.5))


def generate_tags(level_id: int, difficulty: int) -> tuple[str, ...]:
    tags = []
    if level_id <= 5:
        tags.append("tutorial")
    if difficulty >= 8:
        tags.append("challenge")
    if difficulty <= 3:
        tags.append("easy")
    elif difficulty <= 6:
        tags.append("medium")
    else:
        tags.append("hard")
    return tuple(tags)


def solved_layout(
    colors: list[LiquidColor],
    container_capacity: int,
    container_count: int,
) -> tuple[Container, ...]:
    """One full container per color, then empty containers."""
    containers = [
        Container(id=i, capacity=container_capacity, layers=(LiquidLayer(color, container_capacity),))
        for i, color in enumerate(colors)
    ]
    containers.extend(
        Container(id=i, capacity=container_capacity)
        for i in range(len(colors), container_count)
    )
    return tuple(containers)


class ReverseLevelGenerator:
    """
    Generates levels by scrambling a solved layout backwards.

    Usage:
        generator = ReverseLevelGenerator(GenerationConfig(seed=42))
        level = generator.generate_level(1, difficulty=3, color_count=4)
        if not level.is_validated:
            print(level.validation_failures)
    """

    def __init__(
        self,
        config: GenerationConfig | None = None,
        engine: GameEngine | None = None,
        solver: HintSolver | None = None,
    ):
        self.config = config or GenerationConfig()
        self.engine = engine or GameEngine()
        self.solver = solver or HintSolver(
            engine=self.engine,
            max_states=self.config.solver_max_states,
        )
        self.audits: list[GenerationAudit] = []

    @property
    def last_audit(self) -> GenerationAudit | None:
        return self.audits[-1] if self.audits else None

    def generate_level(
        self,
        level_id: int,
        difficulty: int,
        color_count: int,
        container_capacity: int = 4,
        empty_slots: int | None = None,
        container_count: int | None = None,
    ) -> Level:
        """
        Generate one level.

        The container count is taken from container_count when given
        (and must then leave at least empty_slots units free), otherwise
        from empty_slots (units of free space, rounded up to whole
        containers), otherwise two empty containers are added.

        Raises ValueError for impossible parameters, and
        LevelGenerationError only when return_best is disabled.
        """
        container_count = self._resolve_container_count(
            color_count, container_capacity, empty_slots, container_count
        )
        self._check_parameters(difficulty, color_count, container_capacity, container_count)

        rng = self._make_rng(difficulty, color_count, container_capacity, container_count)
        self.audits = []
        best: Level | None = None
        best_failures: list[str] = []

        for attempt in range(1, self.config.max_generation_attempts + 1):
            level = self._attempt(
                level_id, difficulty, color_count, container_capacity,
                container_count, rng, attempt,
            )
            result = validate_level(level, solver=self.solver)

            if result.valid:
                logger.info(
                    f"Level {level_id}: validated on attempt {attempt}, "
                    f"{result.minimum_moves} moves minimum"
                )
                return level._copy_with(
                    is_validated=True,
                    minimum_moves=result.minimum_moves,
                    max_moves=math.ceil(result.minimum_moves * self.config.max_moves_factor),
                    hint=f"Start with: {result.first_move}",
                )

            failures = [f.value for f in result.failures]
            if self.last_audit is not None:
                self.last_audit.failures = failures
            logger.debug(f"Level {level_id}: attempt {attempt} rejected: {failures}")

            if best is None or len(failures) < len(best_failures):
                best, best_failures = level, failures

        attempts = self.config.max_generation_attempts
        if not self.config.return_best or best is None:
            raise LevelGenerationError(best_failures, attempts)

        logger.warning(
            f"Level {level_id}: no valid level after {attempts} attempts, "
            f"returning best candidate ({', '.join(best_failures)})"
        )
        return best._copy_with(
            is_validated=False,
            validation_failures=tuple(best_failures),
        )

    def _attempt(
        self,
        level_id: int,
        difficulty: int,
        color_count: int,
        container_capacity: int,
        container_count: int,
        rng: random.Random,
        attempt: int,
    ) -> Level:
        """Scramble and optimize one candidate level."""
        palette = list(LiquidColor)
        rng.shuffle(palette)
        colors = palette[:color_count]
        containers = solved_layout(colors, container_capacity, container_count)

        audit = None
        if self.config.record_audit:
            audit = GenerationAudit(
                level_id=level_id,
                difficulty=difficulty,
                color_count=color_count,
                container_capacity=container_capacity,
                container_count=container_count,
                seed=self.config.seed,
                attempt=attempt,
                selected_colors=colors,
                initial_layout=compact_layout(containers),
            )
            self.audits.append(audit)

        containers = self._scramble(containers, scramble_budget(color_count, difficulty), rng, audit)

        level = Level(
            id=level_id,
            difficulty=difficulty,
            container_count=len(containers),
            color_count=color_count,
            initial_containers=containers,
            tags=generate_tags(level_id, difficulty),
        )

        if self.config.optimize_empty_containers:
            level, removed = optimize_empty_containers(
                level, self.solver, self.config.min_containers_to_optimize
            )
            if audit is not None:
                audit.removed_empty_containers = removed

        if audit is not None:
            audit.final_layout = compact_layout(level.initial_containers)
        return level

    def _scramble(
        self,
        containers: tuple[Container, ...],
        budget: int,
        rng: random.Random,
        audit: GenerationAudit | None,
    ) -> tuple[Container, ...]:
        """Apply up to `budget` inverse operations, never revisiting a layout."""
        seen = {canonical_key(containers)}

        for _ in range(budget):
            candidates = self._inverse_candidates(containers, rng)
            rng.shuffle(candidates)
            for candidate in candidates:
                after = self._apply_inverse(containers, candidate)
                if after is None or not any(c.is_empty for c in after):
                    continue
                key = canonical_key(after)
                if key in seen:
                    continue
                seen.add(key)
                if audit is not None:
                    audit.record(
                        candidate.operation.value, candidate.source_id, candidate.target_id,
                        candidate.color, candidate.volume, containers, after,
                    )
                containers = after
                break
            else:
                logger.debug("No unseen inverse operation left, scramble stops early")
                break

        return containers

    def _inverse_candidates(
        self,
        containers: tuple[Container, ...],
        rng: random.Random,
    ) -> list[InverseMove]:
        """Every inverse operation available from the layout, in scan order."""
        candidates = []
        for source in containers:
            top = source.top_layer
            if top is None:
                continue
            for target in containers:
                if target.id == source.id:
                    continue

                if target.is_empty:
                    # Moving a whole run into an empty container only permutes the layout
                    if top.volume < 2:
                        continue
                    operation = (
                        InverseOperation.SPLIT_UNIFIED if source.is_sorted
                        else InverseOperation.MOVE_TO_EMPTY
                    )
                    volume = rng.randint(1, top.volume - 1)
                elif target.top_color != top.color:
                    operation = InverseOperation.CREATE_MIXTURE
                    volume = min(top.volume, target.remaining_capacity)
                    # Exposing a different color underneath cannot be poured back
                    if volume == top.volume and len(source.layers) > 1:
                        volume -= 1
                else:
                    continue

                if volume > 0:
                    candidates.append(
                        InverseMove(operation, source.id, target.id, top.color, volume)
                    )
        return candidates

    def _apply_inverse(
        self,
        containers: tuple[Container, ...],
        move: InverseMove,
    ) -> tuple[Container, ...] | None:
        """
        Apply an inverse operation.

        Returns None unless the forward pour back from target to source
        is legal and moves exactly the same volume.
        """
        source = find_container(containers, move.source_id)
        target = find_container(containers, move.target_id)
        if source is None or target is None or move.volume > target.remaining_capacity:
            return None

        removed, new_source = source.with_removed(move.color, move.volume)
        new_target = target.with_added(removed)
        after = tuple(
            new_source if c.id == source.id else new_target if c.id == target.id else c
            for c in containers
        )

        forward = self.engine.validate_pour(after, target.id, source.id)
        if not forward.success or forward.move.volume != move.volume:
            return None
        return after

    def _make_rng(
        self,
        difficulty: int,
        color_count: int,
        container_capacity: int,
        container_count: int,
    ) -> random.Random:
        if self.config.seed is None:
            return random.Random()
        return random.Random(
            f"{self.config.seed}:{difficulty}:{color_count}:{container_capacity}:{container_count}"
        )

    def _resolve_container_count(
        self,
        color_count: int,
        container_capacity: int,
        empty_slots: int | None,
        container_count: int | None,
    ) -> int:
        if container_count is not None:
            if empty_slots is not None and not is_valid_configuration(
                container_count, color_count, container_capacity, empty_slots
            ):
                raise ValueError(
                    f"{container_count} containers leave less than {empty_slots} "
                    f"units of free space for {color_count} colors"
                )
            return container_count
        if empty_slots is not None:
            return color_count + max(1, math.ceil(empty_slots / container_capacity))
        return color_count + 2

    def _check_parameters(
        self,
        difficulty: int,
        color_count: int,
        container_capacity: int,
        container_count: int,
    ):
        if difficulty < 1:
            raise ValueError(f"Difficulty must be at least 1, got {difficulty}")
        if not 1 <= color_count <= len(LiquidColor):
            raise ValueError(
                f"Color count ({color_count}) must be between 1 and {len(LiquidColor)}"
            )
        if container_capacity < 2:
            raise ValueError(f"Container capacity must be at least 2, got {container_capacity}")
        if container_count < color_count + 1:
            raise ValueError(
                f"Need at least {color_count + 1} containers for {color_count} colors, "
                f"got {container_count}"
            )
