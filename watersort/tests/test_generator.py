"""
Tests for level generation.

Tests:
- Reverse generation produces valid, solvable levels
- Determinism under a fixed seed
- Parameter checks and container count resolution
- Best-candidate fallback and strict mode
- Audit trail
- Empty container optimizer
- Level parameter policy
- Similarity and the generation service
"""

import math
import random

import pytest

from ..engine_core.canonical import canonical_key
from ..engine_core.engine import GameEngine
from ..engine_core.level import Level
from ..engine_core.state import LiquidColor
from ..solver.hint_solver import HintSolver, SolveResult
from ..generator import (
    GenerationAudit,
    GenerationConfig,
    LevelGenerationError,
    LevelGenerationService,
    LevelParameters,
    ReverseLevelGenerator,
    generate_tags,
    optimize_empty_containers,
    renumber,
    scramble_budget,
    solved_layout,
    without_empty_containers,
)
from ..generator.parameters import (
    calculate_max_colors,
    calculate_min_containers,
    difficulty_for_level,
    empty_slots_for_difficulty,
    is_valid_configuration,
)
from ..generator.similarity import (
    are_levels_similar,
    count_segments,
    is_similar_to_any,
    normalize_colors,
    normalized_signature,
    similarity_score,
)
from .conftest import B, G, R, make_container


class _NeverSolves(HintSolver):
    """Solver that always gives up, to force validation failures."""

    def solve_layout(self, containers):
        return SolveResult(states_explored=self.max_states, truncated=True)


def _color_volumes(level: Level) -> dict:
    volumes = {}
    for container in level.initial_containers:
        for layer in container.layers:
            volumes[layer.color] = volumes.get(layer.color, 0) + layer.volume
    return volumes


class TestHelpers:
    """Tests for scramble length, tags and the solved layout."""

    def test_scramble_budget(self):
        """Scramble length grows with colors and difficulty."""
        assert scramble_budget(4, 1) == 9
        assert scramble_budget(3, 5) == 9
        assert scramble_budget(2, 10) == 8

    def test_tags(self):
        """Tutorial, challenge and difficulty band tags."""
        assert generate_tags(1, 1) == ("tutorial", "easy")
        assert generate_tags(10, 5) == ("medium",)
        assert generate_tags(20, 9) == ("challenge", "hard")

    def test_solved_layout(self):
        """One full container per color, then empties, already solved."""
        layout = solved_layout([R, B], 4, 4)

        assert [c.id for c in layout] == [0, 1, 2, 3]
        assert layout[0].is_completed and layout[0].top_color == R
        assert layout[1].is_completed and layout[1].top_color == B
        assert layout[2].is_empty and layout[3].is_empty
        assert GameEngine().is_solved(layout)


class TestReverseGenerator:
    """Tests for ReverseLevelGenerator."""

    def test_generates_validated_level(self):
        """A seeded level validates with consistent counts and ids."""
        generator = ReverseLevelGenerator(GenerationConfig(seed=42))
        level = generator.generate_level(1, difficulty=3, color_count=3)

        assert level.is_validated
        assert level.validation_failures == ()
        assert level.minimum_moves >= 1
        assert level.color_count == 3
        assert level.container_count == len(level.initial_containers)
        assert [c.id for c in level.initial_containers] == list(range(level.container_count))
        assert "tutorial" in level.tags

    def test_validated_level_carries_allowance_and_hint(self):
        """A validated level gets a move allowance and its opening move as a hint."""
        generator = ReverseLevelGenerator(GenerationConfig(seed=42, max_moves_factor=1.5))
        level = generator.generate_level(1, difficulty=3, color_count=3)

        assert level.max_moves == math.ceil(level.minimum_moves * 1.5)
        assert level.hint.startswith("Start with: Pour ")

        engine = GameEngine()
        first = HintSolver(engine=engine).solve_layout(level.initial_containers).first_move
        assert level.hint == f"Start with: {first}"

    def test_every_color_keeps_one_container_of_liquid(self):
        """Each color still totals exactly one container's worth."""
        generator = ReverseLevelGenerator(GenerationConfig(seed=3))
        level = generator.generate_level(7, difficulty=2, color_count=3, container_capacity=5)

        volumes = _color_volumes(level)
        assert len(volumes) == 3
        assert set(volumes.values()) == {5}
        assert all(c.capacity == 5 for c in level.initial_containers)

    def test_generated_level_is_solvable_and_unsolved(self):
        """Generated levels start unsolved and solve in minimum_moves."""
        generator = ReverseLevelGenerator(GenerationConfig(seed=11))
        level = generator.generate_level(3, difficulty=4, color_count=3)

        engine = GameEngine()
        assert not engine.is_solved(level.initial_containers)
        assert not any(c.is_completed for c in level.initial_containers)
        result = HintSolver(engine=engine).solve_layout(level.initial_containers)
        assert result.solved
        assert result.length == level.minimum_moves

    def test_same_seed_same_level(self):
        """Identical seed and parameters give an identical level."""
        first = ReverseLevelGenerator(GenerationConfig(seed=7)).generate_level(2, 3, 3)
        second = ReverseLevelGenerator(GenerationConfig(seed=7)).generate_level(2, 3, 3)
        assert first == second

    def test_single_color(self):
        """A one-color level still generates."""
        level = ReverseLevelGenerator(GenerationConfig(seed=1)).generate_level(1, 1, 1)
        assert level.is_validated
        assert level.colors and len(level.colors) == 1

    @pytest.mark.parametrize(
        "kwargs",
        [
            dict(difficulty=0, color_count=3),
            dict(difficulty=1, color_count=0),
            dict(difficulty=1, color_count=len(LiquidColor) + 1),
            dict(difficulty=1, color_count=3, container_capacity=1),
            dict(difficulty=1, color_count=3, container_count=3),
        ],
    )
    def test_bad_parameters(self, kwargs):
        """Impossible parameters are rejected up front."""
        with pytest.raises(ValueError):
            ReverseLevelGenerator(GenerationConfig(seed=1)).generate_level(1, **kwargs)

    def test_container_count_from_empty_slots(self):
        """Free space is rounded up to whole containers."""
        config = GenerationConfig(seed=5, optimize_empty_containers=False)
        level = ReverseLevelGenerator(config).generate_level(
            1, difficulty=2, color_count=3, empty_slots=5
        )
        assert level.container_count == 5

    def test_container_count_must_leave_empty_slots(self):
        """An explicit container count cannot squeeze out the requested free space."""
        generator = ReverseLevelGenerator(GenerationConfig(seed=5))
        with pytest.raises(ValueError):
            generator.generate_level(
                1, difficulty=2, color_count=3, container_count=4, empty_slots=8
            )

    def test_explicit_container_count(self):
        """An explicit container count wins over the default."""
        config = GenerationConfig(seed=5, optimize_empty_containers=False)
        level = ReverseLevelGenerator(config).generate_level(
            1, difficulty=2, color_count=2, container_count=5
        )
        assert level.container_count == 5

    def test_returns_best_candidate_when_nothing_validates(self):
        """Exhausted attempts return the best candidate, tagged with its failures."""
        config = GenerationConfig(seed=2, max_generation_attempts=3)
        generator = ReverseLevelGenerator(config, solver=_NeverSolves())
        level = generator.generate_level(1, difficulty=2, color_count=2)

        assert not level.is_validated
        assert "unsolvable" in level.validation_failures
        assert level.minimum_moves is None
        assert level.max_moves is None
        assert level.hint is None

    def test_strict_mode_raises(self):
        """Without return_best, exhaustion raises."""
        config = GenerationConfig(seed=2, max_generation_attempts=3, return_best=False)
        generator = ReverseLevelGenerator(config, solver=_NeverSolves())

        with pytest.raises(LevelGenerationError) as exc_info:
            generator.generate_level(1, difficulty=2, color_count=2)
        assert exc_info.value.attempts == 3
        assert "unsolvable" in exc_info.value.failures

    def test_audit_records_steps(self):
        """The audit numbers every step and renders a report."""
        config = GenerationConfig(seed=9, record_audit=True)
        generator = ReverseLevelGenerator(config)
        level = generator.generate_level(1, difficulty=2, color_count=3)

        audit = generator.last_audit
        assert audit is not None
        assert 1 <= len(audit.steps) <= scramble_budget(3, 2)
        assert audit.initial_layout.startswith("|")
        assert all(0.0 <= step.contiguous_percentage <= 100.0 for step in audit.steps)
        assert [s.step_number for s in audit.steps] == list(range(1, len(audit.steps) + 1))
        if level.is_validated:
            assert audit.failures == []

        report = audit.to_detailed_string()
        assert "Level 1" in report
        assert "Seed: 9" in report

    def test_no_audit_by_default(self):
        """Audits are only kept on request."""
        generator = ReverseLevelGenerator(GenerationConfig(seed=9))
        generator.generate_level(1, difficulty=2, color_count=2)
        assert generator.last_audit is None


class _LayoutAudit(GenerationAudit):
    """Audit that also keeps the raw layouts around each step."""

    def __init__(self):
        super().__init__(
            level_id=1, difficulty=1, color_count=4,
            container_capacity=4, container_count=6, seed=None,
        )
        self.transitions = []

    def record(self, operation, source_id, target_id, color, volume, before, after):
        super().record(operation, source_id, target_id, color, volume, before, after)
        self.transitions.append((source_id, target_id, volume, before, after))


class TestScramble:
    """Tests for the scramble walk itself."""

    @pytest.fixture(params=range(25))
    def scrambled(self, request):
        engine = GameEngine()
        generator = ReverseLevelGenerator(engine=engine)
        start = solved_layout([R, B, G, LiquidColor.YELLOW], 4, 6)
        audit = _LayoutAudit()
        end = generator._scramble(start, 20, random.Random(request.param), audit)
        return engine, start, end, audit

    def test_steps_chain_from_solved_layout(self, scrambled):
        """Each step starts where the previous one ended."""
        engine, start, end, audit = scrambled
        assert audit.transitions

        current = start
        for _, _, _, before, after in audit.transitions:
            assert before == current
            current = after
        assert current == end

    def test_each_step_is_undone_by_a_legal_pour(self, scrambled):
        """Pouring target back into source restores the layout exactly."""
        engine, _, _, audit = scrambled

        for source_id, target_id, volume, before, after in audit.transitions:
            result = engine.validate_pour(after, target_id, source_id)
            assert result.success
            assert result.move.volume == volume
            assert engine.apply_move(after, result.move) == before

    def test_never_revisits_a_layout(self, scrambled):
        """No two layouts on the walk are the same up to container order."""
        _, start, _, audit = scrambled
        keys = [canonical_key(start)] + [canonical_key(t[4]) for t in audit.transitions]
        assert len(keys) == len(set(keys))

    def test_keeps_an_empty_container(self, scrambled):
        """Every layout on the walk has room to start solving."""
        _, _, _, audit = scrambled
        for *_, after in audit.transitions:
            assert any(c.is_empty for c in after)

    def test_preserves_liquid(self, scrambled):
        """Scrambling moves liquid around but never creates or destroys it."""
        _, start, end, _ = scrambled
        assert sum(c.current_volume for c in end) == sum(c.current_volume for c in start)


class TestOptimizer:
    """Tests for empty container removal."""

    def _level(self, empties: int) -> Level:
        containers = (
            make_container(0, (R, 2), (B, 2)),
            make_container(1, (B, 2), (R, 2)),
        ) + tuple(make_container(2 + i) for i in range(empties))
        return Level(
            id=1, difficulty=1, container_count=len(containers),
            color_count=2, initial_containers=containers,
        )

    def test_removes_until_unsolvable(self):
        """Empty containers go while the level stays solvable."""
        level, removed = optimize_empty_containers(self._level(3), HintSolver())

        assert removed == 2
        assert level.container_count == 3
        assert [c.id for c in level.initial_containers] == [0, 1, 2]
        assert level.empty_container_count == 1

    def test_small_levels_left_alone(self):
        """Levels at the minimum size are not touched."""
        original = self._level(1)
        level, removed = optimize_empty_containers(original, HintSolver())
        assert removed == 0
        assert level is original

    def test_without_empty_containers_too_many(self):
        """Cannot remove more empties than exist."""
        with pytest.raises(ValueError):
            without_empty_containers(self._level(1).initial_containers, 2)

    def test_renumber_keeps_order(self):
        """Ids become 0..n-1 in the existing order."""
        containers = (make_container(5, (G, 1)), make_container(2))
        assert [(c.id, c.top_color) for c in renumber(containers)] == [(0, G), (1, None)]


class TestLevelParameters:
    """Tests for the level number policy."""

    def test_first_level(self):
        """Level 1 is the easiest configuration."""
        params = LevelParameters.for_level(1)
        assert params.difficulty == 1
        assert params.container_count == 4
        assert params.color_count == 2
        assert params.container_capacity == 4
        assert params.empty_slots == 8

    def test_late_level(self):
        """Level 50 hits every cap."""
        params = LevelParameters.for_level(50)
        assert params.difficulty == 10
        assert params.container_count == 8
        assert params.color_count == 6
        assert params.container_capacity == 8
        assert params.empty_slots == 8

    def test_middle_level(self):
        """Level 22 sits in the middle tiers."""
        params = LevelParameters.for_level(22)
        assert params.difficulty == 5
        assert params.container_count == 6
        assert params.color_count == 4
        assert params.container_capacity == 5
        assert params.empty_slots == 8

    def test_always_leaves_an_empty_container(self):
        """There are always more containers than colors."""
        for level_id in range(1, 60):
            params = LevelParameters.for_level(level_id)
            assert params.color_count < params.container_count

    def test_containers_leave_policy_free_space(self):
        """The container tier always has room for the free space tier."""
        for level_id in range(1, 60):
            params = LevelParameters.for_level(level_id)
            assert is_valid_configuration(
                params.container_count, params.color_count,
                params.container_capacity, params.empty_slots,
            )

    def test_invalid_level_id(self):
        """Level ids start at 1."""
        with pytest.raises(ValueError):
            LevelParameters.for_level(0)

    def test_difficulty_caps_at_ten(self):
        """Difficulty climbs every five levels up to ten."""
        assert difficulty_for_level(6) == 2
        assert difficulty_for_level(500) == 10

    def test_empty_slots(self):
        """Free space shrinks as difficulty rises."""
        assert empty_slots_for_difficulty(2, 4) == 8
        assert empty_slots_for_difficulty(5, 5) == 8
        assert empty_slots_for_difficulty(9, 6) == 6

    def test_capacity_math(self):
        """Color and container limits for a given capacity."""
        assert calculate_max_colors(5, 4, 1) == 4
        assert calculate_max_colors(1, 4, 1) == 0
        assert calculate_min_containers(3, 4, 1) == 4
        assert is_valid_configuration(5, 4)
        assert not is_valid_configuration(4, 4)

    def test_capacity_math_rejects_bad_input(self):
        """Non-positive counts are rejected."""
        with pytest.raises(ValueError):
            calculate_max_colors(0)
        with pytest.raises(ValueError):
            calculate_min_containers(-1)


class TestSimilarity:
    """Tests for palette-independent similarity."""

    def _level(self, first, second, level_id=1) -> Level:
        containers = (
            make_container(0, (first, 2), (second, 2)),
            make_container(1, (second, 2), (first, 2)),
            make_container(2),
        )
        return Level(
            id=level_id, difficulty=1, container_count=3,
            color_count=2, initial_containers=containers,
        )

    def test_normalize_colors(self):
        """Colors are relabelled in order of first appearance."""
        assert normalize_colors(self._level(G, R).initial_containers) == ["AABB", "BBAA", "EMPTY"]

    def test_palette_swap_is_identical(self):
        """Swapping colors does not make a level new."""
        first, second = self._level(R, B), self._level(G, R, level_id=2)

        assert normalized_signature(first) == normalized_signature(second)
        assert normalized_signature(first) == "containers:3|pattern:AABB,BBAA,EMPTY"
        assert similarity_score(first, second) == pytest.approx(1.0)
        assert are_levels_similar(first, second)
        assert is_similar_to_any(first, [second])

    def test_different_shape_is_not_similar(self):
        """A different arrangement scores below the threshold."""
        first = self._level(R, B)
        other = Level(
            id=2, difficulty=1, container_count=3, color_count=2,
            initial_containers=(
                make_container(0, (R, 1), (B, 1), (R, 1), (B, 1)),
                make_container(1, (B, 1), (R, 1), (B, 1), (R, 1)),
                make_container(2),
            ),
        )
        assert similarity_score(first, other) < 0.8
        assert not are_levels_similar(first, other)

    def test_different_counts_never_similar(self):
        """Levels with different counts are never compared as similar."""
        first = self._level(R, B)
        assert not are_levels_similar(first, first._copy_with(color_count=3))

    def test_count_segments(self):
        """Segments are runs of one color."""
        assert count_segments("AABB") == 2
        assert count_segments("ABAB") == 4
        assert count_segments("EMPTY") == 0


class TestGenerationService:
    """Tests for LevelGenerationService."""

    def test_series(self):
        """A series covers consecutive level ids."""
        service = LevelGenerationService(GenerationConfig(seed=3, max_generation_attempts=5))
        levels = service.generate_level_series(1, 3)

        assert [level.id for level in levels] == [1, 2, 3]
        assert len(service.session_levels) == 3
        for level in levels:
            assert level.color_count == 2

    def test_history_is_bounded(self):
        """Only the most recent levels are remembered."""
        service = LevelGenerationService(
            GenerationConfig(seed=3, max_generation_attempts=5), history_size=2
        )
        service.generate_level_series(1, 3)
        assert [level.id for level in service.session_levels] == [2, 3]

    def test_clear_history(self):
        """History can be cleared."""
        service = LevelGenerationService(GenerationConfig(seed=3, max_generation_attempts=5))
        service.generate_next_level(1)
        service.clear_session_history()
        assert service.session_levels == []

    def test_falls_back_to_least_similar(self):
        """A threshold of zero makes every candidate a repeat."""
        service = LevelGenerationService(
            GenerationConfig(seed=3, max_generation_attempts=5),
            max_unique_attempts=2,
            similarity_threshold=0.0,
        )
        service.generate_next_level(1)
        level = service.generate_next_level(2, LevelParameters.for_level(1))

        assert level.id == 2
        assert len(service.session_levels) == 2
