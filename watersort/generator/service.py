"""
Level Generation Service - Produces a run of levels without near repeats.

Each new level is checked against the levels generated earlier in the
same session. Candidates that are too similar are regenerated with a
different seed; when every attempt is similar, the least similar
candidate is used.
"""

from __future__ import annotations
import logging
from dataclasses import replace

from ..engine_core.engine import GameEngine
from ..engine_core.level import Level
from ..solver.hint_solver import HintSolver
from .config import GenerationConfig
from .parameters import LevelParameters
from .reverse_generator import ReverseLevelGenerator
from .similarity import SIMILARITY_THRESHOLD, are_levels_similar, similarity_score

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 50
DEFAULT_UNIQUE_ATTEMPTS = 10


class LevelGenerationService:
    """
    Generates levels for a play session.

    Usage:
        service = LevelGenerationService(GenerationConfig(seed=7))
        levels = service.generate_level_series(1, 10)
    """

    def __init__(
        self,
        config: GenerationConfig | None = None,
        history_size: int = DEFAULT_HISTORY_SIZE,
        max_unique_attempts: int = DEFAULT_UNIQUE_ATTEMPTS,
        similarity_threshold: float = SIMILARITY_THRESHOLD,
    ):
        self.config = config or GenerationConfig()
        self.history_size = history_size
        self.max_unique_attempts = max_unique_attempts
        self.similarity_threshold = similarity_threshold
        self.engine = GameEngine()
        self.solver = HintSolver(engine=self.engine, max_states=self.config.solver_max_states)
        self._session_levels: list[Level] = []

    @property
    def session_levels(self) -> list[Level]:
        return list(self._session_levels)

    def generate_next_level(self, level_id: int, params: LevelParameters | None = None) -> Level:
        """Generate a level that does not repeat a recent one."""
        params = params or LevelParameters.for_level(level_id)

        fallback: Level | None = None
        fallback_score = 2.0
        for attempt in range(self.max_unique_attempts):
            candidate = self._generator_for(level_id, attempt).generate_level(
                level_id,
                difficulty=params.difficulty,
                color_count=params.color_count,
                container_capacity=params.container_capacity,
                empty_slots=params.empty_slots,
                container_count=params.container_count,
            )
            if self._is_unique(candidate):
                self._remember(candidate)
                return candidate

            score = self._max_similarity(candidate)
            if score < fallback_score:
                fallback, fallback_score = candidate, score
            logger.debug(f"Level {level_id}: attempt {attempt + 1} too similar ({score:.2f})")

        logger.info(
            f"Level {level_id}: no unique level in {self.max_unique_attempts} attempts, "
            f"using least similar ({fallback_score:.2f})"
        )
        self._remember(fallback)
        return fallback

    def generate_level_series(self, start_level_id: int, count: int) -> list[Level]:
        """Generate `count` consecutive levels using the level parameter policy."""
        return [
            self.generate_next_level(level_id)
            for level_id in range(start_level_id, start_level_id + count)
        ]

    def clear_session_history(self):
        self._session_levels.clear()

    def _generator_for(self, level_id: int, attempt: int) -> ReverseLevelGenerator:
        seed = self.config.seed
        if seed is not None:
            seed = seed + level_id * 1009 + attempt
        return ReverseLevelGenerator(
            config=replace(self.config, seed=seed),
            engine=self.engine,
            solver=self.solver,
        )

    def _is_unique(self, candidate: Level) -> bool:
        return not any(
            are_levels_similar(candidate, level, self.similarity_threshold)
            for level in self._session_levels
        )

    def _max_similarity(self, candidate: Level) -> float:
        scores = [
            similarity_score(candidate, level)
            for level in self._session_levels
            if level.container_count == candidate.container_count
            and level.color_count == candidate.color_count
        ]
        return max(scores, default=0.0)

    def _remember(self, level: Level):
        self._session_levels.append(level)
        if len(self._session_levels) > self.history_size:
            del self._session_levels[: len(self._session_levels) - self.history_size]
