"""
Level - The immutable recipe a GameState is created from.

Produced once by the generator and read-only afterwards.
"""

from __future__ import annotations
from dataclasses import dataclass

from .state import Container, LiquidColor


@dataclass(frozen=True)
class Level:
    """
    A puzzle level.

    `validation_failures` is empty for validated levels. A best-effort
    candidate returned after the attempt budget ran out lists the
    failure tags that kept it from validating.
    """
    id: int
    difficulty: int
    container_count: int
    color_count: int
    initial_containers: tuple[Container, ...]
    minimum_moves: int | None = None
    max_moves: int | None = None
    is_validated: bool = False
    hint: str | None = None
    tags: tuple[str, ...] = ()
    validation_failures: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "initial_containers", tuple(self.initial_containers))
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "validation_failures", tuple(self.validation_failures))

    @property
    def is_tutorial(self) -> bool:
        return "tutorial" in self.tags

    @property
    def is_challenge(self) -> bool:
        return "challenge" in self.tags

    @property
    def empty_container_count(self) -> int:
        return sum(1 for c in self.initial_containers if c.is_empty)

    @property
    def filled_container_count(self) -> int:
        return sum(1 for c in self.initial_containers if not c.is_empty)

    @property
    def colors(self) -> set[LiquidColor]:
        found: set[LiquidColor] = set()
        for container in self.initial_containers:
            found |= container.unique_colors
        return found

    @property
    def complexity_score(self) -> int:
        """Rough ordering key: higher is harder."""
        filled = [c for c in self.initial_containers if not c.is_empty]
        avg_segments = (
            sum(c.color_segment_count for c in filled) / len(filled) if filled else 0
        )
        return (
            self.difficulty * 10
            + self.color_count * 5
            + self.filled_container_count * 3
            + round(avg_segments * 4)
        )

    @property
    def is_structurally_valid(self) -> bool:
        """Container count, unique ids and color count agree with the layout."""
        if len(self.initial_containers) != self.container_count:
            return False
        ids = [c.id for c in self.initial_containers]
        if len(set(ids)) != len(ids):
            return False
        return len(self.colors) == self.color_count

    def _copy_with(self, **kwargs) -> Level:
        """Create a copy with some fields replaced."""
        return Level(
            id=kwargs.get("id", self.id),
            difficulty=kwargs.get("difficulty", self.difficulty),
            container_count=kwargs.get("container_count", self.container_count),
            color_count=kwargs.get("color_count", self.color_count),
            initial_containers=kwargs.get("initial_containers", self.initial_containers),
            minimum_moves=kwargs.get("minimum_moves", self.minimum_moves),
            max_moves=kwargs.get("max_moves", self.max_moves),
            is_validated=kwargs.get("is_validated", self.is_validated),
            hint=kwargs.get("hint", self.hint),
            tags=kwargs.get("tags", self.tags),
            validation_failures=kwargs.get("validation_failures", self.validation_failures),
        )
