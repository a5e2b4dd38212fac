"""
Level Parameters - Maps a level number onto generation parameters.

Difficulty climbs one step every five levels; container count,
color count, capacity and free space follow from it.
"""

from __future__ import annotations
import math
from dataclasses import dataclass

DEFAULT_CONTAINER_CAPACITY = 4
DEFAULT_MIN_EMPTY_SLOTS = 1
MAX_DIFFICULTY = 10


@dataclass(frozen=True)
class LevelParameters:
    """Everything the generator needs for one level."""
    level_id: int
    difficulty: int
    container_count: int
    color_count: int
    container_capacity: int
    empty_slots: int

    @classmethod
    def for_level(cls, level_id: int) -> LevelParameters:
        if level_id < 1:
            raise ValueError(f"Level id must be positive, got {level_id}")
        difficulty = difficulty_for_level(level_id)
        container_count = container_count_for_difficulty(difficulty)
        capacity = container_capacity_for_level(level_id)
        return cls(
            level_id=level_id,
            difficulty=difficulty,
            container_count=container_count,
            color_count=color_count_for_difficulty(difficulty, container_count),
            container_capacity=capacity,
            empty_slots=empty_slots_for_difficulty(difficulty, capacity),
        )


def difficulty_for_level(level_id: int) -> int:
    return min(MAX_DIFFICULTY, (level_id - 1) // 5 + 1)


def container_count_for_difficulty(difficulty: int) -> int:
    if difficulty <= 2:
        return 4
    if difficulty <= 4:
        return 5
    if difficulty <= 6:
        return 6
    if difficulty <= 8:
        return 7
    return 8


def color_count_for_difficulty(difficulty: int, container_count: int) -> int:
    """Color tier for the difficulty, leaving at least one empty container."""
    max_colors = container_count - 1
    if difficulty <= 2:
        tier = 2
    elif difficulty <= 4:
        tier = 3
    elif difficulty <= 6:
        tier = 4
    elif difficulty <= 8:
        tier = 5
    else:
        tier = 6
    return max(1, min(tier, max_colors))


def container_capacity_for_level(level_id: int) -> int:
    if level_id <= 15:
        return 4
    if level_id <= 25:
        return 5
    if level_id <= 35:
        return 6
    if level_id <= 45:
        return 7
    return 8


def empty_slots_for_difficulty(difficulty: int, container_capacity: int) -> int:
    """Free space in units: two containers when easy, one when hard."""
    if difficulty <= 3:
        return container_capacity * 2
    if difficulty <= 6:
        return int(math.floor(container_capacity * 1.5 + 0.5))
    return container_capacity


def calculate_max_colors(
    container_count: int,
    container_capacity: int = DEFAULT_CONTAINER_CAPACITY,
    min_empty_slots: int = DEFAULT_MIN_EMPTY_SLOTS,
) -> int:
    """Most colors that fit while keeping min_empty_slots free."""
    if container_count <= 0:
        raise ValueError("Container count must be positive")
    if container_capacity <= 0:
        raise ValueError("Container capacity must be positive")
    if min_empty_slots < 0:
        raise ValueError("Minimum empty slots cannot be negative")

    max_volume = container_count * container_capacity - min_empty_slots
    if max_volume < container_capacity:
        return 0
    return max_volume // container_capacity


def is_valid_configuration(
    container_count: int,
    color_count: int,
    container_capacity: int = DEFAULT_CONTAINER_CAPACITY,
    min_empty_slots: int = DEFAULT_MIN_EMPTY_SLOTS,
) -> bool:
    if container_count <= 0 or color_count < 0:
        return False
    empty_slots = (container_count - color_count) * container_capacity
    return empty_slots >= min_empty_slots


def calculate_min_containers(
    color_count: int,
    container_capacity: int = DEFAULT_CONTAINER_CAPACITY,
    min_empty_slots: int = DEFAULT_MIN_EMPTY_SLOTS,
) -> int:
    if color_count < 0:
        raise ValueError("Color count cannot be negative")
    return math.ceil((color_count * container_capacity + min_empty_slots) / container_capacity)
