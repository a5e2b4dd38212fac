"""
Level Similarity - Detects levels that would feel like repeats.

Colors are normalized by order of first appearance, so two levels that
differ only by palette compare as identical. The score combines:
- arrangement (0.4): containers with exactly the same pattern, by position
- distribution (0.3): share of empty, single-color and mixed containers
- mixing (0.3): distribution plus average segments per container
"""

from __future__ import annotations
import string
from typing import Sequence

from ..engine_core.level import Level
from ..engine_core.state import Container, LiquidColor

SIMILARITY_THRESHOLD = 0.8
EMPTY_PATTERN = "EMPTY"

ARRANGEMENT_WEIGHT = 0.4
DISTRIBUTION_WEIGHT = 0.3
MIXING_WEIGHT = 0.3


def normalize_colors(containers: Sequence[Container]) -> list[str]:
    """One letter per unit of liquid, letters assigned by first appearance."""
    letters: dict[LiquidColor, str] = {}
    patterns = []
    for container in containers:
        if container.is_empty:
            patterns.append(EMPTY_PATTERN)
            continue
        units = []
        for layer in container.layers:
            if layer.color not in letters:
                letters[layer.color] = string.ascii_uppercase[len(letters)]
            units.append(letters[layer.color] * layer.volume)
        patterns.append("".join(units))
    return patterns


def normalized_signature(level: Level) -> str:
    """Palette-independent signature, e.g. "containers:3|pattern:AABB,BBAA,EMPTY"."""
    patterns = normalize_colors(level.initial_containers)
    return f"containers:{len(patterns)}|pattern:{','.join(patterns)}"


def count_segments(pattern: str) -> int:
    if not pattern or pattern == EMPTY_PATTERN:
        return 0
    return 1 + sum(1 for a, b in zip(pattern, pattern[1:]) if a != b)


def _distribution(patterns: list[str]) -> dict[str, float]:
    total = len(patterns) or 1
    empty = sum(1 for p in patterns if p == EMPTY_PATTERN)
    single = sum(1 for p in patterns if p != EMPTY_PATTERN and count_segments(p) == 1)
    return {
        "empty": empty / total,
        "single": single / total,
        "mixed": (len(patterns) - empty - single) / total,
    }


def _difference(a: dict[str, float], b: dict[str, float]) -> float:
    return sum(abs(a.get(k, 0.0) - b.get(k, 0.0)) for k in a.keys() | b.keys())


def similarity_score(first: Level, second: Level) -> float:
    """Structural similarity between 0.0 and 1.0."""
    p1 = normalize_colors(first.initial_containers)
    p2 = normalize_colors(second.initial_containers)

    arrangement = 0.0
    if len(p1) == len(p2) and p1:
        arrangement = sum(1 for a, b in zip(p1, p2) if a == b) / len(p1)

    d1, d2 = _distribution(p1), _distribution(p2)
    distribution = max(0.0, 1.0 - _difference(d1, d2) / 2.0)

    m1 = dict(d1, avg_segments=sum(map(count_segments, p1)) / (len(p1) or 1))
    m2 = dict(d2, avg_segments=sum(map(count_segments, p2)) / (len(p2) or 1))
    mixing = max(0.0, 1.0 - _difference(m1, m2) / len(m1))

    return (
        arrangement * ARRANGEMENT_WEIGHT
        + distribution * DISTRIBUTION_WEIGHT
        + mixing * MIXING_WEIGHT
    )


def are_levels_similar(first: Level, second: Level, threshold: float = SIMILARITY_THRESHOLD) -> bool:
    if (
        first.container_count != second.container_count
        or first.color_count != second.color_count
    ):
        return False
    return similarity_score(first, second) >= threshold


def is_similar_to_any(level: Level, others: Sequence[Level], threshold: float = SIMILARITY_THRESHOLD) -> bool:
    return any(are_levels_similar(level, other, threshold) for other in others)
