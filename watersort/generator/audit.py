"""
Generation Audit - Step-by-step record of how a level was scrambled.

Useful when a generated level looks wrong: every inverse operation is
logged with the layout before and after it.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from ..engine_core.state import Container, LiquidColor
from ..engine_core.canonical import compact_layout


@dataclass
class ScrambleStep:
    """One applied inverse operation."""
    step_number: int
    operation: str
    source_id: int
    target_id: int
    color: LiquidColor
    volume: int
    before: str
    after: str
    contiguous_percentage: float

    def __str__(self) -> str:
        return (
            f"Step {self.step_number}: {self.operation} "
            f"{self.volume} {self.color.value} {self.source_id} -> {self.target_id}  "
            f"{self.before} => {self.after} "
            f"({self.contiguous_percentage:.0f}% contiguous)"
        )


def contiguous_percentage(containers: tuple[Container, ...]) -> float:
    """Share of non-empty containers that hold a single color."""
    filled = [c for c in containers if not c.is_empty]
    if not filled:
        return 100.0
    return 100.0 * sum(1 for c in filled if c.is_sorted) / len(filled)


@dataclass
class GenerationAudit:
    """Audit trail for one generation attempt."""
    level_id: int
    difficulty: int
    color_count: int
    container_capacity: int
    container_count: int
    seed: int | None
    attempt: int = 1
    selected_colors: list[LiquidColor] = field(default_factory=list)
    initial_layout: str = ""
    final_layout: str = ""
    steps: list[ScrambleStep] = field(default_factory=list)
    removed_empty_containers: int = 0
    failures: list[str] = field(default_factory=list)

    def record(
        self,
        operation: str,
        source_id: int,
        target_id: int,
        color: LiquidColor,
        volume: int,
        before: tuple[Container, ...],
        after: tuple[Container, ...],
    ):
        self.steps.append(
            ScrambleStep(
                step_number=len(self.steps) + 1,
                operation=operation,
                source_id=source_id,
                target_id=target_id,
                color=color,
                volume=volume,
                before=compact_layout(before),
                after=compact_layout(after),
                contiguous_percentage=contiguous_percentage(after),
            )
        )

    def to_detailed_string(self) -> str:
        lines = [
            f"Level {self.level_id} (attempt {self.attempt})",
            f"  Difficulty: {self.difficulty}",
            f"  Colors: {self.color_count}, capacity {self.container_capacity}, "
            f"containers {self.container_count}",
            f"  Seed: {self.seed}",
            f"  Selected Colors: {', '.join(c.value for c in self.selected_colors)}",
            f"  Initial: {self.initial_layout}",
        ]
        lines.extend(f"  {step}" for step in self.steps)
        lines.append(f"  Final: {self.final_layout}")
        if self.removed_empty_containers:
            lines.append(f"  Removed empty containers: {self.removed_empty_containers}")
        if self.failures:
            lines.append(f"  Failures: {', '.join(self.failures)}")
        return "\n".join(lines)
