"""
Pour System - Moves and pour results.

A Move records one already-validated pour, including the exact layer
transferred, so it can be replayed deterministically.

A PourResult is the closed, non-throwing outcome of validating a pour:
either success (carrying the Move that would result) or one of six
named failure kinds.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .state import LiquidColor, LiquidLayer


@dataclass(frozen=True)
class Move:
    """A single pour from one container to another."""
    from_container_id: int
    to_container_id: int
    liquid_moved: LiquidLayer
    timestamp: datetime

    @property
    def volume(self) -> int:
        return self.liquid_moved.volume

    @property
    def color(self) -> LiquidColor:
        return self.liquid_moved.color

    def __str__(self) -> str:
        return (
            f"Pour {self.liquid_moved.volume} {self.liquid_moved.color.value} "
            f"from {self.from_container_id} to {self.to_container_id}"
        )


class PourFailureKind(Enum):
    """Reasons a pour can be rejected."""
    SAME_CONTAINER = "same_container"
    INVALID_CONTAINER = "invalid_container"
    EMPTY_SOURCE = "empty_source"
    CONTAINER_FULL = "container_full"
    COLOR_MISMATCH = "color_mismatch"
    INSUFFICIENT_CAPACITY = "insufficient_capacity"


@dataclass(frozen=True)
class PourResult:
    """
    Result of validating a pour.

    Contains:
    - Whether the pour is legal
    - The Move it would produce (if legal)
    - Failure kind, message and details (if not)
    """
    success: bool
    move: Move | None = None
    failure: PourFailureKind | None = None
    error: str | None = None

    # Failure details
    container_id: int | None = None
    source_color: LiquidColor | None = None
    target_color: LiquidColor | None = None
    attempted_volume: int | None = None
    available_capacity: int | None = None

    @property
    def is_success(self) -> bool:
        return self.success

    @property
    def is_failure(self) -> bool:
        return not self.success

    @classmethod
    def success_with_move(cls, move: Move) -> PourResult:
        """Create a success result carrying the resulting move."""
        return cls(success=True, move=move)

    @classmethod
    def same_container(cls, container_id: int) -> PourResult:
        return cls(
            success=False,
            failure=PourFailureKind.SAME_CONTAINER,
            error="Cannot pour liquid into the same container",
            container_id=container_id,
        )

    @classmethod
    def invalid_container(cls, container_id: int) -> PourResult:
        return cls(
            success=False,
            failure=PourFailureKind.INVALID_CONTAINER,
            error=f"Container {container_id} does not exist",
            container_id=container_id,
        )

    @classmethod
    def empty_source(cls, container_id: int) -> PourResult:
        return cls(
            success=False,
            failure=PourFailureKind.EMPTY_SOURCE,
            error=f"Container {container_id} is empty",
            container_id=container_id,
        )

    @classmethod
    def container_full(cls, container_id: int) -> PourResult:
        return cls(
            success=False,
            failure=PourFailureKind.CONTAINER_FULL,
            error=f"Container {container_id} is full",
            container_id=container_id,
        )

    @classmethod
    def color_mismatch(cls, source_color: LiquidColor, target_color: LiquidColor) -> PourResult:
        return cls(
            success=False,
            failure=PourFailureKind.COLOR_MISMATCH,
            error=(
                f"Cannot pour {source_color.display_name} liquid onto "
                f"{target_color.display_name} liquid"
            ),
            source_color=source_color,
            target_color=target_color,
        )

    @classmethod
    def insufficient_capacity(
        cls,
        container_id: int,
        attempted_volume: int,
        available_capacity: int,
    ) -> PourResult:
        return cls(
            success=False,
            failure=PourFailureKind.INSUFFICIENT_CAPACITY,
            error=(
                f"Container {container_id} has only {available_capacity} units "
                f"of space, cannot pour {attempted_volume} units"
            ),
            container_id=container_id,
            attempted_volume=attempted_volume,
            available_capacity=available_capacity,
        )
