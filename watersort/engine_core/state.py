"""
Game State - Liquid layers, containers and the play-through state.

Design principles:
- Value types: every edit returns a new object, nothing is shared mutably
- Invariants are enforced at construction time and fail fast
- Serializable: see persistence.schemas for the JSON round-trip
- No rules here beyond derived queries; legality lives in the engine
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, TYPE_CHECKING

if TYPE_CHECKING:
    from .action import Move


class ContainerInvariantError(ValueError):
    """Raised when a layer or container would break its invariants."""


class LiquidColor(Enum):
    """The closed palette of liquid colors."""
    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    PURPLE = "purple"
    ORANGE = "orange"
    PINK = "pink"
    CYAN = "cyan"
    BROWN = "brown"
    LIME = "lime"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def code(self) -> str:
        """One-letter code used in compact layout strings."""
        return _COLOR_CODES[self]


_COLOR_CODES = {
    LiquidColor.RED: "R",
    LiquidColor.BLUE: "B",
    LiquidColor.GREEN: "G",
    LiquidColor.YELLOW: "Y",
    LiquidColor.PURPLE: "P",
    LiquidColor.ORANGE: "O",
    LiquidColor.PINK: "K",
    LiquidColor.CYAN: "C",
    LiquidColor.BROWN: "N",
    LiquidColor.LIME: "L",
}


@dataclass(frozen=True)
class LiquidLayer:
    """A contiguous band of a single color inside a container."""
    color: LiquidColor
    volume: int

    def __post_init__(self):
        if self.volume <= 0:
            raise ContainerInvariantError(
                f"Layer volume must be positive, got {self.volume}"
            )

    def can_combine_with(self, other: LiquidLayer) -> bool:
        return self.color == other.color

    def combine_with(self, other: LiquidLayer) -> LiquidLayer:
        """Return one layer holding the volume of both (same color only)."""
        if not self.can_combine_with(other):
            raise ContainerInvariantError(
                f"Cannot combine {self.color.value} with {other.color.value}"
            )
        return LiquidLayer(self.color, self.volume + other.volume)

    def split(self, volume: int) -> tuple[LiquidLayer | None, LiquidLayer]:
        """
        Split off `volume` units.

        Returns (remaining, split_off). remaining is None when the whole
        layer is taken.
        """
        if volume <= 0 or volume > self.volume:
            raise ContainerInvariantError(
                f"Cannot split {volume} from a layer of {self.volume}"
            )
        split_off = LiquidLayer(self.color, volume)
        if volume == self.volume:
            return None, split_off
        return LiquidLayer(self.color, self.volume - volume), split_off

    def __str__(self) -> str:
        return f"{self.color.value}:{self.volume}"


def _merge_layers(layers: Iterable[LiquidLayer]) -> tuple[LiquidLayer, ...]:
    """Combine adjacent same-color layers."""
    merged: list[LiquidLayer] = []
    for layer in layers:
        if merged and merged[-1].can_combine_with(layer):
            merged[-1] = merged[-1].combine_with(layer)
        else:
            merged.append(layer)
    return tuple(merged)


@dataclass(frozen=True)
class Container:
    """
    A container of stacked liquid layers, bottom to top.

    Adjacent layers of the same color are merged on construction, so
    the top layer always is the full top continuous run.
    """
    id: int
    capacity: int
    layers: tuple[LiquidLayer, ...] = ()

    def __post_init__(self):
        if self.capacity <= 0:
            raise ContainerInvariantError(
                f"Container {self.id} capacity must be positive, got {self.capacity}"
            )
        layers = _merge_layers(self.layers)
        object.__setattr__(self, "layers", layers)
        volume = sum(layer.volume for layer in layers)
        if volume > self.capacity:
            raise ContainerInvariantError(
                f"Container {self.id} holds {volume} but capacity is {self.capacity}"
            )

    @property
    def current_volume(self) -> int:
        return sum(layer.volume for layer in self.layers)

    @property
    def remaining_capacity(self) -> int:
        return self.capacity - self.current_volume

    @property
    def is_empty(self) -> bool:
        return not self.layers

    @property
    def is_full(self) -> bool:
        return self.current_volume == self.capacity

    @property
    def is_sorted(self) -> bool:
        """All liquid is one color (an empty container counts as sorted)."""
        return len(self.layers) <= 1

    @property
    def is_completed(self) -> bool:
        """Full of a single color."""
        return not self.is_empty and self.is_full and self.is_sorted

    @property
    def top_layer(self) -> LiquidLayer | None:
        return self.layers[-1] if self.layers else None

    @property
    def top_color(self) -> LiquidColor | None:
        top = self.top_layer
        return top.color if top else None

    @property
    def top_continuous_volume(self) -> int:
        """Volume of the same-color run at the top."""
        top = self.top_layer
        return top.volume if top else 0

    @property
    def unique_colors(self) -> set[LiquidColor]:
        return {layer.color for layer in self.layers}

    @property
    def color_segment_count(self) -> int:
        return len(self.layers)

    def can_accept(self, color: LiquidColor, volume: int = 1) -> bool:
        """Check if `volume` of `color` fits on top."""
        if volume > self.remaining_capacity:
            return False
        return self.is_empty or self.top_color == color

    def with_added(self, layer: LiquidLayer) -> Container:
        """Return new container with a layer poured on top."""
        return Container(
            id=self.id,
            capacity=self.capacity,
            layers=self.layers + (layer,),
        )

    def with_removed(self, color: LiquidColor, volume: int) -> tuple[LiquidLayer, Container]:
        """
        Remove `volume` units of `color` from the top.

        Returns (removed layer, new container).
        """
        top = self.top_layer
        if top is None or top.color != color:
            raise ContainerInvariantError(
                f"Container {self.id} has no {color.value} on top"
            )
        remaining, removed = top.split(volume)
        layers = self.layers[:-1] + ((remaining,) if remaining else ())
        return removed, Container(id=self.id, capacity=self.capacity, layers=layers)

    def with_id(self, container_id: int) -> Container:
        return Container(id=container_id, capacity=self.capacity, layers=self.layers)

    def __str__(self) -> str:
        if self.is_empty:
            return f"Container({self.id}: empty/{self.capacity})"
        content = ", ".join(str(layer) for layer in self.layers)
        return f"Container({self.id}: [{content}] {self.current_volume}/{self.capacity})"


@dataclass(frozen=True)
class GameState:
    """
    Complete state of one play-through of a level.

    `containers` is always `initial_containers` with
    `move_history[:current_move_index + 1]` replayed in order.
    The engine is the only producer of new states.
    """
    level_id: int
    containers: tuple[Container, ...]
    initial_containers: tuple[Container, ...]

    # History (for undo, redo and replay)
    move_history: tuple[Move, ...] = ()
    current_move_index: int = -1

    # Outcome flags, recomputed after every transition
    is_completed: bool = False
    is_lost: bool = False

    # Pours ever executed, including undone ones
    move_count: int = 0

    @classmethod
    def initial(cls, level_id: int, containers: Iterable[Container]) -> GameState:
        """Create the start state for a level."""
        snapshot = tuple(containers)
        return cls(
            level_id=level_id,
            containers=snapshot,
            initial_containers=snapshot,
        )

    @property
    def can_undo(self) -> bool:
        return self.current_move_index >= 0

    @property
    def can_redo(self) -> bool:
        return self.current_move_index < len(self.move_history) - 1

    @property
    def undoable_moves_count(self) -> int:
        return self.current_move_index + 1

    @property
    def redoable_moves_count(self) -> int:
        return len(self.move_history) - self.current_move_index - 1

    @property
    def effective_move_count(self) -> int:
        """Moves currently applied to the board."""
        return self.current_move_index + 1

    @property
    def total_volume(self) -> int:
        return sum(c.current_volume for c in self.containers)

    def get_container(self, container_id: int) -> Container | None:
        """Get container by ID."""
        for container in self.containers:
            if container.id == container_id:
                return container
        return None

    def _copy_with(self, **kwargs) -> GameState:
        """Create a copy with some fields replaced."""
        return GameState(
            level_id=kwargs.get("level_id", self.level_id),
            containers=tuple(kwargs.get("containers", self.containers)),
            initial_containers=tuple(kwargs.get("initial_containers", self.initial_containers)),
            move_history=tuple(kwargs.get("move_history", self.move_history)),
            current_move_index=kwargs.get("current_move_index", self.current_move_index),
            is_completed=kwargs.get("is_completed", self.is_completed),
            is_lost=kwargs.get("is_lost", self.is_lost),
            move_count=kwargs.get("move_count", self.move_count),
        )
