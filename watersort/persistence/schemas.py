"""
Pydantic Schemas for persistence - The JSON shape of levels and saved games.

These models define the exact contract between the engine and whatever
stores its state. A saved game keeps container ids, capacities, layer
order (bottom to top), the full move history with timestamps and
current_move_index, so undo and redo keep working after a load.

Malformed payloads raise pydantic.ValidationError. Payloads that parse
but describe an impossible container raise ContainerInvariantError
when converted back to domain objects.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from ..engine_core.state import LiquidColor, LiquidLayer, Container, GameState
from ..engine_core.action import Move
from ..engine_core.level import Level

SCHEMA_VERSION = 1


# =============================================================================
# Building blocks
# =============================================================================

class LiquidLayerModel(BaseModel):
    """A single-color band of liquid."""
    color: LiquidColor
    volume: int = Field(gt=0)

    @classmethod
    def from_domain(cls, layer: LiquidLayer) -> "LiquidLayerModel":
        return cls(color=layer.color, volume=layer.volume)

    def to_domain(self) -> LiquidLayer:
        return LiquidLayer(color=self.color, volume=self.volume)


class ContainerModel(BaseModel):
    """A container and its layers."""
    id: int
    capacity: int = Field(gt=0)
    layers: list[LiquidLayerModel] = Field(default_factory=list, description="Bottom to top")

    @classmethod
    def from_domain(cls, container: Container) -> "ContainerModel":
        return cls(
            id=container.id,
            capacity=container.capacity,
            layers=[LiquidLayerModel.from_domain(layer) for layer in container.layers],
        )

    def to_domain(self) -> Container:
        return Container(
            id=self.id,
            capacity=self.capacity,
            layers=tuple(layer.to_domain() for layer in self.layers),
        )


class MoveModel(BaseModel):
    """One executed pour."""
    from_container_id: int
    to_container_id: int
    liquid_moved: LiquidLayerModel
    timestamp: datetime

    @classmethod
    def from_domain(cls, move: Move) -> "MoveModel":
        return cls(
            from_container_id=move.from_container_id,
            to_container_id=move.to_container_id,
            liquid_moved=LiquidLayerModel.from_domain(move.liquid_moved),
            timestamp=move.timestamp,
        )

    def to_domain(self) -> Move:
        return Move(
            from_container_id=self.from_container_id,
            to_container_id=self.to_container_id,
            liquid_moved=self.liquid_moved.to_domain(),
            timestamp=self.timestamp,
        )


# =============================================================================
# Documents
# =============================================================================

class GameStateModel(BaseModel):
    """A saved game."""
    schema_version: int = SCHEMA_VERSION
    level_id: int
    containers: list[ContainerModel]
    initial_containers: list[ContainerModel]
    move_history: list[MoveModel] = Field(default_factory=list)
    current_move_index: int = Field(default=-1, ge=-1)
    is_completed: bool = False
    is_lost: bool = False
    move_count: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def check_move_index(self) -> "GameStateModel":
        if self.current_move_index >= len(self.move_history):
            raise ValueError(
                f"current_move_index {self.current_move_index} is past the "
                f"end of a history of {len(self.move_history)} moves"
            )
        return self

    @classmethod
    def from_domain(cls, state: GameState) -> "GameStateModel":
        return cls(
            level_id=state.level_id,
            containers=[ContainerModel.from_domain(c) for c in state.containers],
            initial_containers=[ContainerModel.from_domain(c) for c in state.initial_containers],
            move_history=[MoveModel.from_domain(m) for m in state.move_history],
            current_move_index=state.current_move_index,
            is_completed=state.is_completed,
            is_lost=state.is_lost,
            move_count=state.move_count,
        )

    def to_domain(self) -> GameState:
        return GameState(
            level_id=self.level_id,
            containers=tuple(c.to_domain() for c in self.containers),
            initial_containers=tuple(c.to_domain() for c in self.initial_containers),
            move_history=tuple(m.to_domain() for m in self.move_history),
            current_move_index=self.current_move_index,
            is_completed=self.is_completed,
            is_lost=self.is_lost,
            move_count=self.move_count,
        )


class LevelModel(BaseModel):
    """A level recipe."""
    schema_version: int = SCHEMA_VERSION
    id: int
    difficulty: int = Field(ge=1)
    container_count: int = Field(ge=1)
    color_count: int = Field(ge=1)
    initial_containers: list[ContainerModel]
    minimum_moves: Optional[int] = None
    max_moves: Optional[int] = None
    is_validated: bool = False
    hint: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    validation_failures: list[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, level: Level) -> "LevelModel":
        return cls(
            id=level.id,
            difficulty=level.difficulty,
            container_count=level.container_count,
            color_count=level.color_count,
            initial_containers=[ContainerModel.from_domain(c) for c in level.initial_containers],
            minimum_moves=level.minimum_moves,
            max_moves=level.max_moves,
            is_validated=level.is_validated,
            hint=level.hint,
            tags=list(level.tags),
            validation_failures=list(level.validation_failures),
        )

    def to_domain(self) -> Level:
        return Level(
            id=self.id,
            difficulty=self.difficulty,
            container_count=self.container_count,
            color_count=self.color_count,
            initial_containers=tuple(c.to_domain() for c in self.initial_containers),
            minimum_moves=self.minimum_moves,
            max_moves=self.max_moves,
            is_validated=self.is_validated,
            hint=self.hint,
            tags=tuple(self.tags),
            validation_failures=tuple(self.validation_failures),
        )
