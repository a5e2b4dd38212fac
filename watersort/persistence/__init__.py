"""
Persistence module - JSON round-trip for levels and saved games.

Only the encoding lives here; where files are kept is up to the caller.
"""

from .schemas import (
    SCHEMA_VERSION,
    LiquidLayerModel,
    ContainerModel,
    MoveModel,
    GameStateModel,
    LevelModel,
)
from .serializer import (
    dump_level,
    load_level,
    dump_game_state,
    load_game_state,
    save_level,
    read_level,
    save_game_state,
    read_game_state,
)

__all__ = [
    "SCHEMA_VERSION",
    "LiquidLayerModel",
    "ContainerModel",
    "MoveModel",
    "GameStateModel",
    "LevelModel",
    "dump_level",
    "load_level",
    "dump_game_state",
    "load_game_state",
    "save_level",
    "read_level",
    "save_game_state",
    "read_game_state",
]
