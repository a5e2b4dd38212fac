"""
Serializer - JSON save/load for levels and games.

Loading a game re-derives the board by replaying the stored history
from the initial layout and rejects files whose stored board disagrees,
so a loaded GameState always satisfies the replay invariant.
"""

from __future__ import annotations
import logging
from pathlib import Path

from ..engine_core.state import GameState
from ..engine_core.level import Level
from ..engine_core.engine import GameEngine
from .schemas import GameStateModel, LevelModel

logger = logging.getLogger(__name__)


def dump_level(level: Level, indent: int | None = 2) -> str:
    return LevelModel.from_domain(level).model_dump_json(indent=indent)


def load_level(data: str | bytes) -> Level:
    return LevelModel.model_validate_json(data).to_domain()


def dump_game_state(state: GameState, indent: int | None = 2) -> str:
    return GameStateModel.from_domain(state).model_dump_json(indent=indent)


def load_game_state(data: str | bytes, engine: GameEngine | None = None) -> GameState:
    """
    Parse a saved game.

    Raises pydantic.ValidationError for malformed payloads and
    ContainerInvariantError when the stored board does not match the
    replayed history. The Won/Lost flags are taken from the board, not
    from the file.
    """
    engine = engine or GameEngine()
    state = GameStateModel.model_validate_json(data).to_domain()
    return engine.verify_history(state)


def save_level(level: Level, path: str | Path):
    path = Path(path)
    path.write_text(dump_level(level), encoding="utf-8")
    logger.debug(f"Saved level {level.id} to {path}")


def read_level(path: str | Path) -> Level:
    return load_level(Path(path).read_text(encoding="utf-8"))


def save_game_state(state: GameState, path: str | Path):
    path = Path(path)
    path.write_text(dump_game_state(state), encoding="utf-8")
    logger.debug(f"Saved game for level {state.level_id} to {path}")


def read_game_state(path: str | Path, engine: GameEngine | None = None) -> GameState:
    return load_game_state(Path(path).read_text(encoding="utf-8"), engine=engine)
