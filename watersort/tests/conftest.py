"""
Pytest fixtures for Watersort tests.
"""

from datetime import datetime, timezone

import pytest

from ..engine_core.state import Container, GameState, LiquidColor, LiquidLayer
from ..engine_core.level import Level
from ..engine_core.engine import GameEngine

FIXED_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)

R = LiquidColor.RED
B = LiquidColor.BLUE
G = LiquidColor.GREEN


def make_container(container_id: int, *layers: tuple, capacity: int = 4) -> Container:
    """Build a container from (color, volume) pairs, bottom to top."""
    return Container(
        id=container_id,
        capacity=capacity,
        layers=tuple(LiquidLayer(color, volume) for color, volume in layers),
    )


def mixed_layout() -> tuple[Container, ...]:
    """Two colors swapped between two containers, plus two empties. Solvable in 3."""
    return (
        make_container(0, (R, 2), (B, 2)),
        make_container(1, (B, 2), (R, 2)),
        make_container(2),
        make_container(3),
    )


def deadlock_layout() -> tuple[Container, ...]:
    """Pouring 1 -> 3 leaves no legal pour on an unsolved board."""
    return (
        make_container(0, (R, 1), (B, 1), capacity=2),
        make_container(1, (G, 1), (R, 1), capacity=2),
        make_container(2, (B, 1), capacity=1),
        make_container(3, capacity=1),
    )


@pytest.fixture
def engine() -> GameEngine:
    """Engine with a fixed clock so moves compare equal."""
    return GameEngine(clock=lambda: FIXED_TIME)


@pytest.fixture
def strict_engine() -> GameEngine:
    """Engine that rejects pours the target cannot take in full."""
    return GameEngine(allow_partial_pours=False, clock=lambda: FIXED_TIME)


@pytest.fixture
def mixed_state(engine) -> GameState:
    return engine.initialize_level(1, mixed_layout())


@pytest.fixture
def one_move_state(engine) -> GameState:
    """Solved by pouring container 1 into container 0, and only by that."""
    return engine.initialize_level(
        2,
        (
            make_container(0, (B, 3)),
            make_container(1, (R, 3), (B, 1)),
            make_container(2),
        ),
    )


@pytest.fixture
def solved_state(engine) -> GameState:
    return engine.initialize_level(
        3,
        (
            make_container(0, (R, 4)),
            make_container(1, (B, 4)),
            make_container(2),
        ),
    )


@pytest.fixture
def deadlock_state(engine) -> GameState:
    return engine.initialize_level(4, deadlock_layout())


@pytest.fixture
def mixed_level() -> Level:
    return Level(
        id=1,
        difficulty=1,
        container_count=4,
        color_count=2,
        initial_containers=mixed_layout(),
        tags=("tutorial", "easy"),
    )


@pytest.fixture
def deadlock_level() -> Level:
    return Level(
        id=4,
        difficulty=2,
        container_count=4,
        color_count=3,
        initial_containers=deadlock_layout(),
    )
