"""Shared fixtures for the Cellcraft test suite."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.random import Generator

from cellcraft.game.config import GameConfig
from cellcraft.game.controller import GameController
from cellcraft.persistence.store import InMemoryStore
from cellcraft.world.coords import CellGrid
from cellcraft.world.generator import TokenGenerator, TokenTable
from cellcraft.world.overlay import MutationOverlay
from cellcraft.world.view import WorldView

# Centre of cell (0, 0) with the default 0.0001-degree grid
ORIGIN_CELL_CENTER = (0.00005, 0.00005)


@pytest.fixture
def rng() -> Generator:
    """A deterministic random generator for reproducible tests."""
    return np.random.default_rng(seed=12345)


@pytest.fixture
def grid() -> CellGrid:
    return CellGrid(cell_size=0.0001)


@pytest.fixture
def generator() -> TokenGenerator:
    """The default world generator."""
    return TokenGenerator(seed=12125)


@pytest.fixture
def fours_table() -> TokenTable:
    """Every generated cell holds a 4."""
    return TokenTable(empty_chance=0.0, buckets=((1.0, 4),))


@pytest.fixture
def fours_world(fours_table: TokenTable) -> WorldView:
    return WorldView(MutationOverlay(), TokenGenerator(seed=1, table=fours_table))


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def empty_config() -> GameConfig:
    """A world with no generated tokens; the player starts in cell (0, 0)."""
    return GameConfig(
        start_position=ORIGIN_CELL_CENTER,
        empty_chance=1.0,
        victory_value=8,
    )


@pytest.fixture
def fours_config() -> GameConfig:
    """A world where every untouched cell holds a 4."""
    return GameConfig(
        start_position=ORIGIN_CELL_CENTER,
        empty_chance=0.0,
        token_buckets=((1.0, 4),),
    )


@pytest.fixture
def messages() -> list[str]:
    """Collects controller notifications."""
    return []


@pytest.fixture
def fours_game(
    fours_config: GameConfig,
    store: InMemoryStore,
    messages: list[str],
) -> GameController:
    return GameController(config=fours_config, store=store, notify=messages.append)
