"""Input events consumed by ``GameController.dispatch``.

Each UI (Pygame window, tests, a future web front end) translates its own
input into these plain values.
"""

from __future__ import annotations

from dataclasses import dataclass

from cellcraft.render.viewport import GeoBounds
from cellcraft.world.coords import CellCoord
from cellcraft.world.state import MovementMode


@dataclass(frozen=True)
class CellClicked:
    """The player clicked a cell."""

    coord: CellCoord


@dataclass(frozen=True)
class PositionUpdated:
    """The active movement source reported a new player position."""

    lat: float
    lng: float


@dataclass(frozen=True)
class StepRequested:
    """Manual one-cell move, e.g. ``StepRequested(1, 0)`` is one cell north."""

    di: int
    dj: int


@dataclass(frozen=True)
class ModeChanged:
    """Switch the movement input source."""

    mode: MovementMode


@dataclass(frozen=True)
class ViewportChanged:
    """The visible map area moved or zoomed."""

    bounds: GeoBounds


@dataclass(frozen=True)
class ResetRequested:
    """Wipe the save and start over."""


Event = (
    CellClicked
    | PositionUpdated
    | StepRequested
    | ModeChanged
    | ViewportChanged
    | ResetRequested
)
