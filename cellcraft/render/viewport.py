"""ViewportCellManager — keep exactly the visible cells materialised.

Each render pass computes the desired set (every cell covering the visible
bounds) and diffs it against the currently materialised set:

1. cells that left the view are culled,
2. cells that entered the view are created,
3. cells that stayed are updated in place, never recreated.

Memory therefore scales with the viewport, not with the world.  Drawables
are handed to a ``CellSink`` so any rendering backend can mirror them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, NamedTuple

from cellcraft.render.style import CellStyle, style_for_cell
from cellcraft.world.coords import CellCoord, CellGrid, chebyshev

if TYPE_CHECKING:
    from cellcraft.world.view import WorldView

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeoBounds:
    """Visible geographic rectangle in degrees."""

    south: float
    west: float
    north: float
    east: float

    def __post_init__(self) -> None:
        if self.north < self.south or self.east < self.west:
            msg = f"inverted bounds: {self}"
            raise ValueError(msg)


class CellRect(NamedTuple):
    """Inclusive rectangle of cell coordinates."""

    i_min: int
    i_max: int
    j_min: int
    j_max: int

    def __contains__(self, coord: object) -> bool:
        if not isinstance(coord, tuple) or len(coord) != 2:
            return False
        i, j = coord
        return self.i_min <= i <= self.i_max and self.j_min <= j <= self.j_max

    @property
    def size(self) -> int:
        return (self.i_max - self.i_min + 1) * (self.j_max - self.j_min + 1)

    def cells(self) -> Iterator[CellCoord]:
        for i in range(self.i_min, self.i_max + 1):
            for j in range(self.j_min, self.j_max + 1):
                yield CellCoord(i, j)


def covering_rect(bounds: GeoBounds, grid: CellGrid) -> CellRect:
    """Return the cells covering ``bounds``, corners included."""
    return CellRect(
        grid.lat_to_i(bounds.south),
        grid.lat_to_i(bounds.north),
        grid.lng_to_j(bounds.west),
        grid.lng_to_j(bounds.east),
    )


@dataclass
class CellDrawable:
    """Materialised representation of one visible cell.

    Attributes:
        coord: Cell coordinate.
        bounds: ``(south, west, north, east)`` of the cell in degrees.
        value: Effective cell value when last drawn.
        style: Current outline/fill.
        label: Value text, or ``None`` when the cell is out of label range.
    """

    coord: CellCoord
    bounds: tuple[float, float, float, float]
    value: int | None
    style: CellStyle
    label: str | None = None


class CellSink:
    """Receives drawable lifecycle notifications.  Methods default to no-ops."""

    def create(self, drawable: CellDrawable) -> None:
        """A cell entered the view."""

    def update(self, drawable: CellDrawable) -> None:
        """A visible cell changed value, style or label."""

    def remove(self, drawable: CellDrawable) -> None:
        """A cell left the view."""


class ViewportCellManager:
    """Reconciles materialised drawables against the visible bounds.

    Attributes:
        world: Source of effective cell values.
        grid: Lat/lng lattice.
        interact_radius: Chebyshev radius that earns the strong outline.
        label_radius: Chebyshev radius inside which values are labelled.
        sink: Rendering backend notified of every change.
        materialized: Currently materialised drawables by coordinate.
    """

    def __init__(
        self,
        world: WorldView,
        grid: CellGrid,
        *,
        interact_radius: int,
        label_radius: int,
        sink: CellSink | None = None,
    ) -> None:
        self.world = world
        self.grid = grid
        self.interact_radius = interact_radius
        self.label_radius = label_radius
        self.sink = sink or CellSink()
        self.materialized: dict[CellCoord, CellDrawable] = {}
        self.rect: CellRect | None = None

    def reconcile(self, bounds: GeoBounds, player_cell: CellCoord) -> CellRect:
        """Bring the materialised set in line with ``bounds``.

        Args:
            bounds: Visible geographic area.
            player_cell: Cell the player stands in (drives outline and labels).

        Returns:
            The covering rectangle now materialised.
        """
        rect = covering_rect(bounds, self.grid)
        values = self.world.region_values(*rect)

        stale = [coord for coord in self.materialized if coord not in rect]
        for coord in stale:
            drawable = self.materialized.pop(coord)
            self._notify(self.sink.remove, drawable)

        created = 0
        for coord, value in values.items():
            drawable = self.materialized.get(coord)
            try:
                if drawable is None:
                    drawable = self._build(coord, value, player_cell)
                    self.materialized[coord] = drawable
                    created += 1
                    self._notify(self.sink.create, drawable)
                elif self._restyle(drawable, value, player_cell):
                    self._notify(self.sink.update, drawable)
            except Exception:
                logger.exception("Failed to materialise cell %s", coord)

        self.rect = rect
        logger.debug(
            "Render pass %s: %d/%d cells, %d created, %d culled",
            tuple(rect),
            len(self.materialized),
            rect.size,
            created,
            len(stale),
        )
        return rect

    def refresh_cell(self, coord: CellCoord, player_cell: CellCoord) -> bool:
        """Update a single materialised cell after its value changed.

        Returns:
            True if the cell is visible and was refreshed.
        """
        if self.rect is None or coord not in self.rect:
            return False
        drawable = self.materialized.get(coord)
        if drawable is None:
            return False
        try:
            value = self.world.get_cell_value(coord)
            if self._restyle(drawable, value, player_cell):
                self._notify(self.sink.update, drawable)
        except Exception:
            logger.exception("Failed to refresh cell %s", coord)
        return True

    def clear(self) -> None:
        """Cull everything, e.g. when the window closes."""
        for drawable in self.materialized.values():
            self._notify(self.sink.remove, drawable)
        self.materialized.clear()
        self.rect = None

    def _build(
        self,
        coord: CellCoord,
        value: int | None,
        player_cell: CellCoord,
    ) -> CellDrawable:
        distance = chebyshev(coord, player_cell)
        return CellDrawable(
            coord=coord,
            bounds=self.grid.cell_bounds(coord),
            value=value,
            style=style_for_cell(value, in_range=distance <= self.interact_radius),
            label=self._label(value, distance),
        )

    def _restyle(
        self,
        drawable: CellDrawable,
        value: int | None,
        player_cell: CellCoord,
    ) -> bool:
        """Mutate ``drawable`` in place; return True if anything changed."""
        distance = chebyshev(drawable.coord, player_cell)
        style = style_for_cell(value, in_range=distance <= self.interact_radius)
        label = self._label(value, distance)
        if (value, style, label) == (drawable.value, drawable.style, drawable.label):
            return False
        drawable.value = value
        drawable.style = style
        drawable.label = label
        return True

    def _label(self, value: int | None, distance: int) -> str | None:
        if value is None or distance > self.label_radius:
            return None
        return str(value)

    @staticmethod
    def _notify(
        callback: Callable[[CellDrawable], None],
        drawable: CellDrawable,
    ) -> None:
        # A broken backend must not stop other cells from rendering
        try:
            callback(drawable)
        except Exception:
            logger.exception("Cell sink failed for %s", drawable.coord)
