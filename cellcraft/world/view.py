"""WorldView — read/write façade over generator and overlay.

Game rules and the renderer only ever touch cells through this class, so
the shadowing rule (overlay first, generator second) holds everywhere.
"""

from __future__ import annotations

from dataclasses import dataclass

from cellcraft.world.coords import CellCoord
from cellcraft.world.generator import TokenGenerator
from cellcraft.world.overlay import MISSING, MutationOverlay


@dataclass
class WorldView:
    """Effective cell values of the world.

    Attributes:
        overlay: Player edits.
        generator: Seeded base-token source.
    """

    overlay: MutationOverlay
    generator: TokenGenerator

    def get_cell_value(self, coord: CellCoord) -> int | None:
        """Return the overlay value if the cell was touched, else its base."""
        value = self.overlay.get(coord, MISSING)
        if value is MISSING:
            return self.generator.generate(coord.i, coord.j)
        return value

    def set_cell_value(self, coord: CellCoord, value: int | None) -> None:
        """Shadow the cell's base value with ``value``."""
        self.overlay.set(coord, value)

    def base_value(self, coord: CellCoord) -> int | None:
        """Return what the generator says, ignoring player edits."""
        return self.generator.generate(coord.i, coord.j)

    def region_values(
        self,
        i_min: int,
        i_max: int,
        j_min: int,
        j_max: int,
    ) -> dict[CellCoord, int | None]:
        """Return effective values for an inclusive rectangle of cells.

        Base values are produced in one vectorised block, then overridden
        by any overlay entries inside the rectangle.

        Args:
            i_min: First row.
            i_max: Last row (inclusive).
            j_min: First column.
            j_max: Last column (inclusive).

        Returns:
            Mapping from every cell in the rectangle to its effective value.
        """
        if i_max < i_min or j_max < j_min:
            return {}
        block = self.generator.generate_block(i_min, i_max, j_min, j_max)
        values: dict[CellCoord, int | None] = {}
        for di, row in enumerate(block.tolist()):
            for dj, raw in enumerate(row):
                values[CellCoord(i_min + di, j_min + dj)] = raw or None

        for coord, value in self.overlay.entries():
            if i_min <= coord.i <= i_max and j_min <= coord.j <= j_max:
                values[coord] = value
        return values
