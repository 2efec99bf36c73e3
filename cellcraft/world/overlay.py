"""MutationOverlay — sparse record of player edits to the world.

A cell present in the overlay shadows its generated base value forever,
even when it maps to ``None`` (explicitly emptied).  Writes are pushed to
the ``on_write`` listener synchronously so a mutation is durable as soon as
``set`` returns.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from cellcraft.world.coords import CellCoord

# Sentinel distinguishing "never touched" from "emptied"
MISSING: Any = object()


@dataclass
class MutationOverlay:
    """Mapping from cell coordinate to an overriding token or ``None``.

    Attributes:
        on_write: Called after every ``set`` with the overlay itself.
        on_clear: Called after ``clear`` so the persisted form can be removed.
    """

    on_write: Callable[[MutationOverlay], None] | None = None
    on_clear: Callable[[], None] | None = None
    _cells: dict[CellCoord, int | None] = field(default_factory=dict, repr=False)

    def __contains__(self, coord: object) -> bool:
        return coord in self._cells

    def __getitem__(self, coord: CellCoord) -> int | None:
        return self._cells[coord]

    def __len__(self) -> int:
        return len(self._cells)

    def get(self, coord: CellCoord, default: Any = None) -> Any:
        """Return the overriding value, or ``default`` if never touched."""
        return self._cells.get(coord, default)

    def set(self, coord: CellCoord, value: int | None) -> None:
        """Overwrite a cell's value and notify the write listener.

        Args:
            coord: Cell to override.
            value: New token, or ``None`` to mark the cell emptied.

        Raises:
            ValueError: If ``value`` is a negative integer.
        """
        if value is not None and value < 0:
            msg = f"token values must be non-negative, got {value}"
            raise ValueError(msg)
        self._cells[CellCoord(*coord)] = value
        if self.on_write is not None:
            self.on_write(self)

    def load(self, entries: dict[CellCoord, int | None]) -> None:
        """Replace the contents without notifying listeners (restore path)."""
        self._cells = {CellCoord(*c): v for c, v in entries.items()}

    def clear(self) -> None:
        """Drop every override and delete the persisted copy."""
        self._cells.clear()
        if self.on_clear is not None:
            self.on_clear()

    def entries(self) -> Iterator[tuple[CellCoord, int | None]]:
        # Sorted so serialised saves are stable
        return iter(sorted(self._cells.items()))

    def snapshot(self) -> dict[CellCoord, int | None]:
        return dict(self._cells)
