"""Save blob encoding and the persistence adapter.

The whole game is one JSON object under a single store key::

    {
        "cells": [["i,j", 4], ["2,3", null]],
        "held": 8,
        "playerPos": [36.9916, -122.0583],
        "movementMode": "buttons"
    }

``null`` in ``cells`` means "explicitly emptied", which differs from an
unmapped cell (that one falls back to the generator).  Loading never
raises: a missing or malformed blob simply means "no save".
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from cellcraft.world.coords import CellCoord, cell_key, parse_cell_key
from cellcraft.world.state import MovementMode

if TYPE_CHECKING:
    from cellcraft.persistence.store import KeyValueStore
    from cellcraft.world.state import WorldState

logger = logging.getLogger(__name__)

DEFAULT_SAVE_KEY = "cellcraft.save"


class SaveFormatError(ValueError):
    """The persisted blob does not describe a valid game."""


def _token(raw: Any, what: str) -> int | None:
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        msg = f"{what} must be a non-negative integer or null, got {raw!r}"
        raise SaveFormatError(msg)
    return raw


@dataclass
class SaveState:
    """Plain snapshot of everything persisted.

    Attributes:
        cells: Overlay entries (``None`` values mean emptied).
        held: Held token.
        player_pos: Player ``(lat, lng)``, or ``None`` to use the start.
        movement_mode: Active movement input source.
    """

    cells: dict[CellCoord, int | None] = field(default_factory=dict)
    held: int | None = None
    player_pos: tuple[float, float] | None = None
    movement_mode: MovementMode = MovementMode.BUTTONS

    @classmethod
    def from_world(cls, state: WorldState) -> SaveState:
        return cls(
            cells=state.overlay.snapshot(),
            held=state.held,
            player_pos=state.player_pos,
            movement_mode=state.movement_mode,
        )

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-serialisable blob."""
        pos = list(self.player_pos) if self.player_pos is not None else None
        return {
            "cells": [[cell_key(c), v] for c, v in sorted(self.cells.items())],
            "held": self.held,
            "playerPos": pos,
            "movementMode": self.movement_mode.value,
        }

    @classmethod
    def from_payload(cls, payload: Any) -> SaveState:
        """Validate and decode a blob.

        Missing keys fall back to defaults; present keys must be well formed.

        Raises:
            SaveFormatError: If any field has the wrong shape or type.
        """
        if not isinstance(payload, dict):
            msg = f"save blob must be an object, got {type(payload).__name__}"
            raise SaveFormatError(msg)

        cells: dict[CellCoord, int | None] = {}
        raw_cells = payload.get("cells", [])
        if not isinstance(raw_cells, list):
            msg = "cells must be a list"
            raise SaveFormatError(msg)
        for entry in raw_cells:
            if not isinstance(entry, list) or len(entry) != 2:
                msg = f"cell entry must be a [key, value] pair, got {entry!r}"
                raise SaveFormatError(msg)
            key, raw = entry
            if not isinstance(key, str):
                msg = f"cell key must be a string, got {key!r}"
                raise SaveFormatError(msg)
            try:
                coord = parse_cell_key(key)
            except ValueError as exc:
                raise SaveFormatError(str(exc)) from exc
            cells[coord] = _token(raw, f"cell {key}")

        held = _token(payload.get("held"), "held")

        player_pos = None
        raw_pos = payload.get("playerPos")
        if raw_pos is not None:
            if (
                not isinstance(raw_pos, list)
                or len(raw_pos) != 2
                or not all(
                    isinstance(x, (int, float))
                    and not isinstance(x, bool)
                    and math.isfinite(x)
                    for x in raw_pos
                )
            ):
                msg = f"playerPos must be [lat, lng], got {raw_pos!r}"
                raise SaveFormatError(msg)
            player_pos = (float(raw_pos[0]), float(raw_pos[1]))

        try:
            mode = MovementMode(payload.get("movementMode", "buttons"))
        except ValueError as exc:
            raise SaveFormatError(str(exc)) from exc

        return cls(cells=cells, held=held, player_pos=player_pos, movement_mode=mode)


class SaveAdapter:
    """Reads and writes ``SaveState`` through a key-value store.

    Attributes:
        store: Backing store.
        key: Store key of the save blob.
    """

    def __init__(self, store: KeyValueStore, key: str = DEFAULT_SAVE_KEY) -> None:
        self.store = store
        self.key = key

    def save(self, state: SaveState) -> bool:
        """Persist ``state``.  Failures are logged, never raised.

        Returns:
            True if the blob was written.
        """
        try:
            blob = json.dumps(state.to_payload(), separators=(",", ":"))
            self.store.set(self.key, blob)
        except (OSError, TypeError, ValueError):
            logger.exception("Failed to write save %r", self.key)
            return False
        return True

    def load(self) -> SaveState | None:
        """Return the saved state, or ``None`` if absent or unreadable."""
        try:
            blob = self.store.get(self.key)
        except (OSError, UnicodeDecodeError):
            logger.warning("Could not read save %r", self.key, exc_info=True)
            return None
        if blob is None:
            return None
        try:
            return SaveState.from_payload(json.loads(blob))
        except (ValueError, RecursionError) as exc:
            logger.warning("Discarding malformed save %r: %s", self.key, exc)
            return None

    def clear(self) -> None:
        try:
            self.store.remove(self.key)
        except OSError:
            logger.exception("Failed to delete save %r", self.key)
