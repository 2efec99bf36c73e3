"""WorldState — everything a save file captures about one game.

Owned by a single ``GameController``; components receive it by reference
instead of reading process-wide globals, so several independent games can
coexist (and tests can build one in a line).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from cellcraft.world.overlay import MutationOverlay


class MovementMode(Enum):
    """Which input source drives the player position."""

    BUTTONS = "buttons"
    GEOLOCATION = "geolocation"


@dataclass
class WorldState:
    """Mutable per-game state.

    Attributes:
        player_pos: Player ``(lat, lng)`` in degrees.
        overlay: Player edits to the procedural world.
        held: The single token the player carries, if any.
        movement_mode: Active movement input source.
    """

    player_pos: tuple[float, float]
    overlay: MutationOverlay = field(default_factory=MutationOverlay)
    held: int | None = None
    movement_mode: MovementMode = MovementMode.BUTTONS

    def reset(self, start_pos: tuple[float, float]) -> None:
        """Forget every edit, drop the held token and return to the start.

        Clearing the overlay also deletes its persisted form.
        """
        self.overlay.clear()
        self.held = None
        self.player_pos = start_pos
