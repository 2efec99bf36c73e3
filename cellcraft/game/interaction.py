"""Interaction rules — pickup, place and craft.

``resolve_click`` is a pure decision over ``(held, cell value, distance)``
returning a ``Transition``.  Applying the transition (writing the cell,
persisting, re-rendering) is the controller's job.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class Outcome(Enum):
    """Result category of a single cell click."""

    TOO_FAR = auto()
    NOTHING_HERE = auto()
    PICKED_UP = auto()
    PLACED = auto()
    CRAFTED = auto()
    MISMATCH = auto()


@dataclass(frozen=True)
class Transition:
    """The decided effect of a click.

    Attributes:
        outcome: Which rule fired.
        held_after: Token held once the transition is applied.
        cell_after: Cell value once the transition is applied.
        mutates: Whether the cell and held token must be written.
        victory: Whether a craft reached the victory value.
        message: Short user-facing notification text.
    """

    outcome: Outcome
    held_after: int | None
    cell_after: int | None
    mutates: bool
    victory: bool = False
    message: str = ""


def resolve_click(
    held: int | None,
    cell_value: int | None,
    *,
    distance: int,
    interact_radius: int,
    victory_value: int | None = None,
) -> Transition:
    """Decide what clicking a cell does.

    Args:
        held: Token currently carried by the player.
        cell_value: Effective value of the clicked cell.
        distance: Chebyshev distance from the player cell to the clicked cell.
        interact_radius: Maximum distance at which clicks take effect.
        victory_value: Crafting a token at least this large wins the game.

    Returns:
        The transition to apply.  Non-mutating transitions leave ``held``
        and ``cell_value`` unchanged.
    """
    if distance > interact_radius:
        return Transition(Outcome.TOO_FAR, held, cell_value, False, message="Too far")

    if held is None and cell_value is None:
        return Transition(
            Outcome.NOTHING_HERE,
            None,
            None,
            False,
            message="Nothing here",
        )

    if held is None:
        return Transition(
            Outcome.PICKED_UP,
            cell_value,
            None,
            True,
            message=f"Picked up {cell_value}",
        )

    if cell_value is None:
        return Transition(Outcome.PLACED, None, held, True, message=f"Placed {held}")

    if cell_value == held:
        crafted = held * 2
        victory = victory_value is not None and crafted >= victory_value
        return Transition(
            Outcome.CRAFTED,
            None,
            crafted,
            True,
            victory=victory,
            message=f"Crafted {crafted}",
        )

    return Transition(Outcome.MISMATCH, held, cell_value, False, message="Doesn't match")
