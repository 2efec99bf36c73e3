"""Cell style policy.

In-range cells get a stronger outline, and fill colour follows an ordered
band table so token magnitude reads monotonically on the map.
"""

from __future__ import annotations

from dataclasses import dataclass

Colour = tuple[int, int, int]

_NEAR_OUTLINE: Colour = (0x33, 0x33, 0x33)
_FAR_OUTLINE: Colour = (0x77, 0x77, 0x77)
_NEUTRAL_FILL: Colour = (0xDD, 0xDD, 0xDD)
_TOKEN_OPACITY = 0.12

# (minimum token, fill) from largest to smallest
FILL_BANDS: tuple[tuple[int, Colour], ...] = (
    (16, (0x7F, 0xBF, 0x7F)),
    (8, (0x9F, 0xD3, 0xFF)),
    (4, (0xFF, 0xD2, 0x7F)),
    (2, (0xFF, 0xB3, 0xB3)),
)


@dataclass(frozen=True)
class CellStyle:
    """How one cell is drawn.

    Attributes:
        outline: Border colour.
        weight: Border width in pixels.
        fill: Fill colour, or ``None`` for an unfilled cell.
        fill_opacity: Fill alpha (0.0-1.0).
    """

    outline: Colour
    weight: float
    fill: Colour | None
    fill_opacity: float


def fill_for_value(value: int | None) -> Colour | None:
    if not value:
        return None
    for minimum, colour in FILL_BANDS:
        if value >= minimum:
            return colour
    return _NEUTRAL_FILL


def style_for_cell(value: int | None, *, in_range: bool) -> CellStyle:
    """Return the style for a cell holding ``value``.

    Args:
        value: Effective cell value.
        in_range: Whether the cell is within the interaction radius.
    """
    fill = fill_for_value(value)
    return CellStyle(
        outline=_NEAR_OUTLINE if in_range else _FAR_OUTLINE,
        weight=1.0 if in_range else 0.5,
        fill=fill,
        fill_opacity=_TOKEN_OPACITY if fill is not None else 0.0,
    )
