"""Deterministic token generation for untouched cells.

Every cell's base token is a pure function of ``(i, j, seed)``.  Nothing
is stored: values are recomputed on each read, so the world is effectively
unbounded.  Two independent draws are taken per cell, one deciding whether
a token is present and one choosing its value, so presence and magnitude
are uncorrelated.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

_MASK = 0xFFFFFFFF
_TWO_32 = 4294967296.0

# Perturbation applied to (i, j) for the second ("which token") draw
_VALUE_SALT = 0x9E37


def hash32(i: int, j: int, seed: int) -> int:
    """Mix ``(i, j, seed)`` into a well-distributed unsigned 32-bit integer.

    All multiplications wrap modulo 2**32, so any integer input is valid.
    """
    h = ((i * 374761393) & _MASK) ^ ((j * 668265263) & _MASK) ^ (seed & _MASK)
    h = ((h ^ (h >> 13)) * 1274126177) & _MASK
    return h ^ (h >> 16)


def unit_interval(h: int) -> float:
    """Map an unsigned 32-bit hash onto ``[0, 1)``."""
    return (h & _MASK) / _TWO_32


def _hash32_array(
    i: NDArray[np.int64],
    j: NDArray[np.int64],
    seed: int,
) -> NDArray[np.int64]:
    """Vectorised ``hash32``; int64 overflow wraps, low 32 bits stay exact."""
    h = ((i * 374761393) & _MASK) ^ ((j * 668265263) & _MASK) ^ (seed & _MASK)
    h = ((h ^ (h >> 13)) * 1274126177) & _MASK
    return h ^ (h >> 16)


@dataclass(frozen=True)
class TokenTable:
    """Discrete distribution of base tokens.

    Attributes:
        empty_chance: Probability that a cell holds no token at all.
        buckets: Ordered ``(threshold, value)`` pairs.  The value draw picks
            the first bucket whose threshold is strictly greater than the
            draw; the last bucket catches everything above.
    """

    empty_chance: float = 0.45
    buckets: tuple[tuple[float, int], ...] = (
        (0.60, 1),
        (0.85, 2),
        (0.95, 4),
        (0.99, 8),
        (1.00, 16),
    )
    thresholds: tuple[float, ...] = field(init=False, repr=False)
    values: tuple[int, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not 0.0 <= self.empty_chance <= 1.0:
            msg = f"empty_chance must be within [0, 1], got {self.empty_chance}"
            raise ValueError(msg)
        if not self.buckets:
            msg = "token table needs at least one bucket"
            raise ValueError(msg)
        thresholds = tuple(float(t) for t, _ in self.buckets)
        values = tuple(int(v) for _, v in self.buckets)
        if any(b <= a for a, b in zip(thresholds, thresholds[1:])):
            msg = f"bucket thresholds must be strictly increasing: {thresholds}"
            raise ValueError(msg)
        if any(v <= 0 for v in values):
            msg = f"bucket values must be positive: {values}"
            raise ValueError(msg)
        object.__setattr__(self, "thresholds", thresholds)
        object.__setattr__(self, "values", values)

    def pick(self, draw: float) -> int:
        """Return the token value for a uniform draw in ``[0, 1)``."""
        idx = bisect.bisect_right(self.thresholds, draw)
        return self.values[min(idx, len(self.values) - 1)]


DEFAULT_TABLE = TokenTable()


def generate(
    i: int,
    j: int,
    seed: int,
    table: TokenTable = DEFAULT_TABLE,
) -> int | None:
    """Return the base token for cell ``(i, j)``, or ``None`` if empty.

    Args:
        i: Cell row.
        j: Cell column.
        seed: World seed.
        table: Token distribution.

    Returns:
        The token value, or ``None`` when the cell is generated empty.
    """
    if unit_interval(hash32(i, j, seed)) < table.empty_chance:
        return None
    draw = unit_interval(hash32(i ^ _VALUE_SALT, j ^ _VALUE_SALT, seed))
    return table.pick(draw)


@dataclass(frozen=True)
class TokenGenerator:
    """A seeded, stateless source of base tokens.

    Attributes:
        seed: World seed.
        table: Token distribution.
    """

    seed: int
    table: TokenTable = DEFAULT_TABLE

    def generate(self, i: int, j: int) -> int | None:
        return generate(i, j, self.seed, self.table)

    def generate_block(
        self,
        i_min: int,
        i_max: int,
        j_min: int,
        j_max: int,
    ) -> NDArray[np.int64]:
        """Generate base tokens for an inclusive rectangle of cells.

        Produces the same values as calling ``generate`` per cell, in one
        vectorised pass.

        Args:
            i_min: First row.
            i_max: Last row (inclusive).
            j_min: First column.
            j_max: Last column (inclusive).

        Returns:
            Array of shape ``(rows, cols)`` indexed ``[i - i_min, j - j_min]``
            where ``0`` marks an empty cell.
        """
        rows = np.arange(i_min, i_max + 1, dtype=np.int64)
        cols = np.arange(j_min, j_max + 1, dtype=np.int64)
        ii, jj = np.meshgrid(rows, cols, indexing="ij")

        presence = _hash32_array(ii, jj, self.seed) / _TWO_32
        draw = _hash32_array(ii ^ _VALUE_SALT, jj ^ _VALUE_SALT, self.seed) / _TWO_32

        thresholds = np.asarray(self.table.thresholds, dtype=np.float64)
        values = np.asarray(self.table.values, dtype=np.int64)
        idx = np.searchsorted(thresholds, draw, side="right")
        idx = np.minimum(idx, len(values) - 1)

        return np.where(presence < self.table.empty_chance, 0, values[idx])
