"""Config — load game parameters from YAML files.

World seed, lattice geometry, interaction radii and the token
distribution all live in YAML and are parsed into a typed dataclass here,
so different worlds can be tried without touching code.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from cellcraft.persistence.save import DEFAULT_SAVE_KEY
from cellcraft.world.coords import CellGrid
from cellcraft.world.generator import DEFAULT_TABLE, TokenGenerator, TokenTable


@dataclass
class GameConfig:
    """Top-level game configuration.

    Attributes:
        seed: World seed for base token generation.
        cell_size_deg: Cell edge length in degrees.
        origin: ``(lat, lng)`` of the lattice origin.
        start_position: Where a new game (or a reset) puts the player.
        interact_radius: Chebyshev radius, in cells, for pickup/place/craft.
        label_radius: Chebyshev radius, in cells, inside which values are
            labelled on the map.
        victory_value: Crafting a token at least this large wins.
        milestone_values: Held values that trigger a "You now hold" notice.
        empty_chance: Probability that a generated cell is empty.
        token_buckets: Cumulative ``(threshold, value)`` pairs for the value
            draw of non-empty cells.
        save_key: Store key for the save blob.
    """

    seed: int = 12125
    cell_size_deg: float = 0.0001
    origin: tuple[float, float] = (0.0, 0.0)
    start_position: tuple[float, float] = (36.9916, -122.0583)
    interact_radius: int = 3
    label_radius: int = 8
    victory_value: int = 16
    milestone_values: tuple[int, ...] = (8, 16)
    empty_chance: float = DEFAULT_TABLE.empty_chance
    token_buckets: tuple[tuple[float, int], ...] = DEFAULT_TABLE.buckets
    save_key: str = DEFAULT_SAVE_KEY

    def __post_init__(self) -> None:
        if self.interact_radius < 0 or self.label_radius < 0:
            msg = "interact_radius and label_radius must be non-negative"
            raise ValueError(msg)

    def grid(self) -> CellGrid:
        return CellGrid(
            cell_size=self.cell_size_deg,
            origin_lat=self.origin[0],
            origin_lng=self.origin[1],
        )

    def token_table(self) -> TokenTable:
        return TokenTable(empty_chance=self.empty_chance, buckets=self.token_buckets)

    def generator(self) -> TokenGenerator:
        return TokenGenerator(seed=self.seed, table=self.token_table())

    @classmethod
    def from_yaml(cls, path: str | Path) -> GameConfig:
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML config file.

        Returns:
            A populated GameConfig instance.

        Raises:
            FileNotFoundError: If the config file does not exist.
            ValueError: If a value is out of range.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}

        return cls(
            seed=int(data.get("seed", cls.seed)),
            cell_size_deg=float(data.get("cell_size_deg", cls.cell_size_deg)),
            origin=_pair(data.get("origin", cls.origin)),
            start_position=_pair(data.get("start_position", cls.start_position)),
            interact_radius=int(data.get("interact_radius", cls.interact_radius)),
            label_radius=int(data.get("label_radius", cls.label_radius)),
            victory_value=int(data.get("victory_value", cls.victory_value)),
            milestone_values=tuple(
                int(v) for v in data.get("milestone_values", cls.milestone_values)
            ),
            empty_chance=float(data.get("empty_chance", cls.empty_chance)),
            token_buckets=tuple(
                (float(t), int(v))
                for t, v in data.get("token_buckets", cls.token_buckets)
            ),
            save_key=str(data.get("save_key", cls.save_key)),
        )


def _pair(raw: object) -> tuple[float, float]:
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        msg = f"expected a [lat, lng] pair, got {raw!r}"
        raise ValueError(msg)
    return (float(raw[0]), float(raw[1]))
