"""Entry point for ``python -m cellcraft``.

Loads the YAML config, restores the save from the JSON store and opens a
Pygame window on the player's position.
"""

from __future__ import annotations

import argparse
import logging
import pathlib

from cellcraft.game.config import GameConfig
from cellcraft.game.controller import GameController
from cellcraft.game.movement import TrackPositionFeed
from cellcraft.persistence.store import JsonFileStore
from cellcraft.ui.pygame_client import PygameClient

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)
_DEFAULT_SAVE_DIR = pathlib.Path.home() / ".cellcraft"


def main() -> None:
    """Parse CLI args, restore the game, launch the window."""
    parser = argparse.ArgumentParser(
        prog="cellcraft",
        description="Cellcraft - pick up, place and merge tokens on a world grid",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_DEFAULT_CONFIG,
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "--save-dir",
        type=pathlib.Path,
        default=_DEFAULT_SAVE_DIR,
        help="Directory holding the save file (default: ~/.cellcraft)",
    )
    parser.add_argument(
        "--track",
        type=pathlib.Path,
        default=None,
        help="YAML position track replayed in geolocation mode",
    )
    parser.add_argument(
        "--pixels-per-cell",
        type=int,
        default=24,
        help="Initial zoom in pixels per cell (default: 24)",
    )
    parser.add_argument(
        "--fps",
        type=int,
        default=30,
        help="Target frames per second (default: 30)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = GameConfig.from_yaml(args.config)
    feed = TrackPositionFeed.from_yaml(args.track) if args.track else None
    controller = GameController(
        config=config,
        store=JsonFileStore(args.save_dir),
        feed=feed,
    )

    client = PygameClient(
        controller,
        feed=feed,
        pixels_per_cell=args.pixels_per_cell,
    )
    client.run(fps=args.fps)


if __name__ == "__main__":
    main()
