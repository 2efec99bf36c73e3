"""Smoke tests for the UI module (no display required)."""

from __future__ import annotations

from cellcraft.ui.pygame_client import LabelCache, PygameClient


def test_pygame_client_importable() -> None:
    """PygameClient class is importable without initialising pygame."""
    assert PygameClient is not None


def test_label_cache_is_a_cell_sink() -> None:
    from cellcraft.render.viewport import CellSink

    assert issubclass(LabelCache, CellSink)


def test_main_module_importable() -> None:
    """The __main__ module is importable and exposes main()."""
    from cellcraft.__main__ import main

    assert callable(main)
