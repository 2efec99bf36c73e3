"""Tests for cellcraft.world — coordinates, overlay, world view, state."""

import pytest

from cellcraft.world.coords import (
    CellCoord,
    CellGrid,
    cell_key,
    chebyshev,
    parse_cell_key,
)
from cellcraft.world.generator import TokenGenerator
from cellcraft.world.overlay import MutationOverlay
from cellcraft.world.state import MovementMode, WorldState
from cellcraft.world.view import WorldView


class TestCoords:
    """Tests for the lat/lng lattice."""

    def test_floor_division_partition(self, grid: CellGrid) -> None:
        assert grid.cell_at(0.00005, 0.00015) == CellCoord(0, 1)
        assert grid.cell_at(-0.00005, -0.00015) == CellCoord(-1, -2)

    def test_origin_relative_grid(self) -> None:
        grid = CellGrid(cell_size=1.0, origin_lat=10.0, origin_lng=20.0)
        assert grid.cell_at(10.5, 19.5) == CellCoord(0, -1)

    def test_cell_bounds_contain_center(self, grid: CellGrid) -> None:
        coord = CellCoord(369915, -1220583)
        lat, lng = grid.cell_center(coord)
        assert grid.cell_at(lat, lng) == coord

    def test_rejects_non_positive_size(self) -> None:
        with pytest.raises(ValueError):
            CellGrid(cell_size=0.0)

    def test_key_round_trip(self) -> None:
        assert parse_cell_key(cell_key(CellCoord(-4, 17))) == CellCoord(-4, 17)

    @pytest.mark.parametrize("key", ["", "1", "1,2,3", "a,b"])
    def test_malformed_key(self, key: str) -> None:
        with pytest.raises(ValueError):
            parse_cell_key(key)

    def test_chebyshev(self) -> None:
        assert chebyshev(CellCoord(0, 0), CellCoord(3, -2)) == 3
        assert chebyshev(CellCoord(1, 1), CellCoord(1, 1)) == 0


class TestMutationOverlay:
    """Tests for the sparse edit overlay."""

    def test_set_overwrites(self) -> None:
        overlay = MutationOverlay()
        overlay.set(CellCoord(1, 1), 2)
        overlay.set(CellCoord(1, 1), 8)
        assert overlay[CellCoord(1, 1)] == 8
        assert len(overlay) == 1

    def test_every_set_notifies_writer(self) -> None:
        writes: list[int] = []
        overlay = MutationOverlay(on_write=lambda o: writes.append(len(o)))
        overlay.set(CellCoord(0, 0), 1)
        overlay.set(CellCoord(0, 1), None)
        assert writes == [1, 2]

    def test_none_entry_is_present(self) -> None:
        overlay = MutationOverlay()
        overlay.set(CellCoord(2, 3), None)
        assert CellCoord(2, 3) in overlay
        assert CellCoord(3, 2) not in overlay

    def test_rejects_negative_token(self) -> None:
        with pytest.raises(ValueError):
            MutationOverlay().set(CellCoord(0, 0), -1)

    def test_clear_notifies_and_empties(self) -> None:
        cleared: list[bool] = []
        overlay = MutationOverlay(on_clear=lambda: cleared.append(True))
        overlay.set(CellCoord(0, 0), 4)
        overlay.clear()
        assert len(overlay) == 0
        assert cleared == [True]

    def test_entries_sorted(self) -> None:
        overlay = MutationOverlay()
        overlay.set(CellCoord(5, 0), 1)
        overlay.set(CellCoord(-1, 3), 2)
        assert [c for c, _ in overlay.entries()] == [CellCoord(-1, 3), CellCoord(5, 0)]

    def test_load_does_not_notify(self) -> None:
        writes: list[int] = []
        overlay = MutationOverlay(on_write=lambda o: writes.append(1))
        overlay.load({CellCoord(1, 2): 4})
        assert overlay[CellCoord(1, 2)] == 4
        assert writes == []


class TestWorldView:
    """Tests for the overlay-over-generator façade."""

    def test_untouched_cells_match_generator(self, generator: TokenGenerator) -> None:
        world = WorldView(MutationOverlay(), generator)
        for i in range(-10, 10):
            for j in range(-10, 10):
                assert world.get_cell_value(CellCoord(i, j)) == generator.generate(i, j)

    def test_set_value_shadows_base(self, fours_world: WorldView) -> None:
        coord = CellCoord(7, -7)
        fours_world.set_cell_value(coord, 32)
        assert fours_world.get_cell_value(coord) == 32
        assert fours_world.base_value(coord) == 4

    def test_emptied_cell_stays_empty(self, fours_world: WorldView) -> None:
        coord = CellCoord(2, 3)
        fours_world.set_cell_value(coord, None)
        assert fours_world.get_cell_value(coord) is None
        assert fours_world.get_cell_value(coord) is None

    def test_region_matches_cell_reads(self, generator: TokenGenerator) -> None:
        world = WorldView(MutationOverlay(), generator)
        world.set_cell_value(CellCoord(1, 1), None)
        world.set_cell_value(CellCoord(2, 0), 64)
        world.set_cell_value(CellCoord(50, 50), 2)
        region = world.region_values(-3, 3, -3, 3)
        assert len(region) == 49
        for coord, value in region.items():
            assert value == world.get_cell_value(coord)
        assert CellCoord(50, 50) not in region

    def test_empty_region(self, fours_world: WorldView) -> None:
        assert fours_world.region_values(2, 1, 0, 0) == {}


class TestWorldState:
    """Tests for per-game state."""

    def test_reset(self) -> None:
        state = WorldState(player_pos=(1.0, 1.0), held=8)
        state.overlay.set(CellCoord(0, 0), None)
        state.reset((0.0, 0.0))
        assert state.held is None
        assert state.player_pos == (0.0, 0.0)
        assert len(state.overlay) == 0

    def test_default_mode(self) -> None:
        assert WorldState(player_pos=(0.0, 0.0)).movement_mode is MovementMode.BUTTONS
