"""GameController — owns one game and applies input events.

Every input goes through ``dispatch``.  Within a single dispatch the order
is always:

1. mutate the world state,
2. persist the save blob,
3. update the affected drawables (or schedule a render pass).

Viewport and player moves only schedule a render pass; the host flushes
it once per frame through ``flush``.  Hosts call ``start`` after attaching
``notify`` and ``sink``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from cellcraft.game.config import GameConfig
from cellcraft.game.events import (
    CellClicked,
    Event,
    ModeChanged,
    PositionUpdated,
    ResetRequested,
    StepRequested,
    ViewportChanged,
)
from cellcraft.game.interaction import Transition, resolve_click
from cellcraft.game.movement import MovementRouter, PositionFeed, step_position
from cellcraft.persistence.save import SaveAdapter, SaveState
from cellcraft.persistence.store import InMemoryStore, KeyValueStore
from cellcraft.render.scheduler import CoalescingScheduler
from cellcraft.render.viewport import CellSink, GeoBounds, ViewportCellManager
from cellcraft.world.coords import CellCoord, CellGrid, chebyshev
from cellcraft.world.overlay import MutationOverlay
from cellcraft.world.state import MovementMode, WorldState
from cellcraft.world.view import WorldView

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]


@dataclass
class GameController:
    """Drives one game instance.

    Attributes:
        config: Loaded game configuration.
        store: Persistence medium for the save blob.
        feed: Geolocation source, if any.
        notify: Receives short user-facing messages (toasts).
        sink: Rendering backend for materialised cells.
        state: Per-game mutable state.
        world: Read/write façade over generator and overlay.
        viewport: Visible-cell manager.
        scheduler: Coalesces render passes to one per frame.
        movement: Active movement source.
        victories: Number of crafts that reached the victory value.
    """

    config: GameConfig
    store: KeyValueStore = field(default_factory=InMemoryStore)
    feed: PositionFeed | None = None
    notify: Notifier | None = None
    sink: CellSink | None = None
    grid: CellGrid = field(init=False)
    saves: SaveAdapter = field(init=False)
    state: WorldState = field(init=False)
    world: WorldView = field(init=False)
    viewport: ViewportCellManager = field(init=False)
    scheduler: CoalescingScheduler = field(init=False)
    movement: MovementRouter = field(init=False)
    victories: int = field(init=False, default=0)
    bounds: GeoBounds | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        """Restore the save (if any) and wire the components together."""
        self.grid = self.config.grid()
        self.saves = SaveAdapter(self.store, self.config.save_key)
        overlay = MutationOverlay(
            on_write=lambda _overlay: self._persist(),
            on_clear=self.saves.clear,
        )
        self.state = WorldState(player_pos=self.config.start_position, overlay=overlay)

        saved = self.saves.load()
        if saved is not None:
            overlay.load(saved.cells)
            self.state.held = saved.held
            if saved.player_pos is not None:
                self.state.player_pos = saved.player_pos
            self.state.movement_mode = saved.movement_mode
            logger.info("Restored save with %d edited cells", len(saved.cells))

        self.world = WorldView(overlay, self.config.generator())
        self.viewport = ViewportCellManager(
            self.world,
            self.grid,
            interact_radius=self.config.interact_radius,
            label_radius=self.config.label_radius,
            sink=self.sink,
        )
        self.scheduler = CoalescingScheduler()
        self.movement = MovementRouter(
            self.feed,
            on_position=self._on_feed_position,
            on_fallback=self._on_feed_fallback,
        )

    @property
    def player_cell(self) -> CellCoord:
        return self.grid.cell_at(*self.state.player_pos)

    def start(self) -> None:
        """Resume the restored movement mode.

        Call once the host has attached ``notify`` and ``sink``, so a
        location fallback during startup still reaches the player.
        """
        if (
            self.state.movement_mode is MovementMode.GEOLOCATION
            and self.movement.mode is not MovementMode.GEOLOCATION
        ):
            self.state.movement_mode = self.movement.activate(MovementMode.GEOLOCATION)

    def dispatch(self, event: Event) -> Transition | None:
        """Apply one input event.

        Args:
            event: The input to handle.

        Returns:
            The interaction transition for ``CellClicked``, else ``None``.

        Raises:
            TypeError: If ``event`` is not a known event type.
        """
        logger.debug("Dispatch %r", event)
        if isinstance(event, CellClicked):
            return self._click(CellCoord(*event.coord))
        if isinstance(event, PositionUpdated):
            self._move_to((event.lat, event.lng))
        elif isinstance(event, StepRequested):
            self._step(event.di, event.dj)
        elif isinstance(event, ModeChanged):
            self._change_mode(event.mode)
        elif isinstance(event, ViewportChanged):
            self.bounds = event.bounds
            self.scheduler.schedule(self._render_pass)
        elif isinstance(event, ResetRequested):
            self._reset()
        else:
            msg = f"unknown event: {event!r}"
            raise TypeError(msg)
        return None

    def flush(self) -> bool:
        """Run the pending render pass.  Call once per frame."""
        return self.scheduler.flush()

    def _click(self, coord: CellCoord) -> Transition:
        transition = resolve_click(
            self.state.held,
            self.world.get_cell_value(coord),
            distance=chebyshev(coord, self.player_cell),
            interact_radius=self.config.interact_radius,
            victory_value=self.config.victory_value,
        )
        if transition.mutates:
            # Held token first: the overlay write below persists both
            self.state.held = transition.held_after
            self.world.set_cell_value(coord, transition.cell_after)
            self.viewport.refresh_cell(coord, self.player_cell)

        self._say(transition.message)
        if transition.mutates and transition.held_after in self.config.milestone_values:
            self._say(f"You now hold {transition.held_after}")
        if transition.victory:
            self.victories += 1
            logger.info("Victory: crafted %s at %s", transition.cell_after, coord)
            self._say(f"Victory! You crafted {transition.cell_after}")
        return transition

    def _move_to(self, pos: tuple[float, float]) -> None:
        self.state.player_pos = pos
        self._persist()
        self.scheduler.schedule(self._render_pass)

    def _step(self, di: int, dj: int) -> None:
        if self.state.movement_mode is not MovementMode.BUTTONS:
            logger.debug("Ignoring manual step while on %s", self.state.movement_mode.value)
            return
        self._move_to(
            step_position(self.state.player_pos, di, dj, self.config.cell_size_deg),
        )

    def _change_mode(self, mode: MovementMode) -> None:
        if mode is self.state.movement_mode:
            return
        active = self.movement.activate(mode)
        self.state.movement_mode = active
        self._persist()
        if active is mode:
            logger.info("Movement mode is now %s", active.value)
            self._say(f"Movement: {active.value}")

    def _reset(self) -> None:
        self.movement.activate(MovementMode.BUTTONS)
        self.state.movement_mode = MovementMode.BUTTONS
        self.state.reset(self.config.start_position)
        logger.info("World reset")
        self.scheduler.schedule(self._render_pass)
        self._say("World reset")

    def _render_pass(self) -> None:
        if self.bounds is None:
            return
        self.viewport.reconcile(self.bounds, self.player_cell)

    def _persist(self) -> None:
        self.saves.save(SaveState.from_world(self.state))

    def _on_feed_position(self, lat: float, lng: float) -> None:
        self.dispatch(PositionUpdated(lat, lng))

    def _on_feed_fallback(self, exc: Exception) -> None:
        self.state.movement_mode = MovementMode.BUTTONS
        self._persist()
        self._say("Location unavailable; using buttons")

    def _say(self, message: str) -> None:
        if message and self.notify is not None:
            self.notify(message)
