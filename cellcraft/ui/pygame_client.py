"""Pygame 2D visualisation for Cellcraft.

Draws the materialised cells on a flat (equirectangular) map with pan and
zoom, a HUD showing the held token, and transient toasts.  All game logic
lives in ``GameController``; this module only translates Pygame input into
controller events and paints the drawables it keeps.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

import pygame

from cellcraft.game.events import (
    CellClicked,
    ModeChanged,
    ResetRequested,
    StepRequested,
    ViewportChanged,
)
from cellcraft.game.movement import STEPS, TrackPositionFeed
from cellcraft.render.viewport import CellDrawable, CellSink, GeoBounds
from cellcraft.world.coords import CellCoord
from cellcraft.world.state import MovementMode

if TYPE_CHECKING:
    from cellcraft.game.controller import GameController

# Colour palette
_BG = (236, 232, 222)
_PLAYER = (40, 110, 220)
_HUD_BG = (255, 255, 255, 230)
_HUD_TEXT = (20, 20, 20)
_TOAST_BG = (0, 0, 0, 205)
_TOAST_TEXT = (255, 255, 255)
_LABEL_BG = (255, 255, 255, 235)

_TOAST_SECONDS = 1.2
_DRAG_THRESHOLD = 4

_STEP_KEYS: dict[int, str] = {
    pygame.K_w: "north",
    pygame.K_s: "south",
    pygame.K_d: "east",
    pygame.K_a: "west",
}


class LabelCache(CellSink):
    """Keeps one pre-rendered label surface per materialised cell."""

    def __init__(self, font: pygame.font.Font) -> None:
        self.font = font
        self.surfaces: dict[CellCoord, pygame.Surface] = {}

    def create(self, drawable: CellDrawable) -> None:
        self._render(drawable)

    def update(self, drawable: CellDrawable) -> None:
        self._render(drawable)

    def remove(self, drawable: CellDrawable) -> None:
        self.surfaces.pop(drawable.coord, None)

    def _render(self, drawable: CellDrawable) -> None:
        if drawable.label is None:
            self.surfaces.pop(drawable.coord, None)
            return
        text = self.font.render(drawable.label, True, _HUD_TEXT)
        w, h = text.get_size()
        surf = pygame.Surface((w + 6, h + 4), pygame.SRCALPHA)
        surf.fill(_LABEL_BG)
        surf.blit(text, (3, 2))
        self.surfaces[drawable.coord] = surf


class PygameClient:
    """Window, camera and input loop around a ``GameController``.

    Attributes:
        controller: The game being played.
        feed: Track replay feed advanced every frame, if any.
        pixels_per_cell: Current zoom level.
        center: Camera centre ``(lat, lng)``.
    """

    _ZOOM_LEVELS: ClassVar[list[int]] = [6, 8, 12, 16, 24, 32, 48, 64]

    def __init__(
        self,
        controller: GameController,
        *,
        feed: TrackPositionFeed | None = None,
        pixels_per_cell: int = 24,
        size: tuple[int, int] = (960, 720),
    ) -> None:
        """Initialise the window.

        Args:
            controller: Game to display; its ``sink`` is replaced with the
                label cache.
            feed: Position track to advance each frame.
            pixels_per_cell: Initial zoom.
            size: Window size in pixels.
        """
        self.controller = controller
        self.feed = feed
        self._zoom_index = self._nearest_zoom(pixels_per_cell)
        self.pixels_per_cell = self._ZOOM_LEVELS[self._zoom_index]
        self.center = controller.state.player_pos
        self._last_player_pos = controller.state.player_pos
        self._toasts: list[tuple[str, float]] = []
        self._drag_origin: tuple[int, int] | None = None
        self._dragged = False

        pygame.init()
        self.screen = pygame.display.set_mode(size)
        pygame.display.set_caption("Cellcraft")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("monospace", 14, bold=True)
        self.labels = LabelCache(pygame.font.SysFont("monospace", 12, bold=True))
        self.running = True

        controller.notify = self.toast
        controller.sink = self.labels
        controller.viewport.sink = self.labels
        controller.start()
        self._publish_viewport()

    def _nearest_zoom(self, ppc: int) -> int:
        """Return the index of the closest zoom preset."""
        return min(
            range(len(self._ZOOM_LEVELS)),
            key=lambda i: abs(self._ZOOM_LEVELS[i] - ppc),
        )

    @property
    def deg_per_px(self) -> float:
        return self.controller.config.cell_size_deg / self.pixels_per_cell

    def visible_bounds(self) -> GeoBounds:
        w, h = self.screen.get_size()
        lat, lng = self.center
        half_h = h / 2 * self.deg_per_px
        half_w = w / 2 * self.deg_per_px
        return GeoBounds(lat - half_h, lng - half_w, lat + half_h, lng + half_w)

    def to_screen(self, lat: float, lng: float) -> tuple[float, float]:
        w, h = self.screen.get_size()
        x = (lng - self.center[1]) / self.deg_per_px + w / 2
        y = h / 2 - (lat - self.center[0]) / self.deg_per_px
        return (x, y)

    def to_geo(self, x: float, y: float) -> tuple[float, float]:
        w, h = self.screen.get_size()
        lat = self.center[0] + (h / 2 - y) * self.deg_per_px
        lng = self.center[1] + (x - w / 2) * self.deg_per_px
        return (lat, lng)

    def toast(self, message: str) -> None:
        self._toasts.append((message, _TOAST_SECONDS))
        self._toasts = self._toasts[-3:]

    def run(self, fps: int = 30) -> None:
        """Main loop: handle input, advance the feed, render.

        Args:
            fps: Target frames per second.
        """
        while self.running:
            dt = self.clock.tick(fps) / 1000.0
            self._handle_events()
            if self.feed is not None:
                self.feed.advance(dt)
            self._follow_player()
            self.controller.flush()
            self._age_toasts(dt)
            self._draw()

        self.controller.viewport.clear()
        pygame.quit()

    def _publish_viewport(self) -> None:
        self.controller.dispatch(ViewportChanged(self.visible_bounds()))

    def _pan(self, dx_px: float, dy_px: float) -> None:
        lat, lng = self.center
        self.center = (lat + dy_px * self.deg_per_px, lng - dx_px * self.deg_per_px)
        self._publish_viewport()

    def _zoom(self, steps: int) -> None:
        index = max(0, min(len(self._ZOOM_LEVELS) - 1, self._zoom_index + steps))
        if index != self._zoom_index:
            self._zoom_index = index
            self.pixels_per_cell = self._ZOOM_LEVELS[index]
            self._publish_viewport()

    def _follow_player(self) -> None:
        pos = self.controller.state.player_pos
        if pos != self._last_player_pos:
            self._last_player_pos = pos
            self.center = pos
            self._publish_viewport()

    def _handle_events(self) -> None:
        """Process Pygame input events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                self._handle_key(event.key)
            elif event.type == pygame.MOUSEWHEEL:
                self._zoom(event.y)
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self._drag_origin = event.pos
                self._dragged = False
            elif event.type == pygame.MOUSEMOTION and self._drag_origin is not None:
                ox, oy = self._drag_origin
                x, y = event.pos
                if self._dragged or abs(x - ox) + abs(y - oy) > _DRAG_THRESHOLD:
                    self._dragged = True
                    self._pan(x - ox, y - oy)
                    self._drag_origin = event.pos
            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                if self._drag_origin is not None and not self._dragged:
                    coord = self.controller.grid.cell_at(*self.to_geo(*event.pos))
                    self.controller.dispatch(CellClicked(coord))
                self._drag_origin = None

    def _handle_key(self, key: int) -> None:
        pan_px = self.screen.get_width() / 8
        if key == pygame.K_ESCAPE:
            self.running = False
        elif key in _STEP_KEYS:
            self.controller.dispatch(StepRequested(*STEPS[_STEP_KEYS[key]]))
        elif key == pygame.K_LEFT:
            self._pan(pan_px, 0)
        elif key == pygame.K_RIGHT:
            self._pan(-pan_px, 0)
        elif key == pygame.K_UP:
            self._pan(0, pan_px)
        elif key == pygame.K_DOWN:
            self._pan(0, -pan_px)
        elif key in (pygame.K_PLUS, pygame.K_EQUALS):
            self._zoom(1)
        elif key == pygame.K_MINUS:
            self._zoom(-1)
        elif key == pygame.K_c:
            self.center = self.controller.state.player_pos
            self._publish_viewport()
        elif key == pygame.K_g:
            current = self.controller.state.movement_mode
            target = (
                MovementMode.BUTTONS
                if current is MovementMode.GEOLOCATION
                else MovementMode.GEOLOCATION
            )
            self.controller.dispatch(ModeChanged(target))
        elif key == pygame.K_r:
            self.controller.dispatch(ResetRequested())

    def _age_toasts(self, dt: float) -> None:
        self._toasts = [(m, t - dt) for m, t in self._toasts if t - dt > 0]

    def _draw(self) -> None:
        """Render one frame."""
        self.screen.fill(_BG)
        self._draw_cells()
        self._draw_player()
        self._draw_hud()
        self._draw_toasts()
        pygame.display.flip()

    def _cell_rect(self, drawable: CellDrawable) -> pygame.Rect:
        south, west, north, east = drawable.bounds
        x0, y0 = self.to_screen(north, west)
        x1, y1 = self.to_screen(south, east)
        return pygame.Rect(round(x0), round(y0), round(x1 - x0), round(y1 - y0))

    def _draw_cells(self) -> None:
        """Draw fills on a translucent overlay, then outlines and labels."""
        overlay = pygame.Surface(self.screen.get_size(), pygame.SRCALPHA)
        drawables = list(self.controller.viewport.materialized.values())
        for drawable in drawables:
            style = drawable.style
            if style.fill is not None:
                pygame.draw.rect(
                    overlay,
                    (*style.fill, round(style.fill_opacity * 255)),
                    self._cell_rect(drawable),
                )
        self.screen.blit(overlay, (0, 0))

        for drawable in drawables:
            style = drawable.style
            pygame.draw.rect(
                self.screen,
                style.outline,
                self._cell_rect(drawable),
                width=max(1, round(style.weight * 2)),
            )

        for drawable in drawables:
            surf = self.labels.surfaces.get(drawable.coord)
            if surf is not None:
                centre = self.controller.grid.cell_center(drawable.coord)
                x, y = self.to_screen(*centre)
                rect = surf.get_rect(center=(round(x), round(y)))
                self.screen.blit(surf, rect)

    def _draw_player(self) -> None:
        x, y = self.to_screen(*self.controller.state.player_pos)
        pygame.draw.circle(self.screen, _PLAYER, (round(x), round(y)), 6)
        text = self.font.render("You", True, _PLAYER)
        self.screen.blit(text, (round(x) - text.get_width() // 2, round(y) - 24))

    def _draw_hud(self) -> None:
        """Draw the held token and controls in the top-left corner."""
        held = self.controller.state.held
        lines = [
            f"Holding: {held}" if held is not None else "Holding: (empty)",
            f"Movement: {self.controller.state.movement_mode.value}",
            f"Cell: {tuple(self.controller.player_cell)}",
            "",
            "WASD: step  G: toggle GPS",
            "drag/arrows: pan  wheel: zoom",
            "C: centre  R: reset  ESC: quit",
        ]
        surfaces = [self.font.render(line, True, _HUD_TEXT) for line in lines]
        width = max(s.get_width() for s in surfaces) + 20
        panel = pygame.Surface((width, 18 * len(lines) + 12), pygame.SRCALPHA)
        panel.fill(_HUD_BG)
        for n, surf in enumerate(surfaces):
            panel.blit(surf, (10, 6 + 18 * n))
        self.screen.blit(panel, (12, 12))

    def _draw_toasts(self) -> None:
        y = 12
        for message, _ in self._toasts:
            text = self.font.render(message, True, _TOAST_TEXT)
            box = pygame.Surface(
                (text.get_width() + 20, text.get_height() + 12),
                pygame.SRCALPHA,
            )
            box.fill(_TOAST_BG)
            box.blit(text, (10, 6))
            x = (self.screen.get_width() - box.get_width()) // 2
            self.screen.blit(box, (x, y))
            y += box.get_height() + 4
