"""Movement input sources.

Two mutually exclusive sources drive the player position:

- ``BUTTONS``: discrete one-cell steps requested by the player.
- ``GEOLOCATION``: a continuous ``PositionFeed`` subscription.

``MovementRouter`` owns the active subscription and always cancels the old
one before activating the next, so two sources never move the player at
the same time.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path

import yaml

from cellcraft.world.state import MovementMode

logger = logging.getLogger(__name__)

PositionCallback = Callable[[float, float], None]
ErrorCallback = Callable[[Exception], None]

# (di, dj) per compass direction; i grows northward, j eastward
STEPS: dict[str, tuple[int, int]] = {
    "north": (1, 0),
    "south": (-1, 0),
    "east": (0, 1),
    "west": (0, -1),
}


class PositionUnavailableError(RuntimeError):
    """The position source cannot deliver fixes."""


def step_position(
    pos: tuple[float, float],
    di: int,
    dj: int,
    cell_size: float,
) -> tuple[float, float]:
    """Move ``pos`` by ``(di, dj)`` whole cells."""
    lat, lng = pos
    return (lat + di * cell_size, lng + dj * cell_size)


class Subscription:
    """Handle for one position-feed subscriber.

    Once cancelled, late deliveries are dropped.
    """

    def __init__(self, on_position: PositionCallback, on_error: ErrorCallback) -> None:
        self._on_position = on_position
        self._on_error = on_error
        self.active = True

    def cancel(self) -> None:
        self.active = False

    def deliver(self, lat: float, lng: float) -> None:
        if self.active:
            self._on_position(lat, lng)

    def fail(self, exc: Exception) -> None:
        if self.active:
            self._on_error(exc)


class PositionFeed(ABC):
    """An asynchronous stream of player positions."""

    @abstractmethod
    def subscribe(
        self,
        on_position: PositionCallback,
        on_error: ErrorCallback,
    ) -> Subscription:
        """Start receiving positions.

        Raises:
            PositionUnavailableError: If the source cannot start at all.
        """


class TrackPositionFeed(PositionFeed):
    """Replays a recorded track of positions at a fixed interval.

    The desktop stand-in for a device location stream.  The host loop
    calls ``advance`` every frame with the elapsed time.

    Attributes:
        points: ``(lat, lng)`` fixes in replay order.
        interval: Seconds between fixes.
        loop: Restart from the first fix after the last one.
    """

    def __init__(
        self,
        points: list[tuple[float, float]],
        *,
        interval: float = 1.0,
        loop: bool = True,
    ) -> None:
        if interval <= 0:
            msg = f"interval must be positive, got {interval}"
            raise ValueError(msg)
        self.points = list(points)
        self.interval = interval
        self.loop = loop
        self._subscribers: list[Subscription] = []
        self._index = 0
        self._elapsed = 0.0

    @classmethod
    def from_yaml(cls, path: str | Path) -> TrackPositionFeed:
        """Load a track file.

        The file is either a bare list of ``[lat, lng]`` pairs or a mapping
        with ``points`` and optional ``interval`` / ``loop`` keys.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If a point is not a ``[lat, lng]`` pair.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or []

        if isinstance(data, list):
            data = {"points": data}
        points = []
        for raw in data.get("points", []):
            if not isinstance(raw, (list, tuple)) or len(raw) != 2:
                msg = f"track point must be [lat, lng], got {raw!r}"
                raise ValueError(msg)
            points.append((float(raw[0]), float(raw[1])))
        return cls(
            points,
            interval=float(data.get("interval", 1.0)),
            loop=bool(data.get("loop", True)),
        )

    def subscribe(
        self,
        on_position: PositionCallback,
        on_error: ErrorCallback,
    ) -> Subscription:
        if not self.points:
            msg = "track has no positions"
            raise PositionUnavailableError(msg)
        sub = Subscription(on_position, on_error)
        self._subscribers.append(sub)
        return sub

    @property
    def exhausted(self) -> bool:
        return not self.loop and self._index >= len(self.points)

    def advance(self, dt: float) -> None:
        """Emit every fix that falls due within the next ``dt`` seconds."""
        self._subscribers = [s for s in self._subscribers if s.active]
        if not self._subscribers or not self.points:
            return
        self._elapsed += dt
        while self._elapsed >= self.interval and not self.exhausted:
            self._elapsed -= self.interval
            if self._index >= len(self.points):
                self._index = 0
            lat, lng = self.points[self._index]
            self._index += 1
            for sub in list(self._subscribers):
                sub.deliver(lat, lng)
        if self.exhausted:
            exc = PositionUnavailableError("track finished")
            for sub in list(self._subscribers):
                sub.fail(exc)


class MovementRouter:
    """Switches between manual stepping and a position feed.

    Attributes:
        feed: The geolocation source, if one is available.
        mode: Currently active movement mode.
    """

    def __init__(
        self,
        feed: PositionFeed | None,
        on_position: PositionCallback,
        on_fallback: ErrorCallback,
    ) -> None:
        self.feed = feed
        self.mode = MovementMode.BUTTONS
        self._on_position = on_position
        self._on_fallback = on_fallback
        self._subscription: Subscription | None = None

    @property
    def subscription(self) -> Subscription | None:
        return self._subscription

    def activate(self, mode: MovementMode) -> MovementMode:
        """Make ``mode`` the active source.

        The previous subscription is cancelled first.  If the feed cannot
        start, the router stays in ``BUTTONS`` and reports the fallback.

        Returns:
            The mode actually in effect.
        """
        self._cancel()
        self.mode = MovementMode.BUTTONS
        if mode is MovementMode.BUTTONS:
            return self.mode

        try:
            if self.feed is None:
                msg = "no location source configured"
                raise PositionUnavailableError(msg)
            self._subscription = self.feed.subscribe(self._on_position, self._on_error)
        except PositionUnavailableError as exc:
            logger.warning("Location unavailable, staying on buttons: %s", exc)
            self._on_fallback(exc)
            return self.mode

        self.mode = MovementMode.GEOLOCATION
        logger.info("Movement source switched to %s", self.mode.value)
        return self.mode

    def _on_error(self, exc: Exception) -> None:
        logger.warning("Location feed failed, falling back to buttons: %s", exc)
        self._cancel()
        self.mode = MovementMode.BUTTONS
        self._on_fallback(exc)

    def _cancel(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
