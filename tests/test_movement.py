"""Tests for cellcraft.game.movement — feeds, subscriptions, router."""

from pathlib import Path

import pytest

from cellcraft.game.movement import (
    STEPS,
    MovementRouter,
    PositionFeed,
    PositionUnavailableError,
    Subscription,
    TrackPositionFeed,
    step_position,
)
from cellcraft.world.state import MovementMode


class OrderedFeed(PositionFeed):
    """Records subscribe calls and whether the previous one was cancelled."""

    def __init__(self) -> None:
        self.subs: list[Subscription] = []
        self.previous_cancelled: list[bool] = []

    def subscribe(self, on_position, on_error) -> Subscription:
        self.previous_cancelled.append(all(not s.active for s in self.subs))
        sub = Subscription(on_position, on_error)
        self.subs.append(sub)
        return sub


class TestSteps:
    """Tests for manual stepping."""

    def test_step_moves_one_cell(self) -> None:
        lat, lng = step_position((1.0, 2.0), *STEPS["north"], cell_size=0.5)
        assert (lat, lng) == (1.5, 2.0)
        assert step_position((1.0, 2.0), *STEPS["west"], cell_size=0.5) == (1.0, 1.5)

    def test_four_directions(self) -> None:
        assert sorted(STEPS.values()) == [(-1, 0), (0, -1), (0, 1), (1, 0)]


class TestTrackPositionFeed:
    """Tests for the recorded-track feed."""

    def test_emits_at_interval(self) -> None:
        feed = TrackPositionFeed([(1.0, 1.0), (2.0, 2.0)], interval=1.0)
        got: list[tuple[float, float]] = []
        feed.subscribe(lambda lat, lng: got.append((lat, lng)), lambda exc: None)
        feed.advance(0.5)
        assert got == []
        feed.advance(0.5)
        assert got == [(1.0, 1.0)]
        feed.advance(2.0)
        assert got == [(1.0, 1.0), (2.0, 2.0), (1.0, 1.0)]

    def test_cancelled_subscription_gets_nothing(self) -> None:
        feed = TrackPositionFeed([(1.0, 1.0)], interval=1.0)
        got: list[tuple[float, float]] = []
        sub = feed.subscribe(lambda lat, lng: got.append((lat, lng)), lambda exc: None)
        sub.cancel()
        feed.advance(5.0)
        assert got == []

    def test_empty_track_unavailable(self) -> None:
        with pytest.raises(PositionUnavailableError):
            TrackPositionFeed([]).subscribe(lambda lat, lng: None, lambda exc: None)

    def test_finite_track_reports_end(self) -> None:
        feed = TrackPositionFeed([(1.0, 1.0)], interval=1.0, loop=False)
        errors: list[Exception] = []
        feed.subscribe(lambda lat, lng: None, errors.append)
        feed.advance(1.0)
        assert feed.exhausted
        assert len(errors) == 1
        assert isinstance(errors[0], PositionUnavailableError)

    def test_rejects_bad_interval(self) -> None:
        with pytest.raises(ValueError):
            TrackPositionFeed([(0.0, 0.0)], interval=0)

    def test_from_yaml_list(self, tmp_path: Path) -> None:
        path = tmp_path / "track.yaml"
        path.write_text("- [36.99, -122.05]\n- [36.9901, -122.05]\n")
        feed = TrackPositionFeed.from_yaml(path)
        assert feed.points == [(36.99, -122.05), (36.9901, -122.05)]
        assert feed.loop

    def test_from_yaml_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "track.yaml"
        path.write_text("interval: 0.25\nloop: false\npoints:\n  - [1, 2]\n")
        feed = TrackPositionFeed.from_yaml(path)
        assert feed.interval == 0.25
        assert not feed.loop
        assert feed.points == [(1.0, 2.0)]

    def test_from_yaml_bad_point(self, tmp_path: Path) -> None:
        path = tmp_path / "track.yaml"
        path.write_text("- [1, 2, 3]\n")
        with pytest.raises(ValueError):
            TrackPositionFeed.from_yaml(path)


class TestMovementRouter:
    """Tests for switching between movement sources."""

    def test_switch_cancels_before_subscribing(self) -> None:
        feed = OrderedFeed()
        router = MovementRouter(feed, lambda lat, lng: None, lambda exc: None)
        router.activate(MovementMode.GEOLOCATION)
        router.activate(MovementMode.GEOLOCATION)
        assert feed.previous_cancelled == [True, True]
        assert not feed.subs[0].active
        assert feed.subs[1].active

    def test_buttons_cancels_feed(self) -> None:
        feed = OrderedFeed()
        router = MovementRouter(feed, lambda lat, lng: None, lambda exc: None)
        router.activate(MovementMode.GEOLOCATION)
        assert router.activate(MovementMode.BUTTONS) is MovementMode.BUTTONS
        assert router.subscription is None
        assert not feed.subs[0].active

    def test_no_feed_falls_back(self) -> None:
        fallbacks: list[Exception] = []
        router = MovementRouter(None, lambda lat, lng: None, fallbacks.append)
        assert router.activate(MovementMode.GEOLOCATION) is MovementMode.BUTTONS
        assert len(fallbacks) == 1

    def test_feed_error_falls_back(self) -> None:
        feed = OrderedFeed()
        fallbacks: list[Exception] = []
        router = MovementRouter(feed, lambda lat, lng: None, fallbacks.append)
        router.activate(MovementMode.GEOLOCATION)
        feed.subs[0].fail(PositionUnavailableError("lost fix"))
        assert router.mode is MovementMode.BUTTONS
        assert not feed.subs[0].active
        assert len(fallbacks) == 1

    def test_positions_forwarded(self) -> None:
        feed = OrderedFeed()
        got: list[tuple[float, float]] = []
        router = MovementRouter(
            feed,
            lambda lat, lng: got.append((lat, lng)),
            lambda exc: None,
        )
        router.activate(MovementMode.GEOLOCATION)
        feed.subs[0].deliver(3.0, 4.0)
        assert got == [(3.0, 4.0)]
