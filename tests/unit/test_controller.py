"""Tests for WalkController: start/ingest/error/stop against a push source."""
import pytest

from walkie.analysis.geo import GeoPoint
from walkie.errors import CapabilityUnavailable, InvalidState, PositionUnavailable
from walkie.tracking.controller import WalkController
from walkie.tracking.position import PushPositionSource


class RecordingSink:
    def __init__(self):
        self.snapshots = []
        self.errors = []
        self.saved = []

    def on_snapshot(self, snapshot):
        self.snapshots.append(snapshot)

    def on_error(self, error):
        self.errors.append(error)

    def on_walk_saved(self, record):
        self.saved.append(record)


def meridian(i: int) -> GeoPoint:
    return GeoPoint(lat=0.01 * i, lng=0.0)


@pytest.fixture(name="source")
def source_fixture(clock) -> PushPositionSource:
    return PushPositionSource(clock=clock)


@pytest.fixture(name="sink")
def sink_fixture() -> RecordingSink:
    return RecordingSink()


@pytest.fixture(name="controller")
def controller_fixture(source, goal, history, clock, sink) -> WalkController:
    return WalkController(source=source, goal=goal, history=history, clock=clock, sinks=[sink])


class TestStart:
    def test_no_source(self, goal, history):
        controller = WalkController(source=None, goal=goal, history=history)
        with pytest.raises(CapabilityUnavailable):
            controller.start()
        assert not controller.active

    def test_unavailable_source_creates_nothing(self, goal, history):
        source = PushPositionSource(available=False)
        controller = WalkController(source=source, goal=goal, history=history)
        with pytest.raises(CapabilityUnavailable):
            controller.start()
        assert not controller.active
        assert source.subscriber_count == 0

    def test_start_subscribes_and_reads_goal(self, controller, source, goal):
        goal.set(1.0)
        snap = controller.start()
        assert controller.active
        assert source.subscriber_count == 1
        assert controller.session.goal_km == 1.0
        assert snap.distance_km == 0.0

    def test_double_start(self, controller):
        controller.start()
        with pytest.raises(InvalidState):
            controller.start()

    def test_goal_change_mid_walk_does_not_affect_session(self, controller, goal):
        controller.start()
        goal.set(5.0)
        assert controller.session.goal_km == 2.0


class TestSamples:
    def test_samples_flow_to_sinks(self, controller, source, sink, clock):
        controller.start()
        source.push(meridian(0))
        clock.advance(600)
        source.push(meridian(1))
        assert len(sink.snapshots) == 2
        assert controller.last_snapshot.distance_km == pytest.approx(1.11195, abs=1e-4)
        assert controller.last_snapshot.elapsed_sec == 600
        assert controller.session.last_point == meridian(1)

    def test_error_keeps_walk_active(self, controller, source, sink):
        controller.start()
        source.push(meridian(0))
        source.push(meridian(1))
        before = controller.last_snapshot

        source.fail(PositionUnavailable("Signal lost"))
        assert controller.active
        assert controller.last_error.message == "Signal lost"
        assert controller.last_snapshot == before
        assert len(sink.errors) == 1

        source.push(meridian(2))
        assert controller.last_snapshot.distance_km > before.distance_km

    def test_new_walk_clears_last_error(self, controller, source):
        controller.start()
        source.fail(PositionUnavailable("Signal lost"))
        controller.stop()
        controller.start()
        assert controller.last_error is None

    def test_current_without_walk(self, controller):
        with pytest.raises(InvalidState):
            controller.current()


class TestStop:
    def test_stop_unsubscribes_and_saves(self, controller, source, history, sink, clock):
        controller.start()
        source.push(meridian(0))
        clock.advance(900)
        source.push(meridian(1))

        record = controller.stop()
        assert not controller.active
        assert source.subscriber_count == 0
        assert record.distance_km == 1.11
        assert record.duration_sec == 900
        assert history.list() == [record]
        assert sink.saved == [record]

    def test_late_sample_after_stop_is_ignored(self, controller, source, history, sink):
        controller.start()
        source.push(meridian(0))
        controller.stop()
        snapshots_before = len(sink.snapshots)

        assert source.push(meridian(5)) == 0
        controller._on_sample(meridian(6))  # a fix already in flight
        controller._on_error(PositionUnavailable("late"))
        assert len(sink.snapshots) == snapshots_before
        assert sink.errors == []
        assert len(history) == 1

    def test_stop_without_walk(self, controller):
        with pytest.raises(InvalidState):
            controller.stop()

    def test_double_stop(self, controller):
        controller.start()
        controller.stop()
        with pytest.raises(InvalidState):
            controller.stop()

    def test_zero_point_walk(self, controller, clock):
        controller.start()
        clock.advance(45)
        record = controller.stop()
        assert record.distance_km == 0
        assert record.avg_speed_kmh == 0

    def test_history_after_n_walks(self, controller, source, history, clock):
        for i in range(4):
            controller.start()
            source.push(meridian(0))
            clock.advance(300)
            source.push(meridian(i + 1))
            controller.stop()
            clock.advance(3600)
        records = history.list()
        assert len(records) == 4
        assert all(a.date >= b.date for a, b in zip(records, records[1:]))
        assert records[0].distance_km > records[-1].distance_km


class FailingHistory:
    def append(self, record):
        raise RuntimeError("disk full")


class TestStopFailure:
    def test_unsaved_walk_is_logged(self, source, goal, clock, caplog):
        controller = WalkController(source=source, goal=goal, history=FailingHistory(), clock=clock)
        controller.start()
        source.push(meridian(0))
        clock.advance(600)
        source.push(meridian(1))

        with caplog.at_level("ERROR", logger="walkie.tracking.controller"):
            with pytest.raises(RuntimeError, match="disk full"):
                controller.stop()

        assert not controller.active
        assert source.subscriber_count == 0
        assert "Could not save walk" in caplog.text
        assert "'km': 1.11" in caplog.text
