"""
WalkController: owns the (at most one) walk in progress.

Flow for one walk:
  1. start(): check the position source, read the goal, open a TrackSession,
     subscribe to the source
  2. each fix → session.ingest() → snapshot published to every sink
  3. each source failure → kept as last_error, sinks told; the walk goes on
  4. stop(): unsubscribe FIRST, then finalize the session and prepend the
     WalkRecord to history

Fixes that arrive after stop() find no session and are dropped silently.
"""
import logging
from typing import List, Optional, Protocol

from walkie.analysis.geo import GeoPoint
from walkie.analysis.track import Clock, TrackSession, TrackSnapshot, WalkRecord, utc_now
from walkie.db.store import GoalSetting, WalkHistory
from walkie.errors import CapabilityUnavailable, InvalidState, PositionUnavailable
from walkie.tracking.position import PositionOptions, PositionSource

logger = logging.getLogger(__name__)


class WalkSink(Protocol):
    """Consumer of controller output. Produces nothing back."""

    def on_snapshot(self, snapshot: TrackSnapshot) -> None:
        ...

    def on_error(self, error: PositionUnavailable) -> None:
        ...

    def on_walk_saved(self, record: WalkRecord) -> None:
        ...


class WalkController:
    """Glue between a position source, a TrackSession, the store and the sinks."""

    def __init__(
        self,
        source: Optional[PositionSource],
        goal: GoalSetting,
        history: WalkHistory,
        options: Optional[PositionOptions] = None,
        clock: Clock = utc_now,
        sinks: Optional[List[WalkSink]] = None,
    ):
        """
        Args:
            source: position source, or None when the device has none.
            goal: goal setting, read once per start().
            history: walk history, appended on stop().
            options: forwarded to source.subscribe().
            clock: time source shared with the TrackSession.
            sinks: rendering/logging consumers.
        """
        self.source = source
        self.goal = goal
        self.history = history
        self.options = options or PositionOptions()
        self.clock = clock
        self.sinks: List[WalkSink] = list(sinks or [])

        self._session: Optional[TrackSession] = None
        self._handle: Optional[int] = None
        self.last_snapshot: Optional[TrackSnapshot] = None
        self.last_error: Optional[PositionUnavailable] = None

    # ─── State ────────────────────────────────────────────────────────────────

    @property
    def active(self) -> bool:
        return self._session is not None and self._session.active

    @property
    def session(self) -> TrackSession:
        """The walk in progress; InvalidState if there is none."""
        if not self.active:
            raise InvalidState("No walk in progress")
        return self._session

    # ─── Commands ─────────────────────────────────────────────────────────────

    def start(self) -> TrackSnapshot:
        """
        Begin a new walk.

        Raises:
            CapabilityUnavailable: no usable position source; nothing is created.
            InvalidState: a walk is already in progress.
        """
        if self.source is None or not getattr(self.source, "available", False):
            raise CapabilityUnavailable("Geolocation is not supported on this device")
        if self.active:
            raise InvalidState("A walk is already in progress")

        goal_km = self.goal.get()
        self._session = TrackSession.start(goal_km=goal_km, clock=self.clock)
        self.last_error = None
        self._handle = self.source.subscribe(self._on_sample, self._on_error, self.options)
        logger.info("Walk started (goal %.1f km)", goal_km)

        self.last_snapshot = self._session.snapshot()
        return self.last_snapshot

    def current(self) -> TrackSnapshot:
        """Metrics right now, with elapsed time advanced to the clock."""
        return self.session.snapshot()

    def stop(self) -> WalkRecord:
        """
        Finish the walk and save it to history.

        Raises:
            InvalidState: no walk in progress.
        """
        session = self.session
        if self._handle is not None:
            self.source.unsubscribe(self._handle)
            self._handle = None

        record = session.stop()
        self._session = None
        try:
            self.history.append(record)
        except Exception:
            # The session is gone; the log line is the only copy left
            logger.exception("Could not save walk %s", record.to_json())
            raise
        logger.info(
            "Walk saved: %.2f km in %ds (%.1f km/h)",
            record.distance_km, record.duration_sec, record.avg_speed_kmh,
        )
        for sink in self.sinks:
            sink.on_walk_saved(record)
        return record

    # ─── Source callbacks ─────────────────────────────────────────────────────

    def _on_sample(self, point: GeoPoint) -> None:
        if not self.active:
            logger.debug("Discarding fix received with no walk in progress")
            return
        snapshot = self._session.ingest(point)
        self.last_snapshot = snapshot
        for sink in self.sinks:
            sink.on_snapshot(snapshot)

    def _on_error(self, error: PositionUnavailable) -> None:
        if not self.active:
            return
        self.last_error = error
        logger.warning("Position error (%s): %s", error.reason, error.message)
        for sink in self.sinks:
            sink.on_error(error)
