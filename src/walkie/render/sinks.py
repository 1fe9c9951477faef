"""Logging sink: writes each walk tick to the log in display form."""
import logging

from walkie.analysis.track import TrackSnapshot, WalkRecord
from walkie.errors import PositionUnavailable
from walkie.render.history import format_history_item, format_snapshot

logger = logging.getLogger(__name__)


class LoggingSink:
    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def on_snapshot(self, snapshot: TrackSnapshot) -> None:
        tiles = format_snapshot(snapshot)
        self.log.info(
            "%s · %s · %s · goal %s",
            tiles["distance"], tiles["duration"], tiles["speed"], tiles["goal"],
        )

    def on_error(self, error: PositionUnavailable) -> None:
        self.log.warning("GPS error: %s", error.message)

    def on_walk_saved(self, record: WalkRecord) -> None:
        self.log.info("Saved walk: %s", format_history_item(record, 0))
