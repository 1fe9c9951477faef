"""
Synchronous key-value store over the StoredValue table, plus the two typed
views walkie keeps in it: the daily distance goal and the walk history.

Values are JSON documents. A value that fails to decode reads as the default,
so one corrupt row never takes the app down.
"""
import json
import logging
import math
from datetime import datetime
from typing import Any, List, Optional

from sqlmodel import Session

from walkie.analysis.track import WalkRecord
from walkie.errors import InvalidInput
from walkie.models.store import StoredValue

logger = logging.getLogger(__name__)

GOAL_KEY = "goalKm"
HISTORY_KEY = "history"


class KeyValueStore:
    """get(key, default) / set(key, value) backed by SQLModel."""

    def __init__(self, engine):
        self.engine = engine

    def get(self, key: str, default: Any = None) -> Any:
        with Session(self.engine) as s:
            row = s.get(StoredValue, key)
        if row is None:
            return default
        try:
            return json.loads(row.value_json)
        except ValueError:
            logger.warning("Stored value for %r is not valid JSON; using default", key)
            return default

    def set(self, key: str, value: Any) -> None:
        value_json = json.dumps(value)  # TypeError for non-JSON values, before touching the DB
        with Session(self.engine) as s:
            row = s.get(StoredValue, key)
            if row is None:
                row = StoredValue(key=key, value_json=value_json)
            else:
                row.value_json = value_json
                row.updated_at = datetime.utcnow()
            s.add(row)
            s.commit()


class GoalSetting:
    """The daily distance goal in km, stored as a bare number."""

    def __init__(self, store: KeyValueStore, default_km: float = 2.0):
        self.store = store
        self.default_km = default_km

    def get(self) -> float:
        value = self.store.get(GOAL_KEY, self.default_km)
        try:
            km = float(value)
        except (TypeError, ValueError):
            return self.default_km
        if not km > 0:
            return self.default_km
        return km

    def set(self, km: float) -> float:
        try:
            km = float(km)
        except (TypeError, ValueError):
            raise InvalidInput(f"Goal must be a number, got {km!r}") from None
        if not math.isfinite(km) or km <= 0:
            raise InvalidInput(f"Goal must be a positive number of km, got {km!r}")
        self.store.set(GOAL_KEY, km)
        return km


class WalkHistory:
    """Finished walks, most recent first."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def append(self, record: WalkRecord) -> None:
        """Prepend record to the stored list."""
        raw = self._raw()
        raw.insert(0, record.to_json())
        self.store.set(HISTORY_KEY, raw)

    def list(self, limit: Optional[int] = None) -> List[WalkRecord]:
        raw = self._raw()
        if limit is not None:
            raw = raw[:limit]
        records = []
        for item in raw:
            try:
                records.append(WalkRecord.from_json(item))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed history entry %r: %s", item, exc)
        return records

    def __len__(self) -> int:
        return len(self._raw())

    def _raw(self) -> list:
        raw = self.store.get(HISTORY_KEY, [])
        return raw if isinstance(raw, list) else []
