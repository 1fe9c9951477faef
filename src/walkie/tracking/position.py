"""
Position sources: where GeoPoints come from.

A source delivers samples and failures to subscribers through two callbacks,
in arrival order, on a single logical stream. The tracker never polls.

PushPositionSource is the in-process implementation: an outer surface (the
HTTP API, a test, a replayed log) hands it fixes with push() and failures
with fail(). When an asyncio loop is running, each subscription also gets a
silence watchdog that reports a "timeout" failure if no fix arrives within
timeout_ms, then re-arms, the way a device watch keeps reporting timeouts.
"""
import asyncio
import itertools
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional, Protocol

from walkie.analysis.geo import GeoPoint
from walkie.analysis.track import Clock, utc_now
from walkie.errors import PositionUnavailable

logger = logging.getLogger(__name__)

SampleCallback = Callable[[GeoPoint], None]
ErrorCallback = Callable[[PositionUnavailable], None]


@dataclass(frozen=True)
class PositionOptions:
    high_accuracy: bool = True
    max_sample_age_ms: int = 1000   # older fixes are dropped by the source
    timeout_ms: int = 10000         # silence longer than this is reported as a failure

    @classmethod
    def from_settings(cls, settings) -> "PositionOptions":
        return cls(
            high_accuracy=settings.position_high_accuracy,
            max_sample_age_ms=settings.position_max_sample_age_ms,
            timeout_ms=settings.position_timeout_ms,
        )


class PositionSource(Protocol):
    available: bool

    def subscribe(
        self,
        on_sample: SampleCallback,
        on_error: ErrorCallback,
        options: PositionOptions,
    ) -> int:
        ...

    def unsubscribe(self, handle: int) -> None:
        ...


class _Subscription:
    def __init__(self, on_sample, on_error, options: PositionOptions):
        self.on_sample = on_sample
        self.on_error = on_error
        self.options = options
        self._timer: Optional[asyncio.TimerHandle] = None

    def arm(self) -> None:
        self.disarm()
        if self.options.timeout_ms <= 0:
            return
        loop = _running_loop()
        if loop is None:
            return
        self._timer = loop.call_later(self.options.timeout_ms / 1000, self._timed_out)

    def disarm(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _timed_out(self) -> None:
        self._timer = None
        self.on_error(
            PositionUnavailable(
                f"No position fix within {self.options.timeout_ms} ms", reason="timeout"
            )
        )
        self.arm()


class PushPositionSource:
    """Source fed from outside via push() / fail()."""

    def __init__(self, clock: Clock = utc_now, available: bool = True):
        self.available = available
        self._clock = clock
        self._subscriptions: Dict[int, _Subscription] = {}
        self._handles = itertools.count(1)

    def subscribe(
        self,
        on_sample: SampleCallback,
        on_error: ErrorCallback,
        options: Optional[PositionOptions] = None,
    ) -> int:
        handle = next(self._handles)
        sub = _Subscription(on_sample, on_error, options or PositionOptions())
        self._subscriptions[handle] = sub
        sub.arm()
        logger.debug("Position subscription %d opened", handle)
        return handle

    def unsubscribe(self, handle: int) -> None:
        sub = self._subscriptions.pop(handle, None)
        if sub is not None:
            sub.disarm()
            logger.debug("Position subscription %d closed", handle)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def push(self, point: GeoPoint, fix_time: Optional[datetime] = None) -> int:
        """
        Deliver one fix to every live subscriber.

        fix_time is when the device took the fix; when given, subscribers
        whose max_sample_age_ms it exceeds do not receive it.

        Returns:
            Number of subscribers the fix was delivered to.
        """
        delivered = 0
        # Copy: a callback may unsubscribe
        for handle, sub in list(self._subscriptions.items()):
            if handle not in self._subscriptions:
                continue
            if fix_time is not None and self._is_stale(fix_time, sub.options):
                logger.debug("Dropping stale fix from %s for subscription %d", fix_time, handle)
                continue
            sub.arm()
            sub.on_sample(point)
            delivered += 1
        return delivered

    def fail(self, error: PositionUnavailable) -> int:
        """Report a failure to every live subscriber. Subscriptions stay open."""
        subs = list(self._subscriptions.values())
        for sub in subs:
            sub.on_error(error)
        return len(subs)

    def _is_stale(self, fix_time: datetime, options: PositionOptions) -> bool:
        age_ms = (self._clock() - fix_time).total_seconds() * 1000
        return age_ms > options.max_sample_age_ms


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None
