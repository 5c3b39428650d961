"""
Purpose: Async driver of the NavigationTracker.
What it does:
Owns the position-fix subscription for one trip and feeds fixes to the tracker
from a single consumer task. Every tracker mutation happens under one
asyncio.Lock, so fixes are processed one at a time and in arrival order.

- no fix within policy.fix_timeout_s -> tracker fix error (trip stays active)
- PositionSourceError from the subscription -> tracker fix error
- arrival -> trip stopped when policy.auto_stop_on_arrival is set
- any other subscription failure -> tracker fix error, then the consumer ends
- stop() cancels the consumer task, the subscription and the planner given to
  the session (a reroute still being planned); idempotent
- a session covers one trip; start() after the session ended raises

The position sensor itself is outside this package: anything with
`async next_fix()` and `cancel()` can drive a session. QueuedPositionSource
is the in-process implementation used by tests and the simulation script.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Protocol, Sequence, Union

from geometry import LatLon
from routing.models import RouteCandidate, RouteGeometry, RouteStep

from .models import NavigationEvent, PositionFix, PositionSourceError
from .state_machine import NavigationStateException
from .tracker import NavigationTracker

logger = logging.getLogger(__name__)


class SubscriptionClosed(Exception):
    """The subscription was cancelled; no more fixes will arrive."""
    pass


class PositionSubscription(Protocol):

    async def next_fix(self) -> PositionFix:
        """Next fix. Raises PositionSourceError or SubscriptionClosed."""
        ...

    def cancel(self) -> None:
        ...


class QueuedPositionSource:
    """
    Push-style subscription with a one-slot buffer: if the consumer is still
    busy with a fix, a newer one replaces the waiting one ("latest fix wins").
    Stale fixes are dropped, never reordered.
    """

    _CLOSED = object()

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def _offer(self, item: object) -> None:
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
        self._queue.put_nowait(item)

    def push(self, fix: PositionFix) -> None:
        if not self._closed:
            self._offer(fix)

    def push_error(self, error: Union[str, PositionSourceError]) -> None:
        if self._closed:
            return
        if not isinstance(error, PositionSourceError):
            error = PositionSourceError(error)
        self._offer(error)

    async def next_fix(self) -> PositionFix:
        if self._closed and self._queue.empty():
            raise SubscriptionClosed()
        item = await self._queue.get()
        if item is self._CLOSED:
            raise SubscriptionClosed()
        if isinstance(item, PositionSourceError):
            raise item
        return item

    def cancel(self) -> None:
        if self._closed:
            return
        self._closed = True
        #wake a consumer blocked in next_fix
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(self._CLOSED)


class Cancellable(Protocol):
    """Work owned by the trip that must not outlive it (e.g. ZoneAwareRoutePlanner)."""

    def cancel(self) -> None:
        ...


class NavigationSession:
    """One trip: start() once, stop() when done. Create a new session for the next trip."""

    def __init__(
            self,
            tracker: NavigationTracker,
            subscription: PositionSubscription,
            *,
            planner: Optional[Cancellable] = None,
    ):
        self.tracker = tracker
        self.subscription = subscription
        self.planner = planner
        self.policy = tracker.policy
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self._finished = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(
            self,
            route: Union[RouteCandidate, RouteGeometry, Sequence[LatLon]],
            steps: Optional[Sequence[RouteStep]] = None,
    ) -> List[NavigationEvent]:
        """
        Start the trip and begin consuming fixes.

        Raises:
            NavigationStateException: the session already ended (its subscription is closed)
        """
        if self._finished:
            raise NavigationStateException("Navigation session already ended; start a new session")
        async with self._lock:
            events = self.tracker.start(route, steps)
        self._task = asyncio.create_task(self._consume())
        return events

    async def stop(self) -> List[NavigationEvent]:
        """
        Cancel route planning in flight, the fix consumer and the subscription,
        then end the trip. Idempotent.
        """
        task, self._task = self._task, None
        self._finish()
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        async with self._lock:
            return self.tracker.stop()

    async def join(self) -> None:
        """Wait until the consumer ends (arrival with auto-stop, or subscription closed)."""
        task = self._task
        if task is not None:
            await task

    def _finish(self) -> None:
        self._finished = True
        if self.planner is not None:
            self.planner.cancel()
        self.subscription.cancel()

    async def _consume(self) -> None:
        timeout = self.policy.fix_timeout_s
        while self.tracker.state.is_active:
            try:
                fix = await asyncio.wait_for(self.subscription.next_fix(), timeout=timeout)
            except SubscriptionClosed:
                logger.info("Position subscription closed")
                break
            except asyncio.TimeoutError:
                async with self._lock:
                    self.tracker.handle_fix_error(f"No position fix within {timeout:g} s")
                continue
            except PositionSourceError as e:
                async with self._lock:
                    self.tracker.handle_fix_error(e)
                continue
            except Exception as e:
                #the subscription is broken; the trip keeps its progress until stop()
                logger.exception("Position subscription failed; no more fixes will be read")
                async with self._lock:
                    self.tracker.handle_fix_error(e)
                break

            async with self._lock:
                self.tracker.handle_fix(fix)
                arrived = self.tracker.state.arrived

            if arrived and self.policy.auto_stop_on_arrival:
                self._finish()
                async with self._lock:
                    self.tracker.stop()
                break
