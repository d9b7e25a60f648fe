"""Cancellable timers, playback watchers and background tasks.

Every practice session owns one scheduler. Gap countdowns, "stop at the end
of this phrase" position watchers and on-demand synthesis calls are all
registered here, so ``cancel_all`` is the one place that clears them when a
session pauses, stops or starts a new playback action.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Iterable, Optional, Tuple

LOGGER = logging.getLogger("voicecraft.scheduler")

Unsubscribe = Callable[[], None]
Subscribe = Callable[[Callable[..., None]], Unsubscribe]
Predicate = Callable[..., bool]
EventSpec = Tuple[Subscribe, Optional[Predicate]]
TaskCallback = Callable[[Any, Optional[BaseException]], None]


class Pending:
    """Handle for one registered wait; cancelling it is idempotent."""

    __slots__ = ("label", "active", "_owner", "_cancellers")

    def __init__(self, owner: "Scheduler", label: str) -> None:
        self.label = label
        self.active = True
        self._owner = owner
        self._cancellers: list[Callable[[], None]] = []

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        self._owner._forget(self)
        cancellers, self._cancellers = self._cancellers, []
        for cancel in cancellers:
            cancel()

    def __repr__(self) -> str:
        state = "active" if self.active else "done"
        return f"<Pending {self.label} {state}>"


class Scheduler(ABC):
    """Base class holding the bookkeeping; subclasses supply the clock."""

    def __init__(self) -> None:
        self._pending: list[Pending] = []

    @abstractmethod
    def now(self) -> float:
        """Monotonic time in seconds."""

    @abstractmethod
    def _call_later(self, delay: float, callback: Callable[[], None]) -> Callable[[], None]:
        """Schedule ``callback`` and return a function that cancels it."""

    @abstractmethod
    def _start_task(
        self, awaitable: Awaitable[Any], callback: TaskCallback
    ) -> Callable[[], None]:
        """Run ``awaitable`` and report ``(result, error)`` unless cancelled."""

    def wait_until(
        self,
        callback: Callable[[], None],
        *,
        delay: float | None = None,
        events: Iterable[EventSpec] = (),
        label: str = "wait",
    ) -> Pending:
        """Fire ``callback`` once, after ``delay`` or on the first matching event.

        ``events`` pairs a subscribe function (returning an unsubscribe
        callable) with an optional predicate over the event arguments.
        Whichever trigger fires first tears down all the others.
        """
        pending = Pending(self, label)
        self._pending.append(pending)

        def fire(*args: Any) -> None:
            if not pending.active:
                return
            pending.cancel()
            callback()

        for subscribe, predicate in events:
            pending._cancellers.append(subscribe(_guarded(pending, predicate, fire)))
        if delay is not None:
            pending._cancellers.append(self._call_later(max(0.0, float(delay)), fire))
        return pending

    def after(self, delay: float, callback: Callable[[], None], *, label: str = "timer") -> Pending:
        return self.wait_until(callback, delay=delay, label=label)

    def run(
        self,
        awaitable: Awaitable[Any],
        callback: TaskCallback,
        *,
        label: str = "task",
    ) -> Pending:
        """Run ``awaitable`` in the background; ``callback(result, error)`` on completion."""
        pending = Pending(self, label)

        def finished(result: Any, error: Optional[BaseException]) -> None:
            if not pending.active:
                return
            pending.active = False
            self._forget(pending)
            callback(result, error)

        self._pending.append(pending)
        pending._cancellers.append(self._start_task(awaitable, finished))
        return pending

    def cancel_all(self) -> None:
        pending, self._pending = self._pending, []
        if pending:
            LOGGER.debug("Cancelling %d pending wait(s)", len(pending))
        for item in pending:
            item.cancel()

    @property
    def pending(self) -> list[Pending]:
        return list(self._pending)

    def _forget(self, pending: Pending) -> None:
        try:
            self._pending.remove(pending)
        except ValueError:
            pass


def _guarded(
    pending: Pending, predicate: Optional[Predicate], fire: Callable[..., None]
) -> Callable[..., None]:
    def listener(*args: Any) -> None:
        if not pending.active:
            return
        if predicate is not None and not predicate(*args):
            return
        fire(*args)

    return listener


class LoopScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        super().__init__()
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def _call_later(self, delay: float, callback: Callable[[], None]) -> Callable[[], None]:
        handle = self.loop.call_later(delay, callback)
        return handle.cancel

    def _start_task(
        self, awaitable: Awaitable[Any], callback: TaskCallback
    ) -> Callable[[], None]:
        task = self.loop.create_task(_as_coroutine(awaitable))

        def done(fut: asyncio.Future) -> None:
            if fut.cancelled():
                return
            error = fut.exception()
            callback(None if error else fut.result(), error)

        task.add_done_callback(done)
        return task.cancel


async def _as_coroutine(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


__all__ = ["LoopScheduler", "Pending", "Scheduler"]
