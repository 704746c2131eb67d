"""
Replaying value streams.

:class:`ValueStream` holds one current value and broadcasts every new value
to its subscribers, synchronously and in order. New subscribers receive
the current value immediately. A value emitted from inside a subscriber
callback is queued and delivered once the current broadcast has reached
every subscriber, so no subscriber ever sees values out of order.

Derived streams (:meth:`ValueStream.map`, :meth:`ValueStream.distinct`)
follow their source; :meth:`ValueStream.watch` exposes the stream as an
async iterator.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import deque
from collections.abc import AsyncIterator, Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")

_DONE = object()


class Subscription:
    """Handle returned by :meth:`ValueStream.subscribe`."""

    def __init__(self, cancel: Callable[[], None]) -> None:
        self._cancel: Callable[[], None] | None = cancel

    @property
    def closed(self) -> bool:
        return self._cancel is None

    def unsubscribe(self) -> None:
        if self._cancel is not None:
            cancel, self._cancel = self._cancel, None
            cancel()

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *args: object) -> None:
        self.unsubscribe()


class _Observer(Generic[T]):
    __slots__ = ("on_value", "on_close")

    def __init__(
        self, on_value: Callable[[T], None], on_close: Callable[[], None] | None
    ) -> None:
        self.on_value = on_value
        self.on_close = on_close


class ValueStream(Generic[T]):
    """A broadcast slot that replays its current value to new subscribers."""

    def __init__(self, value: T) -> None:
        self._value = value
        self._observers: list[_Observer[T]] = []
        self._pending: deque[T] = deque()
        self._emitting = False
        self._closed = False
        self._lock = threading.RLock()
        self._upstream: Subscription | None = None

    @property
    def value(self) -> T:
        return self._value

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(
        self,
        on_value: Callable[[T], None],
        on_close: Callable[[], None] | None = None,
    ) -> Subscription:
        """Register *on_value* and call it with the current value right away."""
        observer = _Observer(on_value, on_close)
        with self._lock:
            if self._closed:
                if on_close is not None:
                    on_close()
                return Subscription(lambda: None)
            self._observers.append(observer)
            on_value(self._value)

        def cancel() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return Subscription(cancel)

    def emit(self, value: T) -> None:
        """Make *value* current and deliver it to every subscriber."""
        with self._lock:
            if self._closed:
                raise RuntimeError("Cannot emit on a closed stream")
            self._value = value
            self._pending.append(value)
            if self._emitting:
                return
            self._emitting = True
            first_error: BaseException | None = None
            try:
                while self._pending:
                    current = self._pending.popleft()
                    for observer in list(self._observers):
                        try:
                            observer.on_value(current)
                        except Exception as exc:
                            logger.exception("Stream subscriber failed")
                            if first_error is None:
                                first_error = exc
            finally:
                self._emitting = False
            if first_error is not None:
                raise first_error

    def close(self) -> None:
        """Complete the stream; subscribers are notified and released."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            observers, self._observers = self._observers, []
            if self._upstream is not None:
                self._upstream.unsubscribe()
                self._upstream = None
        for observer in observers:
            if observer.on_close is not None:
                observer.on_close()

    # -- Derived streams ---------------------------------------------------

    def map(self, fn: Callable[[T], U]) -> ValueStream[U]:
        derived: ValueStream[U] = ValueStream(fn(self._value))
        derived._follow(self, lambda value: derived.emit(fn(value)))
        return derived

    def distinct(self) -> ValueStream[T]:
        """Follow this stream but skip values equal to the previous one."""
        derived: ValueStream[T] = ValueStream(self._value)

        def forward(value: T) -> None:
            if value != derived.value:
                derived.emit(value)

        derived._follow(self, forward)
        return derived

    def _follow(self, source: ValueStream[object], forward: Callable[[T], None]) -> None:
        # the replayed value is already current, skip it
        primed = False

        def on_value(value: T) -> None:
            nonlocal primed
            if primed:
                forward(value)
            primed = True

        self._upstream = source.subscribe(on_value, self.close)  # type: ignore[arg-type]

    # -- Async ---------------------------------------------------------------

    async def watch(self) -> AsyncIterator[T]:
        """Iterate over the current and all future values until the stream closes."""
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[object] = asyncio.Queue()

        subscription = self.subscribe(
            lambda value: loop.call_soon_threadsafe(queue.put_nowait, value),
            lambda: loop.call_soon_threadsafe(queue.put_nowait, _DONE),
        )
        try:
            while True:
                item = await queue.get()
                if item is _DONE:
                    return
                yield item  # type: ignore[misc]
        finally:
            subscription.unsubscribe()
