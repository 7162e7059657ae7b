"""Observable value channels and the per-view cancellation signal.

The store publishes each piece of state (rows, count, cost objects, ...)
through a Stream. Consumers subscribe with a callback and receive the
latest value immediately (if one exists) and every later value.

Every subscription the grid core makes is attached to a Lifetime; calling
Lifetime.cancel() when the view is torn down stops all delivery at once.

Usage:
    lifetime = Lifetime()
    rows = Stream[list[Metric]]()
    rows.subscribe(on_rows, lifetime)
    rows.emit([...])        # on_rows called
    lifetime.cancel()
    rows.emit([...])        # nothing
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Generic, TypeVar

from ..debug_trace import logger

T = TypeVar("T")

_UNSET: Any = object()


class Subscription:
    """Handle for one registered callback."""

    def __init__(self, on_close: Callable[[Subscription], None] | None = None):
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        """Whether this subscription no longer delivers values."""
        return self._closed

    def unsubscribe(self) -> None:
        """Stop delivery. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            self._on_close(self)
            self._on_close = None


class Lifetime:
    """Single cancellation signal fanned out to many subscriptions."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._cancelled = False

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def add(self, subscription: Subscription) -> Subscription:
        """Tie a subscription to this lifetime.

        If the lifetime is already cancelled the subscription is closed
        immediately.
        """
        if self._cancelled:
            subscription.unsubscribe()
        else:
            # Drop subscriptions that were closed individually
            self._subscriptions = [s for s in self._subscriptions if not s.closed]
            self._subscriptions.append(subscription)
        return subscription

    def cancel(self) -> None:
        """Close every attached subscription synchronously."""
        if self._cancelled:
            return
        self._cancelled = True
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.unsubscribe()

    def __len__(self) -> int:
        return len(self._subscriptions)


class Stream(Generic[T]):
    """Multi-value channel that replays its latest value to new subscribers."""

    def __init__(self, initial: T = _UNSET, name: str = ""):
        self._value = initial
        self._name = name
        self._observers: list[tuple[Subscription, Callable[[T], None]]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def has_value(self) -> bool:
        return self._value is not _UNSET

    @property
    def value(self) -> T | None:
        """Latest emitted value, or None if nothing has been emitted."""
        return None if self._value is _UNSET else self._value

    def subscribe(
        self,
        callback: Callable[[T], None],
        lifetime: Lifetime | None = None,
        replay: bool = True,
    ) -> Subscription:
        """Register a callback.

        Args:
            callback: Called with every value
            lifetime: Optional cancellation signal the subscription is tied to
            replay: Deliver the current value immediately, if there is one

        Returns:
            Subscription handle
        """
        subscription = Subscription(self._remove)
        if lifetime is not None:
            lifetime.add(subscription)
            if subscription.closed:
                return subscription

        self._observers.append((subscription, callback))
        if replay and self.has_value:
            callback(self._value)
        return subscription

    def emit(self, value: T) -> None:
        """Publish a new value to all current subscribers, in subscription order."""
        self._value = value
        for subscription, callback in list(self._observers):
            # A callback earlier in this loop may have cancelled later ones
            if subscription.closed:
                continue
            try:
                callback(value)
            except Exception:
                logger.exception(f"Subscriber of stream {self._name or '?'} failed")

    def _remove(self, subscription: Subscription) -> None:
        self._observers = [(s, cb) for s, cb in self._observers if s is not subscription]

    @property
    def subscriber_count(self) -> int:
        return len(self._observers)


class CombineLatest:
    """Fan-in over several streams with last-value-wins semantics.

    The callback fires once every source has produced a value, then again on
    every later emission from any source, with the latest value of each.
    """

    def __init__(
        self,
        sources: Sequence[Stream[Any]],
        callback: Callable[[tuple[Any, ...]], None],
        lifetime: Lifetime,
    ):
        self._callback = callback
        self._latest: list[Any] = [_UNSET] * len(sources)
        self._lifetime = lifetime
        self._subscriptions = [
            source.subscribe(self._make_handler(index), lifetime)
            for index, source in enumerate(sources)
        ]

    def _make_handler(self, index: int) -> Callable[[Any], None]:
        def handler(value: Any) -> None:
            self._latest[index] = value
            if self.is_ready and not self._lifetime.is_cancelled:
                self._callback(tuple(self._latest))

        return handler

    @property
    def is_ready(self) -> bool:
        """True once every source has emitted at least once."""
        return all(value is not _UNSET for value in self._latest)

    def unsubscribe(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()


def combine_latest(
    sources: Sequence[Stream[Any]],
    callback: Callable[[tuple[Any, ...]], None],
    lifetime: Lifetime,
) -> CombineLatest:
    """Join sources; see CombineLatest."""
    return CombineLatest(sources, callback, lifetime)


def subscribe_present(
    stream: Stream[T | None],
    callback: Callable[[T], None],
    lifetime: Lifetime,
) -> Subscription:
    """Subscribe, skipping None values (scenario not resolved yet, etc.)."""

    def handler(value: T | None) -> None:
        if value is not None:
            callback(value)

    return stream.subscribe(handler, lifetime)
