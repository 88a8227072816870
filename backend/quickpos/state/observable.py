# Overview: Minimal publish/subscribe value containers for the POS state stores.

from __future__ import annotations

from typing import Any, Callable, Generic, Sequence, TypeVar

T = TypeVar("T")

Subscriber = Callable[[Any], None]


class Observable(Generic[T]):
    """
    A value that notifies subscribers synchronously on every set().

    Values are treated as immutable snapshots: mutate by building a new value
    and calling set()/update(), never by editing the current one in place.
    """

    def __init__(self, value: T):
        self._value = value
        self._subscribers: list[Subscriber] = []

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        for callback in list(self._subscribers):
            callback(value)

    def update(self, fn: Callable[[T], T]) -> None:
        self.set(fn(self._value))

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register callback, call it once with the current value, return an unsubscriber."""
        self._subscribers.append(callback)
        callback(self._value)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe


class Derived(Observable[T]):
    """Read-only value recomputed from its sources whenever any of them changes."""

    def __init__(self, sources: Sequence[Observable], fn: Callable[..., T]):
        self._sources = list(sources)
        self._fn = fn
        super().__init__(self._compute())
        for source in self._sources:
            source.subscribe(self._on_source_change)

    def _compute(self) -> T:
        return self._fn(*(s.get() for s in self._sources))

    def _on_source_change(self, _value) -> None:
        Observable.set(self, self._compute())

    def set(self, value: T) -> None:
        raise TypeError("Derived values are read-only")
