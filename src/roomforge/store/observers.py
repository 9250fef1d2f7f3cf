"""Synchronous change notification for the content store."""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

from roomforge.observability.logging import get_logger

log = get_logger(__name__)

S = TypeVar("S")

Observer = Callable[[S], None]


class ChangeNotifier(Generic[S]):
    """Subject half of an observer pair, owned by one store instance.

    Delivery is synchronous and per call: ``notify`` runs every observer
    before returning and never batches or coalesces. A failing observer is
    logged and skipped; it does not stop delivery to the others.
    """

    def __init__(self) -> None:
        self._observers: list[Observer[S]] = []

    def subscribe(self, observer: Observer[S]) -> Callable[[], None]:
        """Register *observer* and return a function that unregisters it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            self._observers = [o for o in self._observers if o is not observer]

        return unsubscribe

    def notify(self, subject: S) -> None:
        # Observers may unsubscribe during delivery.
        for observer in list(self._observers):
            try:
                observer(subject)
            except Exception:
                log.exception("observer_failed", observer=getattr(observer, "__name__", repr(observer)))

    def __len__(self) -> int:
        return len(self._observers)
