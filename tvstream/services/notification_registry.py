from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable

from tvstream.schemas.quote import Quote

# Return a truthy value to stop receiving updates.
UpdateCallback = Callable[[Quote], Any]


@dataclass(eq=False)
class Subscription:
    symbol: str
    callback: UpdateCallback
    one_shot: bool = False


class NotificationRegistry:
    """Per-symbol update callbacks, invoked in registration order."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._subscriptions: list[Subscription] = []

    def add(self, symbol: str, callback: UpdateCallback, *, one_shot: bool = False) -> Subscription:
        subscription = Subscription(symbol=symbol, callback=callback, one_shot=one_shot)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def pending(self, symbol: str | None = None) -> int:
        with self._lock:
            if symbol is None:
                return len(self._subscriptions)
            return sum(1 for s in self._subscriptions if s.symbol == symbol)

    def notify(self, symbol: str, quote: Quote) -> int:
        """Deliver ``quote`` to every subscription on ``symbol``; returns the call count."""
        invoked = 0
        with self._lock:
            current = self._subscriptions
            # registrations made by callbacks land here and survive this pass
            self._subscriptions = []
            survivors: list[Subscription] = []

            for subscription in current:
                if subscription.symbol != symbol:
                    survivors.append(subscription)
                    continue

                invoked += 1
                try:
                    should_remove = subscription.callback(quote)
                except Exception as exc:
                    print(f"[TV][notify_error] symbol={symbol} error={exc!r}", flush=True)
                    if not subscription.one_shot:
                        survivors.append(subscription)
                    continue

                if subscription.one_shot or should_remove:
                    continue
                survivors.append(subscription)

            self._subscriptions = survivors + self._subscriptions
        return invoked
