from __future__ import annotations

import threading

from tvstream.schemas.quote import Quote


class WatchRegistry:
    """Watched symbols and the last quote committed for each of them."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._rows: dict[str, Quote] = {}

    def add(self, symbol: str, quote: Quote | None = None) -> bool:
        """Start tracking ``symbol``. Returns False if it was already tracked."""
        with self._lock:
            if symbol in self._rows:
                return False
            self._rows[symbol] = quote if quote is not None else Quote()
            return True

    def contains(self, symbol: str) -> bool:
        with self._lock:
            return symbol in self._rows

    def get(self, symbol: str) -> tuple[Quote, bool]:
        with self._lock:
            row = self._rows.get(symbol)
        if row is None:
            return Quote(), False
        return row, True

    def commit(self, symbol: str, quote: Quote) -> None:
        with self._lock:
            self._rows[symbol] = quote

    def symbols(self) -> list[str]:
        with self._lock:
            return list(self._rows)

    def snapshot(self) -> dict[str, Quote]:
        with self._lock:
            return dict(self._rows)
