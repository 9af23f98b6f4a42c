from __future__ import annotations

import json
import re
from typing import Callable

from pydantic import ValidationError

from tvstream.errors import EventDecodeError
from tvstream.schemas.protocol import QsdEnvelope, TvEvent
from tvstream.schemas.quote import Quote, merge_quote
from tvstream.services.watch_registry import WatchRegistry

QSD_EVENT = "qsd"

_EXCHANGE_SUFFIX = re.compile(r"(?:^|[^A-Za-z])([A-Z]+)$")


def normalize_symbol(raw_symbol: str) -> str:
    """``"NASDAQ:AAPL"`` -> ``"AAPL"``; keys without an uppercase suffix are kept as-is."""
    match = _EXCHANGE_SUFFIX.search(raw_symbol)
    if match is None:
        return raw_symbol
    return match.group(1)


def _decode_event(message: str) -> TvEvent:
    try:
        decoded = json.loads(message)
    except json.JSONDecodeError as exc:
        raise EventDecodeError(f"message is not valid JSON: {exc.msg}") from exc
    if not isinstance(decoded, dict):
        raise EventDecodeError("decoded message must be an object")
    try:
        return TvEvent.model_validate(decoded)
    except ValidationError as exc:
        raise EventDecodeError(f"invalid event envelope: {exc.errors()[0]['msg']}") from exc


class EventDispatcher:
    """Routes decoded TradingView events into the watch registry.

    ``watch`` starts tracking an alias and ``commit`` stores a merged quote and
    notifies subscribers; both are supplied by the owning client so wire
    updates go through the same path as manual ones. Every tracked name of an
    instrument (normalized key, raw key, original and pro names) receives the
    same merged quote.
    """

    def __init__(
        self,
        *,
        watch_registry: WatchRegistry,
        watch: Callable[[str], object],
        commit: Callable[[str, Quote], None],
    ) -> None:
        self.watch_registry = watch_registry
        self._watch = watch
        self._commit = commit

    def dispatch(self, message: str) -> str | None:
        event = _decode_event(message)
        if not event.type:
            # set_* / quote_create_session acknowledgements
            return None

        if event.type == QSD_EVENT:
            self._handle_qsd(event)
            return QSD_EVENT

        print(f"[TV][event_unknown] type={event.type} payload={message}", flush=True)
        return None

    def _handle_qsd(self, event: TvEvent) -> None:
        params = event.params or []
        if len(params) != 2:
            raise EventDecodeError(f"unrecognized qsd event format: expected 2 params, got {len(params)}")

        try:
            envelope = QsdEnvelope.model_validate(params[1])
        except ValidationError as exc:
            raise EventDecodeError(f"invalid qsd envelope: {exc.errors()[0]['msg']}") from exc

        symbol = normalize_symbol(envelope.symbol)
        cached, _ = self.watch_registry.get(symbol)
        merged = merge_quote(cached, envelope.data)

        for alias in (merged.original_name, merged.pro_name):
            if alias and not self.watch_registry.contains(alias):
                self._watch(alias)

        self._commit(symbol, merged)
        committed = {symbol}
        for name in (envelope.symbol, merged.original_name, merged.pro_name):
            if not name or name in committed or not self.watch_registry.contains(name):
                continue
            committed.add(name)
            self._commit(name, merged)
