from __future__ import annotations

import ssl
import threading
from typing import Any, Callable, Optional

from tvstream.errors import EventDecodeError, NotConnectedError
from tvstream.integrations.framing import decode_frames, encode_request
from tvstream.schemas.protocol import TvRequest
from tvstream.schemas.quote import Quote
from tvstream.schemas.session import ClientStatus
from tvstream.services.event_dispatcher import EventDispatcher
from tvstream.services.notification_registry import NotificationRegistry, Subscription, UpdateCallback
from tvstream.services.session_bootstrap import (
    UNAUTHORIZED_USER_TOKEN,
    build_bootstrap_requests,
    build_watch_requests,
    create_session_id,
)
from tvstream.services.watch_registry import WatchRegistry


class TradingViewClient:
    """TradingView quote-session client with watch list and update callbacks.

    ``connect()`` dials the websocket and sends the session bootstrap;
    ``read_loop()`` (or ``run_forever()``) then feeds every inbound frame
    through the dispatcher on the calling thread. ``watch``/``on_update``/
    ``get_quote`` may be called from any thread, before or after connecting.
    """

    DEFAULT_URL = "wss://data.tradingview.com/socket.io/websocket"
    DEFAULT_ORIGIN = "https://data.tradingview.com/"

    def __init__(
        self,
        *,
        url: str = DEFAULT_URL,
        origin: str = DEFAULT_ORIGIN,
        verify_tls: bool = False,
        data_quality: str = "low",
        auth_token: str = UNAUTHORIZED_USER_TOKEN,
        connection_factory: Optional[Callable[..., Any]] = None,
        on_connected: Optional[Callable[["TradingViewClient"], None]] = None,
        on_connect_error: Optional[Callable[[Exception, "TradingViewClient"], None]] = None,
        on_disconnected: Optional[Callable[[Exception, "TradingViewClient"], None]] = None,
    ) -> None:
        self.url = url
        self.origin = origin
        self.verify_tls = verify_tls
        self.data_quality = data_quality
        self.auth_token = auth_token
        self._connection_factory = connection_factory or self._default_connection_factory
        self.on_connected = on_connected
        self.on_connect_error = on_connect_error
        self.on_disconnected = on_disconnected

        self.watch_registry = WatchRegistry()
        self.notifications = NotificationRegistry()
        self.dispatcher = EventDispatcher(
            watch_registry=self.watch_registry,
            watch=self.watch,
            commit=self.update,
        )

        self.is_connected = False
        self.running = False
        self.session_id: str | None = None
        self.last_error: str | None = None
        self.last_exception: Exception | None = None
        self.messages_received = 0
        self.decode_errors = 0

        self._conn: Any = None
        self._send_lock = threading.Lock()
        self._recv_lock = threading.Lock()
        # guards the connected flag against the watch list flush in connect()
        self._watch_lock = threading.RLock()
        self._first_message_logged = False

    @classmethod
    def from_settings(cls, settings: Any, **kwargs: Any) -> "TradingViewClient":
        return cls(
            url=settings.TV_WS_URL,
            origin=settings.TV_WS_ORIGIN,
            verify_tls=settings.TV_WS_VERIFY_TLS,
            data_quality=settings.TV_DATA_QUALITY,
            auth_token=settings.TV_AUTH_TOKEN,
            **kwargs,
        )

    def _default_connection_factory(self, *args: Any, **kwargs: Any) -> Any:
        from websocket import create_connection

        return create_connection(*args, **kwargs)

    def _dial(self) -> Any:
        sslopt: dict[str, Any] = {}
        if not self.verify_tls:
            sslopt = {"cert_reqs": ssl.CERT_NONE, "check_hostname": False}
        return self._connection_factory(self.url, origin=self.origin, sslopt=sslopt)

    def connect(self) -> bool:
        print(f"[TV][ws_connect] url={self.url} watched={len(self.watch_registry.symbols())}", flush=True)
        try:
            conn = self._dial()
        except Exception as exc:
            self.is_connected = False
            self.last_error = str(exc)
            self.last_exception = exc
            print(f"[TV][ws_connect_result] status=error error={self.last_error}", flush=True)
            if self.on_connect_error is not None:
                self.on_connect_error(exc, self)
            return False

        self._conn = conn
        self.last_error = None
        self.last_exception = None
        self._first_message_logged = False
        self.session_id = create_session_id()

        for request in build_bootstrap_requests(
            self.session_id,
            data_quality=self.data_quality,
            auth_token=self.auth_token,
        ):
            self.send(request)

        with self._watch_lock:
            for symbol in self.watch_registry.symbols():
                self._send_watch(symbol)
            self.is_connected = True
            self.running = True

        print(f"[TV][ws_connect_result] status=open session_id={self.session_id}", flush=True)
        if self.on_connected is not None:
            self.on_connected(self)
        return True

    def close(self) -> None:
        self.running = False
        conn = self._conn
        if conn is None:
            return
        try:
            conn.close()
        except Exception as exc:
            print(f"[TV][ws_close_error] error={exc}", flush=True)
        with self._watch_lock:
            self.is_connected = False

    def run_forever(self) -> Exception | None:
        """Connect if needed and read until the connection drops; returns the error that ended it."""
        if not self.is_connected and not self.connect():
            return self.last_exception
        return self.read_loop()

    def read_loop(self) -> Exception:
        conn = self._conn
        if conn is None:
            raise NotConnectedError("connect() must succeed before reading")

        while True:
            try:
                with self._recv_lock:
                    raw = conn.recv()
            except Exception as exc:
                return self._handle_disconnect(exc)

            if not raw and not getattr(conn, "connected", True):
                return self._handle_disconnect(ConnectionError("connection closed by server"))

            self.handle_raw_message(raw)

    def _handle_disconnect(self, exc: Exception) -> Exception:
        with self._watch_lock:
            self.is_connected = False
            self.running = False
        self.last_error = str(exc)
        self.last_exception = exc
        print(f"[TV][ws_disconnect] error={self.last_error}", flush=True)
        if self.on_disconnected is not None:
            self.on_disconnected(exc, self)
        return exc

    def handle_raw_message(self, raw: str | bytes) -> None:
        self.messages_received += 1
        if not self._first_message_logged:
            print("[TV][ws_first_message] received=1", flush=True)
            self._first_message_logged = True

        try:
            frames = decode_frames(raw)
        except UnicodeDecodeError as exc:
            self.decode_errors += 1
            print(f"[TV][message_skip] reason={exc}", flush=True)
            return

        for frame in frames:
            if frame.kind == "heartbeat":
                self.send_raw(frame.text)
                continue
            try:
                self.dispatcher.dispatch(frame.text)
            except EventDecodeError as exc:
                self.decode_errors += 1
                print(f"[TV][message_skip] reason={exc}", flush=True)

    def send(self, request: TvRequest) -> bool:
        return self.send_raw(encode_request(request))

    def send_raw(self, message: str) -> bool:
        conn = self._conn
        if conn is None:
            print(f"[TV][send_error] error=not connected message={message}", flush=True)
            return False

        with self._send_lock:
            try:
                conn.send(message)
            except Exception as exc:
                self.last_error = str(exc)
                print(f"[TV][send_error] error={self.last_error}", flush=True)
                return False
        return True

    def _send_watch(self, symbol: str) -> None:
        for request in build_watch_requests(self.session_id, symbol):
            self.send(request)
        print(f"[TV][ws_subscribe] symbol={symbol}", flush=True)

    def watch(self, symbol: str) -> bool:
        """Track ``symbol``; subscribes on the wire now if connected, else on connect.

        Returns False when the symbol was already tracked.
        """
        with self._watch_lock:
            if not self.watch_registry.add(symbol):
                return False
            if self.is_connected:
                self._send_watch(symbol)
        return True

    def update(self, symbol: str, quote: Quote) -> None:
        """Commit ``quote`` for ``symbol`` and notify subscribers, exactly as a wire update would."""
        self.watch_registry.commit(symbol, quote)
        self.notifications.notify(symbol, quote)

    def get_last_quote(self, symbol: str) -> tuple[Quote, bool]:
        return self.watch_registry.get(symbol)

    def get_quote(self, symbol: str, callback: Callable[[Quote], None]) -> None:
        quote, found = self.watch_registry.get(symbol)
        if found:
            callback(quote)
            return

        # must precede watch()
        self.notifications.add(symbol, callback, one_shot=True)
        self.watch(symbol)

    def on_update(self, symbol: str, callback: UpdateCallback) -> Subscription:
        """Call ``callback`` on every update for ``symbol`` until it returns True."""
        subscription = self.notifications.add(symbol, callback)
        self.watch(symbol)
        return subscription

    def status(self) -> ClientStatus:
        return ClientStatus(
            connected=self.is_connected,
            session_id=self.session_id,
            watched_symbols=self.watch_registry.symbols(),
            pending_subscriptions=self.notifications.pending(),
            messages_received=self.messages_received,
            decode_errors=self.decode_errors,
            last_error=self.last_error,
        )
