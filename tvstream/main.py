from __future__ import annotations

import threading
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tvstream.api.routes import router
from tvstream.config.settings import get_settings
from tvstream.integrations.tv_ws import TradingViewClient


@asynccontextmanager
async def lifespan(app: FastAPI):
    client = app.state.tv_client
    for symbol in app.state.get_settings().TV_WS_SYMBOLS:
        # sent on the wire once the bootstrap completes
        client.watch(symbol)

    ws_worker = threading.Thread(
        target=client.run_forever,
        daemon=True,
        name='tv-ws-reader',
    )
    app.state.ws_worker_thread = ws_worker
    print("[TV][ws_worker_start] thread=tv-ws-reader", flush=True)
    ws_worker.start()

    try:
        yield
    finally:
        client.close()
        ws_worker.join(timeout=1.0)
        print("[TV][ws_worker_stop] thread=tv-ws-reader", flush=True)


app = FastAPI(title="TradingView Quote Stream", version="0.1.0", lifespan=lifespan)
app.include_router(router, prefix="/v1")

app.state.get_settings = get_settings
app.state.tv_client = TradingViewClient.from_settings(get_settings())
