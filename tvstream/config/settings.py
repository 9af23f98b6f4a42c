import os
from functools import lru_cache

from pydantic import BaseModel


class Settings(BaseModel):
    TV_WS_URL: str = "wss://data.tradingview.com/socket.io/websocket"
    TV_WS_ORIGIN: str = "https://data.tradingview.com/"
    TV_WS_SYMBOLS: list[str] = []
    TV_WS_VERIFY_TLS: bool = False
    TV_DATA_QUALITY: str = "low"
    TV_AUTH_TOKEN: str = "unauthorized_user_token"

    @classmethod
    def from_env(cls) -> "Settings":
        raw_ws_symbols = os.getenv("TV_WS_SYMBOLS", "")
        ws_symbols = [s.strip() for s in raw_ws_symbols.split(",") if s.strip()]

        values = {
            key: os.getenv(key)
            for key in ("TV_WS_URL", "TV_WS_ORIGIN", "TV_WS_VERIFY_TLS", "TV_DATA_QUALITY", "TV_AUTH_TOKEN")
            if os.getenv(key) is not None
        }
        values["TV_WS_SYMBOLS"] = ws_symbols
        return cls.model_validate(values)


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
