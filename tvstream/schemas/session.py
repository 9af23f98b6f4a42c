from pydantic import BaseModel


class ClientStatus(BaseModel):
    connected: bool
    session_id: str | None = None
    watched_symbols: list[str]
    pending_subscriptions: int
    messages_received: int
    decode_errors: int
    last_error: str | None = None
