from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tvstream.errors import QuoteMergeError


class Quote(BaseModel):
    """Last known quote for one symbol, keyed by TradingView field names on the wire."""

    model_config = ConfigDict(populate_by_name=True)

    symbol: str = Field(default="", alias="short_name")
    full_name: str = Field(default="", alias="description")
    currency_code: str = ""
    is_tradable: bool = False
    exchange: str = Field(default="", alias="listed_exchange")
    original_name: str = ""
    pro_name: str = ""
    current_session: str = ""
    last_price: float = Field(default=0.0, alias="lp")
    change: float = Field(default=0.0, alias="ch")
    change_percentage: float = Field(default=0.0, alias="chp")
    live_price: float = Field(default=0.0, alias="rtc")
    live_change: float = Field(default=0.0, alias="rch")
    live_change_percentage: float = Field(default=0.0, alias="rchp")


def merge_quote(base: Quote, payload: Any) -> Quote:
    """Return ``base`` with the fields present in ``payload`` replaced.

    Absent and null fields keep their previous value. ``base`` itself is never
    modified, so a payload that fails validation leaves the cached quote intact.
    """
    if payload is None:
        return base
    if not isinstance(payload, dict):
        raise QuoteMergeError(f"quote payload must be an object, got {type(payload).__name__}")

    present = {key: value for key, value in payload.items() if value is not None}
    try:
        patch = Quote.model_validate(present)
    except ValidationError as exc:
        raise QuoteMergeError(f"invalid quote payload: {exc.errors()[0]['msg']}") from exc

    return base.model_copy(update={name: getattr(patch, name) for name in patch.model_fields_set})
