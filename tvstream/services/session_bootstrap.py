from __future__ import annotations

import random
import string

from tvstream.schemas.protocol import TvRequest

UNAUTHORIZED_USER_TOKEN = "unauthorized_user_token"
SESSION_ID_PREFIX = "qs_"
SESSION_ID_LENGTH = 12
_SESSION_ID_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits

QUOTE_FIELDS = (
    "listed_exchange",
    "ch",
    "chp",
    "rtc",
    "rch",
    "rchp",
    "lp",
    "is_tradable",
    "short_name",
    "description",
    "currency_code",
    "current_session",
    "status",
    "type",
    "update_mode",
    "fundamentals",
    "pro_name",
    "original_name",
)


def create_session_id(
    prefix: str = SESSION_ID_PREFIX,
    length: int = SESSION_ID_LENGTH,
    rng: random.Random | None = None,
) -> str:
    """Random quote-session id, e.g. ``qs_aZ09bY18cX27``. Not cryptographic."""
    source = rng or random
    return prefix + "".join(source.choices(_SESSION_ID_ALPHABET, k=length))


def build_bootstrap_requests(
    session_id: str,
    *,
    data_quality: str = "low",
    auth_token: str = UNAUTHORIZED_USER_TOKEN,
) -> list[TvRequest]:
    return [
        TvRequest(method="set_data_quality", params=[data_quality]),
        TvRequest(method="set_auth_token", params=[auth_token]),
        TvRequest(method="quote_create_session", params=[session_id]),
        TvRequest(method="quote_set_fields", params=[session_id, *QUOTE_FIELDS]),
    ]


def build_watch_requests(session_id: str, symbol: str) -> list[TvRequest]:
    return [
        TvRequest(
            method="quote_add_symbols",
            params=[session_id, symbol, {"flags": ["force_permission"]}],
        ),
        TvRequest(method="quote_fast_symbols", params=[session_id, symbol]),
    ]
