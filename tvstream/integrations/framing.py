from __future__ import annotations

import json
import re
from typing import Literal, NamedTuple

from tvstream.schemas.protocol import TvRequest

FRAME_HEADER = re.compile(r"~m~[0-9]+~m~")
_PING_PAYLOAD = re.compile(r"^~h~[0-9]+$")


class Frame(NamedTuple):
    kind: Literal["message", "heartbeat"]
    # message: the logical payload; heartbeat: the exact text to send back
    text: str


def encode_frame(payload: str) -> str:
    return f"~m~{len(payload.encode('utf-8'))}~m~{payload}"


def encode_request(request: TvRequest) -> str:
    message = json.dumps(request.to_wire(), separators=(",", ":"), ensure_ascii=False)
    return encode_frame(message)


def _payload_frame(payload: str) -> Frame:
    if _PING_PAYLOAD.match(payload):
        return Frame("heartbeat", encode_frame(payload))
    return Frame("message", payload)


def decode_frames(raw: str | bytes) -> list[Frame]:
    """Split one transport read into frames, in wire order.

    Length headers are used as delimiters only; their values are not checked.
    A header with nothing after it at the end of the read is a heartbeat token
    and is returned verbatim for echoing. Empty segments between headers are
    dropped.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")

    headers = list(FRAME_HEADER.finditer(raw))
    if not headers:
        return [_payload_frame(raw)] if raw else []

    frames: list[Frame] = []
    leading = raw[: headers[0].start()]
    if leading:
        frames.append(_payload_frame(leading))

    for index, header in enumerate(headers):
        is_last = index + 1 == len(headers)
        end = len(raw) if is_last else headers[index + 1].start()
        payload = raw[header.end() : end]
        if payload:
            frames.append(_payload_frame(payload))
        elif is_last:
            frames.append(Frame("heartbeat", header.group(0)))

    return frames
