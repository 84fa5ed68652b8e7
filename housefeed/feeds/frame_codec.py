"""
Frame codec for the predictor socket protocol.

The upstream speaks Engine.IO v3 with Socket.IO packets on top, over a
plain WebSocket. Each WebSocket text message is one frame; the leading
digit(s) select the frame type:

    0{...}          session open (JSON handshake payload)
    2 / 2probe      ping
    3 / 3probe      pong (3probe acknowledges our probe)
    5               upgrade
    40 / 41         namespace open / close
    42[...]         event: ["<house>", [v1, v2, ...]]

parse_frame() never raises. Frames it cannot make sense of come back as
UnknownFrame; the feed sends event types we do not care about and those
must not disturb the session.
"""

import logging
from numbers import Real
from typing import Any, Optional, Union

import orjson

from ..errors import FrameDecodeError
from ..types import (
    Frame,
    OpenFrame,
    NamespaceOpenFrame,
    NamespaceCloseFrame,
    ProbeFrame,
    PingFrame,
    PongFrame,
    UpgradeFrame,
    DataFrame,
    UnknownFrame,
)

logger = logging.getLogger(__name__)

PROBE = "probe"

# Engine.IO packet types
EIO_OPEN = "0"
EIO_PING = "2"
EIO_PONG = "3"
EIO_MESSAGE = "4"
EIO_UPGRADE = "5"

# Socket.IO packet types (inside an Engine.IO message)
SIO_CONNECT = "0"
SIO_DISCONNECT = "1"
SIO_EVENT = "2"


def parse_frame(raw: Union[str, bytes]) -> Frame:
    """
    Decode one inbound frame.

    Args:
        raw: WebSocket message as received (text or UTF-8 bytes)

    Returns:
        The decoded frame; UnknownFrame if it does not decode
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            text = bytes(raw).decode("utf-8")
        except UnicodeDecodeError:
            return UnknownFrame(raw=repr(raw[:40]), reason="not utf-8")
    else:
        text = raw

    if not text:
        return UnknownFrame(raw=text, reason="empty")

    try:
        return _parse_text(text)
    except FrameDecodeError as e:
        logger.debug(f"Dropping frame {text[:60]!r}: {e}")
        return UnknownFrame(raw=text, reason=str(e))


def _parse_text(text: str) -> Frame:
    kind, body = text[0], text[1:]

    if kind == EIO_OPEN:
        return _parse_open(body)
    if kind == EIO_PING:
        return PingFrame(payload=body)
    if kind == EIO_PONG:
        return ProbeFrame() if body == PROBE else PongFrame(payload=body)
    if kind == EIO_UPGRADE:
        return UpgradeFrame()
    if kind == EIO_MESSAGE:
        return _parse_message(body)

    raise FrameDecodeError(f"unhandled packet type {kind!r}")


def _parse_open(body: str) -> OpenFrame:
    """Open payload is informational; a malformed one still opens the session."""
    if not body:
        return OpenFrame()
    try:
        handshake = orjson.loads(body)
    except orjson.JSONDecodeError:
        return OpenFrame()
    if not isinstance(handshake, dict):
        return OpenFrame()

    return OpenFrame(
        sid=handshake.get("sid"),
        ping_interval_ms=_as_int(handshake.get("pingInterval")),
        ping_timeout_ms=_as_int(handshake.get("pingTimeout")),
    )


def _parse_message(body: str) -> Frame:
    if not body:
        raise FrameDecodeError("empty message")

    kind, rest = body[0], body[1:]
    namespace, rest = _split_namespace(rest)

    if kind == SIO_CONNECT:
        return NamespaceOpenFrame(namespace=namespace)
    if kind == SIO_DISCONNECT:
        return NamespaceCloseFrame(namespace=namespace)
    if kind == SIO_EVENT:
        return _parse_event(rest.lstrip("0123456789"))

    raise FrameDecodeError(f"unhandled message type {kind!r}")


def _split_namespace(rest: str) -> tuple[str, str]:
    """Split an optional "/ns," prefix off a Socket.IO packet body."""
    if not rest.startswith("/"):
        return "/", rest
    namespace, sep, remainder = rest.partition(",")
    return namespace, remainder if sep else ""


def _parse_event(payload: str) -> DataFrame:
    try:
        parsed = orjson.loads(payload)
    except orjson.JSONDecodeError as e:
        raise FrameDecodeError(f"event payload is not JSON: {e}") from e

    if not isinstance(parsed, list) or len(parsed) != 2:
        raise FrameDecodeError("event payload is not a 2-element array")

    source, values = parsed
    if not isinstance(source, str):
        raise FrameDecodeError("event name is not a string")
    if not isinstance(values, list):
        raise FrameDecodeError("event values are not an array")
    if not all(_is_number(v) for v in values):
        raise FrameDecodeError("event values are not all numbers")

    return DataFrame(source=source, values=tuple(float(v) for v in values))


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _as_int(value: Any) -> Optional[int]:
    return int(value) if _is_number(value) else None


def encode_probe() -> str:
    """Probe sent right after the transport opens."""
    return EIO_PING + PROBE


def encode_upgrade() -> str:
    """Upgrade confirmation, sent once the probe is acknowledged."""
    return EIO_UPGRADE


def encode_ping() -> str:
    """Client heartbeat."""
    return EIO_PING


def encode_pong(payload: str = "") -> str:
    """Reply to a server ping, echoing its payload."""
    return EIO_PONG + payload
