"""ZMQ multipart framing for mbus messages.

Publish (PUB/SUB)
    topic_with_trailing_nul, version, type, payload_json

Request (DEALER -> ROUTER; the ROUTER sees an identity frame first)
    version, id, service, request_type, response_type, payload_json

Reply (ROUTER -> DEALER; the ROUTER sends an identity frame first)
    version, id, result, response_type, payload_json
"""

from __future__ import annotations

from typing import NamedTuple, Sequence, Tuple

from .base import ProtocolError, version


# Topic names may legitimately contain dots or slashes; a NUL terminator
# keeps a subscription for '/a' from matching messages published on '/ab'.

_TERMINATOR = b'\0'

_TRUE = b'1'
_FALSE = b'0'


class Publication(NamedTuple):
    topic: str
    msg_type: str
    payload: bytes


class Call(NamedTuple):
    ident: bytes
    id: bytes
    service: str
    req_type: str
    rep_type: str
    payload: bytes


class Reply(NamedTuple):
    id: bytes
    result: bool
    rep_type: str
    payload: bytes


def topic_prefix(topic: str) -> bytes:
    """The subscription prefix matching exactly *topic*."""

    return topic.encode() + _TERMINATOR


def _check_version(theirs: bytes) -> None:
    if theirs != version:
        raise ProtocolError(f"message is mbus protocol {theirs!r}, recipient expects {version!r}")


def to_pub_frames(topic: str, msg_type: str, payload: bytes) -> Tuple[bytes, ...]:
    return (topic_prefix(topic), version, msg_type.encode(), payload)


def from_pub_frames(parts: Sequence[bytes]) -> Publication:
    if len(parts) != 4:
        raise ProtocolError(f"invalid PUB message with {len(parts)} parts")

    topic = parts[0]
    if topic.endswith(_TERMINATOR):
        topic = topic[:-1]

    _check_version(parts[1])
    return Publication(topic.decode(), parts[2].decode(), parts[3])


def to_request_frames(id: bytes, service: str, req_type: str, rep_type: str, payload: bytes) -> Tuple[bytes, ...]:
    return (version, id, service.encode(), req_type.encode(), rep_type.encode(), payload)


def from_request_frames(parts: Sequence[bytes]) -> Call:
    """Decode the parts received on a ROUTER socket, identity frame first."""

    if len(parts) != 7:
        raise ProtocolError(f"invalid request with {len(parts)} parts")

    _check_version(parts[1])
    ident = parts[0]
    service = parts[3].decode()
    req_type = parts[4].decode()
    rep_type = parts[5].decode()
    return Call(ident, parts[2], service, req_type, rep_type, parts[6])


def to_reply_frames(ident: bytes, id: bytes, result: bool, rep_type: str, payload: bytes) -> Tuple[bytes, ...]:
    flag = _TRUE if result else _FALSE
    return (ident, version, id, flag, rep_type.encode(), payload)


def from_reply_frames(parts: Sequence[bytes]) -> Reply:
    """Decode the parts received on a DEALER socket."""

    if len(parts) != 5:
        raise ProtocolError(f"invalid reply with {len(parts)} parts")

    _check_version(parts[0])
    result = parts[2] == _TRUE
    return Reply(parts[1], result, parts[3].decode(), parts[4])
