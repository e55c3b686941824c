"""Inline button payloads.

Telegram returns the ``callback_data`` string of a pressed button verbatim,
so every action and its target id travel inside that string:

    service_<topic>         user picks a support topic
    reply_<userId>          admin starts drafting a reply
    close_<userId>          admin closes the conversation
    rate_<1-5>_<userId>     user rates a closed conversation

Each shape is a small frozen dataclass with ``serialize()``;
``parse_callback_payload`` is the validating inverse. The platform caps
``callback_data`` at 64 bytes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from supportbot.core.errors import PayloadError

MAX_CALLBACK_DATA_BYTES = 64
MIN_RATING = 1
MAX_RATING = 5

_TOPIC_RE = re.compile(r"service_([a-z0-9]+)")
_REPLY_RE = re.compile(r"reply_([0-9]+)")
_CLOSE_RE = re.compile(r"close_([0-9]+)")
_RATE_RE = re.compile(r"rate_([0-9])_([0-9]+)")


@dataclass(frozen=True, slots=True)
class SelectTopic:
    topic: str

    def serialize(self) -> str:
        return _checked(f"service_{self.topic}")


@dataclass(frozen=True, slots=True)
class Reply:
    user_id: int

    def serialize(self) -> str:
        return _checked(f"reply_{self.user_id}")


@dataclass(frozen=True, slots=True)
class Close:
    user_id: int

    def serialize(self) -> str:
        return _checked(f"close_{self.user_id}")


@dataclass(frozen=True, slots=True)
class Rate:
    value: int
    user_id: int

    def serialize(self) -> str:
        if not MIN_RATING <= self.value <= MAX_RATING:
            raise PayloadError(f"rating out of range: {self.value}")
        return _checked(f"rate_{self.value}_{self.user_id}")


CallbackPayload = Union[SelectTopic, Reply, Close, Rate]


def parse_callback_payload(data: str | None) -> CallbackPayload:
    """Parse button data into a payload, raising PayloadError when malformed."""

    if not data:
        raise PayloadError("empty callback data")
    if len(data.encode("utf-8")) > MAX_CALLBACK_DATA_BYTES:
        raise PayloadError("callback data exceeds platform limit")

    if match := _TOPIC_RE.fullmatch(data):
        return SelectTopic(topic=match.group(1))
    if match := _REPLY_RE.fullmatch(data):
        return Reply(user_id=int(match.group(1)))
    if match := _CLOSE_RE.fullmatch(data):
        return Close(user_id=int(match.group(1)))
    if match := _RATE_RE.fullmatch(data):
        value = int(match.group(1))
        if not MIN_RATING <= value <= MAX_RATING:
            raise PayloadError(f"rating out of range: {value}")
        return Rate(value=value, user_id=int(match.group(2)))

    raise PayloadError(f"unrecognised callback data: {data!r}")


def _checked(data: str) -> str:
    if len(data.encode("utf-8")) > MAX_CALLBACK_DATA_BYTES:
        raise PayloadError("callback data exceeds platform limit")
    return data
