"""Parsing of the comma separated key:value control messages."""

from __future__ import annotations

import re
from dataclasses import dataclass

_INT_RE = re.compile(r"\s*([+-]?\d+)")
_FLOAT_RE = re.compile(
    r"\s*([+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)


@dataclass
class Message:
    """Fields that a server message may carry."""

    action: str = ""
    identification: int = 0
    start_time: int = 0
    client_pos_x: float = 0.0
    client_pos_y: float = 0.0
    song: int = 0
    song_pos_x: float = 0.0
    song_pos_y: float = 0.0


def split_tokens(text: str, delimiters: str) -> list[str]:
    """Split on any of *delimiters*, dropping empty tokens."""
    if not delimiters:
        return [text] if text else []
    pattern = "[" + re.escape(delimiters) + "]"
    return [token for token in re.split(pattern, text) if token]


def _to_int(text: str) -> int:
    match = _INT_RE.match(text)
    return int(match.group(1)) if match else 0


def _to_float(text: str) -> float:
    match = _FLOAT_RE.match(text)
    return float(match.group(1)) if match else 0.0


_FIELDS = {
    "Action": ("action", str),
    "ID": ("identification", _to_int),
    "StartTime": ("start_time", _to_int),
    "ClientPosX": ("client_pos_x", _to_float),
    "ClientPosY": ("client_pos_y", _to_float),
    "Song": ("song", _to_int),
    "SongPosX": ("song_pos_x", _to_float),
    "SongPosY": ("song_pos_y", _to_float),
}


def parse_message(text: str | bytes) -> Message:
    """Build a Message from text such as ``Action:start,StartTime:...``."""
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode("latin-1")
    text = text.split("\0", 1)[0]

    message = Message()
    for token in split_tokens(text, ","):
        parts = split_tokens(token, ":")
        if len(parts) < 2:
            continue
        key, value = parts[0], parts[1]
        field = _FIELDS.get(key)
        if field is not None:
            name, convert = field
            setattr(message, name, convert(value))
    return message