"""Client configuration in the libconfig text format."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator


class ConfigError(Exception):
    """Raised when a configuration cannot be read or lacks a setting."""

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        super().__init__(message if line is None else f"line {line}: {message}")


@dataclass
class ClientCard:
    """Sound card settings."""

    pcm_name: str
    frame_rate: int
    pcm_buffer_size: int
    pcm_period_size: int

    @property
    def buffer(self) -> int:
        """Samples per processing block: a quarter of the PCM buffer size."""
        return int(self.pcm_buffer_size / 4)


@dataclass
class ClientSound:
    """The sound files to play, one path per sound slot."""

    sound_folder: str
    word_length: int
    sounds_number: int
    sounds_list: list[str] = field(default_factory=list)


@dataclass
class ClientSpeakers:
    """Speaker layout: positions in metres and facing angles in degrees."""

    speakers_number: int
    channels_number: int
    positions: list[tuple[float, float]]
    angles: list[float]

    def __post_init__(self) -> None:
        if len(self.positions) != self.speakers_number or len(self.angles) != self.speakers_number:
            raise ValueError(
                f"expected {self.speakers_number} speaker positions and angles, "
                f"got {len(self.positions)} and {len(self.angles)}"
            )


@dataclass
class ClientConfig:
    """Everything the client reads from its configuration file."""

    card: ClientCard
    sound: ClientSound
    speakers: ClientSpeakers
    time_to_start: int


_TOKEN_RE = re.compile(
    r"""
     (?P<ws>[ \t\r\n\f]+)
    |(?P<comment>\#[^\n]*|//[^\n]*|/\*.*?\*/)
    |(?P<string>"(?:[^"\\]|\\.)*")
    |(?P<float>[-+]?(?:\d+\.\d*|\.\d+)(?:[eE][-+]?\d+)?|[-+]?\d+[eE][-+]?\d+)
    |(?P<int>[-+]?0[xX][0-9A-Fa-f]+L{0,2}|[-+]?\d+L{0,2})
    |(?P<bool>(?i:true|false))(?![-\w*])
    |(?P<name>[A-Za-z*][-A-Za-z0-9_*]*)
    |(?P<punct>[=:;,{}()\[\]])
    """,
    re.VERBOSE | re.DOTALL,
)

_ESCAPE_RE = re.compile(r"\\(x[0-9A-Fa-f]{2}|.)", re.DOTALL)
_ESCAPES = {"\\": "\\", '"': '"', "n": "\n", "r": "\r", "t": "\t", "f": "\f"}


@dataclass(frozen=True)
class _Token:
    kind: str
    text: str
    line: int


def _tokenize(text: str) -> Iterator[_Token]:
    line = 1
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise ConfigError(f"syntax error near {text[pos:pos + 10]!r}", line)
        kind = match.lastgroup or ""
        if kind not in ("ws", "comment"):
            yield _Token(kind, match.group(kind), line)
        line += match.group(0).count("\n")
        pos = match.end()
    yield _Token("eof", "", line)


def _unescape(body: str) -> str:
    def replace(match: re.Match[str]) -> str:
        code = match.group(1)
        if code[0] == "x" and len(code) == 3:
            return chr(int(code[1:], 16))
        return _ESCAPES.get(code, code)

    return _ESCAPE_RE.sub(replace, body)


class _Parser:
    def __init__(self, text: str) -> None:
        self._tokens = list(_tokenize(text))
        self._index = 0

    def _peek(self) -> _Token:
        return self._tokens[self._index]

    def _advance(self) -> _Token:
        token = self._tokens[self._index]
        if token.kind != "eof":
            self._index += 1
        return token

    @staticmethod
    def _is_punct(token: _Token, text: str) -> bool:
        return token.kind == "punct" and token.text == text

    def document(self) -> dict[str, Any]:
        return self._settings(None)

    def _settings(self, closing: str | None) -> dict[str, Any]:
        group: dict[str, Any] = {}
        while True:
            token = self._peek()
            if closing is None and token.kind == "eof":
                return group
            if closing is not None and self._is_punct(token, closing):
                self._advance()
                return group
            if token.kind == "eof":
                raise ConfigError("unexpected end of file", token.line)
            name = self._advance()
            if name.kind != "name":
                raise ConfigError(f"expected a setting name, found {name.text!r}", name.line)
            separator = self._advance()
            if not (self._is_punct(separator, "=") or self._is_punct(separator, ":")):
                raise ConfigError(f"expected '=' or ':' after {name.text!r}", separator.line)
            if name.text in group:
                raise ConfigError(f"duplicate setting name {name.text!r}", name.line)
            group[name.text] = self._value()
            following = self._peek()
            if self._is_punct(following, ";") or self._is_punct(following, ","):
                self._advance()

    def _value(self) -> Any:
        token = self._advance()
        if token.kind == "punct":
            if token.text == "{":
                return self._settings("}")
            if token.text == "(":
                return self._sequence(")", scalars_only=False)
            if token.text == "[":
                return self._sequence("]", scalars_only=True)
        return self._scalar(token)

    def _sequence(self, closing: str, scalars_only: bool) -> list[Any]:
        items: list[Any] = []
        if self._is_punct(self._peek(), closing):
            self._advance()
            return items
        while True:
            items.append(self._scalar(self._advance()) if scalars_only else self._value())
            token = self._advance()
            if self._is_punct(token, closing):
                break
            if not self._is_punct(token, ","):
                raise ConfigError(f"expected ',' or {closing!r}, found {token.text!r}", token.line)
        if scalars_only and len({type(item) for item in items}) > 1:
            raise ConfigError("mismatched element types in array", token.line)
        return items

    def _scalar(self, token: _Token) -> Any:
        if token.kind == "string":
            parts = [_unescape(token.text[1:-1])]
            while self._peek().kind == "string":
                parts.append(_unescape(self._advance().text[1:-1]))
            return "".join(parts)
        if token.kind == "int":
            digits = token.text.rstrip("L")
            return int(digits, 16) if "x" in digits.lower() else int(digits, 10)
        if token.kind == "float":
            return float(token.text)
        if token.kind == "bool":
            return token.text.lower() == "true"
        if token.kind == "eof":
            raise ConfigError("unexpected end of file", token.line)
        raise ConfigError(f"unexpected {token.text!r}", token.line)


def parse_libconfig(text: str) -> dict[str, Any]:
    """Parse libconfig text into nested dicts (groups) and lists."""
    return _Parser(text).document()


def _lookup(cfg: dict[str, Any], path: str) -> Any:
    node: Any = cfg
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def _int_field(group: dict[str, Any], name: str, missing: str) -> int:
    value = group.get(name)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(missing)
    return value


def _float_field(group: dict[str, Any], name: str, missing: str) -> float:
    value = group.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(missing)
    return float(value)


def _str_field(group: dict[str, Any], name: str, missing: str) -> str:
    value = group.get(name)
    if not isinstance(value, str):
        raise ConfigError(missing)
    return value


def card_from_config(cfg: dict[str, Any]) -> ClientCard:
    """Read the ``client.card`` group."""
    missing = "Missing config Client Card!"
    card = _lookup(cfg, "client.card")
    if not isinstance(card, dict):
        raise ConfigError(missing)
    return ClientCard(
        pcm_name=_str_field(card, "pcm_name", missing),
        frame_rate=_int_field(card, "frame_Rate", missing),
        pcm_buffer_size=_int_field(card, "pcm_buffer_size", missing),
        pcm_period_size=_int_field(card, "pcm_period_size", missing),
    )


def sound_from_config(cfg: dict[str, Any]) -> ClientSound:
    """Read the ``client.sound`` group and build the list of sound paths."""
    missing = "Missing config Client Sound!"
    sound = _lookup(cfg, "client.sound")
    if not isinstance(sound, dict):
        raise ConfigError(missing)
    folder = _str_field(sound, "sound_folder", missing)
    word_length = _int_field(sound, "word_length", missing)
    sounds_number = _int_field(sound, "sounds_number", missing)
    if sounds_number < 0 or word_length < 1:
        raise ConfigError("sounds_number and word_length must be positive")

    entries = sound.get("sounds_list")
    entries = entries if isinstance(entries, list) else []
    if len(entries) > sounds_number:
        raise ConfigError(
            f"sounds_list holds {len(entries)} entries, more than sounds_number {sounds_number}"
        )
    paths = [""] * sounds_number
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict) or not isinstance(entry.get("file_name"), str):
            continue
        path = folder + entry["file_name"]
        if len(path) >= word_length:
            raise ConfigError(f"sound path {path!r} does not fit word_length {word_length}")
        paths[index] = path
    return ClientSound(folder, word_length, sounds_number, paths)


def speakers_from_config(cfg: dict[str, Any]) -> ClientSpeakers:
    """Read the ``client.speakers`` group with its speaker positions."""
    missing = "Missing config Speakers!"
    speakers = _lookup(cfg, "client.speakers")
    if not isinstance(speakers, dict):
        raise ConfigError(missing)
    number = _int_field(speakers, "speakers_number", missing)
    channels = _int_field(speakers, "chanels_number", missing)

    entries = speakers.get("speakers_position")
    entries = entries if isinstance(entries, list) else []
    if len(entries) != number:
        raise ConfigError(
            f"speakers_position holds {len(entries)} entries, expected {number}"
        )
    positions: list[tuple[float, float]] = []
    angles: list[float] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ConfigError(missing)
        positions.append(
            (_float_field(entry, "posX", missing), _float_field(entry, "posY", missing))
        )
        angles.append(_float_field(entry, "angle", missing))
    return ClientSpeakers(number, channels, positions, angles)


def time_to_start_from_config(cfg: dict[str, Any]) -> int:
    """Read the top-level ``time_to_start`` setting, in seconds."""
    return _int_field(
        cfg, "time_to_start", "No 'time_to_start' setting in configuration file."
    )


def load_config(path: str | os.PathLike) -> ClientConfig:
    """Read and interpret a client configuration file."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"{os.fspath(path)}: file I/O error") from exc
    cfg = parse_libconfig(text)
    return ClientConfig(
        card=card_from_config(cfg),
        sound=sound_from_config(cfg),
        speakers=speakers_from_config(cfg),
        time_to_start=time_to_start_from_config(cfg),
    )