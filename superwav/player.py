"""Block-wise rendering of the synthesised sound field to an output sink."""

from __future__ import annotations

import logging
import struct
import threading
import time
import wave
from dataclasses import dataclass, field
from typing import Protocol, Sequence

from .config import ClientCard, ClientSound, ClientSpeakers
from .convolution import OverlapAdd
from .wfs import WFS, SoundBank, add_to_buffer, generate_song_wfs, max_delay, wave_field_synthesis

log = logging.getLogger(__name__)

# The song length in blocks is measured in units of this many samples.
BLOCK_DIVISOR = 512

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

FILTER: tuple[float, ...] = (
    -0.00661109583724264, -0.00650043529566125, -0.00632930310706349, -0.00617482490003971,
    -0.00602953993132536, -0.00598452022424796, -0.00604361199320415, -0.00630563700873370,
    -0.00677794258748761, -0.00755797763617839, -0.00864652310346542, -0.0101290944464563,
    -0.0119893471647713, -0.0142908353440042, -0.0169911140198601, -0.0201243563895989,
    -0.0236165930309936, -0.0274695564585432, -0.0315773165621993, -0.0359115018748141,
    -0.0403393430824099, -0.0448101568406542, -0.0491745430350945, -0.0533717619323007,
    -0.0572496004201327, -0.0607520798261281, -0.0637393605766290, -0.0661751281673016,
    -0.0679458772409232, -0.0690473584402903, 2.29712671743954, -0.0690473584402903,
    -0.0679458772409232, -0.0661751281673016, -0.0637393605766290, -0.0607520798261281,
    -0.0572496004201327, -0.0533717619323007, -0.0491745430350945, -0.0448101568406542,
    -0.0403393430824099, -0.0359115018748141, -0.0315773165621993, -0.0274695564585432,
    -0.0236165930309936, -0.0201243563895989, -0.0169911140198601, -0.0142908353440042,
    -0.0119893471647713, -0.0101290944464563, -0.00864652310346542, -0.00755797763617839,
    -0.00677794258748761, -0.00630563700873370, -0.00604361199320415, -0.00598452022424796,
    -0.00602953993132536, -0.00617482490003971, -0.00632930310706349, -0.00650043529566125,
    -0.00661109583724264, 0.0, 0.0, 0.0,
)


class Sink(Protocol):
    """Anything that accepts blocks of per-channel samples."""

    def write(self, channels: Sequence[Sequence[int]]) -> None: ...

    def close(self) -> None: ...


def _check_block(channels: Sequence[Sequence[int]], expected: int | None) -> None:
    if expected is not None and len(channels) != expected:
        raise ValueError(f"expected {expected} channels, got {len(channels)}")
    if len({len(row) for row in channels}) > 1:
        raise ValueError("all channels of a block must hold the same number of samples")


class WaveFileSink:
    """Writes blocks as 32-bit little-endian PCM frames to a WAV file."""

    def __init__(self, path, frame_rate: int, channels: int) -> None:
        if channels < 1:
            raise ValueError(f"channel count must be positive, got {channels}")
        self.path = path
        self.frame_rate = frame_rate
        self.channels = channels
        self._file = wave.open(str(path), "wb")
        self._file.setnchannels(channels)
        self._file.setsampwidth(4)
        self._file.setframerate(frame_rate)
        self._closed = False

    def write(self, channels: Sequence[Sequence[int]]) -> None:
        """Interleave one block of channel rows and append it to the file."""
        if self._closed:
            raise ValueError("write to a closed sink")
        _check_block(channels, self.channels)
        frames = bytearray()
        for frame in zip(*channels):
            clamped = [min(max(int(v), INT32_MIN), INT32_MAX) for v in frame]
            frames += struct.pack(f"<{len(clamped)}i", *clamped)
        self._file.writeframes(bytes(frames))

    def close(self) -> None:
        """Finish the WAV header and close the file."""
        if not self._closed:
            self._closed = True
            self._file.close()

    def __enter__(self) -> "WaveFileSink":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


@dataclass
class MemorySink:
    """Keeps every written block in memory."""

    blocks: list[list[list[int]]] = field(default_factory=list)
    closed: bool = False

    def write(self, channels: Sequence[Sequence[int]]) -> None:
        """Store a copy of one block."""
        if self.closed:
            raise ValueError("write to a closed sink")
        expected = len(self.blocks[0]) if self.blocks else None
        _check_block(channels, expected)
        self.blocks.append([list(row) for row in channels])

    def close(self) -> None:
        """Mark the sink as closed."""
        self.closed = True

    @property
    def samples(self) -> list[list[int]]:
        """All written samples, concatenated per channel."""
        if not self.blocks:
            return []
        return [
            [value for block in self.blocks for value in block[channel]]
            for channel in range(len(self.blocks[0]))
        ]


@dataclass
class Player:
    """State shared between the renderer and the control connection."""

    card: ClientCard
    sound: ClientSound
    speakers: ClientSpeakers
    bank: SoundBank
    wfs_vector: list[WFS]
    song_positions: list[tuple[float, float]]
    time_to_start: int = 0
    time_to_start_seconds: int = 0
    client_pos: tuple[float, float] = (0.0, 0.0)
    block_index: int = 0
    finished: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def set_song_position(self, song: int, x: float, y: float) -> None:
        """Move one sound (or every sound when *song* is -1) to (x, y)."""
        if song == -1:
            targets = range(self.sound.sounds_number)
        elif 0 <= song < self.sound.sounds_number:
            targets = range(song, song + 1)
        else:
            raise IndexError(
                f"Sound {song} does not exist. Maximum number of sounds: "
                f"{self.sound.sounds_number}"
            )
        for index in targets:
            values = wave_field_synthesis(self.speakers, x, y)
            with self.lock:
                self.song_positions[index] = (x, y)
                self.wfs_vector[index] = values

    def total_blocks(self) -> int:
        """Number of blocks needed to play the longest sound with its delay."""
        lengths = self.bank.lengths
        if not lengths:
            raise ValueError("no sounds loaded")
        return (max(lengths) + max_delay(self.wfs_vector)) // BLOCK_DIVISOR


def play(player: Player, sink: Sink) -> int:
    """Render the player's sounds block by block into *sink*; return blocks written."""
    buffer_size = player.card.buffer
    channels = player.speakers.channels_number
    filters = [OverlapAdd(FILTER, buffer_size, unrolled=True) for _ in range(channels)]
    total = player.total_blocks()
    log.debug("playing %d blocks of %d samples", total, buffer_size)

    started = time.monotonic()
    written = 0
    try:
        while player.block_index < total:
            mix = [[0] * buffer_size for _ in range(channels)]
            with player.lock:
                for song in range(player.sound.sounds_number):
                    block = generate_song_wfs(
                        player.block_index,
                        player.bank,
                        song,
                        buffer_size,
                        player.wfs_vector[song],
                        channels,
                    )
                    mix = add_to_buffer(mix, block)
            mix = [stage.process_int(row) for stage, row in zip(filters, mix)]
            with player.lock:
                sink.write(mix)
            written += 1
            player.block_index += 1
            if player.finished:
                break
        with player.lock:
            player.finished = True
    finally:
        sink.close()
    log.debug("played for %.3f ms", (time.monotonic() - started) * 1000.0)
    return written


def _now_ms() -> int:
    return int(time.time() * 1000)


def play_when_ready(player: Player, sink: Sink) -> int:
    """Wait until the player's start timestamp (ms) and then play."""
    remaining = player.time_to_start - _now_ms()
    while remaining > 0:
        time.sleep(remaining / 1000.0)
        remaining = player.time_to_start - _now_ms()
    return play(player, sink)