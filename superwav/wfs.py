"""Wave field synthesis: per-speaker gains and delays, and block mixing."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from .config import ClientSound, ClientSpeakers
from .wavio import open_wav_convert32

SPEED_OF_SOUND = 343
PI = 3.141592
SAMPLE_RATE = 44100
LAND = -1  # the source lies outside the speaker array


@dataclass
class WFS:
    """Per-speaker synthesis values for one virtual source position."""

    parray: list[int]
    pos: list[int]
    tn: list[float]
    an: list[float]


@dataclass
class SoundBank:
    """Loaded sounds as 32-bit sample values, one list per sound."""

    samples: list[list[int]]

    @property
    def lengths(self) -> list[int]:
        """Number of sample slots read for each sound."""
        return [len(song) for song in self.samples]


def wave_field_synthesis(speakers: ClientSpeakers, x: float, y: float) -> WFS:
    """Compute which speakers face the source at (x, y), with gain and delay."""
    result = WFS(parray=[], pos=[], tn=[], an=[])
    for index, ((px, py), angle) in enumerate(zip(speakers.positions, speakers.angles)):
        dx = px - x
        dy = py - y
        alfa = math.atan2(dy, dx) * 180 / PI
        if angle - 90 <= alfa <= angle + 90:
            result.pos.append(index)
            result.parray.append(1)
        else:
            result.pos.append(-1)
            result.parray.append(0)
        r = math.sqrt(dx * dx + dy * dy)
        result.an.append(1 / math.sqrt(r) if r > 0 else math.inf)
        result.tn.append(-LAND * (SAMPLE_RATE * (r / SPEED_OF_SOUND)))
    return result


def sound_paths(sound: ClientSound) -> list[str]:
    """Paths of the configured sounds, one per sound slot."""
    return list(sound.sounds_list[: sound.sounds_number])


def load_sounds(sound: ClientSound) -> SoundBank:
    """Read every configured sound file into a SoundBank."""
    return SoundBank([open_wav_convert32(path) for path in sound_paths(sound)])


def generate_song_wfs(
    index: int,
    bank: SoundBank,
    song_number: int,
    buffer_size: int,
    values: WFS,
    channels: int,
) -> list[list[int]]:
    """Render block *index* of one sound for each channel, delayed and scaled."""
    song = bank.samples[song_number]
    start = index * buffer_size
    blocks: list[list[int]] = []
    for channel in range(channels):
        active = values.parray[channel] == 1
        gain = values.an[channel]
        row = [0] * buffer_size
        if active:
            delay = math.ceil(values.tn[channel])
            end = delay + len(song)
            for offset in range(buffer_size):
                position = start + offset
                if delay <= position < end:
                    sample = song[position - delay]
                    if sample:
                        row[offset] = int(gain * sample)
        blocks.append(row)
    return blocks


def add_to_buffer(
    total: Sequence[Sequence[int]], addition: Sequence[Sequence[int]]
) -> list[list[int]]:
    """Channel-wise sum of two equally shaped blocks."""
    if len(total) != len(addition) or any(len(a) != len(b) for a, b in zip(total, addition)):
        raise ValueError("buffers must have the same number of channels and samples")
    return [[a + b for a, b in zip(row, extra)] for row, extra in zip(total, addition)]


def max_delay(wfs_vector: Sequence[WFS]) -> int:
    """Largest speaker delay over all sounds, rounded up to whole samples."""
    delays = [delay for values in wfs_vector for delay in values.tn]
    if not delays:
        raise ValueError("no delays to compare")
    return math.ceil(max(delays))