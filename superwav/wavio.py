"""Reading raw 16-bit WAV data and repacking it into 32-bit frames."""

from __future__ import annotations

import os
import struct

HEADER_SIZE = 44


def read_pcm(path: str | os.PathLike) -> bytes:
    """Return the bytes after the fixed 44-byte header of a WAV file."""
    with open(path, "rb") as handle:
        content = handle.read()
    if len(content) < HEADER_SIZE:
        raise ValueError(f"{os.fspath(path)!r} is shorter than a WAV header")
    return content[HEADER_SIZE:]


def _even(data: bytes) -> bytes:
    return data + b"\0" if len(data) % 2 else data


def open_wav_convert32(path: str | os.PathLike) -> list[int]:
    """Read 16-bit samples as 32-bit values with the sample in the high half.

    The list holds one entry per data byte read; entries past the last sample
    are silence.
    """
    data = read_pcm(path)
    samples = [value << 16 for (value,) in struct.iter_unpack("<h", _even(data))]
    return samples + [0] * (len(data) - len(samples))


def new_wav_16(path: str | os.PathLike) -> bytes:
    """Duplicate each 16-bit sample into a stereo frame.

    The result is four bytes per data byte read, zero past the last frame.
    """
    data = _even(read_pcm(path))
    size = len(read_pcm(path))
    out = bytearray(4 * size)
    for index in range(0, len(data), 2):
        pair = data[index : index + 2]
        out[2 * index : 2 * index + 4] = pair + pair
    return bytes(out)


def new_wav_2ch(left_path: str | os.PathLike, right_path: str | os.PathLike) -> bytes:
    """Interleave two files into stereo frames, right sample first.

    The length follows the shorter file; the result is four bytes per byte
    of that length, zero past the last frame.
    """
    left = read_pcm(left_path)
    right = read_pcm(right_path)
    size = min(len(left), len(right))
    left_data = _even(left[: size + size % 2])
    right_data = _even(right[: size + size % 2])
    out = bytearray(4 * size)
    for index in range(0, size, 2):
        out[2 * index : 2 * index + 2] = right_data[index : index + 2]
        out[2 * index + 2 : 2 * index + 4] = left_data[index : index + 2]
    return bytes(out)