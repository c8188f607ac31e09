"""Direct and block (overlap-add) FIR convolution."""

from __future__ import annotations

from typing import Sequence

_UNROLL = 8


def next_pow2(value: int) -> int:
    """Smallest power of two that is at least *value*."""
    if value < 1:
        raise ValueError(f"value must be positive, got {value}")
    return 1 << (value - 1).bit_length()


def convolve(x: Sequence[float], h: Sequence[float]) -> list[float]:
    """Full linear convolution of *x* with *h*."""
    if not x or not h:
        return []
    y = [0.0] * (len(x) + len(h) - 1)
    for i, xi in enumerate(x):
        for j, hj in enumerate(h, start=i):
            y[j] += xi * hj
    return y


def convolve8(x: Sequence[float], h: Sequence[float]) -> list[float]:
    """Full convolution walking *h* in chunks of eight taps."""
    if len(h) % _UNROLL:
        raise ValueError(f"filter length must be a multiple of {_UNROLL}, got {len(h)}")
    if not x or not h:
        return []
    y = [0.0] * (len(x) + len(h) - 1)
    chunks = [(base, h[base : base + _UNROLL]) for base in range(0, len(h), _UNROLL)]
    for i, xi in enumerate(x):
        for base, chunk in chunks:
            products = [xi * hv for hv in chunk]
            for offset, value in enumerate(products, start=i + base):
                y[offset] += value
    return y


class OverlapAdd:
    """Streaming convolution that carries the filter tail between blocks."""

    def __init__(self, h: Sequence[float], block_size: int, unrolled: bool = False) -> None:
        self.h = [float(v) for v in h]
        self.block_size = block_size
        self.unrolled = unrolled
        if block_size < len(self.h):
            raise ValueError(
                f"H size ({len(self.h)}) must be smaller than X size ({block_size})"
            )
        if unrolled and len(self.h) % _UNROLL:
            raise ValueError(f"filter length must be a multiple of {_UNROLL}")
        self._buffer = [0.0] * (block_size + max(len(self.h) - 1, 0))

    def reset(self) -> None:
        """Forget the carried tail."""
        self._buffer = [0.0] * len(self._buffer)

    def process(self, block: Sequence[float]) -> list[float]:
        """Convolve one block and return *block_size* output samples."""
        if len(block) > self.block_size:
            raise ValueError(
                f"block holds {len(block)} samples, more than {self.block_size}"
            )
        padded = list(block) + [0.0] * (self.block_size - len(block))
        conv = convolve8(padded, self.h) if self.unrolled else convolve(padded, self.h)
        for index, value in enumerate(conv):
            self._buffer[index] += value
        output = self._buffer[: self.block_size]
        self._buffer = self._buffer[self.block_size :] + [0.0] * self.block_size
        return output

    def process_int(self, block: Sequence[float]) -> list[int]:
        """Like process, truncating each output sample towards zero."""
        return [int(v) for v in self.process(block)]