"""Radix-2 Gentleman-Sande FFT on complex sequences."""

from __future__ import annotations

import math
from enum import IntEnum
from typing import Iterable, Sequence


class Sign(IntEnum):
    """Direction of the transform: the sign of the twiddle exponent."""

    FORWARD = 1
    REVERSE = -1


def _check_power_of_two(n: int) -> int:
    if n < 1 or n & (n - 1):
        raise ValueError(f"transform length must be a power of two, got {n}")
    return n.bit_length() - 1


def _bit_reverse(k: int, bits: int) -> int:
    if bits == 0:
        return 0
    return int(format(k, f"0{bits}b")[::-1], 2)


def fft_general(x: Iterable[complex], sign: Sign) -> list[complex]:
    """Transform *x* with twiddles exp(sign * 2*pi*i*j/L); returns a new list."""
    data = [complex(v) for v in x]
    n = len(data)
    stages = _check_power_of_two(n)
    direction = int(sign)

    for q in range(stages, 0, -1):
        length = 1 << q
        half = length // 2
        for j in range(half):
            angle = 2 * math.pi * j / length
            w = complex(math.cos(angle), direction * math.sin(angle))
            for base in range(0, n, length):
                a = base + j
                b = a + half
                tau = data[b]
                data[b] = w * (data[a] - tau)
                data[a] = data[a] + tau

    for k in range(n):
        j = _bit_reverse(k, stages)
        if j > k:
            data[k], data[j] = data[j], data[k]
    return data


def fft(vector: Iterable[float]) -> list[complex]:
    """Forward transform of a real sequence."""
    return fft_general((complex(v) for v in vector), Sign.FORWARD)


def ifft(x: Sequence[complex]) -> list[float]:
    """Inverse transform, keeping the real part scaled by 1/n."""
    result = fft_general(x, Sign.REVERSE)
    n = len(result)
    return [v.real / n for v in result]


def convolve_fft(x: Sequence[float], h: Sequence[float]) -> list[float]:
    """Circular convolution of two sequences of equal power-of-two length."""
    if len(x) != len(h):
        raise ValueError("size of signal must be equal to size of filter")
    spectrum_x = fft(x)
    spectrum_h = fft(h)
    return ifft([a * b for a, b in zip(spectrum_x, spectrum_h)])