"""Wave field synthesis client rendering to WAV, with convolution, FFT, config and message helpers."""

__version__ = "0.1.0"