"""Radix-2 FFT magnitude spectrum in single precision.

Iterative, in place, log2(N) butterfly stages. Within a stage the twiddle
factor is advanced by complex multiplication instead of calling cos/sin per
butterfly; every butterfly column is processed for all groups (and all
stacked frames) at once.

The output is the unnormalized DFT magnitude: no 1/N factor is applied, the
classifier was trained on this scale.
"""

from functools import lru_cache
import math
from typing import Optional

import numpy as np

from sound_events.audio.config import is_power_of_two


@lru_cache(maxsize=8)
def bit_reversal_permutation(n: int) -> np.ndarray:
    """Index array that puts an N-point input in bit-reversed order."""
    bits = n.bit_length() - 1
    idx = np.arange(n)
    rev = np.zeros(n, dtype=np.intp)
    for _ in range(bits):
        rev = (rev << 1) | (idx & 1)
        idx >>= 1
    rev.setflags(write=False)
    return rev


def fft_magnitude_(real: np.ndarray, imag: Optional[np.ndarray] = None) -> np.ndarray:
    """Replace ``real[..., :N/2]`` with the DFT magnitude of ``real``, in place.

    Args:
        real: float32 array (..., N), N a power of two. Consumed: after the
            call only the first N/2 entries of the last axis are meaningful.
        imag: Optional float32 scratch with the same shape as ``real``. Its
            contents are overwritten. Allocated when None.

    Returns:
        View ``real[..., :N/2]`` holding the magnitudes.
    """
    n = real.shape[-1]
    if not is_power_of_two(n) or n < 2:
        raise ValueError(f"FFT size must be a power of two >= 2, got {n}")
    if imag is None:
        imag = np.zeros_like(real)
    else:
        imag[...] = 0.0

    real[...] = real[..., bit_reversal_permutation(n)]

    half = 1
    while half < n:
        m = half * 2
        wm_real = np.float32(math.cos(2.0 * math.pi / m))
        wm_imag = np.float32(-math.sin(2.0 * math.pi / m))
        w_real = np.float32(1.0)
        w_imag = np.float32(0.0)
        for j in range(half):
            top = np.s_[..., j:n:m]
            bottom = np.s_[..., j + half:n:m]
            t_real = w_real * real[bottom] - w_imag * imag[bottom]
            t_imag = w_real * imag[bottom] + w_imag * real[bottom]
            real[bottom] = real[top] - t_real
            imag[bottom] = imag[top] - t_imag
            real[top] += t_real
            imag[top] += t_imag
            w_real, w_imag = (
                w_real * wm_real - w_imag * wm_imag,
                w_real * wm_imag + w_imag * wm_real,
            )
        half = m

    n_bins = n // 2
    real[..., :n_bins] = np.sqrt(
        real[..., :n_bins] * real[..., :n_bins] + imag[..., :n_bins] * imag[..., :n_bins]
    )
    return real[..., :n_bins]


def magnitude_spectrum(frame: np.ndarray) -> np.ndarray:
    """Return the N/2-bin magnitude spectrum of ``frame`` without modifying it."""
    work = np.array(frame, dtype=np.float32)
    return fft_magnitude_(work).copy()
