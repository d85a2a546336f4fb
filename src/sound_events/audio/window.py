"""Hann analysis window, computed once per frame size."""

from functools import lru_cache

import numpy as np
from scipy.signal import get_window


@lru_cache(maxsize=8)
def hann_window(n: int) -> np.ndarray:
    """Symmetric Hann coefficients ``0.5 * (1 - cos(2*pi*i / (n - 1)))``.

    The returned array is cached and read-only.
    """
    if n < 2:
        raise ValueError(f"window length must be >= 2, got {n}")
    coeffs = get_window("hann", n, fftbins=False).astype(np.float32)
    coeffs.setflags(write=False)
    return coeffs


def apply_hann_window_(frames: np.ndarray) -> np.ndarray:
    """Multiply the last axis of ``frames`` by the Hann window, in place.

    Accepts a single frame (N,) or a stack of frames (F, N).
    """
    frames *= hann_window(frames.shape[-1])
    return frames


def apply_hann_window(frames: np.ndarray) -> np.ndarray:
    """Return a windowed float32 copy of ``frames``."""
    return apply_hann_window_(np.array(frames, dtype=np.float32))
