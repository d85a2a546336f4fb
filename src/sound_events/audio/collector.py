"""Fixed-length PCM capture at mono 16 kHz for the sound-event front-end."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Optional

import numpy as np
import scipy.io.wavfile as wavfile

try:
    import sounddevice as sd
except ImportError:
    sd = None  # type: ignore

from sound_events.audio.config import FrontendConfig

logger = logging.getLogger(__name__)


def _require_sounddevice() -> None:
    if sd is None:
        raise ImportError("sounddevice is required for recording. pip install sounddevice")


def fit_to_buffer(samples: np.ndarray, length: int) -> np.ndarray:
    """Truncate or zero-pad int16 samples to exactly ``length``."""
    out = np.zeros(length, dtype=np.int16)
    n = min(length, len(samples))
    out[:n] = samples[:n]
    return out


def load_wav(path: str | Path, config: Optional[FrontendConfig] = None) -> np.ndarray:
    """Read a WAV file as mono int16 at the configured sample rate.

    Float WAVs in [-1, 1] are scaled to int16. Stereo is averaged to mono.
    The result is not trimmed; use :func:`fit_to_buffer` for that.
    """
    config = config or FrontendConfig()
    sr, audio = wavfile.read(str(path))
    if sr != config.sample_rate:
        raise ValueError(f"Expected {config.sample_rate} Hz, got {sr} Hz. Resample the file.")
    if np.issubdtype(audio.dtype, np.floating):
        audio = np.clip(audio * 32768.0, -32768, 32767)
    elif audio.dtype == np.int32:
        audio = audio // 65536
    elif audio.dtype == np.uint8:
        audio = (audio.astype(np.int16) - 128) * 256
    if audio.ndim > 1:
        audio = audio.mean(axis=1)
    return audio.astype(np.int16)


class AudioCollector:
    """Records mono int16 buffers of exactly ``config.buffer_length`` samples."""

    def __init__(self, config: Optional[FrontendConfig] = None):
        self.config = config or FrontendConfig()

    def record_buffer(self, device: Optional[int] = None) -> np.ndarray:
        """Block until one analysis buffer has been captured.

        Args:
            device: Input device index (None = default).

        Returns:
            int16 array, shape (buffer_length,).
        """
        _require_sounddevice()
        rec = sd.rec(
            self.config.buffer_length,
            samplerate=self.config.sample_rate,
            channels=1,
            dtype="int16",
            device=device,
        )
        sd.wait()
        return rec.reshape(-1)

    def record_stream(self, device: Optional[int] = None) -> Iterator[np.ndarray]:
        """Yield consecutive, non-overlapping analysis buffers.

        Args:
            device: Input device index (None = default).

        Yields:
            int16 arrays, shape (buffer_length,).
        """
        _require_sounddevice()
        with sd.InputStream(
            samplerate=self.config.sample_rate,
            channels=1,
            dtype="int16",
            device=device,
        ) as stream:
            while True:
                data, overflowed = stream.read(self.config.buffer_length)
                if overflowed:
                    logger.warning("Input overflow: samples were dropped before this buffer")
                yield data.reshape(-1).copy()

    def record_to_file(self, filepath: str | Path, device: Optional[int] = None) -> np.ndarray:
        """Record one buffer and save it as a mono 16-bit WAV.

        Returns:
            The recorded samples.
        """
        audio = self.record_buffer(device=device)
        wavfile.write(str(filepath), self.config.sample_rate, audio)
        return audio
