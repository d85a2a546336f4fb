"""Feature extraction: framing, Hann, FFT magnitude, mel filterbank, normalization.

Output layout is band-major: the flat vector index is ``band * n_frames + frame``.
The classifier was trained on this ordering, so it must not change.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional

import numpy as np

from sound_events.audio.config import FrontendConfig
from sound_events.audio.fft import fft_magnitude_
from sound_events.audio.filterbank import MelFilterbank
from sound_events.audio.window import apply_hann_window_

logger = logging.getLogger(__name__)

PCM_SCALE = 32768.0


def pcm_to_float(samples: np.ndarray) -> np.ndarray:
    """Map signed 16-bit PCM to float32 in [-1, 1)."""
    return np.asarray(samples, dtype=np.float32) / np.float32(PCM_SCALE)


def frame_signal(
    audio: np.ndarray,
    config: FrontendConfig,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Copy ``config.n_frames`` frames of ``fft_size`` samples, hop ``hop_length``.

    Samples past the end of ``audio`` are zero-filled.

    Returns:
        (n_frames, fft_size) float32.
    """
    n, hop = config.fft_size, config.hop_length
    if out is None:
        out = np.zeros((config.n_frames, n), dtype=np.float32)
    for f in range(config.n_frames):
        start = f * hop
        chunk = audio[start : start + n]
        out[f, : len(chunk)] = chunk
        out[f, len(chunk) :] = 0.0
    return out


def normalize_spectrogram_(features: np.ndarray) -> np.ndarray:
    """Divide every value by the global maximum, in place.

    A maximum of zero (silence) leaves the array untouched.
    """
    max_val = features.max() if features.size else 0.0
    if max_val > 0:
        features /= max_val
    return features


def normalize_spectrogram(features: np.ndarray) -> np.ndarray:
    return normalize_spectrogram_(np.array(features, dtype=np.float32))


def to_feature_vector(features: np.ndarray) -> np.ndarray:
    """Flatten an (n_mels, n_frames) matrix band-major for the classifier."""
    return np.ascontiguousarray(features, dtype=np.float32).reshape(-1)


@dataclass
class FeatureWorkspace:
    """Working storage for one extraction at a time.

    Reusing a workspace avoids per-call allocation; it must not be shared by
    concurrent calls. Results of a call made with a workspace are views into
    it and are overwritten by the next call.
    """

    frames: np.ndarray
    imag: np.ndarray
    features: np.ndarray

    @classmethod
    def for_config(cls, config: FrontendConfig) -> "FeatureWorkspace":
        shape = (config.n_frames, config.fft_size)
        return cls(
            frames=np.zeros(shape, dtype=np.float32),
            imag=np.zeros(shape, dtype=np.float32),
            features=np.zeros(config.feature_shape, dtype=np.float32),
        )


class MelSpectrogramExtractor:
    """Turn a fixed-length PCM buffer into a normalized mel spectrogram.

    The config and filterbank are read-only, so one extractor can serve
    several threads as long as each call gets its own workspace (the default).
    """

    def __init__(
        self,
        config: Optional[FrontendConfig] = None,
        filterbank: Optional[MelFilterbank] = None,
    ):
        self.config = config or FrontendConfig()
        self.filterbank = filterbank or MelFilterbank.from_config(self.config)
        if self.filterbank.weights.shape != (self.config.n_mels, self.config.n_bins):
            raise ValueError(
                f"filterbank shape {self.filterbank.weights.shape} does not match "
                f"config ({self.config.n_mels}, {self.config.n_bins})"
            )
        logger.info(
            "Feature extractor initialized: %d mels x %d frames from %d samples",
            self.config.n_mels,
            self.config.n_frames,
            self.config.buffer_length,
        )

    def mel_spectrogram(
        self,
        audio: np.ndarray,
        workspace: Optional[FeatureWorkspace] = None,
    ) -> np.ndarray:
        """Un-normalized (n_mels, n_frames) mel energies of float audio.

        ``audio`` shorter than ``buffer_length`` is zero-filled.
        """
        ws = workspace or FeatureWorkspace.for_config(self.config)
        frame_shape = (self.config.n_frames, self.config.fft_size)
        if (
            ws.frames.shape != frame_shape
            or ws.imag.shape != frame_shape
            or ws.features.shape != self.config.feature_shape
        ):
            raise ValueError(
                f"workspace shapes frames={ws.frames.shape} imag={ws.imag.shape} "
                f"features={ws.features.shape} do not match config "
                f"(frames {frame_shape}, features {self.config.feature_shape})"
            )
        frames = frame_signal(np.asarray(audio, dtype=np.float32), self.config, out=ws.frames)
        apply_hann_window_(frames)
        magnitudes = fft_magnitude_(frames, ws.imag)
        ws.features[...] = self.filterbank.apply(magnitudes)
        return ws.features

    def extract_matrix(
        self,
        pcm: np.ndarray,
        workspace: Optional[FeatureWorkspace] = None,
    ) -> np.ndarray:
        """Normalized (n_mels, n_frames) features of one int16 PCM buffer."""
        pcm = np.asarray(pcm)
        if pcm.shape != (self.config.buffer_length,):
            raise ValueError(
                f"Expected {self.config.buffer_length} mono samples, got shape {pcm.shape}"
            )
        features = self.mel_spectrogram(pcm_to_float(pcm), workspace)
        return normalize_spectrogram_(features)

    def extract(
        self,
        pcm: np.ndarray,
        workspace: Optional[FeatureWorkspace] = None,
    ) -> np.ndarray:
        """Flat float32 feature vector (``n_mels * n_frames``) for the classifier."""
        return to_feature_vector(self.extract_matrix(pcm, workspace))
