"""Triangular mel filterbank, built once per configuration."""

from __future__ import annotations

from dataclasses import dataclass
import logging

import numpy as np

from sound_events.audio.config import FrontendConfig

logger = logging.getLogger(__name__)


def hz_to_mel(hz):
    return 2595.0 * np.log10(1.0 + np.asarray(hz, dtype=np.float32) / 700.0)


def mel_to_hz(mel):
    return 700.0 * (10.0 ** (np.asarray(mel, dtype=np.float32) / 2595.0) - 1.0)


def mel_frequencies(config: FrontendConfig) -> np.ndarray:
    """M+2 frequencies (Hz) evenly spaced on the mel scale from fmin to fmax."""
    mel_min = hz_to_mel(config.fmin)
    mel_max = hz_to_mel(config.fmax)
    mel_step = (mel_max - mel_min) / np.float32(config.n_mels + 1)
    mel_points = mel_min + np.arange(config.n_mels + 2, dtype=np.float32) * mel_step
    return mel_to_hz(mel_points).astype(np.float32)


def mel_bin_points(config: FrontendConfig) -> np.ndarray:
    """Map the mel frequencies onto magnitude-spectrum bin indices.

    Rounding is half away from zero, so a point at exactly x.5 goes up.
    """
    freq_points = mel_frequencies(config)
    bins = np.floor(freq_points * config.fft_size / config.sample_rate + 0.5)
    return bins.astype(np.int64)


def triangular_weights(bin_points: np.ndarray, n_bins: int) -> np.ndarray:
    """Dense (M, n_bins) weight matrix for filters over consecutive bin points.

    Filter i covers bins [left, right) with left, center, right =
    bin_points[i], bin_points[i + 1], bin_points[i + 2]. Bins below center
    rise as (j - left) / (center - left); the center bin and above fall as
    (right - j) / (right - center). A zero-width edge has no bins and adds
    nothing. Bins at or above ``n_bins`` are dropped.
    """
    n_mels = len(bin_points) - 2
    weights = np.zeros((n_mels, n_bins), dtype=np.float32)
    for i in range(n_mels):
        left, center, right = (int(b) for b in bin_points[i : i + 3])
        if center > left:
            rising = np.arange(left, min(center, n_bins))
            weights[i, rising] = (rising - left) / (center - left)
        if right > center:
            falling = np.arange(center, min(right, n_bins))
            weights[i, falling] = (right - falling) / (right - center)
    return weights


@dataclass(frozen=True, eq=False)
class MelFilterbank:
    """Precomputed mel filter geometry and weights. Read-only after construction."""

    bin_points: np.ndarray
    weights: np.ndarray
    center_frequencies: np.ndarray

    @classmethod
    def from_config(cls, config: FrontendConfig) -> "MelFilterbank":
        bin_points = mel_bin_points(config)
        weights = triangular_weights(bin_points, config.n_bins)
        centers = mel_frequencies(config)[1:-1].copy()
        for arr in (bin_points, weights, centers):
            arr.setflags(write=False)

        empty = int(np.count_nonzero(weights.sum(axis=1) == 0))
        if empty:
            logger.warning("%d of %d mel filters have no weight (fmin/fmax too narrow for fft_size)",
                           empty, config.n_mels)
        logger.debug("Mel filterbank: %d filters, bins %d..%d", config.n_mels,
                     bin_points[0], bin_points[-1])
        return cls(bin_points=bin_points, weights=weights, center_frequencies=centers)

    @property
    def n_mels(self) -> int:
        return self.weights.shape[0]

    @property
    def n_bins(self) -> int:
        return self.weights.shape[1]

    @property
    def triples(self) -> np.ndarray:
        """(M, 3) array of (left, center, right) bin indices."""
        return np.stack(
            [self.bin_points[:-2], self.bin_points[1:-1], self.bin_points[2:]],
            axis=1,
        )

    def apply(self, magnitudes: np.ndarray) -> np.ndarray:
        """Weight magnitude spectra into mel energies.

        Args:
            magnitudes: (n_bins,) for one frame or (n_frames, n_bins).

        Returns:
            (M,) or (M, n_frames) float32 energies.
        """
        return np.dot(self.weights, np.asarray(magnitudes, dtype=np.float32).T)
