"""Buffer and spectrogram statistics for logging and microphone sanity checks."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

# Feature values above this count as significant energy
SIGNIFICANT_LEVEL = 0.001


@dataclass(frozen=True)
class AudioStats:
    """Summary of one raw PCM buffer."""

    max_sample: int
    min_sample: int
    mean: float
    non_zero: int
    total: int

    @classmethod
    def from_pcm(cls, samples: np.ndarray) -> "AudioStats":
        samples = np.asarray(samples)
        if samples.size == 0:
            return cls(0, 0, 0.0, 0, 0)
        # max >= 0 >= min
        return cls(
            max_sample=int(max(samples.max(), 0)),
            min_sample=int(min(samples.min(), 0)),
            mean=float(samples.astype(np.int64).sum() / samples.size),
            non_zero=int(np.count_nonzero(samples)),
            total=int(samples.size),
        )

    @property
    def varies(self) -> bool:
        """False for static or mostly silent data (e.g. microphone not delivering)."""
        return self.max_sample != self.min_sample and self.non_zero > self.total / 10

    def __str__(self) -> str:
        return (
            f"samples={self.total} max={self.max_sample} min={self.min_sample} "
            f"mean={self.mean:.2f} non_zero={self.non_zero} varies={self.varies}"
        )


@dataclass(frozen=True)
class SpectrogramStats:
    """Summary of one normalized feature vector."""

    min_value: float
    max_value: float
    mean: float
    significant: int
    total: int

    @classmethod
    def from_features(cls, features: np.ndarray) -> "SpectrogramStats":
        features = np.asarray(features, dtype=np.float32)
        if features.size == 0:
            return cls(0.0, 0.0, 0.0, 0, 0)
        return cls(
            min_value=float(features.min()),
            max_value=float(features.max()),
            mean=float(features.mean()),
            significant=int(np.count_nonzero(features > SIGNIFICANT_LEVEL)),
            total=int(features.size),
        )

    def __str__(self) -> str:
        return (
            f"min={self.min_value:.4f} max={self.max_value:.4f} mean={self.mean:.4f} "
            f"significant={self.significant}/{self.total}"
        )
