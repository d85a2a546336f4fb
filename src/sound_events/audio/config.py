"""Centralized front-end configuration.

Encoding standards (defaults):
- Audio: mono 16 kHz, signed 16-bit PCM
- Frames: 49 frames of FFT 512, hop 160 (buffer of 8352 samples)
- Features: 40 mel bands between 20 Hz and 8 kHz, normalized to [0, 1]

All sizes are fixed when the config is built. Changing any field means
building a new config and a new filterbank.
"""

from __future__ import annotations

from dataclasses import dataclass


class ConfigurationError(ValueError):
    """Raised when front-end sizes or frequencies are inconsistent."""


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


@dataclass(frozen=True)
class FrontendConfig:
    """Audio front-end configuration."""

    # Recording
    sample_rate: int = 16_000

    # STFT
    fft_size: int = 512
    hop_length: int = 160
    n_frames: int = 49

    # Mel filterbank
    n_mels: int = 40
    fmin: float = 20.0
    fmax: float = 8_000.0

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            raise ConfigurationError(f"sample_rate must be > 0, got {self.sample_rate}")
        if self.fft_size < 2 or not is_power_of_two(self.fft_size):
            raise ConfigurationError(
                f"fft_size must be a power of two >= 2, got {self.fft_size}"
            )
        if self.hop_length < 1:
            raise ConfigurationError(f"hop_length must be >= 1, got {self.hop_length}")
        if self.n_frames < 1:
            raise ConfigurationError(f"n_frames must be >= 1, got {self.n_frames}")
        if self.n_mels < 1:
            raise ConfigurationError(f"n_mels must be >= 1, got {self.n_mels}")
        if self.fmin < 0:
            raise ConfigurationError(f"fmin must be >= 0, got {self.fmin}")
        if self.fmin >= self.fmax:
            raise ConfigurationError(
                f"fmin must be below fmax, got fmin={self.fmin} fmax={self.fmax}"
            )
        if self.fmax > self.sample_rate / 2:
            raise ConfigurationError(
                f"fmax {self.fmax} Hz is above Nyquist ({self.sample_rate / 2} Hz)"
            )

    @classmethod
    def from_buffer_length(cls, buffer_length: int, **kwargs) -> "FrontendConfig":
        """Build a config whose frame count exactly fills ``buffer_length``.

        Raises:
            ConfigurationError: if ``buffer_length != n_frames * hop + fft_size``
                for any whole ``n_frames >= 1``.
        """
        if "n_frames" in kwargs:
            raise ConfigurationError("n_frames is derived from buffer_length")
        fft_size = kwargs.get("fft_size", cls.fft_size)
        hop_length = kwargs.get("hop_length", cls.hop_length)
        if hop_length < 1:
            raise ConfigurationError(f"hop_length must be >= 1, got {hop_length}")
        span = buffer_length - fft_size
        if span < hop_length or span % hop_length != 0:
            raise ConfigurationError(
                f"buffer_length {buffer_length} is not n_frames * {hop_length} + {fft_size}"
            )
        return cls(n_frames=span // hop_length, **kwargs)

    @property
    def buffer_length(self) -> int:
        """Raw PCM samples per analysis buffer."""
        return self.n_frames * self.hop_length + self.fft_size

    @property
    def buffer_duration_sec(self) -> float:
        return self.buffer_length / self.sample_rate

    @property
    def n_bins(self) -> int:
        """Magnitude bins up to (excluding) Nyquist."""
        return self.fft_size // 2

    @property
    def feature_shape(self) -> tuple[int, int]:
        """(n_mels, n_frames), band-major."""
        return (self.n_mels, self.n_frames)

    @property
    def feature_size(self) -> int:
        """Length of the flat feature vector handed to the classifier."""
        return self.n_mels * self.n_frames
