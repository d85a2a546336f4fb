"""Audio capture and mel-spectrogram feature extraction modules."""

from sound_events.audio.config import ConfigurationError, FrontendConfig
from sound_events.audio.collector import AudioCollector, fit_to_buffer, load_wav
from sound_events.audio.features import (
    FeatureWorkspace,
    MelSpectrogramExtractor,
    normalize_spectrogram,
    pcm_to_float,
    to_feature_vector,
)
from sound_events.audio.filterbank import MelFilterbank

__all__ = [
    "AudioCollector",
    "ConfigurationError",
    "FeatureWorkspace",
    "FrontendConfig",
    "MelFilterbank",
    "MelSpectrogramExtractor",
    "fit_to_buffer",
    "load_wav",
    "normalize_spectrogram",
    "pcm_to_float",
    "to_feature_vector",
]
