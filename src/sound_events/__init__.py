"""Sound-event front-end - PCM capture, mel-spectrogram features, classifier loop."""

from sound_events.audio import FrontendConfig, MelSpectrogramExtractor

__all__ = ["FrontendConfig", "MelSpectrogramExtractor"]
