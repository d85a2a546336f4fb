"""End-to-end sound-event detection loop."""

from sound_events.pipeline.detection_loop import Detection, DetectorConfig, SoundEventDetector

__all__ = ["Detection", "DetectorConfig", "SoundEventDetector"]
