"""End-to-end detection loop: PCM buffer -> mel features -> classifier -> detection.

Glue that wires existing components. The classifier is a callable
(model_forward) so a TFLite model or any stand-in can be plugged in.

Buffers are non-overlapping: each one is captured, analyzed and classified
before the next is read.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Iterator, Optional, Sequence

import numpy as np

from sound_events.audio import AudioCollector, MelSpectrogramExtractor
from sound_events.audio.config import FrontendConfig
from sound_events.diagnostics import AudioStats, SpectrogramStats
from sound_events.models import ModelForward

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectorConfig:
    """Classifier labels and confidence bands."""

    class_names: Sequence[str] = ("glass_break", "door_open", "floor_creak")
    low_confidence: float = 0.3
    high_confidence: float = 0.6
    skip_static_audio: bool = True

    def __post_init__(self) -> None:
        if not self.class_names:
            raise ValueError("class_names must not be empty")
        if not self.low_confidence <= self.high_confidence:
            raise ValueError("low_confidence must be <= high_confidence")

    @property
    def num_classes(self) -> int:
        return len(self.class_names)


@dataclass(frozen=True, eq=False)
class Detection:
    """Classifier decision for one buffer."""

    label: str
    class_index: int
    confidence: float
    scores: np.ndarray
    confidence_level: str  # "very_low" | "low" | "high"


DetectionCallback = Callable[[Detection], None]


class SoundEventDetector:
    """Runs capture -> features -> classifier in a loop.

    Components are injected so you can use real or fake audio, and any
    classifier via a callable.

    Interface:
      detector = SoundEventDetector(
          model_forward=my_model_fn,
          on_detection=print,
      )
      detector.run()  # blocks; use stop() from another thread or pass buffer_iterator
    """

    def __init__(
        self,
        config: Optional[FrontendConfig] = None,
        detector_config: Optional[DetectorConfig] = None,
        extractor: Optional[MelSpectrogramExtractor] = None,
        model_forward: Optional[ModelForward] = None,
        on_detection: Optional[DetectionCallback] = None,
        audio_collector: Optional[AudioCollector] = None,
    ):
        self.config = config or FrontendConfig()
        self.detector_config = detector_config or DetectorConfig()
        self.extractor = extractor or MelSpectrogramExtractor(self.config)
        self.model_forward = model_forward
        self.on_detection = on_detection or (lambda d: None)
        self.audio_collector = audio_collector or AudioCollector(self.config)
        self._stopped = False

        if self.extractor.config != self.config:
            raise ValueError("extractor was built for a different FrontendConfig")

    def stop(self) -> None:
        """Signal the run loop to exit (checked each iteration)."""
        self._stopped = True

    def classify(self, scores: np.ndarray) -> Detection:
        """Turn a score vector into a labelled detection."""
        scores = np.asarray(scores, dtype=np.float32).reshape(-1)
        cfg = self.detector_config
        if scores.size != cfg.num_classes:
            raise ValueError(f"Expected {cfg.num_classes} scores, got {scores.size}")
        idx = int(np.argmax(scores))
        confidence = float(scores[idx])
        if confidence < cfg.low_confidence:
            level = "very_low"
        elif confidence < cfg.high_confidence:
            level = "low"
        else:
            level = "high"
        return Detection(
            label=cfg.class_names[idx],
            class_index=idx,
            confidence=confidence,
            scores=scores,
            confidence_level=level,
        )

    def process_buffer(self, pcm: np.ndarray) -> Optional[Detection]:
        """Analyze one int16 buffer. Returns None if skipped or no model is set."""
        audio_stats = AudioStats.from_pcm(pcm)
        logger.debug("Audio: %s", audio_stats)
        if self.detector_config.skip_static_audio and not audio_stats.varies:
            logger.warning("Audio data is static or missing, skipping buffer (%s)", audio_stats)
            return None

        features = self.extractor.extract(pcm)
        logger.debug("Spectrogram: %s", SpectrogramStats.from_features(features))
        if self.model_forward is None:
            return None

        detection = self.classify(self.model_forward(features))
        logger.info(
            "Detected %s (confidence %.4f, %s)",
            detection.label,
            detection.confidence,
            detection.confidence_level,
        )
        return detection

    def run(
        self,
        buffer_iterator: Optional[Iterator[np.ndarray]] = None,
        device: Optional[int] = None,
    ) -> None:
        """Run the detection loop until stopped or the iterator is exhausted.

        Args:
            buffer_iterator: If provided, use this as the source of PCM
                buffers (each buffer_length int16 samples). If None, use the
                microphone via audio_collector.record_stream().
            device: Microphone device index when using live audio (ignored if
                buffer_iterator is provided).
        """
        self._stopped = False
        if buffer_iterator is None:
            buffer_iterator = self.audio_collector.record_stream(device=device)
        for pcm in buffer_iterator:
            if self._stopped:
                break
            detection = self.process_buffer(pcm)
            if detection is not None:
                self.on_detection(detection)

    def run_for_n_detections(
        self,
        n: int,
        buffer_iterator: Iterator[np.ndarray],
    ) -> list[Detection]:
        """Run until n detections are produced; used for tests. Returns the detections."""
        self._stopped = False
        detections: list[Detection] = []
        for pcm in buffer_iterator:
            if len(detections) >= n:
                break
            detection = self.process_buffer(pcm)
            if detection is not None:
                detections.append(detection)
                self.on_detection(detection)
        return detections
