"""CLI: capture or load one buffer, extract mel features, optionally classify."""

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

from sound_events.audio import (
    AudioCollector,
    MelSpectrogramExtractor,
    fit_to_buffer,
    load_wav,
    to_feature_vector,
)
from sound_events.audio.config import FrontendConfig
from sound_events.diagnostics import AudioStats, SpectrogramStats
from sound_events.pipeline import SoundEventDetector


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Extract a mel spectrogram from one audio buffer (mono 16 kHz) and classify it"
    )
    parser.add_argument(
        "--input",
        "-i",
        type=Path,
        default=None,
        help="Analyze this WAV file instead of recording from the microphone",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Save the recorded buffer to this WAV path",
    )
    parser.add_argument(
        "--device",
        type=int,
        default=None,
        help="Input device index (list with --list-devices)",
    )
    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="List available audio input devices and exit",
    )
    parser.add_argument(
        "--model",
        type=Path,
        default=None,
        help="TensorFlow Lite classifier to run on the features",
    )
    parser.add_argument(
        "--save-features",
        type=Path,
        default=None,
        help="Save the (n_mels, n_frames) feature matrix as .npy",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Debug logging",
    )
    args = parser.parse_args()
    if args.input is not None and args.output is not None:
        parser.error("--output saves a recording; it cannot be combined with --input")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.list_devices:
        try:
            import sounddevice as sd
            print(sd.query_devices())
        except ImportError:
            print("sounddevice not installed: pip install sounddevice", file=sys.stderr)
            sys.exit(1)
        return

    config = FrontendConfig()

    if args.input is not None:
        pcm = load_wav(args.input, config)
        if len(pcm) != config.buffer_length:
            print(
                f"{args.input}: {len(pcm)} samples, using {config.buffer_length}",
                file=sys.stderr,
            )
        pcm = fit_to_buffer(pcm, config.buffer_length)
    else:
        collector = AudioCollector(config)
        print(f"Recording {config.buffer_duration_sec:.3f}s (mono {config.sample_rate} Hz)...")
        if args.output is not None:
            pcm = collector.record_to_file(args.output, args.device)
            print(f"Saved: {args.output}")
        else:
            pcm = collector.record_buffer(args.device)

    print(f"Audio: {AudioStats.from_pcm(pcm)}")

    extractor = MelSpectrogramExtractor(config)
    features = extractor.extract_matrix(pcm)
    print(f"Extracted {features.shape[0]} mel bands x {features.shape[1]} frames")
    print(f"Spectrogram: {SpectrogramStats.from_features(features)}")

    if args.save_features is not None:
        np.save(args.save_features, features)
        print(f"Saved features: {args.save_features}")

    if args.model is not None:
        from sound_events.models import load_tflite_model

        model_forward, _ = load_tflite_model(args.model)
        detector = SoundEventDetector(
            config=config,
            extractor=extractor,
            model_forward=model_forward,
        )
        detection = detector.classify(model_forward(to_feature_vector(features)))
        for name, score in zip(detector.detector_config.class_names, detection.scores):
            print(f"  {name}: {score:.4f}")
        print(
            f"Detected: {detection.label} "
            f"(confidence {detection.confidence:.4f}, {detection.confidence_level})"
        )


if __name__ == "__main__":
    main()
