"""Classifier loaders (TensorFlow Lite)."""

from sound_events.models.tflite_model import ModelForward, load_tflite_model

__all__ = ["ModelForward", "load_tflite_model"]
