"""TensorFlow Lite sound-event classifier loader.

The model takes the flat mel feature vector (reshaped to its input tensor
shape) and returns one score per class. int8-quantized inputs and outputs
are quantized/dequantized with the tensor's own scale and zero point.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Tuple

import numpy as np

logger = logging.getLogger(__name__)

ModelForward = Callable[[np.ndarray], np.ndarray]


def _get_interpreter_class():
    import tensorflow as tf
    return tf.lite.Interpreter


def load_tflite_model(path: str | Path) -> Tuple[ModelForward, Tuple[int, ...]]:
    """Load a .tflite classifier and return a forward callable.

    Args:
        path: Path to the .tflite file.

    Returns:
        (model_forward, input_shape):
        - model_forward(features: np.ndarray) -> scores: np.ndarray
          features: flat float32 vector, n_mels * n_frames
          scores: shape (num_classes,) float32
        - input_shape: the model's input tensor shape, batch included
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Model file not found: {path}")

    interpreter_cls = _get_interpreter_class()
    interpreter = interpreter_cls(model_content=path.read_bytes())
    interpreter.allocate_tensors()

    input_details = interpreter.get_input_details()[0]
    output_details = interpreter.get_output_details()[0]
    input_shape = tuple(int(d) for d in input_details["shape"])
    input_size = int(np.prod(input_shape))
    quantized_input = input_details["dtype"] == np.int8
    quantized_output = output_details["dtype"] == np.int8

    logger.info("TFLite model loaded: %s", path)
    logger.info("Input shape: %s dtype: %s", input_shape, input_details["dtype"])
    logger.info("Output shape: %s dtype: %s", tuple(output_details["shape"]), output_details["dtype"])

    def forward(features: np.ndarray) -> np.ndarray:
        features = np.asarray(features, dtype=np.float32)
        if features.size != input_size:
            raise ValueError(
                f"Model expects {input_size} input values {input_shape}, got {features.size}"
            )
        data = features.reshape(input_shape)
        if quantized_input:
            scale, zero_point = input_details["quantization"]
            data = np.clip(np.round(data / scale + zero_point), -128, 127).astype(np.int8)
        else:
            data = data.astype(input_details["dtype"])

        interpreter.set_tensor(input_details["index"], data)
        interpreter.invoke()
        scores = interpreter.get_tensor(output_details["index"])

        if quantized_output:
            scale, zero_point = output_details["quantization"]
            scores = (scores.astype(np.float32) - zero_point) * scale
        return np.asarray(scores, dtype=np.float32).reshape(-1)

    return forward, input_shape
