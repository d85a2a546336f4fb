"""Unit tests for the TensorFlow Lite classifier loader (interpreter mocked)."""

from __future__ import annotations

import functools
import os
import tempfile
import unittest
from unittest.mock import patch

import numpy as np

from sound_events.models import load_tflite_model


class FakeInterpreter:
    """Minimal stand-in for tf.lite.Interpreter: scores are mean, max and min of the input."""

    input_dtype = np.float32
    output_dtype = np.float32
    input_quant = (0.0, 0)
    output_quant = (0.0, 0)

    def __init__(self, model_content: bytes, created: list):
        self.model_content = model_content
        self.tensors = {}
        created.append(self)

    def allocate_tensors(self) -> None:
        pass

    def get_input_details(self):
        return [{
            "index": 0,
            "shape": np.array([1, 40, 49, 1]),
            "dtype": self.input_dtype,
            "quantization": self.input_quant,
        }]

    def get_output_details(self):
        return [{
            "index": 1,
            "shape": np.array([1, 3]),
            "dtype": self.output_dtype,
            "quantization": self.output_quant,
        }]

    def set_tensor(self, index, value) -> None:
        self.tensors[index] = value

    def invoke(self) -> None:
        x = self.tensors[0].astype(np.float32)
        scores = np.array([[x.mean(), x.max(), x.min()]], dtype=np.float32)
        if self.output_dtype == np.int8:
            scores = np.full((1, 3), 10, dtype=np.int8)
        self.tensors[1] = scores

    def get_tensor(self, index):
        return self.tensors[index]


class TestLoadTfliteModel(unittest.TestCase):
    """Tests for load_tflite_model."""

    def setUp(self) -> None:
        fd, self.model_path = tempfile.mkstemp(suffix=".tflite")
        with os.fdopen(fd, "wb") as f:
            f.write(b"fake_tflite_model")
        self.created: list = []

    def tearDown(self) -> None:
        os.remove(self.model_path)

    def _load(self, interpreter_cls=FakeInterpreter):
        with patch(
            "sound_events.models.tflite_model._get_interpreter_class",
            return_value=functools.partial(interpreter_cls, created=self.created),
        ):
            return load_tflite_model(self.model_path)

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_tflite_model("/nonexistent/model.tflite")

    def test_forward_reshapes_flat_features(self) -> None:
        forward, input_shape = self._load()
        self.assertEqual(input_shape, (1, 40, 49, 1))
        self.assertEqual(self.created[0].model_content, b"fake_tflite_model")

        features = np.linspace(0.0, 1.0, 1960, dtype=np.float32)
        scores = forward(features)
        self.assertEqual(scores.shape, (3,))
        self.assertEqual(scores.dtype, np.float32)
        fed = self.created[0].tensors[0]
        self.assertEqual(fed.shape, (1, 40, 49, 1))
        np.testing.assert_array_equal(fed.reshape(-1), features)
        self.assertAlmostEqual(float(scores[1]), 1.0)

    def test_each_load_builds_own_interpreter(self) -> None:
        forward_a, _ = self._load()
        forward_b, _ = self._load()
        self.assertEqual(len(self.created), 2)
        forward_a(np.zeros(1960, dtype=np.float32))
        forward_b(np.ones(1960, dtype=np.float32))
        self.assertEqual(float(self.created[0].tensors[1].max()), 0.0)
        self.assertEqual(float(self.created[1].tensors[1].max()), 1.0)

    def test_wrong_feature_size(self) -> None:
        forward, _ = self._load()
        with self.assertRaises(ValueError):
            forward(np.zeros(100, dtype=np.float32))

    def test_int8_model_quantizes(self) -> None:
        """int8 tensors are quantized on input and dequantized on output."""

        class Int8Interpreter(FakeInterpreter):
            input_dtype = np.int8
            output_dtype = np.int8
            input_quant = (1.0 / 255.0, -128)
            output_quant = (0.5, 0)

        forward, _ = self._load(Int8Interpreter)
        scores = forward(np.ones(1960, dtype=np.float32))
        fed = self.created[0].tensors[0]
        self.assertEqual(fed.dtype, np.int8)
        self.assertTrue(np.all(fed == 127))
        np.testing.assert_allclose(scores, [5.0, 5.0, 5.0])


if __name__ == "__main__":
    unittest.main(verbosity=2)
