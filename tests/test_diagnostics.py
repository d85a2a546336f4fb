"""Unit tests for buffer and spectrogram statistics."""

from __future__ import annotations

import unittest

import numpy as np

from sound_events.diagnostics import AudioStats, SpectrogramStats


class TestAudioStats(unittest.TestCase):
    """Tests for AudioStats."""

    def test_silence_is_static(self) -> None:
        stats = AudioStats.from_pcm(np.zeros(1000, dtype=np.int16))
        self.assertEqual((stats.max_sample, stats.min_sample, stats.non_zero), (0, 0, 0))
        self.assertFalse(stats.varies)

    def test_constant_offset_passes(self) -> None:
        """A stuck non-zero level spans 0..level and is mostly non-zero, so it passes."""
        stats = AudioStats.from_pcm(np.full(1000, 5, dtype=np.int16))
        self.assertEqual((stats.max_sample, stats.min_sample), (5, 0))
        self.assertTrue(stats.varies)

    def test_sparse_clicks_are_static(self) -> None:
        """Fewer than 10% non-zero samples does not count as varying."""
        pcm = np.zeros(1000, dtype=np.int16)
        pcm[::20] = 300
        stats = AudioStats.from_pcm(pcm)
        self.assertEqual(stats.non_zero, 50)
        self.assertFalse(stats.varies)

    def test_noise_varies(self) -> None:
        rng = np.random.default_rng(0)
        pcm = rng.integers(-1000, 1000, 1000).astype(np.int16)
        stats = AudioStats.from_pcm(pcm)
        self.assertTrue(stats.varies)
        self.assertAlmostEqual(stats.mean, float(pcm.astype(np.int64).mean()))
        self.assertEqual(stats.total, 1000)

    def test_mean_does_not_overflow(self) -> None:
        stats = AudioStats.from_pcm(np.full(100_000, 32767, dtype=np.int16))
        self.assertAlmostEqual(stats.mean, 32767.0)

    def test_empty(self) -> None:
        stats = AudioStats.from_pcm(np.array([], dtype=np.int16))
        self.assertEqual(stats.total, 0)
        self.assertFalse(stats.varies)

    def test_str(self) -> None:
        text = str(AudioStats.from_pcm(np.array([1, -2, 0, 3], dtype=np.int16)))
        self.assertIn("max=3", text)
        self.assertIn("min=-2", text)


class TestSpectrogramStats(unittest.TestCase):
    """Tests for SpectrogramStats."""

    def test_counts_significant_values(self) -> None:
        features = np.array([0.0, 0.0005, 0.001, 0.002, 0.5, 1.0], dtype=np.float32)
        stats = SpectrogramStats.from_features(features)
        self.assertEqual(stats.significant, 3)
        self.assertEqual(stats.total, 6)
        self.assertEqual(stats.max_value, 1.0)
        self.assertEqual(stats.min_value, 0.0)

    def test_str(self) -> None:
        text = str(SpectrogramStats.from_features(np.ones(4, dtype=np.float32)))
        self.assertIn("significant=4/4", text)


if __name__ == "__main__":
    unittest.main(verbosity=2)
