"""Unit tests for the detection aggregator."""

import unittest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pot_overlay_detection.services.detection_aggregator import DetectionAggregator
from pot_overlay_detection.models.detection import DetectionSample


def sample(ratio):
    return DetectionSample(matched_pixel_count=0, sampled_pixel_count=1.0, ratio=ratio)


class TestDetectionAggregator(unittest.TestCase):
    """Test cases for DetectionAggregator."""

    def setUp(self):
        self.aggregator = DetectionAggregator()

    def feed(self, ratios):
        return [self.aggregator.update(sample(r)).confirmed for r in ratios]

    def test_defaults(self):
        self.assertEqual(self.aggregator.threshold, 0.065)
        self.assertEqual(self.aggregator.confirm_frames, 2)
        self.assertFalse(self.aggregator.confirmed)
        self.assertEqual(self.aggregator.latest_ratio, 0.0)

    def test_two_frames_confirm_and_one_clears(self):
        self.assertEqual(self.feed([0.07, 0.07, 0.02]), [False, True, False])

    def test_dip_resets_the_run(self):
        self.assertEqual(self.feed([0.07, 0.02, 0.07, 0.07]), [False, False, False, True])

    def test_threshold_is_strict(self):
        self.assertEqual(self.feed([0.065, 0.065, 0.065]), [False, False, False])
        self.assertEqual(self.aggregator.state.consecutive_above_threshold, 0)

    def test_stays_confirmed_while_above(self):
        self.assertEqual(self.feed([0.1, 0.1, 0.1, 0.1]), [False, True, True, True])
        self.assertEqual(self.aggregator.state.consecutive_above_threshold, 4)

    def test_latest_ratio_tracks_last_sample(self):
        self.feed([0.1, 0.03])
        self.assertEqual(self.aggregator.latest_ratio, 0.03)
        self.assertEqual(self.aggregator.latest_sample.ratio, 0.03)

    def test_single_frame_confirmation(self):
        aggregator = DetectionAggregator(confirm_frames=1)
        self.assertTrue(aggregator.update(sample(0.07)).confirmed)

    def test_set_threshold(self):
        self.aggregator.set_threshold(0.5)
        self.assertEqual(self.feed([0.4, 0.4]), [False, False])

    def test_set_confirm_frames(self):
        self.aggregator.set_confirm_frames(3)
        self.assertEqual(self.feed([0.1, 0.1, 0.1]), [False, False, True])

    def test_invalid_confirm_frames(self):
        with self.assertRaises(ValueError):
            DetectionAggregator(confirm_frames=0)
        with self.assertRaises(ValueError):
            self.aggregator.set_confirm_frames(0)

    def test_reset(self):
        self.feed([0.1, 0.1])
        self.aggregator.reset()
        self.assertFalse(self.aggregator.confirmed)
        self.assertEqual(self.aggregator.state.consecutive_above_threshold, 0)
        self.assertIsNone(self.aggregator.latest_sample)


if __name__ == '__main__':
    unittest.main()
