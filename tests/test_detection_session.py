"""Integration tests for the detection session."""

import unittest
import sys
import os
import shutil
import tempfile

import cv2
import numpy as np

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pot_overlay_detection.detection_session import DetectionSession
from pot_overlay_detection.config_manager import ConfigManager
from pot_overlay_detection.models.overlay import OverlayState
from pot_overlay_detection.services import asset_loader
from pot_overlay_detection.services.display_loop import DisplayLoop
from pot_overlay_detection.services.interfaces import CameraLifecycleInterface, VideoSourceInterface
from pot_overlay_detection.services.overlay_renderer import HeadlessOverlayRenderer
from pot_overlay_detection.services.error_handler import AcquisitionFailure

WIDTH, HEIGHT = 64, 64
ORANGE_BGR = (40, 120, 220)


def frame_with_ratio_pixels(matched):
    """BGR frame with ``matched`` pot pixels on the sampled grid of the default ROI.

    The 64x64 ROI is 32x32 at (16, 16); stride 2 gives a 16x16 grid and the
    nominal denominator is 64 * 64 / 16 = 256.
    """
    frame = np.zeros((HEIGHT, WIDTH, 3), dtype=np.uint8)
    for i in range(matched):
        frame[16 + 2 * (i // 16), 16 + 2 * (i % 16)] = ORANGE_BGR
    return frame


HIGH_FRAME = frame_with_ratio_pixels(26)  # ~0.10
LOW_FRAME = frame_with_ratio_pixels(3)  # ~0.01


class FakeVideoSource(VideoSourceInterface):
    def __init__(self):
        self.frame = LOW_FRAME

    @property
    def video_width(self):
        return WIDTH

    @property
    def video_height(self):
        return HEIGHT

    def is_ready(self):
        return True

    def read_frame(self):
        return self.frame


class FakeCamera(CameraLifecycleInterface):
    def __init__(self, supported=True, acquire_error=None):
        self.supported = supported
        self.acquire_error = acquire_error
        self.source = FakeVideoSource()
        self.acquire_count = 0
        self.release_count = 0

    def is_capture_supported(self):
        return self.supported

    def acquire(self):
        self.acquire_count += 1
        if self.acquire_error is not None:
            raise self.acquire_error
        return self.source

    def wait_until_ready(self, timeout):
        pass

    def release(self):
        self.release_count += 1


class TestDetectionSession(unittest.TestCase):
    """Test cases for DetectionSession."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.asset_path = os.path.join(self.test_dir, "overlay.png")
        cv2.imwrite(self.asset_path, np.full((8, 8, 4), 255, dtype=np.uint8))
        asset_loader.clear_cache()

        self.config_manager = ConfigManager(os.path.join(self.test_dir, "config.json"))
        self.config_manager.update_config(asset_uri=self.asset_path)

        self.camera = FakeCamera()
        self.renderer = HeadlessOverlayRenderer()
        self.scheduler = DisplayLoop(clock=lambda: 0.0, sleep=lambda seconds: None)
        self.session = self.make_session(self.camera)

    def tearDown(self):
        self.session.stop()
        asset_loader.clear_cache()
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def make_session(self, camera):
        return DetectionSession(
            self.config_manager,
            camera=camera,
            renderer=self.renderer,
            scheduler=self.scheduler
        )

    def tick(self, frame, times=1):
        self.camera.source.frame = frame
        for _ in range(times):
            self.scheduler.run_once()

    def test_initial_state(self):
        self.assertEqual(self.session.state, OverlayState.LOADING)
        status = self.session.get_status()
        self.assertFalse(status['running'])
        self.assertEqual(status['state'], 'loading')

    def test_start_enters_live_feed(self):
        self.assertTrue(self.session.start())
        self.assertEqual(self.session.state, OverlayState.LIVE_FEED)
        self.assertTrue(self.renderer.video_visible)
        self.assertEqual(self.scheduler.pending_count, 1)

    def test_start_twice_is_rejected(self):
        self.assertTrue(self.session.start())
        self.assertFalse(self.session.start())
        self.assertEqual(self.camera.acquire_count, 1)

    def test_overlay_follows_detection(self):
        self.session.start()

        self.tick(HIGH_FRAME)
        self.assertEqual(self.session.state, OverlayState.LIVE_FEED)

        self.tick(HIGH_FRAME)
        self.assertEqual(self.session.state, OverlayState.OVERLAY_VISIBLE)
        self.assertTrue(self.renderer.asset_visible)
        self.assertFalse(self.renderer.video_visible)

        status = self.session.get_status()
        self.assertTrue(status['confirmed'])
        self.assertTrue(status['asset_loaded'])
        self.assertAlmostEqual(status['ratio'], 26 / 256)

        self.tick(LOW_FRAME)
        self.assertEqual(self.session.state, OverlayState.LIVE_FEED)
        self.assertTrue(self.renderer.video_visible)
        self.assertFalse(self.renderer.asset_visible)

    def test_ticks_are_counted_and_presented(self):
        self.session.start()
        self.tick(LOW_FRAME, times=3)
        status = self.session.get_status()
        self.assertEqual(status['tick_count'], 3)
        self.assertEqual(self.renderer.frames_presented, 4)  # plus the startup frame
        self.assertIsNotNone(status['uptime_seconds'])

    def test_missing_frame_is_skipped(self):
        self.session.start()
        self.tick(None)
        status = self.session.get_status()
        self.assertEqual(status['ticks_skipped'], 1)
        self.assertEqual(status['tick_count'], 0)
        self.assertEqual(self.scheduler.pending_count, 1)

    def test_capability_missing(self):
        camera = FakeCamera(supported=False)
        session = self.make_session(camera)

        self.assertFalse(session.start())
        self.assertEqual(session.state, OverlayState.ERROR)
        self.assertEqual(camera.acquire_count, 0)
        self.assertGreaterEqual(camera.release_count, 1)
        self.assertEqual(self.scheduler.pending_count, 0)
        self.assertIn("not supported", self.renderer.error_message)

    def test_acquisition_failure(self):
        camera = FakeCamera(acquire_error=AcquisitionFailure("Failed to access camera 0"))
        session = self.make_session(camera)

        self.assertFalse(session.start())
        self.assertEqual(session.state, OverlayState.ERROR)
        self.assertGreaterEqual(camera.release_count, 1)
        self.assertEqual(self.scheduler.pending_count, 0)
        self.assertEqual(session.get_status()['error_message'], "Failed to access camera 0")
        self.assertFalse(session.run())

    def test_stop_cancels_pending_tick(self):
        self.session.start()
        self.session.stop()
        self.assertFalse(self.session.running)
        self.assertEqual(self.scheduler.pending_count, 0)
        self.assertEqual(self.camera.release_count, 1)

        self.session.stop()
        self.assertEqual(self.scheduler.pending_count, 0)

    def test_request_stop_is_honoured_on_next_tick(self):
        self.session.start()
        self.session.request_stop()
        self.tick(HIGH_FRAME)
        self.assertFalse(self.session.running)
        self.assertEqual(self.scheduler.pending_count, 0)
        self.assertEqual(self.session.get_status()['tick_count'], 0)

    def test_restart_begins_clean(self):
        self.session.start()
        self.tick(HIGH_FRAME, times=2)
        self.session.stop()

        self.assertTrue(self.session.start())
        self.assertEqual(self.session.state, OverlayState.LIVE_FEED)
        self.assertFalse(self.session.get_status()['confirmed'])
        self.assertEqual(self.session.get_status()['consecutive_above_threshold'], 0)
        self.assertEqual(self.renderer.subscriber_count, 2)

        self.tick(HIGH_FRAME)
        self.assertEqual(self.session.state, OverlayState.LIVE_FEED)

    def test_run_with_frame_limit(self):
        self.assertTrue(self.session.run(max_frames=3))
        self.assertFalse(self.session.running)
        self.assertEqual(self.session.get_status()['tick_count'], 3)

    def test_context_manager_stops(self):
        with self.session as session:
            session.start()
        self.assertFalse(self.session.running)
        self.assertEqual(self.camera.release_count, 1)

    def test_required_overlay_failure_stops_session(self):
        self.config_manager.update_config(
            asset_uri=os.path.join(self.test_dir, "missing.png"),
            overlay_required=True
        )
        session = self.make_session(self.camera)
        session.start()

        self.tick(HIGH_FRAME, times=2)
        self.assertEqual(session.state, OverlayState.OVERLAY_VISIBLE)

        self.tick(LOW_FRAME)
        self.assertEqual(session.state, OverlayState.ERROR)
        self.assertFalse(session.running)
        self.assertEqual(self.scheduler.pending_count, 0)
        self.assertGreaterEqual(self.camera.release_count, 1)

    def test_asset_loaded_reported_after_restart(self):
        for _ in range(2):
            self.session.start()
            self.tick(HIGH_FRAME, times=2)
            self.assertEqual(self.session.state, OverlayState.OVERLAY_VISIBLE)
            self.assertTrue(self.session.get_status()['asset_loaded'])
            self.session.stop()

    def test_restart_after_failure_clears_error(self):
        self.camera.supported = False
        self.assertFalse(self.session.start())
        self.assertIsNotNone(self.renderer.error_message)

        self.camera.supported = True
        self.assertTrue(self.session.start())
        self.assertEqual(self.session.state, OverlayState.LIVE_FEED)
        self.assertIsNone(self.renderer.error_message)
        status = self.session.get_status()
        self.assertEqual(status['errors']['component_status']['detection_session'], 'healthy')

    def test_startup_frame_shows_placeholder(self):
        presented = []
        original_present = self.renderer.present

        def record(frame, status=None):
            presented.append(self.renderer.placeholder_text)
            original_present(frame, status)

        self.renderer.present = record
        self.session.start()
        self.assertEqual(presented, ["Starting camera..."])

    def test_failed_update_leaves_session_untouched(self):
        self.session.start()
        with self.assertRaises(ValueError):
            self.session.update_configuration(detection_threshold=0.5, detection_roi=5)

        self.assertEqual(self.config_manager.get_config().detection_threshold, 0.065)
        self.assertEqual(self.session.config.detection_threshold, 0.065)
        self.tick(LOW_FRAME)
        self.assertEqual(self.session.aggregator.threshold, 0.065)

    def test_pending_update_applies_on_restart(self):
        self.session.start()
        self.session.update_configuration(confirm_frames=3)
        self.session.stop()

        self.session.start()
        self.assertEqual(self.session.aggregator.confirm_frames, 3)

    def test_update_configuration_while_running(self):
        self.session.start()
        self.session.update_configuration(detection_threshold=0.5)
        self.assertEqual(self.session.aggregator.threshold, 0.065)
        self.assertEqual(self.session.config.detection_threshold, 0.065)

        self.tick(HIGH_FRAME, times=2)
        self.assertEqual(self.session.aggregator.threshold, 0.5)
        self.assertEqual(self.session.state, OverlayState.LIVE_FEED)

    def test_update_configuration_when_stopped(self):
        self.session.update_configuration(confirm_frames=3, target_fps=15.0)
        self.assertEqual(self.session.aggregator.confirm_frames, 3)
        self.assertEqual(self.scheduler.target_fps, 15.0)

    def test_invalid_configuration_is_rejected(self):
        with self.assertRaises(ValueError):
            self.session.update_configuration(confirm_frames=0)
        self.assertEqual(self.config_manager.get_config().confirm_frames, 2)
        self.assertEqual(self.session.aggregator.confirm_frames, 2)


if __name__ == '__main__':
    unittest.main()
