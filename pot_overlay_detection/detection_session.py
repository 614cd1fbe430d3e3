"""Detection session that wires the camera, detection pipeline and overlay together."""

import time
from datetime import datetime
from typing import Optional, Dict, Any

from .services.interfaces import (
    CameraLifecycleInterface, OverlayRendererInterface, FrameSchedulerInterface
)
from .services.camera_lifecycle import OpenCVCameraLifecycle
from .services.display_loop import DisplayLoop
from .services.frame_sampler import FrameSampler
from .services.region_classifier import RegionClassifier
from .services.detection_aggregator import DetectionAggregator
from .services.overlay_controller import OverlayController
from .services.overlay_renderer import OpenCVOverlayRenderer
from .services.error_handler import (
    AcquisitionFailure, CapabilityMissing, ErrorSeverity, NotReady, global_error_handler
)
from .models.config import SystemConfig
from .models.detection import RegionOfInterest
from .models.overlay import OverlayState
from .config_manager import ConfigManager
from .logging_config import get_logger, log_performance

logger = get_logger("detection_session")


class DetectionSession:
    """One camera session: sample, classify, debounce, and gate the overlay.

    Everything runs on the thread that drives the scheduler. Each tick runs
    to completion and requests the next one at its end.
    """

    def __init__(self,
                 config_manager: Optional[ConfigManager] = None,
                 camera: Optional[CameraLifecycleInterface] = None,
                 renderer: Optional[OverlayRendererInterface] = None,
                 scheduler: Optional[FrameSchedulerInterface] = None):
        self.config_manager = config_manager or ConfigManager()
        self.config = self.config_manager.get_config()

        self.camera = camera or OpenCVCameraLifecycle(
            camera_index=self.config.camera_index,
            width=self.config.camera_width,
            height=self.config.camera_height
        )
        self.renderer = renderer or OpenCVOverlayRenderer(self.config.window_name)
        self.scheduler = scheduler or DisplayLoop(
            target_fps=self.config.target_fps,
            frame_hook=self.renderer.poll
        )

        self.classifier = self._build_classifier(self.config)
        self.aggregator = DetectionAggregator(
            threshold=self.config.detection_threshold,
            confirm_frames=self.config.confirm_frames
        )
        self.controller: Optional[OverlayController] = None
        self.sampler: Optional[FrameSampler] = None

        self.running = False
        self.start_time: Optional[datetime] = None
        self.tick_count = 0
        self.ticks_skipped = 0
        self.last_tick_ms = 0.0

        self._tick_handle: Optional[int] = None
        self._pending_config: Optional[SystemConfig] = None
        self._stop_requested = False
        self._status: Dict[str, Any] = {}

        self.config_manager.register_change_callback(self._on_config_changed)
        global_error_handler.register_component("detection_session")
        self._publish_status()

    def __enter__(self) -> "DetectionSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    @property
    def state(self) -> OverlayState:
        return self.controller.state if self.controller else OverlayState.LOADING

    def start(self) -> bool:
        """Acquire the camera and schedule the first tick.

        Returns False when the session is already running or setup fails.
        """
        if self.running:
            logger.warning("Session is already running")
            return False

        self._apply_pending_config()
        self.aggregator.reset()
        self.tick_count = 0
        self._stop_requested = False
        self.ticks_skipped = 0
        if self.controller is not None:
            self.controller.teardown()
        self.controller = OverlayController(
            self.renderer,
            asset_uri=self.config.asset_uri,
            overlay_required=self.config.overlay_required
        )
        self.controller.add_stop_listener(self._halt_sampling)
        self.controller.add_transition_listener(self._on_transition)
        global_error_handler.reset_error_counts()
        self.renderer.reset()

        try:
            self._check_capabilities()
            self.renderer.present(None)
            self.renderer.poll()
            source = self.camera.acquire()
            self.camera.wait_until_ready(self.config.ready_timeout_seconds)
        except (CapabilityMissing, AcquisitionFailure) as e:
            global_error_handler.handle_error("detection_session", e, ErrorSeverity.CRITICAL)
            self.controller.fail(str(e))
            self.camera.release()
            self._publish_status()
            return False

        self.sampler = FrameSampler(source)
        self.running = True
        self.start_time = datetime.now()
        self.controller.camera_ready()
        self._schedule_next()
        self._publish_status()

        logger.info("Detection session started")
        return True

    def stop(self) -> None:
        """Cancel the pending tick and release the camera; safe to call repeatedly."""
        self._stop_requested = False
        was_running = self.running
        self._halt_sampling()
        if self.controller is not None:
            self.controller.teardown()
        self._publish_status()
        if was_running:
            logger.info("Detection session stopped")

    def request_stop(self) -> None:
        """Thread-safe stop request, honoured at the start of the next tick."""
        self._stop_requested = True

    def run(self, max_frames: Optional[int] = None) -> bool:
        """Start if needed and drive the display loop; True unless the session failed."""
        if not self.running and not self.start():
            return False
        try:
            self.scheduler.run(max_frames=max_frames)
        finally:
            self.stop()
        return self.state != OverlayState.ERROR

    def tick(self) -> None:
        """Run one sampling pass."""
        self._tick_handle = None
        if self._stop_requested:
            self.stop()
            return
        if not self.running or self.controller is None or self.controller.is_terminal:
            return

        tick_start = time.perf_counter()
        self._apply_pending_config()

        try:
            pixels = self.sampler.sample()
        except NotReady as e:
            logger.debug(f"Skipping tick: {e}")
            pixels = None

        if pixels is None:
            self.ticks_skipped += 1
            self.renderer.present(None, self._status_text())
            self._finish_tick(tick_start)
            return

        try:
            sample = self.classifier.classify(pixels)
        except ValueError as e:
            global_error_handler.handle_error("detection_session", e, ErrorSeverity.MEDIUM)
            self.ticks_skipped += 1
            self._finish_tick(tick_start)
            return

        state = self.aggregator.update(sample)
        self.controller.update(state.confirmed)
        self.renderer.present(pixels, self._status_text())
        self.tick_count += 1
        self._finish_tick(tick_start)

    def update_configuration(self, **kwargs) -> None:
        """Persist config changes; live components pick them up on the next tick.

        Raises ValueError and keeps the previous configuration if the result
        does not validate.
        """
        self.config_manager.update_config(**kwargs)
        logger.info(f"Configuration updated: {kwargs}")

    def _on_transition(self, old_state: OverlayState, new_state: OverlayState) -> None:
        self._publish_status()

    def _on_config_changed(self, config: SystemConfig) -> None:
        # May run on the status server thread; the loop thread swaps it in
        if self.running:
            self._pending_config = config
        else:
            self._apply_config(config)

    def get_status(self) -> Dict[str, Any]:
        """Read-only snapshot published at the end of the last tick."""
        status = dict(self._status)
        status["uptime_seconds"] = (
            (datetime.now() - self.start_time).total_seconds() if self.start_time and self.running else None
        )
        return status

    def _check_capabilities(self) -> None:
        if not self.renderer.is_available():
            raise CapabilityMissing("No rendering surface is available, which is required for the overlay")
        if not self.camera.is_capture_supported():
            raise CapabilityMissing("Camera access is not supported on this system")

    def _schedule_next(self) -> None:
        if self.running and self.controller is not None and not self.controller.is_terminal:
            self._tick_handle = self.scheduler.request_frame(self.tick)

    def _finish_tick(self, tick_start: float) -> None:
        self.last_tick_ms = (time.perf_counter() - tick_start) * 1000
        self._publish_status()
        log_performance("tick", {
            "ms": f"{self.last_tick_ms:.2f}",
            "ratio": f"{self.aggregator.latest_ratio:.4f}",
            "confirmed": self.aggregator.confirmed
        })
        self._schedule_next()

    def _halt_sampling(self) -> None:
        if self._tick_handle is not None:
            self.scheduler.cancel_frame(self._tick_handle)
            self._tick_handle = None
        self.running = False
        self.camera.release()

    def _apply_pending_config(self) -> None:
        config, self._pending_config = self._pending_config, None
        if config is not None:
            self._apply_config(config)

    def _apply_config(self, config: SystemConfig) -> None:
        self.config = config
        self.aggregator.set_threshold(config.detection_threshold)
        self.aggregator.set_confirm_frames(config.confirm_frames)
        self.classifier = self._build_classifier(config)
        if hasattr(self.scheduler, "set_target_fps"):
            self.scheduler.set_target_fps(config.target_fps)
        if self.controller is not None:
            self.controller.overlay_required = config.overlay_required

    @staticmethod
    def _build_classifier(config: SystemConfig) -> RegionClassifier:
        return RegionClassifier(
            roi=RegionOfInterest.from_sequence(config.detection_roi),
            stride=config.sample_stride
        )

    def _status_text(self) -> str:
        return f"Detection: {self.aggregator.latest_ratio * 100:.2f}%"

    def _publish_status(self) -> None:
        sample = self.aggregator.latest_sample
        controller_status = self.controller.get_status() if self.controller else {
            "state": OverlayState.LOADING.value,
            "asset_uri": self.config.asset_uri,
            "asset_loaded": False,
            "asset_error": None,
            "error_message": None,
            "transition_count": 0
        }
        camera_info = self.camera.get_camera_info() if hasattr(self.camera, "get_camera_info") else {}

        self._status = {
            "running": self.running,
            "ratio": self.aggregator.latest_ratio,
            "matched_pixels": sample.matched_pixel_count if sample else 0,
            "sampled_pixels": sample.sampled_pixel_count if sample else 0,
            "confirmed": self.aggregator.confirmed,
            "consecutive_above_threshold": self.aggregator.state.consecutive_above_threshold,
            **controller_status,
            "tick_count": self.tick_count,
            "ticks_skipped": self.ticks_skipped,
            "last_tick_ms": self.last_tick_ms,
            "camera": camera_info,
            "errors": global_error_handler.get_error_stats()
        }
