"""Camera acquisition and release for a detection session."""

import time
from typing import Optional, Any

import cv2
import numpy as np

from .interfaces import CameraLifecycleInterface, VideoSourceInterface
from .error_handler import AcquisitionFailure
from ..config.defaults import SYSTEM_CONSTANTS
from ..logging_config import get_logger

logger = get_logger("camera_lifecycle")


class OpenCVVideoSource(VideoSourceInterface):
    """Video source backed by an opened ``cv2.VideoCapture``.

    Dimensions stay 0 until the first frame arrives, which is what marks the
    source ready.
    """

    def __init__(self, capture: Any):
        self._capture = capture
        self._width = 0
        self._height = 0
        self._frames_read = 0

    @property
    def video_width(self) -> int:
        return self._width

    @property
    def video_height(self) -> int:
        return self._height

    def is_ready(self) -> bool:
        return self._frames_read > 0 and self._width > 0 and self._height > 0

    def read_frame(self) -> Optional[np.ndarray]:
        if self._capture is None or not self._capture.isOpened():
            return None
        ok, frame = self._capture.read()
        if not ok or frame is None:
            return None
        self._height, self._width = frame.shape[:2]
        self._frames_read += 1
        return frame

    def close(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
        self._width = 0
        self._height = 0


class OpenCVCameraLifecycle(CameraLifecycleInterface):
    """Opens a local camera through OpenCV and owns it for one session."""

    def __init__(self, camera_index: int = 0, width: Optional[int] = 1280,
                 height: Optional[int] = 720, backend: Optional[int] = None):
        self.camera_index = camera_index
        self.width = width
        self.height = height
        self.backend = backend
        self.source: Optional[OpenCVVideoSource] = None

    def is_capture_supported(self) -> bool:
        try:
            backends = cv2.videoio_registry.getCameraBackends()
        except (AttributeError, cv2.error) as e:
            logger.error(f"Could not query OpenCV camera backends: {e}")
            return False
        return len(backends) > 0

    def acquire(self) -> OpenCVVideoSource:
        if self.source is not None:
            return self.source

        try:
            if self.backend is not None:
                capture = cv2.VideoCapture(self.camera_index, self.backend)
            else:
                capture = cv2.VideoCapture(self.camera_index)
        except cv2.error as e:
            raise AcquisitionFailure(f"Failed to access camera {self.camera_index}: {e}") from e

        if not capture.isOpened():
            capture.release()
            raise AcquisitionFailure(
                f"Failed to access camera {self.camera_index}. "
                "Please ensure the camera is connected and not in use."
            )

        if self.width is not None:
            capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        if self.height is not None:
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

        self.source = OpenCVVideoSource(capture)
        logger.info(f"Camera opened at index {self.camera_index}")
        return self.source

    def wait_until_ready(self, timeout: float) -> None:
        if self.source is None:
            raise AcquisitionFailure("Camera has not been acquired")

        deadline = time.monotonic() + timeout
        while not self.source.is_ready():
            if time.monotonic() >= deadline:
                raise AcquisitionFailure(f"Camera did not deliver a frame within {timeout:.1f}s")
            if self.source.read_frame() is None:
                time.sleep(SYSTEM_CONSTANTS["READY_POLL_INTERVAL_SECONDS"])

        logger.info(f"Camera ready at {self.source.video_width}x{self.source.video_height}")

    def release(self) -> None:
        if self.source is not None:
            self.source.close()
            self.source = None
            logger.info("Camera released")

    def get_camera_info(self) -> dict:
        return {
            "camera_index": self.camera_index,
            "requested_resolution": (self.width, self.height),
            "acquired": self.source is not None,
            "ready": self.source.is_ready() if self.source else False,
            "resolution": (self.source.video_width, self.source.video_height) if self.source else (0, 0)
        }
