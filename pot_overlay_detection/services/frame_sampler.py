"""Frame sampling from the live video source into an RGBA pixel buffer."""

from typing import Optional, Tuple

import cv2
import numpy as np

from .interfaces import VideoSourceInterface
from .error_handler import (
    ErrorSeverity, NotReady, TransientReadFailure, global_error_handler, with_error_handling
)
from ..logging_config import get_logger

logger = get_logger("frame_sampler")

# cvtColor codes for each source layout, keyed by channel count
_TO_RGBA = {
    1: cv2.COLOR_GRAY2RGBA,
    3: cv2.COLOR_BGR2RGBA,
    4: cv2.COLOR_BGRA2RGBA,
}


class FrameSampler:
    """Draws the current video frame into a backing surface once per tick.

    The surface is an ``(H, W, 4)`` uint8 RGBA array reused between ticks and
    reallocated whenever the source resolution changes. Callers must not keep
    the returned buffer past the current tick.
    """

    def __init__(self, source: VideoSourceInterface, source_is_rgba: bool = False):
        self.source = source
        self.source_is_rgba = source_is_rgba
        self._surface: Optional[np.ndarray] = None
        self.frames_sampled = 0
        self.frames_skipped = 0

        global_error_handler.register_component("frame_sampler")

    @property
    def surface_size(self) -> Tuple[int, int]:
        """Current (width, height) of the backing surface, (0, 0) before the first frame."""
        if self._surface is None:
            return (0, 0)
        return (self._surface.shape[1], self._surface.shape[0])

    def sample(self) -> Optional[np.ndarray]:
        """Return the current frame as RGBA, or None when the read failed.

        Raises NotReady when the source reports zero dimensions.
        """
        width, height = self.source.video_width, self.source.video_height
        if width <= 0 or height <= 0:
            raise NotReady(f"video source not ready ({width}x{height})")

        pixels = self._draw_frame()
        if pixels is None:
            self.frames_skipped += 1
            return None

        self.frames_sampled += 1
        global_error_handler.mark_healthy("frame_sampler")
        return pixels

    def _ensure_surface(self, width: int, height: int) -> None:
        if self.surface_size != (width, height):
            if self._surface is not None:
                logger.info(f"Video resolution changed to {width}x{height}, resizing surface")
            self._surface = np.zeros((height, width, 4), dtype=np.uint8)

    @with_error_handling("frame_sampler", ErrorSeverity.MEDIUM,
                         handled=(TransientReadFailure,))
    def _draw_frame(self) -> np.ndarray:
        frame = self._read_source()

        if frame.ndim == 2:
            frame = frame[:, :, np.newaxis]
        if frame.ndim != 3:
            raise TransientReadFailure(f"unsupported frame layout {frame.shape}")
        channels = frame.shape[2]
        if channels not in _TO_RGBA or frame.dtype != np.uint8:
            raise TransientReadFailure(f"unsupported frame layout {frame.shape} {frame.dtype}")

        # Sized from the frame itself; source dimensions describe the previous read
        self._ensure_surface(frame.shape[1], frame.shape[0])

        if channels == 4 and self.source_is_rgba:
            np.copyto(self._surface, frame)
        else:
            try:
                converted = cv2.cvtColor(frame, _TO_RGBA[channels])
            except cv2.error as e:
                raise TransientReadFailure(f"could not convert frame: {e}") from e
            np.copyto(self._surface, converted)

        return self._surface

    def _read_source(self) -> np.ndarray:
        try:
            frame = self.source.read_frame()
        except Exception as e:
            raise TransientReadFailure(f"frame read failed: {e}") from e
        if frame is None:
            raise TransientReadFailure("video source returned no frame")
        return np.asarray(frame)
