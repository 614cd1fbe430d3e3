"""Renderers for the live feed and the overlay asset."""

from typing import Callable, List, Optional

import cv2
import numpy as np

from .interfaces import OverlayRendererInterface, Unsubscribe
from .error_handler import AssetLoadFailure
from . import asset_loader
from ..logging_config import get_logger

logger = get_logger("overlay_renderer")

QUIT_KEYS = (ord("q"), 27)


class BaseOverlayRenderer(OverlayRendererInterface):
    """Visibility bookkeeping and asset load callbacks shared by renderers."""

    def __init__(self):
        self.video_visible = False
        self.asset_visible = False
        self.asset_uri: Optional[str] = None
        self.error_message: Optional[str] = None
        self._asset_image: Optional[np.ndarray] = None
        self._asset_failed = False
        self._loaded_callbacks: List[Callable[[str], None]] = []
        self._error_callbacks: List[Callable[[str, Exception], None]] = []

    def on_asset_loaded(self, callback: Callable[[str], None]) -> Unsubscribe:
        self._loaded_callbacks.append(callback)
        return lambda: self._remove(self._loaded_callbacks, callback)

    def on_asset_error(self, callback: Callable[[str, Exception], None]) -> Unsubscribe:
        self._error_callbacks.append(callback)
        return lambda: self._remove(self._error_callbacks, callback)

    @property
    def subscriber_count(self) -> int:
        return len(self._loaded_callbacks) + len(self._error_callbacks)

    def show_video(self) -> None:
        self.video_visible = True

    def hide_video(self) -> None:
        self.video_visible = False

    def show_asset(self, uri: str) -> None:
        self.asset_visible = True
        self.asset_uri = uri
        try:
            # Cached after the first load; subscribers still hear about every mount
            self._asset_image = asset_loader.ensure_loaded(uri)
            self._asset_failed = False
        except AssetLoadFailure as e:
            self._asset_image = None
            self._asset_failed = True
            logger.error(f"Overlay asset failed to load: {e}")
            for callback in list(self._error_callbacks):
                callback(uri, e)
            return

        for callback in list(self._loaded_callbacks):
            callback(uri)

    def hide_asset(self) -> None:
        self.asset_visible = False

    def show_error(self, message: str) -> None:
        self.error_message = message
        self.video_visible = False
        self.asset_visible = False

    def reset(self) -> None:
        """Return to the blank starting surface of a new session."""
        self.video_visible = False
        self.asset_visible = False
        self.error_message = None

    @property
    def placeholder_text(self) -> Optional[str]:
        """Message drawn while there is nothing else to show."""
        if self.error_message or self.video_visible:
            return None
        if self.asset_visible:
            if self._asset_image is not None:
                return None
            return "Overlay unavailable" if self._asset_failed else "Loading overlay..."
        return "Starting camera..."

    @staticmethod
    def _remove(callbacks: list, callback) -> None:
        if callback in callbacks:
            callbacks.remove(callback)


class HeadlessOverlayRenderer(BaseOverlayRenderer):
    """Tracks visibility without drawing anything."""

    def __init__(self):
        super().__init__()
        self.frames_presented = 0

    def is_available(self) -> bool:
        return True

    def present(self, frame: Optional[np.ndarray], status: Optional[str] = None) -> None:
        self.frames_presented += 1

    def poll(self) -> bool:
        return True

    def close(self) -> None:
        pass


class OpenCVOverlayRenderer(BaseOverlayRenderer):
    """Draws the feed or the asset into a HighGUI window."""

    def __init__(self, window_name: str = "Pot Overlay"):
        super().__init__()
        self.window_name = window_name
        self._window_open = False

    def is_available(self) -> bool:
        try:
            cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)
        except cv2.error as e:
            logger.error(f"No display available for OpenCV window: {e}")
            return False
        self._window_open = True
        return True

    def present(self, frame: Optional[np.ndarray], status: Optional[str] = None) -> None:
        if not self._window_open:
            return
        cv2.imshow(self.window_name, self.compose(frame, status))

    def show_asset(self, uri: str) -> None:
        if self._window_open and (self._asset_image is None or uri != self.asset_uri):
            # Reading the asset blocks the loop, so draw the placeholder first
            self.asset_visible = True
            self._asset_image = None
            self._asset_failed = False
            self.present(None)
            cv2.waitKey(1)
        super().show_asset(uri)

    def compose(self, frame: Optional[np.ndarray], status: Optional[str] = None) -> np.ndarray:
        """Build the BGR image for the current visibility state."""
        if frame is not None:
            height, width = frame.shape[:2]
        else:
            height, width = 480, 640
        canvas = np.zeros((height, width, 3), dtype=np.uint8)

        if self.video_visible and frame is not None:
            canvas = cv2.cvtColor(frame, cv2.COLOR_RGBA2BGR)
        elif self.asset_visible and self._asset_image is not None:
            self._draw_asset(canvas)
        elif self.placeholder_text:
            self._draw_centered_text(canvas, self.placeholder_text)

        if self.error_message:
            self._draw_banner(canvas, f"Error: {self.error_message}", (0, 0, 200))
        elif status:
            self._draw_banner(canvas, status, (40, 40, 40))
        return canvas

    def poll(self) -> bool:
        """Pump window events; False when the user asked to quit."""
        if not self._window_open:
            return True
        key = cv2.waitKey(1) & 0xFF
        return key not in QUIT_KEYS

    def close(self) -> None:
        if self._window_open:
            cv2.destroyWindow(self.window_name)
            self._window_open = False

    def _draw_asset(self, canvas: np.ndarray) -> None:
        asset = self._asset_image
        height, width = canvas.shape[:2]
        scale = min(width / asset.shape[1], height / asset.shape[0])
        fitted = cv2.resize(asset, (max(1, int(asset.shape[1] * scale)), max(1, int(asset.shape[0] * scale))))

        if fitted.ndim == 2:
            fitted = cv2.cvtColor(fitted, cv2.COLOR_GRAY2BGR)

        top = (height - fitted.shape[0]) // 2
        left = (width - fitted.shape[1]) // 2
        target = canvas[top:top + fitted.shape[0], left:left + fitted.shape[1]]

        if fitted.shape[2] == 4:
            alpha = fitted[:, :, 3:4].astype(np.float32) / 255.0
            blended = fitted[:, :, :3].astype(np.float32) * alpha + target.astype(np.float32) * (1.0 - alpha)
            target[:] = blended.astype(np.uint8)
        else:
            target[:] = fitted

    @staticmethod
    def _draw_centered_text(canvas: np.ndarray, text: str) -> None:
        height, width = canvas.shape[:2]
        (text_width, text_height), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, 0.8, 2)
        origin = ((width - text_width) // 2, (height + text_height) // 2)
        cv2.putText(canvas, text, origin, cv2.FONT_HERSHEY_SIMPLEX, 0.8,
                    (255, 255, 255), 2, cv2.LINE_AA)

    @staticmethod
    def _draw_banner(canvas: np.ndarray, text: str, color) -> None:
        height, width = canvas.shape[:2]
        cv2.rectangle(canvas, (0, height - 36), (width, height), color, thickness=-1)
        cv2.putText(canvas, text, (10, height - 12), cv2.FONT_HERSHEY_SIMPLEX, 0.6,
                    (255, 255, 255), 1, cv2.LINE_AA)
