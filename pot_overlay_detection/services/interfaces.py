"""Service interfaces and abstract base classes."""

from abc import ABC, abstractmethod
from typing import Callable, Optional

import numpy as np

NDArray = np.ndarray

Unsubscribe = Callable[[], None]


class VideoSourceInterface(ABC):
    """A live, already permitted video source."""

    @property
    @abstractmethod
    def video_width(self) -> int:
        """Native frame width, 0 until metadata is known."""
        pass

    @property
    @abstractmethod
    def video_height(self) -> int:
        """Native frame height, 0 until metadata is known."""
        pass

    @abstractmethod
    def is_ready(self) -> bool:
        """True once metadata is loaded and playback has started."""
        pass

    @abstractmethod
    def read_frame(self) -> Optional[NDArray]:
        """Return the current frame, or None if it cannot be read."""
        pass


class CameraLifecycleInterface(ABC):
    """Acquires and releases the camera stream for a session."""

    @abstractmethod
    def is_capture_supported(self) -> bool:
        """Check that media capture is possible at all."""
        pass

    @abstractmethod
    def acquire(self) -> VideoSourceInterface:
        """Open the camera. Raises AcquisitionFailure."""
        pass

    @abstractmethod
    def wait_until_ready(self, timeout: float) -> None:
        """Block until the source is ready. Raises AcquisitionFailure."""
        pass

    @abstractmethod
    def release(self) -> None:
        """Release the stream; safe to call repeatedly."""
        pass


class OverlayRendererInterface(ABC):
    """External renderer that draws either the live video or the overlay asset."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check that a rendering surface can be created."""
        pass

    @abstractmethod
    def show_video(self) -> None:
        pass

    @abstractmethod
    def hide_video(self) -> None:
        pass

    @abstractmethod
    def show_asset(self, uri: str) -> None:
        """Mount and show the overlay asset."""
        pass

    @abstractmethod
    def hide_asset(self) -> None:
        pass

    @abstractmethod
    def show_error(self, message: str) -> None:
        pass

    @abstractmethod
    def reset(self) -> None:
        """Clear visibility and any error message before a new session."""
        pass

    @abstractmethod
    def present(self, frame: Optional[NDArray], status: Optional[str] = None) -> None:
        """Draw the latest RGBA frame with whatever is currently visible."""
        pass

    @abstractmethod
    def poll(self) -> bool:
        """Pump renderer events once per frame; False asks the loop to stop."""
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    @abstractmethod
    def on_asset_loaded(self, callback: Callable[[str], None]) -> Unsubscribe:
        pass

    @abstractmethod
    def on_asset_error(self, callback: Callable[[str, Exception], None]) -> Unsubscribe:
        pass


class FrameSchedulerInterface(ABC):
    """Per display frame callback scheduling."""

    @abstractmethod
    def request_frame(self, callback: Callable[[], None]) -> int:
        pass

    @abstractmethod
    def cancel_frame(self, handle: int) -> None:
        pass

    @abstractmethod
    def run(self, max_frames: Optional[int] = None) -> int:
        """Drive frames until nothing is pending; returns the number of frames run."""
        pass
