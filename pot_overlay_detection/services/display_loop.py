"""Single threaded per-frame callback scheduler."""

import itertools
import time
from collections import OrderedDict
from typing import Callable, Optional

from .interfaces import FrameSchedulerInterface
from ..logging_config import get_logger

logger = get_logger("display_loop")


class DisplayLoop(FrameSchedulerInterface):
    """Runs requested callbacks once per frame at no more than ``target_fps``.

    Callbacks requested while a frame is running are deferred to the next
    frame, so a callback that re-requests itself runs once per frame.
    """

    def __init__(self, target_fps: float = 30.0,
                 frame_hook: Optional[Callable[[], bool]] = None,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self.target_fps = target_fps
        self.frame_hook = frame_hook
        self._clock = clock
        self._sleep = sleep
        self._pending: "OrderedDict[int, Callable[[], None]]" = OrderedDict()
        self._handles = itertools.count(1)
        self._running = False
        self.frame_count = 0

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def running(self) -> bool:
        return self._running

    def request_frame(self, callback: Callable[[], None]) -> int:
        handle = next(self._handles)
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: int) -> None:
        self._pending.pop(handle, None)

    def set_target_fps(self, target_fps: float) -> None:
        self.target_fps = target_fps

    def run_once(self) -> int:
        """Run every callback queued before this call; returns how many ran."""
        batch = list(self._pending.keys())
        ran = 0
        for handle in batch:
            callback = self._pending.pop(handle, None)
            if callback is None:
                continue
            callback()
            ran += 1
        self.frame_count += 1
        return ran

    def run(self, max_frames: Optional[int] = None) -> int:
        """Drive frames until idle, stopped, or ``max_frames``; returns frames run."""
        self._running = True
        frames = 0
        try:
            while self._running and self._pending:
                if max_frames is not None and frames >= max_frames:
                    break

                started = self._clock()
                self.run_once()
                frames += 1

                if self.frame_hook is not None and self.frame_hook() is False:
                    logger.info("Display loop stopped by frame hook")
                    break

                if self.target_fps > 0:
                    remaining = (1.0 / self.target_fps) - (self._clock() - started)
                    if remaining > 0:
                        self._sleep(remaining)
        finally:
            self._running = False
        return frames

    def stop(self) -> None:
        self._running = False
