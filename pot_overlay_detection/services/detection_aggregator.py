"""Debouncing of per-frame detection ratios."""

from typing import Optional

from ..models.detection import DetectionSample, DetectionState
from ..logging_config import get_logger

logger = get_logger("detection_aggregator")


class DetectionAggregator:
    """Turns a stream of detection samples into a confirmed / not confirmed signal.

    Confirmation needs ``confirm_frames`` consecutive samples strictly above
    ``threshold``. A single sample at or below the threshold clears it.
    """

    def __init__(self, threshold: float = 0.065, confirm_frames: int = 2):
        if confirm_frames < 1:
            raise ValueError(f"confirm_frames must be at least 1, got {confirm_frames}")
        self.threshold = threshold
        self.confirm_frames = confirm_frames
        self.state = DetectionState()
        self.latest_sample: Optional[DetectionSample] = None

    @property
    def latest_ratio(self) -> float:
        return self.latest_sample.ratio if self.latest_sample else 0.0

    @property
    def confirmed(self) -> bool:
        return self.state.confirmed

    def update(self, sample: DetectionSample) -> DetectionState:
        """Consume one sample and return the updated state."""
        self.latest_sample = sample
        was_confirmed = self.state.confirmed

        if sample.ratio > self.threshold:
            self.state.consecutive_above_threshold += 1
            if self.state.consecutive_above_threshold >= self.confirm_frames:
                self.state.confirmed = True
        else:
            self.state.consecutive_above_threshold = 0
            self.state.confirmed = False

        if self.state.confirmed != was_confirmed:
            logger.info(f"Detection {'confirmed' if self.state.confirmed else 'cleared'} "
                        f"(ratio={sample.ratio:.4f})")

        return self.state

    def set_threshold(self, threshold: float) -> None:
        self.threshold = threshold
        logger.info(f"Detection threshold set to {threshold}")

    def set_confirm_frames(self, confirm_frames: int) -> None:
        if confirm_frames < 1:
            raise ValueError(f"confirm_frames must be at least 1, got {confirm_frames}")
        self.confirm_frames = confirm_frames
        logger.info(f"Confirmation frames set to {confirm_frames}")

    def reset(self) -> None:
        self.state = DetectionState()
        self.latest_sample = None
