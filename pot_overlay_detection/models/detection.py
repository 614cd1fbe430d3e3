"""Detection data models."""

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class RegionOfInterest:
    """Rectangle expressed as fractions of the full frame."""
    x: float = 0.25
    y: float = 0.25
    width: float = 0.5
    height: float = 0.5

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"ROI must have a positive size, got {self.width}x{self.height}")
        if self.x < 0 or self.y < 0:
            raise ValueError(f"ROI origin must not be negative, got ({self.x}, {self.y})")
        if self.x + self.width > 1.0 or self.y + self.height > 1.0:
            raise ValueError("ROI must lie inside the frame")

    @classmethod
    def from_sequence(cls, values) -> "RegionOfInterest":
        """Build an ROI from an (x, y, width, height) sequence."""
        x, y, width, height = values
        return cls(float(x), float(y), float(width), float(height))

    def to_pixels(self, frame_width: int, frame_height: int) -> Tuple[int, int, int, int]:
        """Scale to pixel coordinates (x0, y0, width, height), flooring each term."""
        return (
            math.floor(frame_width * self.x),
            math.floor(frame_height * self.y),
            math.floor(frame_width * self.width),
            math.floor(frame_height * self.height),
        )


@dataclass(frozen=True)
class DetectionSample:
    """Result of classifying one frame."""
    matched_pixel_count: int
    sampled_pixel_count: float
    ratio: float


@dataclass
class DetectionState:
    """Debounced detection state, mutated only by the aggregator."""
    consecutive_above_threshold: int = 0
    confirmed: bool = False
