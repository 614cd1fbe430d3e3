"""Color heuristic classification of the region of interest."""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ..config.defaults import SYSTEM_CONSTANTS
from ..models.detection import DetectionSample, RegionOfInterest


@dataclass(frozen=True)
class ColorRange:
    """RGB range with exclusive bounds; ``None`` leaves a bound open."""
    name: str
    r_min: Optional[int] = None
    r_max: Optional[int] = None
    g_min: Optional[int] = None
    g_max: Optional[int] = None
    b_min: Optional[int] = None
    b_max: Optional[int] = None

    def matches(self, r, g, b):
        """Works on scalars and element-wise on numpy arrays."""
        result = True
        for value, low, high in ((r, self.r_min, self.r_max),
                                 (g, self.g_min, self.g_max),
                                 (b, self.b_min, self.b_max)):
            if low is not None:
                result = result & (value > low)
            if high is not None:
                result = result & (value < high)
        return result


@dataclass(frozen=True)
class ColorProfile:
    """Ranges combined with logical OR."""
    name: str
    ranges: Tuple[ColorRange, ...]

    def matches(self, r, g, b):
        result = False
        for color_range in self.ranges:
            result = result | color_range.matches(r, g, b)
        return result


POT_PROFILE = ColorProfile(
    name="pot",
    ranges=(
        ColorRange("orange-pot", r_min=180, r_max=255, g_min=80, g_max=180, b_max=100),
        ColorRange("darker-orange", r_min=150, r_max=200, g_min=60, g_max=120, b_max=80),
    ),
)


class RegionClassifier:
    """Counts profile matches inside the ROI of an RGBA pixel buffer."""

    def __init__(self,
                 profile: ColorProfile = POT_PROFILE,
                 roi: Optional[RegionOfInterest] = None,
                 stride: int = 2):
        if stride < 1:
            raise ValueError(f"stride must be at least 1, got {stride}")
        self.profile = profile
        self.roi = roi or RegionOfInterest()
        self.stride = stride

    def is_match(self, r: int, g: int, b: int) -> bool:
        return bool(self.profile.matches(r, g, b))

    def classify(self, pixels: np.ndarray) -> DetectionSample:
        """Classify one frame and return its detection sample."""
        if pixels.ndim != 3 or pixels.shape[2] < 3:
            raise ValueError(f"expected an (H, W, 4) RGBA buffer, got shape {pixels.shape}")

        height, width = pixels.shape[:2]
        x0, y0, roi_width, roi_height = self.roi.to_pixels(width, height)

        region = pixels[y0:y0 + roi_height:self.stride, x0:x0 + roi_width:self.stride]
        # Widen so bounds outside 0..255 compare correctly
        r = region[..., 0].astype(np.int16)
        g = region[..., 1].astype(np.int16)
        b = region[..., 2].astype(np.int16)
        matched = int(np.count_nonzero(self.profile.matches(r, g, b)))

        # Nominal sample count, not the number of pixels visited by the stride
        sampled = (width * height) / SYSTEM_CONSTANTS["NOMINAL_SAMPLE_DIVISOR"]
        ratio = matched / sampled if sampled > 0 else 0.0

        return DetectionSample(
            matched_pixel_count=matched,
            sampled_pixel_count=sampled,
            ratio=ratio
        )
