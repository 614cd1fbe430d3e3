"""Services for the pot overlay detection system."""

from .interfaces import (
    VideoSourceInterface,
    CameraLifecycleInterface,
    OverlayRendererInterface,
    FrameSchedulerInterface
)
from .frame_sampler import FrameSampler
from .region_classifier import RegionClassifier, ColorRange, ColorProfile, POT_PROFILE
from .detection_aggregator import DetectionAggregator
from .overlay_controller import OverlayController

__all__ = [
    'VideoSourceInterface',
    'CameraLifecycleInterface',
    'OverlayRendererInterface',
    'FrameSchedulerInterface',
    'FrameSampler',
    'RegionClassifier',
    'ColorRange',
    'ColorProfile',
    'POT_PROFILE',
    'DetectionAggregator',
    'OverlayController'
]
