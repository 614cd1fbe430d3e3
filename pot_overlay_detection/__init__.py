"""
Pot Overlay Detection System

Samples a live camera feed, looks for pot-coloured pixels in the centre of
the frame, and swaps the video for an overlay asset once a pot is confirmed.
"""

__version__ = "1.0.0"
__author__ = "Pot Overlay Detection System"

# Import core components
from .config_manager import ConfigManager
from .detection_session import DetectionSession
from .models import (
    RegionOfInterest,
    DetectionSample,
    DetectionState,
    OverlayState,
    SystemConfig
)
from .services import (
    VideoSourceInterface,
    CameraLifecycleInterface,
    OverlayRendererInterface,
    FrameSchedulerInterface,
    FrameSampler,
    RegionClassifier,
    DetectionAggregator,
    OverlayController
)

__all__ = [
    # Core management
    'ConfigManager',
    'DetectionSession',

    # Data models
    'RegionOfInterest',
    'DetectionSample',
    'DetectionState',
    'OverlayState',
    'SystemConfig',

    # Service interfaces
    'VideoSourceInterface',
    'CameraLifecycleInterface',
    'OverlayRendererInterface',
    'FrameSchedulerInterface',

    # Pipeline stages
    'FrameSampler',
    'RegionClassifier',
    'DetectionAggregator',
    'OverlayController'
]
