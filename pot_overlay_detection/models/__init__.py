"""Data models for the pot overlay detection system."""

from .detection import RegionOfInterest, DetectionSample, DetectionState
from .overlay import OverlayState
from .config import SystemConfig

__all__ = ['RegionOfInterest', 'DetectionSample', 'DetectionState', 'OverlayState', 'SystemConfig']
