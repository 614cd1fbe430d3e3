"""Overlay visibility models."""

from enum import Enum


class OverlayState(Enum):
    """What the display currently shows."""
    LOADING = "loading"
    LIVE_FEED = "live_feed"
    OVERLAY_VISIBLE = "overlay_visible"
    ERROR = "error"
