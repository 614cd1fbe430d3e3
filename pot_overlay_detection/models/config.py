"""Configuration data models."""

from dataclasses import dataclass
from typing import Tuple


@dataclass
class SystemConfig:
    """System configuration settings."""
    # Detection settings
    detection_threshold: float = 0.065  # Ratio must be strictly above this
    confirm_frames: int = 2  # Consecutive frames required to confirm
    sample_stride: int = 2
    detection_roi: Tuple[float, float, float, float] = (0.25, 0.25, 0.5, 0.5)

    # Camera settings
    camera_index: int = 0
    camera_width: int = 1280
    camera_height: int = 720
    ready_timeout_seconds: float = 5.0

    # Display loop
    target_fps: float = 30.0

    # Overlay settings
    asset_uri: str = "models/overlay.png"
    overlay_required: bool = False
    window_name: str = "Pot Overlay"

    # Observability
    log_level: str = "INFO"
    log_dir: str = "logs"
    status_host: str = "127.0.0.1"
    status_port: int = 5000
