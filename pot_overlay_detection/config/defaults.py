"""Default configuration values and constants."""

# System constants
SYSTEM_CONSTANTS = {
    "NOMINAL_SAMPLE_DIVISOR": 16,  # Ratio denominator is (W * H) / 16
    "READY_POLL_INTERVAL_SECONDS": 0.05,
    "MAX_TARGET_FPS": 120.0,
    "MIN_TARGET_FPS": 1.0,
    "LOG_ROTATION_SIZE_MB": 10
}

# File paths and directories
DEFAULT_PATHS = {
    "config_file": "config.json"
}

# Extensions treated as still images by the asset loader
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp", ".webp")
