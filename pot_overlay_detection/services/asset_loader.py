"""Process-wide, load-once cache for overlay assets."""

import os
import threading
from typing import Dict
from urllib.parse import urlparse, unquote

import cv2
import numpy as np

from .error_handler import AssetLoadFailure
from ..config.defaults import IMAGE_EXTENSIONS
from ..logging_config import get_logger

logger = get_logger("asset_loader")

_cache: Dict[str, np.ndarray] = {}
_lock = threading.Lock()


def resolve_asset_path(uri: str) -> str:
    """Map a plain path or file:// URI to a filesystem path."""
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return unquote(parsed.path)
    if parsed.scheme and len(parsed.scheme) > 1:
        raise AssetLoadFailure(f"unsupported asset scheme '{parsed.scheme}' in {uri}")
    return uri


def ensure_loaded(uri: str) -> np.ndarray:
    """Load the asset behind ``uri`` once and return the cached BGR(A) image.

    Safe to call repeatedly; later calls return the cached array.
    """
    with _lock:
        if uri in _cache:
            return _cache[uri]

        path = resolve_asset_path(uri)
        if not os.path.exists(path):
            raise AssetLoadFailure(f"asset not found: {path}")

        if path.lower().endswith(IMAGE_EXTENSIONS):
            image = cv2.imread(path, cv2.IMREAD_UNCHANGED)
        else:
            image = _first_video_frame(path)

        if image is None:
            raise AssetLoadFailure(f"could not decode asset: {path}")

        _cache[uri] = image
        logger.info(f"Loaded overlay asset {uri} ({image.shape[1]}x{image.shape[0]})")
        return image


def clear_cache() -> None:
    with _lock:
        _cache.clear()


def _first_video_frame(path: str):
    capture = cv2.VideoCapture(path)
    try:
        if not capture.isOpened():
            return None
        ok, frame = capture.read()
        return frame if ok else None
    finally:
        capture.release()
