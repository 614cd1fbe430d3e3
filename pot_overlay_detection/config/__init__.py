"""Configuration components for the pot overlay detection system."""

from .defaults import (
    SYSTEM_CONSTANTS,
    DEFAULT_PATHS,
    IMAGE_EXTENSIONS
)

__all__ = [
    'SYSTEM_CONSTANTS',
    'DEFAULT_PATHS',
    'IMAGE_EXTENSIONS'
]
