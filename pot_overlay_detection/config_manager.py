"""Configuration management with JSON persistence and change callbacks."""

import json
import os
from dataclasses import asdict, replace
from typing import Optional, Dict, Any, Callable, List

from .models.config import SystemConfig
from .models.detection import RegionOfInterest
from .config.defaults import DEFAULT_PATHS, SYSTEM_CONSTANTS
from .logging_config import get_logger

logger = get_logger("config_manager")


class ConfigManager:
    """Manages system configuration with file persistence."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or DEFAULT_PATHS["config_file"]
        self._config: Optional[SystemConfig] = None
        self._config_change_callbacks: List[Callable[[SystemConfig], None]] = []

        self.load_config()

    def load_config(self) -> SystemConfig:
        """Load configuration from file or create default."""
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r') as f:
                    config_dict = json.load(f)
                self._config = self._from_dict(config_dict)
            except (json.JSONDecodeError, TypeError, ValueError) as e:
                logger.warning(f"Error loading config {self.config_path}: {e}. Using defaults.")
                self._config = SystemConfig()
        else:
            self._config = SystemConfig()
            self.save_config()

        return self._config

    def save_config(self) -> None:
        """Save current configuration to file."""
        if self._config is None:
            return

        directory = os.path.dirname(self.config_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(self.config_path, 'w') as f:
            json.dump(self.export_config(), f, indent=2)

    def get_config(self) -> SystemConfig:
        if self._config is None:
            return self.load_config()
        return self._config

    def update_config(self, **kwargs) -> None:
        """Update configuration with new values; unknown keys are ignored.

        The update is applied as a whole or not at all. Raises ValueError and
        keeps the current configuration when the result does not validate.
        """
        if self._config is None:
            self.load_config()

        known = {}
        for key, value in kwargs.items():
            if hasattr(self._config, key):
                known[key] = value
            else:
                logger.debug(f"Ignoring unknown config key: {key}")

        try:
            if 'detection_roi' in known:
                known['detection_roi'] = tuple(known['detection_roi'])
            candidate = replace(self._config, **known)
        except TypeError as e:
            raise ValueError(f"Invalid configuration update {kwargs}: {e}") from e

        if not self._is_valid(candidate):
            raise ValueError(f"Invalid configuration update: {kwargs}")

        self._config = candidate
        self.save_config()
        self._notify_callbacks()

    def validate_config(self) -> bool:
        """Validate current configuration."""
        if self._config is None:
            return False
        return self._is_valid(self._config)

    @classmethod
    def _is_valid(cls, config: SystemConfig) -> bool:
        try:
            return cls._check_values(config)
        except TypeError:
            return False

    @staticmethod
    def _check_values(config: SystemConfig) -> bool:
        if not 0.0 <= config.detection_threshold <= 1.0:
            return False

        if config.confirm_frames < 1 or config.sample_stride < 1:
            return False

        try:
            RegionOfInterest.from_sequence(config.detection_roi)
        except (ValueError, TypeError):
            return False

        if config.camera_index < 0 or config.camera_width <= 0 or config.camera_height <= 0:
            return False

        if config.ready_timeout_seconds <= 0:
            return False

        if not (SYSTEM_CONSTANTS["MIN_TARGET_FPS"] <= config.target_fps <= SYSTEM_CONSTANTS["MAX_TARGET_FPS"]):
            return False

        if not config.asset_uri:
            return False

        if not 0 < config.status_port < 65536:
            return False

        return True

    def register_change_callback(self, callback: Callable[[SystemConfig], None]) -> None:
        """Register a callback to be called when config changes."""
        if callback not in self._config_change_callbacks:
            self._config_change_callbacks.append(callback)

    def unregister_change_callback(self, callback: Callable[[SystemConfig], None]) -> None:
        if callback in self._config_change_callbacks:
            self._config_change_callbacks.remove(callback)

    def reset_to_defaults(self) -> None:
        self._config = SystemConfig()
        self.save_config()
        self._notify_callbacks()

    def export_config(self) -> Dict[str, Any]:
        """Export current configuration as a JSON-ready dictionary."""
        if not self._config:
            return {}

        config_dict = asdict(self._config)
        config_dict['detection_roi'] = list(self._config.detection_roi)
        return config_dict

    def import_config(self, config_dict: Dict[str, Any]) -> bool:
        """Import configuration from a dictionary, keeping the old one if invalid."""
        try:
            temp_config = self._from_dict(config_dict)
        except (TypeError, ValueError) as e:
            logger.warning(f"Error importing config: {e}")
            return False

        if not self._is_valid(temp_config):
            return False

        self._config = temp_config
        self.save_config()
        self._notify_callbacks()
        return True

    @staticmethod
    def _from_dict(config_dict: Dict[str, Any]) -> SystemConfig:
        values = dict(config_dict)
        if 'detection_roi' in values:
            values['detection_roi'] = tuple(values['detection_roi'])
        return SystemConfig(**values)

    def _notify_callbacks(self) -> None:
        for callback in self._config_change_callbacks:
            try:
                callback(self._config)
            except Exception as e:
                logger.error(f"Error in config change callback: {e}")
