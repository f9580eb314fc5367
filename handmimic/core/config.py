"""Configuration management system"""

import copy
from pathlib import Path
from typing import Any, Optional
import yaml


DEFAULT_CONFIG: dict = {
    "app": {
        "name": "handmimic",
        "version": "0.1.0",
        "log_level": "INFO",
    },
    "video": {
        "source": "webcam",
        "camera_id": 0,
        "width": 1280,
        "height": 720,
    },
    "tracking": {
        "hand": "auto",
        "max_hands": 2,
        "min_detection_confidence": 0.5,
        "min_tracking_confidence": 0.5,
        "filter_enabled": True,
        "filter_alpha": 0.5,
        "evict_after_frames": 30,
    },
    "retargeting": {
        "smoothing": 0.8,
        "reference_fps": 60.0,
        "base_rotation": [0.0, 0.0, 0.0],
        "default_scale": 1.0,
    },
    "skeleton": {
        "model": "linker-l10-right",
        "max_depth": None,
    },
    "ik": {
        "iterations": 10,
        "min_angle": 0.0,
        "max_angle": 1.0,
        "tolerance": 0.0001,
    },
    "visualization": {
        "show_preview": True,
        "draw_landmarks": True,
    },
}


class Config:
    """
    Configuration with dot-notation access.

    Instances are plain values handed to the components that need them;
    there is no process-wide instance.
    """

    def __init__(self, config_path: Optional[str] = None, data: Optional[dict] = None):
        self._config_path: Optional[str] = None

        if data is not None:
            self._config = _merge(DEFAULT_CONFIG, data)
            return

        if config_path is None:
            config_path = self._find_config()

        if config_path is None:
            self._config = copy.deepcopy(DEFAULT_CONFIG)
        else:
            self._load(config_path)

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Build a config from a mapping layered over the defaults."""
        return cls(data=data)

    def _find_config(self) -> Optional[str]:
        """Find config.yaml in the working directory or above the package."""
        candidates = [Path.cwd() / "config.yaml"]
        current = Path(__file__).parent
        for _ in range(4):
            candidates.append(current / "config.yaml")
            current = current.parent

        for config_file in candidates:
            if config_file.exists():
                return str(config_file)
        return None

    def _load(self, config_path: str) -> None:
        """Load configuration from YAML file, layered over the defaults."""
        with open(config_path, "r") as f:
            loaded = yaml.safe_load(f) or {}
        self._config = _merge(DEFAULT_CONFIG, loaded)
        self._config_path = config_path

    def reload(self) -> None:
        """Reload configuration from file."""
        if self._config_path is None:
            raise FileNotFoundError("Config was not loaded from a file")
        self._load(self._config_path)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get config value using dot notation.

        Example:
            config.get("tracking.filter_alpha", 0.5)
            config.get("retargeting.smoothing")
        """
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set config value using dot notation (runtime only, not persisted)."""
        keys = key.split(".")
        config = self._config

        for k in keys[:-1]:
            if k not in config or not isinstance(config[k], dict):
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def save(self, path: Optional[str] = None) -> None:
        """Save current configuration to file."""
        save_path = path or self._config_path
        if save_path is None:
            raise ValueError("No path given and config was not loaded from a file")
        with open(save_path, "w") as f:
            yaml.safe_dump(self._config, f, default_flow_style=False)

    def to_dict(self) -> dict:
        return copy.deepcopy(self._config)

    @property
    def path(self) -> Optional[str]:
        return self._config_path

    @property
    def app(self) -> dict:
        return self._config.get("app", {})

    @property
    def video(self) -> dict:
        return self._config.get("video", {})

    @property
    def tracking(self) -> dict:
        return self._config.get("tracking", {})

    @property
    def retargeting(self) -> dict:
        return self._config.get("retargeting", {})

    @property
    def skeleton(self) -> dict:
        return self._config.get("skeleton", {})

    @property
    def ik(self) -> dict:
        return self._config.get("ik", {})

    @property
    def visualization(self) -> dict:
        return self._config.get("visualization", {})

    def __repr__(self) -> str:
        return f"Config({self._config_path or 'defaults'})"


def _merge(base: dict, override: dict) -> dict:
    """Recursively layer override on top of a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged
