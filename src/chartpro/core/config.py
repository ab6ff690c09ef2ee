"""Configuration management for ChartPro."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .models import SnapMode

logger = logging.getLogger(__name__)

# Default configuration file path
DEFAULT_CONFIG_PATH = Path("config.yaml")


@dataclass
class ChartConfig:
    """
    Application configuration settings.

    Stores user preferences and application state.
    """

    default_directory: str = ""
    snap_enabled: bool = False
    snap_mode: SnapMode = SnapMode.NONE
    hit_test_radius: float = 10.0  # Pixel distance for shape selection
    max_history_entries: int = 100  # Maximum undo/redo history entries (10-1000)
    sample_candle_count: int = 100  # Candles generated by "Load Sample Data"
    max_recent_files: int = 10  # Number of recent annotation files to remember (0 = disabled)
    recent_files: list[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return {
            "defaultDirectory": self.default_directory,
            "snapEnabled": self.snap_enabled,
            "snapMode": self.snap_mode.value,
            "hitTestRadius": self.hit_test_radius,
            "maxHistoryEntries": self.max_history_entries,
            "sampleCandleCount": self.sample_candle_count,
            "maxRecentFiles": self.max_recent_files,
            "recentFiles": list(self.recent_files),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ChartConfig:
        """Create config from dictionary."""
        try:
            snap_mode = SnapMode(data.get("snapMode", SnapMode.NONE.value))
        except ValueError:
            logger.warning(f"Unknown snap mode in config: {data.get('snapMode')!r}")
            snap_mode = SnapMode.NONE

        return cls(
            default_directory=data.get("defaultDirectory", ""),
            snap_enabled=bool(data.get("snapEnabled", False)),
            snap_mode=snap_mode,
            hit_test_radius=float(data.get("hitTestRadius", 10.0)),
            max_history_entries=int(data.get("maxHistoryEntries", 100)),
            sample_candle_count=int(data.get("sampleCandleCount", 100)),
            max_recent_files=int(data.get("maxRecentFiles", 10)),
            recent_files=list(data.get("recentFiles") or []),
        )

    def add_recent_file(self, path: str) -> None:
        """Move a path to the front of the recent files list."""
        if self.max_recent_files <= 0:
            self.recent_files = []
            return
        self.recent_files = [path] + [p for p in self.recent_files if p != path]
        del self.recent_files[self.max_recent_files:]


class ConfigManager:
    """
    Manager for loading and saving application configuration.

    Handles YAML serialization and provides a clean interface
    for configuration access.
    """

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH) -> None:
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)
        self._config: Optional[ChartConfig] = None

    @property
    def config(self) -> ChartConfig:
        """Get the current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def load(self) -> ChartConfig:
        """
        Load configuration from file.

        Returns:
            ChartConfig instance with loaded or default values
        """
        if not self.config_path.exists():
            logger.info(f"Config file not found at {self.config_path}, using defaults")
            return ChartConfig()

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                logger.error(f"Config file {self.config_path} does not contain a mapping")
                return ChartConfig()
            logger.info(f"Loaded configuration from {self.config_path}")
            return ChartConfig.from_dict(data)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing config file: {e}")
            return ChartConfig()
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error loading config: {e}")
            return ChartConfig()

    def save(self, config: Optional[ChartConfig] = None) -> bool:
        """
        Save configuration to file.

        Args:
            config: Configuration to save, or use current config

        Returns:
            True if save was successful
        """
        if config is not None:
            self._config = config

        if self._config is None:
            logger.warning("No configuration to save")
            return False

        try:
            with open(self.config_path, "w", encoding="utf-8") as f:
                yaml.dump(self._config.to_dict(), f, default_flow_style=False)
            logger.info(f"Saved configuration to {self.config_path}")
            return True
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error saving config: {e}")
            return False

    def update(self, **kwargs: Any) -> None:
        """
        Update configuration with new values.

        Args:
            **kwargs: Key-value pairs to update
        """
        config = self.config
        for key, value in kwargs.items():
            if hasattr(config, key):
                setattr(config, key, value)
            else:
                logger.warning(f"Unknown config key: {key}")
        self.save()
