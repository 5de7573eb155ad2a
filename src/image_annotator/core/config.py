"""Configuration management for Image Annotator."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .labels import LabelSet

logger = logging.getLogger(__name__)

# Default configuration file path
DEFAULT_CONFIG_PATH = Path("config.yaml")

DEFAULT_LABELS = ["person", "car", "dog", "cat", "other"]
DEFAULT_ANNOTATION_COLOR = "rgba(239, 68, 68, 0.5)"


@dataclass
class AppConfig:
    """
    Application configuration settings.

    Stores user preferences and application state.
    """

    initial_labels: list[str] = field(default_factory=lambda: list(DEFAULT_LABELS))
    default_annotation_color: str = DEFAULT_ANNOTATION_COLOR
    default_mode: str = "point"  # point or polygon
    point_hit_radius: float = 12.0  # Point marker hit radius in screen pixels
    canvas_padding: int = 16  # Padding around the image inside the canvas
    coalesce_drag_history: bool = False  # One undo step per drag instead of per move
    max_history_entries: int = 0  # Maximum undo steps per image (0 = unlimited)
    export_image_format: str = "png"  # png or jpeg
    jpeg_quality: int = 92  # JPEG export quality (0-100)
    last_directory: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return {
            "initialLabels": self.initial_labels,
            "defaultAnnotationColor": self.default_annotation_color,
            "defaultMode": self.default_mode,
            "pointHitRadius": self.point_hit_radius,
            "canvasPadding": self.canvas_padding,
            "coalesceDragHistory": self.coalesce_drag_history,
            "maxHistoryEntries": self.max_history_entries,
            "exportImageFormat": self.export_image_format,
            "jpegQuality": self.jpeg_quality,
            "lastDirectory": self.last_directory,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AppConfig:
        """Create config from dictionary."""
        return cls(
            initial_labels=data.get("initialLabels", list(DEFAULT_LABELS)),
            default_annotation_color=data.get("defaultAnnotationColor", DEFAULT_ANNOTATION_COLOR),
            default_mode=data.get("defaultMode", "point"),
            point_hit_radius=data.get("pointHitRadius", 12.0),
            canvas_padding=data.get("canvasPadding", 16),
            coalesce_drag_history=data.get("coalesceDragHistory", False),
            max_history_entries=data.get("maxHistoryEntries", 0),
            export_image_format=data.get("exportImageFormat", "png"),
            jpeg_quality=data.get("jpegQuality", 92),
            last_directory=data.get("lastDirectory", ""),
        )

    @property
    def max_history(self) -> Optional[int]:
        """History limit for the annotation store, None when unlimited."""
        return self.max_history_entries if self.max_history_entries > 0 else None

    def create_label_set(self) -> LabelSet:
        """Build the initial label set from the configured names."""
        return LabelSet.from_names(self.initial_labels, self.default_annotation_color)


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
        self.config_path = config_path
        self._config: Optional[AppConfig] = None
        self._dirty = False

    @property
    def config(self) -> AppConfig:
        """Get the current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def load(self) -> AppConfig:
        """
        Load configuration from file.

        Returns:
            AppConfig instance with loaded or default values
        """
        if not self.config_path.exists():
            logger.info(f"Config file not found at {self.config_path}, using defaults")
            return AppConfig()

        try:
            with open(self.config_path, "r") as f:
                data = yaml.safe_load(f) or {}
            logger.info(f"Loaded configuration from {self.config_path}")
            return AppConfig.from_dict(data)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing config file: {e}")
            return AppConfig()
        except (OSError, AttributeError) as e:
            logger.error(f"Error loading config: {e}")
            return AppConfig()

    def save(self, config: Optional[AppConfig] = None) -> bool:
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
            with open(self.config_path, "w") as f:
                yaml.dump(self._config.to_dict(), f, default_flow_style=False)
            logger.info(f"Saved configuration to {self.config_path}")
            self._dirty = False
            return True
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error saving config: {e}")
            return False

    @property
    def dirty(self) -> bool:
        """Whether update() changed values that have not been saved yet."""
        return self._dirty

    def update(self, **kwargs: Any) -> bool:
        """
        Update configuration values in memory.

        Nothing is written until save() is called, so frequent updates
        such as the last opened directory do not touch the file.

        Args:
            **kwargs: Key-value pairs to update

        Returns:
            True if any value changed
        """
        config = self.config
        changed = False
        for key, value in kwargs.items():
            if not hasattr(config, key):
                logger.warning(f"Unknown config key: {key}")
            elif getattr(config, key) != value:
                setattr(config, key, value)
                changed = True
        self._dirty = self._dirty or changed
        return changed
