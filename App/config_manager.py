"""Configuration persistence manager for the line plot renderer.

This module handles loading and saving of render settings to/from JSON files.
"""

import json
import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Optional, Tuple

from models import CONFIG_FILE, RendererKind, RenderSettings

logger = logging.getLogger(__name__)

DEFAULT_RENDERER = RendererKind.ORTHOGONAL_HATCH


class ConfigManager:
    """Handles loading and saving of render settings."""

    def __init__(self, config_path: Path = CONFIG_FILE):
        """Initialize config manager.

        Args:
            config_path: Path to configuration file (defaults to ~/.lineplot_config.json)
        """
        self.config_path = Path(config_path)

    def _read(self) -> dict:
        """Read the raw JSON document, or {} when missing/unreadable."""
        try:
            if self.config_path.exists():
                with open(self.config_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    return data
                logger.warning("Ignoring config file %s: not a JSON object", self.config_path)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not load config file %s: %s", self.config_path, e)
        return {}

    def load(self) -> RenderSettings:
        """Load settings from file, returning defaults if not found.

        Returns:
            RenderSettings with loaded or default values

        Raises:
            InvalidConfigurationError: If the file holds out-of-range values
        """
        data = self._read()
        defaults = RenderSettings()
        # Update settings with loaded values (fallback to defaults)
        values = {
            field.name: data.get(field.name, getattr(defaults, field.name))
            for field in fields(RenderSettings)
        }
        settings = RenderSettings(**values)
        if data:
            logger.info("Loaded configuration from %s", self.config_path)
        return settings

    def load_renderer(self) -> RendererKind:
        """Load the preferred renderer, defaulting to orthogonal hatching."""
        value = self._read().get("renderer")
        if value is None:
            return DEFAULT_RENDERER
        return RendererKind.parse(value)

    def save(
        self,
        settings: RenderSettings,
        renderer: Optional[RendererKind] = None,
    ) -> Tuple[bool, Optional[str]]:
        """Save settings to file.

        Args:
            settings: RenderSettings to save
            renderer: Preferred renderer to store alongside the settings

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        data = asdict(settings)
        if renderer is not None:
            data["renderer"] = RendererKind.parse(renderer).value
        try:
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            return True, None
        except OSError as e:
            return False, str(e)
