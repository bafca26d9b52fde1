"""Configuration persistence manager for pixelmap.

This module handles loading and saving of default generator settings to/from
a JSON file. The file uses the same field names as a region map's "gen".
"""

import json
import sys
from pathlib import Path
from typing import Optional, Tuple

from pixelmap.models import CONFIG_FILE, Generator, PixelmapError


class ConfigManager:
    """Handles loading and saving of default generator settings."""

    def __init__(self, config_path: Path = CONFIG_FILE):
        """Initialize config manager.

        Args:
            config_path: Path to configuration file (defaults to ~/.pixelmap_config.json)
        """
        self.config_path = Path(config_path)

    def load(self) -> Generator:
        """Load defaults from file, returning built-in defaults if not found.

        Returns:
            Generator with loaded or default values

        AIDEV-NOTE: A broken defaults file only warns. It must not stop a
        build that passes every setting on the command line anyway.
        """
        config = Generator()

        if not self.config_path.exists():
            return config

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            config = config.with_overrides(data)
        except (OSError, json.JSONDecodeError, PixelmapError) as e:
            print(
                f"Warning: Could not load config file {self.config_path}: {e}",
                file=sys.stderr,
            )
            return Generator()

        return config

    def save(self, config: Generator) -> Tuple[bool, Optional[str]]:
        """Save defaults to file.

        Args:
            config: Generator to save

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        try:
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(config.to_json(), f, indent=2)
            return True, None
        except OSError as e:
            return False, str(e)
