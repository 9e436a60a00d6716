"""Stored defaults for the database path, deck and model.

The values given on the command line are remembered in a JSON file so later
invocations only need the field values.
"""

import json
import logging
from pathlib import Path

import typer
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

_CONFIG_FILENAME = "cranki.json"


class Configuration(BaseModel):
    """Defaults remembered between invocations."""

    database_path: str | None = None
    deck_name: str | None = None
    model_name: str | None = None

    def merge(
        self,
        database_path: str | None = None,
        deck_name: str | None = None,
        model_name: str | None = None,
    ) -> tuple["Configuration", bool]:
        """Overlay explicitly given values on the stored ones.

        Returns the merged configuration and whether any stored value changed.
        """
        overrides = {
            "database_path": database_path,
            "deck_name": deck_name,
            "model_name": model_name,
        }
        merged = self.model_copy()
        dirty = False
        for key, value in overrides.items():
            if value is None:
                continue
            if getattr(self, key) != value:
                dirty = True
            setattr(merged, key, value)
        return merged, dirty


def default_config_path() -> Path:
    """``cranki.json`` in the platform's per-user config directory."""
    return Path(typer.get_app_dir("cranki")) / _CONFIG_FILENAME


def load_configuration(path: Path) -> Configuration:
    """Load the configuration file.

    A missing or unreadable file yields an empty configuration; the problem
    is logged rather than raised.
    """
    if not path.exists():
        logger.info("No configuration file at %s", path)
        return Configuration()

    try:
        data = json.loads(path.read_text())
        config = Configuration.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.warning("Found configuration file at %s, but failed to load it: %s", path, e)
        return Configuration()

    logger.info("Found config file @ %s", path)
    return config


def save_configuration(path: Path, config: Configuration) -> Path:
    """Write the configuration as JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.model_dump(), indent=2))
    return path
