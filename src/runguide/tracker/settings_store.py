# settings_store.py
# User-adjustable run settings, persisted as JSON overrides on top of TrackConfig.
# Read when a session is built; a running session is not hot-reloaded.

import json
import logging
import os
from dataclasses import replace
from typing import Optional

from .errors import ConfigurationError
from .track_config import TrackConfig

logger = logging.getLogger(__name__)

EDITABLE_KEYS = ("guide_trigger_radius_m", "finish_radius_m", "finish_consecutive")


class SettingsStore:
    """
    Persisted overrides of guide trigger radius, finish radius and
    finish consecutive hits.

    Args:
        config: Base TrackConfig; its values are the defaults.
    """

    def __init__(self, config: Optional[TrackConfig] = None) -> None:
        self.config = config or TrackConfig()
        self._values = {key: getattr(self.config, key) for key in EDITABLE_KEYS}
        self._load()

    def _load(self) -> None:
        path = self.config.settings_filepath
        if not os.path.exists(path):
            return
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            stored = {k: data[k] for k in EDITABLE_KEYS if k in data}
            replace(self.config, **stored).validate()
        except (IOError, ValueError) as e:
            logger.error(f"Ignoring settings in {path}: {e}")
            return
        self._values.update(stored)
        logger.info(
            f"Loaded settings - Guide: {self.guide_trigger_radius_m}m, "
            f"Finish: {self.finish_radius_m}m, Consecutive: {self.finish_consecutive}"
        )

    def _save(self) -> bool:
        path = self.config.settings_filepath
        try:
            os.makedirs(self.config.data_dir, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(self._values, f, indent=2)
            return True
        except IOError as e:
            logger.error(f"Failed to save settings to {path}: {e}")
            return False

    @property
    def guide_trigger_radius_m(self) -> float:
        return self._values["guide_trigger_radius_m"]

    @property
    def finish_radius_m(self) -> float:
        return self._values["finish_radius_m"]

    @property
    def finish_consecutive(self) -> int:
        return self._values["finish_consecutive"]

    def update(self, **values) -> bool:
        """
        Change one or more settings and persist them.

        Raises:
            ConfigurationError: unknown key or invalid value (nothing is saved).
        """
        unknown = set(values) - set(EDITABLE_KEYS)
        if unknown:
            raise ConfigurationError(f"Unknown settings: {sorted(unknown)}")
        replace(self.apply(), **values).validate()
        self._values.update(values)
        for key, value in values.items():
            logger.info(f"Setting {key} updated: {value}")
        return self._save()

    def reset_to_defaults(self) -> bool:
        self._values = {key: getattr(self.config, key) for key in EDITABLE_KEYS}
        logger.info("Settings reset to defaults")
        return self._save()

    def apply(self, config: Optional[TrackConfig] = None) -> TrackConfig:
        """Return a copy of config (default: the base config) with these settings."""
        return replace(config or self.config, **self._values)
