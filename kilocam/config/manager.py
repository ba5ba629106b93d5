import json
import logging
import os
import shutil
import time
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .schemas import ConfigSchema, DeviceConfig, GalleryConfig, ServerConfig

log = logging.getLogger(__name__)


class ConfigManager:
    """Loads, repairs and persists the panel configuration (``data/config.json``)."""

    def __init__(self, config_filename: str = "config.json", data_dir: Optional[str] = None):
        if data_dir:
            self.data_dir = data_dir
        else:
            self.data_dir = os.path.join(os.getcwd(), "data")

        self.config_path = os.path.join(self.data_dir, config_filename)

        self._ensure_data_dir()
        self._config_obj = self.load_config()

    def _ensure_data_dir(self):
        if not os.path.exists(self.data_dir):
            os.makedirs(self.data_dir, exist_ok=True)

    @property
    def config(self) -> Dict[str, Any]:
        """Return the configuration as a dictionary."""
        return self._config_obj.model_dump()

    @property
    def server(self) -> ServerConfig:
        return self._config_obj.server

    @property
    def device(self) -> DeviceConfig:
        return self._config_obj.device

    @property
    def gallery(self) -> GalleryConfig:
        return self._config_obj.gallery

    def load_config(self) -> ConfigSchema:
        """Load the config file, validate with Pydantic and repair it if needed."""
        loaded_data = {}
        load_failed = False
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    loaded_data = json.load(f)
            except json.JSONDecodeError as e:
                backup_path = f"{self.config_path}.corrupt.{int(time.time())}"
                log.error("Error reading JSON %s: %s", self.config_path, e)
                log.warning("Backing up corrupt config to %s", backup_path)
                try:
                    shutil.copy(self.config_path, backup_path)
                except OSError as be:
                    log.error("Failed to backup corrupt config: %s", be)

                loaded_data = {}
                load_failed = True
            except OSError as e:
                log.error("Error reading %s: %s", self.config_path, e)

        try:
            config_obj = ConfigSchema(**loaded_data)
        except ValidationError as e:
            log.warning("Validation errors found in %s:", self.config_path)
            for error in e.errors():
                log.warning("  - %s: %s", ".".join(str(i) for i in error["loc"]), error["msg"])

            config_obj = ConfigSchema.load_best_effort(loaded_data)
            self.save_config(config_obj)
        else:
            # Missing fields were filled with defaults
            if loaded_data != config_obj.model_dump() or load_failed:
                log.info("Synchronizing missing fields to %s", self.config_path)
                self.save_config(config_obj)

        self._config_obj = config_obj
        return config_obj

    def save_config(self, config_to_save: Any = None):
        """Save current config to file. Errors propagate to the caller."""
        obj = config_to_save if config_to_save is not None else self._config_obj
        data = obj.model_dump() if hasattr(obj, "model_dump") else obj

        os.makedirs(os.path.dirname(self.config_path), exist_ok=True)

        with open(self.config_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=4, ensure_ascii=False)
            f.flush()
            try:
                os.fsync(f.fileno())
            except OSError:
                pass

    def get(self, key: str, default=None):
        """Get a value by dot notation (e.g. 'device.host')."""
        value = self.config
        try:
            for k in key.split("."):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def update(self, key: str, value: Any) -> bool:
        """
        Update a value by dot notation and save.
        Returns True if successful, False if validation fails.
        """
        current_data = self._config_obj.model_dump()

        keys = key.split(".")
        target = current_data
        try:
            for k in keys[:-1]:
                target = target[k]
            if keys[-1] not in target:
                raise KeyError(keys[-1])

            log.info("Updating %s to %r", key, value)
            target[keys[-1]] = value

            self._config_obj = ConfigSchema(**current_data)
            self.save_config()
            return True
        except ValidationError as e:
            log.warning("Update rejected for '%s': validation failed.", key)
            for error in e.errors():
                log.warning("  - %s: %s", ".".join(str(i) for i in error["loc"]), error["msg"])
            return False
        except (KeyError, TypeError) as e:
            log.warning("Update rejected for '%s': %s", key, e)
            return False


# Global instance
config = ConfigManager()
