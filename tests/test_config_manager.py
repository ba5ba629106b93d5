import json
import os
from unittest.mock import patch

import pytest

from kilocam.config import ConfigManager
from kilocam.config.schemas import ConfigSchema, GalleryConfig


class TestConfigManager:
    @pytest.fixture
    def data_dir(self, tmp_path):
        return str(tmp_path / "data")

    def test_missing_config_file_creates_defaults(self, data_dir):
        """Clean install: defaults are used and written to disk."""
        cm = ConfigManager(data_dir=data_dir)

        assert cm.config["server"]["host"] == "127.0.0.1"
        assert cm.config["device"]["host"] == "192.168.4.1"
        assert cm.config["gallery"]["download_interval_ms"] == 500
        assert os.path.exists(cm.config_path)

    def test_update_persistence(self, data_dir):
        cm = ConfigManager(data_dir=data_dir)

        assert cm.update("device.host", "10.0.0.7") is True
        assert cm.device.host == "10.0.0.7"

        cm2 = ConfigManager(data_dir=data_dir)
        assert cm2.get("device.host") == "10.0.0.7"

    def test_invalid_field_falls_back_to_default(self, data_dir):
        cm = ConfigManager(data_dir=data_dir)
        with open(cm.config_path, "w", encoding="utf-8") as f:
            json.dump({"device": {"port": "not-a-port", "host": "cam.local"}, "gallery": {"download_interval_ms": -5}}, f)

        cm2 = ConfigManager(data_dir=data_dir)

        assert cm2.device.port == 80
        assert cm2.device.host == "cam.local"
        assert cm2.gallery.download_interval_ms == 500
        with open(cm2.config_path, encoding="utf-8") as f:
            assert json.load(f)["device"]["port"] == 80

    def test_corrupt_json_is_backed_up(self, data_dir):
        cm = ConfigManager(data_dir=data_dir)
        with open(cm.config_path, "w", encoding="utf-8") as f:
            f.write("{not json")

        cm2 = ConfigManager(data_dir=data_dir)

        assert cm2.config == ConfigSchema().model_dump()
        assert any(name.startswith("config.json.corrupt.") for name in os.listdir(data_dir))

    @patch("kilocam.config.manager.os.fsync")
    def test_save_calls_fsync(self, mock_fsync, data_dir):
        cm = ConfigManager(data_dir=data_dir)
        cm.update("server.port", 3100)

        assert mock_fsync.called
        args, _ = mock_fsync.call_args
        assert isinstance(args[0], int)

    def test_update_validation_failure(self, data_dir):
        cm = ConfigManager(data_dir=data_dir)

        assert cm.update("server.port", 70000) is False
        assert cm.server.port == 3000

    def test_update_unknown_key(self, data_dir):
        cm = ConfigManager(data_dir=data_dir)
        assert cm.update("device.nonexistent", 1) is False
        assert cm.get("device.nonexistent", "missing") == "missing"


def test_best_effort_on_non_dict():
    assert GalleryConfig.load_best_effort("garbage") == GalleryConfig()
