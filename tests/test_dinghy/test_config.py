"""Tests for dinghy agent configuration."""

import json
import stat
from unittest.mock import patch

from dinghy.config import DEFAULT_FRIGATE_URL, DinghyAgentConfig, get_config


class TestDinghyAgentConfig:
    """Tests for saving and loading the agent config."""

    def test_defaults(self):
        """A fresh config points at a local frigate and is not configured."""
        config = DinghyAgentConfig()
        assert config.frigate_url == DEFAULT_FRIGATE_URL
        assert config.reconnect_interval == 5.0
        assert not config.is_configured()

    def test_is_configured(self):
        """Name and key make a config usable."""
        assert DinghyAgentConfig(name="A", authkey="k").is_configured()
        assert not DinghyAgentConfig(name="A").is_configured()

    def test_save_and_load(self, tmp_path):
        """Saved values load back and the file is private."""
        path = tmp_path / "dinghy" / "config.json"
        DinghyAgentConfig(
            frigate_url="ws://hub:8080/ws",
            name="A",
            authkey="secret-key",
            printer_name="Zebra",
            reconnect_interval=1.5,
        ).save(path)

        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        loaded = DinghyAgentConfig.load(path)
        assert loaded.frigate_url == "ws://hub:8080/ws"
        assert loaded.name == "A"
        assert loaded.authkey == "secret-key"
        assert loaded.printer_name == "Zebra"
        assert loaded.reconnect_interval == 1.5
        assert loaded.download_timeout == 30.0

    def test_missing_file(self, tmp_path):
        """A missing file yields defaults."""
        assert DinghyAgentConfig.load(tmp_path / "missing.json") == DinghyAgentConfig()

    def test_corrupt_file(self, tmp_path):
        """Invalid JSON yields defaults."""
        path = tmp_path / "config.json"
        path.write_text("{not json")
        assert DinghyAgentConfig.load(path) == DinghyAgentConfig()

    def test_partial_file(self, tmp_path):
        """Missing keys fall back to defaults."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"name": "B", "authkey": "k"}))
        config = DinghyAgentConfig.load(path)
        assert config.name == "B"
        assert config.frigate_url == DEFAULT_FRIGATE_URL

    def test_default_path(self, tmp_path):
        """get_config reads the default config file."""
        path = tmp_path / "config.json"
        with patch("dinghy.config.DEFAULT_CONFIG_FILE", path):
            DinghyAgentConfig(name="C", authkey="k").save()
            assert get_config().name == "C"
