"""Configuration management for the dinghy agent."""

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# Default configuration directory
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "dinghy"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"

DEFAULT_FRIGATE_URL = "ws://localhost:8080/ws"


@dataclass
class DinghyAgentConfig:
    """Configuration for the dinghy agent.

    Attributes:
        frigate_url: Websocket URL of the frigate (e.g. ws://hub:8080/ws).
        name: Dinghy name, must match an entry in the frigate's config.
        authkey: Shared key used to encode registration secrets.
        printer_name: CUPS printer name to use (None = default).
        reconnect_interval: Seconds to wait before redialing the frigate.
        download_timeout: Seconds allowed to download a document.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
    """

    frigate_url: str = DEFAULT_FRIGATE_URL
    name: str = ""
    authkey: str = ""
    printer_name: str | None = None
    reconnect_interval: float = 5.0
    download_timeout: float = 30.0
    log_level: str = "INFO"

    def is_configured(self) -> bool:
        """Check if the agent has been configured.

        Returns:
            bool: True if name and authkey are set.
        """
        return bool(self.frigate_url and self.name and self.authkey)

    def save(self, config_path: Path | None = None) -> None:
        """Save config to file.

        Args:
            config_path: Path to config file (default: ~/.config/dinghy/config.json).
        """
        path = config_path or DEFAULT_CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(asdict(self), f, indent=2)

        # Secure the config file (contains the shared key)
        os.chmod(path, 0o600)

    @classmethod
    def load(cls, config_path: Path | None = None) -> "DinghyAgentConfig":
        """Load configuration from file.

        Args:
            config_path: Path to config file.

        Returns:
            DinghyAgentConfig: Loaded configuration or default.
        """
        path = config_path or DEFAULT_CONFIG_FILE

        if not path.exists():
            return cls()

        try:
            with open(path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Error loading config: {e}")
            return cls()

        defaults = cls()
        return cls(
            frigate_url=data.get("frigate_url", defaults.frigate_url),
            name=data.get("name", ""),
            authkey=data.get("authkey", ""),
            printer_name=data.get("printer_name"),
            reconnect_interval=data.get("reconnect_interval", defaults.reconnect_interval),
            download_timeout=data.get("download_timeout", defaults.download_timeout),
            log_level=data.get("log_level", defaults.log_level),
        )


def get_config(config_path: Path | None = None) -> DinghyAgentConfig:
    """Get the current configuration.

    Args:
        config_path: Optional custom config path.

    Returns:
        DinghyAgentConfig: Current configuration.
    """
    return DinghyAgentConfig.load(config_path)
