"""Hub configuration using pydantic-settings."""

import json
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class DinghyConfig(BaseModel):
    """Static description of one configured dinghy.

    Attributes:
        name: Unique dinghy name, used at registration.
        location: Location the dinghy prints for (e.g. "office").
        type: Free-form printer type.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    location: str
    type: str = "label"


class Settings(BaseSettings):
    """Hub settings loaded from environment variables.

    All variables use the ``FRIGATE_`` prefix, e.g. ``FRIGATE_PORT=8080``.

    Attributes:
        host: Listen address for the HTTP/websocket server.
        port: Listen port.
        authkey: Shared key used to check dinghy registration secrets.
        dinghies: Inline dinghy configs (JSON list in the environment).
        dinghies_file: Optional JSON file holding the dinghy list.
        heartbeat_interval: Seconds between status requests.
        ping_timeout: Seconds a dinghy has to answer a status request.
        print_timeout: Seconds a dinghy has to answer a print request.
        log_level: Logging level name.
    """

    model_config = SettingsConfigDict(
        env_prefix="FRIGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Frigate"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # Authentication
    authkey: str = "change-this-shared-key"

    # Dinghies
    dinghies: list[DinghyConfig] = []
    dinghies_file: Path | None = None

    # Protocol timing (seconds)
    heartbeat_interval: float = 3.0
    ping_timeout: float = 0.1
    print_timeout: float = 1.0

    log_level: str = "INFO"

    def load_dinghies(self) -> list[DinghyConfig]:
        """Return the configured dinghies.

        Entries from ``dinghies_file`` are appended to the inline list.

        Returns:
            list[DinghyConfig]: All configured dinghies.

        Raises:
            ValueError: If the file is not a JSON list.
        """
        configs = list(self.dinghies)
        if self.dinghies_file:
            with open(self.dinghies_file) as f:
                data = json.load(f)
            if not isinstance(data, list):
                raise ValueError(f"{self.dinghies_file} must contain a JSON list")
            configs.extend(DinghyConfig.model_validate(item) for item in data)
        return configs


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Hub settings.
    """
    return Settings()
