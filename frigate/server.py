"""Frigate server: owns the registry and the live dinghy connections."""

import asyncio
import logging

from fastapi import WebSocket

from frigate.auth import Authenticator
from frigate.config import DinghyConfig, Settings
from frigate.connection import Connection
from frigate.orchestrator import PrintOrchestrator
from frigate.registry import Dinghy, DinghyRegistry

logger = logging.getLogger(__name__)


class FrigateServer:
    """Accepts dinghy sockets and exposes registry lookups.

    Attributes:
        registry: Configured dinghies and their status.
        authenticator: Checks registration secrets.
        orchestrator: Print entry point for the shipment workflow.
        connections: Live connections, registered or not.
    """

    def __init__(
        self,
        configs: list[DinghyConfig],
        authkey: str,
        heartbeat_interval: float = 3.0,
        ping_timeout: float = 0.1,
        print_timeout: float = 1.0,
    ):
        """Initialize the server.

        Args:
            configs: Dinghy configs.
            authkey: Shared key for registration secrets.
            heartbeat_interval: Seconds between status requests.
            ping_timeout: Seconds allowed for a status response.
            print_timeout: Seconds allowed for a print response.
        """
        self.registry = DinghyRegistry(configs)
        self.authenticator = Authenticator(authkey)
        self.orchestrator = PrintOrchestrator(self.registry)
        self.heartbeat_interval = heartbeat_interval
        self.ping_timeout = ping_timeout
        self.print_timeout = print_timeout
        self.connections: set[Connection] = set()

    @classmethod
    def from_settings(cls, settings: Settings) -> "FrigateServer":
        """Build a server from hub settings."""
        return cls(
            configs=settings.load_dinghies(),
            authkey=settings.authkey,
            heartbeat_interval=settings.heartbeat_interval,
            ping_timeout=settings.ping_timeout,
            print_timeout=settings.print_timeout,
        )

    async def handle_websocket(self, websocket: WebSocket) -> None:
        """Accept a dinghy socket and serve it until it closes.

        Args:
            websocket: Incoming websocket.
        """
        await websocket.accept()
        connection = Connection(
            websocket,
            self.registry,
            self.authenticator,
            heartbeat_interval=self.heartbeat_interval,
            ping_timeout=self.ping_timeout,
            print_timeout=self.print_timeout,
        )
        self.connections.add(connection)
        try:
            await connection.serve()
        finally:
            self.connections.discard(connection)

    def get_dinghy(self, name: str) -> Dinghy:
        return self.registry.get_dinghy(name)

    def choose_dinghy(self, location: str) -> Dinghy:
        return self.registry.choose_dinghy(location)

    def list_dinghies(self) -> list[dict]:
        return self.registry.snapshot()

    async def print_label(self, location: str, url: str) -> Dinghy:
        return await self.orchestrator.print_label(location, url)

    async def shutdown(self) -> None:
        """Close every live connection."""
        if not self.connections:
            return
        logger.info(f"Closing {len(self.connections)} dinghy connections")
        await asyncio.gather(
            *(connection.close("server shutdown") for connection in list(self.connections))
        )
