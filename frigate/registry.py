"""Dinghy registry: configured dinghies and their live status."""

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from frigate.config import DinghyConfig
from frigate.errors import (
    DinghyAlreadyConnected,
    DinghyNotFound,
    LocationNotFound,
    NoAvailableDinghy,
)

if TYPE_CHECKING:
    from frigate.connection import Connection

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Dinghy:
    """Runtime record for one configured dinghy.

    Status fields are only written through DinghyRegistry by the
    connection currently bound to the record.

    Attributes:
        name: Unique dinghy name.
        location: Location the dinghy prints for.
        type: Printer type.
        connected: A registered connection is bound.
        ready: Last heartbeat reported the printer ready.
        connection: Bound connection, None when disconnected.
        last_error: Reason of the last ping or print failure.
        last_selected: Selection sequence number of the last pick (0 = never).
    """

    name: str
    location: str
    type: str
    connected: bool = False
    ready: bool = False
    connection: "Connection | None" = field(default=None, repr=False)
    last_error: str | None = None
    last_selected: int = 0

    @classmethod
    def from_config(cls, config: DinghyConfig) -> "Dinghy":
        return cls(name=config.name, location=config.location, type=config.type)

    def to_dict(self) -> dict:
        """Status view for API responses."""
        return {
            "name": self.name,
            "location": self.location,
            "type": self.type,
            "connected": self.connected,
            "ready": self.ready,
            "lastError": self.last_error,
        }


class DinghyRegistry:
    """Catalog of configured dinghies indexed by name and by location.

    One lock serializes every status read and write, so a selection never
    sees a record halfway through a connected/ready transition.
    """

    def __init__(self, configs: list[DinghyConfig]):
        """Build one record per config.

        Args:
            configs: Dinghy configs; names must be unique.

        Raises:
            ValueError: If a name is configured twice.
        """
        self._lock = threading.RLock()
        self._by_name: dict[str, Dinghy] = {}
        self._by_location: dict[str, list[str]] = {}
        self._selections = 0

        for config in configs:
            if config.name in self._by_name:
                raise ValueError(f"Duplicate dinghy name: {config.name}")
            self._by_name[config.name] = Dinghy.from_config(config)
            self._by_location.setdefault(config.location, []).append(config.name)

        logger.info(
            f"Registry loaded {len(self._by_name)} dinghies "
            f"at {len(self._by_location)} locations"
        )

    @property
    def names(self) -> list[str]:
        return list(self._by_name)

    @property
    def locations(self) -> list[str]:
        return list(self._by_location)

    def has_dinghy(self, name: str) -> bool:
        return name in self._by_name

    # ========================================================================
    # Lookup
    # ========================================================================

    def get_dinghy(self, name: str) -> Dinghy:
        """Get a dinghy record by name.

        Args:
            name: Dinghy name.

        Returns:
            Dinghy: The record.

        Raises:
            DinghyNotFound: If no such name is configured.
        """
        try:
            return self._by_name[name]
        except KeyError:
            raise DinghyNotFound(f"Dinghy {name!r} does not exist") from None

    def dinghies_at(self, location: str) -> list[Dinghy]:
        """Get all dinghies configured at a location.

        Raises:
            LocationNotFound: If the location is not configured.
        """
        try:
            names = self._by_location[location]
        except KeyError:
            raise LocationNotFound(f"Location {location!r} is not configured") from None
        return [self._by_name[name] for name in names]

    def choose_dinghy(self, location: str) -> Dinghy:
        """Select a connected and ready dinghy at a location.

        Picks the least recently selected candidate; candidates never
        selected tie-break on configuration order.

        Args:
            location: Target location.

        Returns:
            Dinghy: The selected record.

        Raises:
            LocationNotFound: If the location is not configured.
            NoAvailableDinghy: If no dinghy there is connected and ready.
        """
        with self._lock:
            candidates = [d for d in self.dinghies_at(location) if d.connected and d.ready]
            if not candidates:
                raise NoAvailableDinghy(
                    f"Could not find an available dinghy at location {location!r}"
                )
            chosen = min(candidates, key=lambda d: d.last_selected)
            self._selections += 1
            chosen.last_selected = self._selections
            return chosen

    def snapshot(self) -> list[dict]:
        """Consistent status view of every dinghy, in configuration order."""
        with self._lock:
            return [dinghy.to_dict() for dinghy in self._by_name.values()]

    # ========================================================================
    # Status Updates (owner connection only)
    # ========================================================================

    def bind(self, name: str, connection: "Connection") -> Dinghy:
        """Bind a freshly registered connection to its dinghy.

        Args:
            name: Dinghy name presented at registration.
            connection: The registering connection.

        Returns:
            Dinghy: The bound record, now connected but not yet ready.

        Raises:
            DinghyNotFound: If no such name is configured.
            DinghyAlreadyConnected: If another connection owns the record.
        """
        with self._lock:
            dinghy = self.get_dinghy(name)
            if dinghy.connection is not None and dinghy.connection is not connection:
                raise DinghyAlreadyConnected(f"Dinghy {name!r} is already connected")
            dinghy.connection = connection
            dinghy.connected = True
            dinghy.ready = False
            dinghy.last_error = None
            return dinghy

    def set_ready(self, dinghy: Dinghy, connection: "Connection", ready: bool) -> bool:
        """Record a heartbeat answer.

        Returns:
            bool: False if ``connection`` does not own the record.
        """
        with self._lock:
            if dinghy.connection is not connection or not dinghy.connected:
                return False
            dinghy.ready = ready
            return True

    def record_error(self, dinghy: Dinghy, connection: "Connection", reason: str) -> None:
        """Remember the last failure reason without touching status."""
        with self._lock:
            if dinghy.connection is connection:
                dinghy.last_error = reason

    def release(
        self, dinghy: Dinghy, connection: "Connection", reason: str | None = None
    ) -> bool:
        """Unbind a connection from its dinghy.

        Args:
            dinghy: The bound record.
            connection: The owning connection.
            reason: Optional failure reason to keep in ``last_error``.

        Returns:
            bool: False if ``connection`` did not own the record.
        """
        with self._lock:
            if dinghy.connection is not connection:
                return False
            dinghy.connection = None
            dinghy.connected = False
            dinghy.ready = False
            if reason:
                dinghy.last_error = reason
            return True
