"""Print orchestration: route a document to a ready dinghy at a location."""

import logging

from frigate.errors import PrintFailed
from frigate.registry import Dinghy, DinghyRegistry

logger = logging.getLogger(__name__)


class PrintOrchestrator:
    """Drives one print round-trip per call.

    This is the entry point the shipment workflow uses to print labels.
    """

    def __init__(self, registry: DinghyRegistry, print_timeout: float | None = None):
        """Initialize the orchestrator.

        Args:
            registry: Dinghy registry to select from.
            print_timeout: Override for the per-connection print timeout.
        """
        self.registry = registry
        self.print_timeout = print_timeout

    async def print_label(self, location: str, url: str) -> Dinghy:
        """Print the document at ``url`` on a ready dinghy at ``location``.

        Args:
            location: Target location.
            url: Document URL.

        Returns:
            Dinghy: The dinghy that printed the document.

        Raises:
            LocationNotFound: If the location is not configured.
            NoAvailableDinghy: If no dinghy there is connected and ready.
            PrintFailed: If the print round-trip fails.
        """
        dinghy = self.registry.choose_dinghy(location)
        connection = dinghy.connection
        if connection is None:
            raise PrintFailed("dinghy not connected")

        logger.info(f"Printing {url} on {dinghy.name} at {location}")
        await connection.print_url(url, timeout=self.print_timeout)
        return dinghy
