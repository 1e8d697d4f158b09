"""Collaborator interfaces for the shipment workflow.

Concrete carrier and geocoding clients plug in by subclassing these.
"""

import logging
from abc import ABC, abstractmethod

from frigate.shipping.schemas import (
    Address,
    LabelResult,
    PackageStatus,
    Rate,
    RateRequest,
    StrictAddress,
)

logger = logging.getLogger(__name__)


class AddressValidator(ABC):
    """Validates and corrects postal addresses."""

    @abstractmethod
    async def validate(self, address: Address) -> StrictAddress:
        """Validate an address.

        Args:
            address: Address as entered.

        Returns:
            StrictAddress: Corrected address.

        Raises:
            BadAddress: If the address is incomplete.
            AddressError: If the validation service fails.
        """


class RateProvider(ABC):
    """Looks up the best shipping rate."""

    @abstractmethod
    async def get_rate(self, request: RateRequest) -> Rate:
        """Get the best rate for a shipment.

        Raises:
            NoAvailableRate: If no rate matches.
            ShipmentFailed: If the carrier API fails.
        """


class LabelPurchaser(ABC):
    """Buys a label for a previously quoted rate."""

    @abstractmethod
    async def buy(self, rate: Rate) -> LabelResult:
        """Buy a label.

        Raises:
            ShipmentFailed: If the purchase fails.
        """


class PackageLog(ABC):
    """Audit sink for shipment requests."""

    @abstractmethod
    async def record(self, request: RateRequest, status: PackageStatus) -> None:
        """Record a status change for a shipment request."""


class LoggingPackageLog(PackageLog):
    """Package log that writes audit records to the application log."""

    async def record(self, request: RateRequest, status: PackageStatus) -> None:
        logger.info(
            f"Package to {request.to_addr.name} ({request.to_addr.postal_code}) "
            f"at {request.location or '-'}: {status.value}"
        )
