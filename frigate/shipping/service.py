"""Shipment workflow service layer."""

import logging

from frigate.errors import FrigateError
from frigate.orchestrator import PrintOrchestrator
from frigate.shipping.base import (
    AddressValidator,
    LabelPurchaser,
    LoggingPackageLog,
    PackageLog,
    RateProvider,
)
from frigate.shipping.schemas import (
    Address,
    PackageStatus,
    Rate,
    RateRequest,
    ShipRequest,
    ShipResult,
    StrictAddress,
)

logger = logging.getLogger(__name__)


class ShipmentService:
    """Validates addresses, buys labels and prints them on a dinghy."""

    def __init__(
        self,
        orchestrator: PrintOrchestrator,
        address_validator: AddressValidator,
        rate_provider: RateProvider,
        label_purchaser: LabelPurchaser,
        package_log: PackageLog | None = None,
    ):
        """Initialize the shipment service.

        Args:
            orchestrator: Print orchestrator used for label printing.
            address_validator: Address validation collaborator.
            rate_provider: Rate lookup collaborator.
            label_purchaser: Label purchase collaborator.
            package_log: Audit sink (defaults to the application log).
        """
        self.orchestrator = orchestrator
        self.address_validator = address_validator
        self.rate_provider = rate_provider
        self.label_purchaser = label_purchaser
        self.package_log = package_log or LoggingPackageLog()

    async def validate_address(self, address: Address) -> StrictAddress:
        return await self.address_validator.validate(address)

    async def get_rate(self, request: RateRequest) -> Rate:
        """Validate both addresses and quote the best rate.

        Args:
            request: Rate request.

        Returns:
            Rate: Best rate.
        """
        to_addr = await self.address_validator.validate(request.to_addr)
        from_addr = await self.address_validator.validate(request.from_addr)
        corrected = request.model_copy(update={"to_addr": to_addr, "from_addr": from_addr})
        return await self.rate_provider.get_rate(corrected)

    async def ship(self, request: ShipRequest) -> ShipResult:
        """Buy a label for the request and print it at its location.

        Args:
            request: Shipment request.

        Returns:
            ShipResult: Tracking number, label and the dinghy that printed it.

        Raises:
            FrigateError: Any address, rate, label, registry or print error.
        """
        await self._record(request, PackageStatus.PURCHASING_LABEL)
        try:
            rate = await self.get_rate(request)
            label = await self.label_purchaser.buy(rate)
            logger.info(f"Tracking number: {label.tracking_number}")

            await self._record(request, PackageStatus.AWAITING_PRINTING)
            dinghy = await self.orchestrator.print_label(request.location, label.label_url)
        except FrigateError as e:
            logger.error(f"Shipment to {request.to_addr.name} failed: {e}")
            await self._record(request, PackageStatus.ERROR)
            raise

        await self._record(request, PackageStatus.AWAITING_SHIPMENT)
        return ShipResult(
            tracking_number=label.tracking_number,
            label_url=label.label_url,
            rate=rate,
            dinghy=dinghy.name,
        )

    async def _record(self, request: RateRequest, status: PackageStatus) -> None:
        """Write an audit record; failures are logged, never raised."""
        try:
            await self.package_log.record(request, status)
        except Exception as e:
            logger.exception(f"Failed to record package status {status.value}: {e}")
