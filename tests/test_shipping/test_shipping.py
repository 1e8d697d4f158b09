"""Tests for the shipment workflow service."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from frigate.errors import BadAddress, NoAvailableDinghy, NoAvailableRate, PrintFailed
from frigate.registry import Dinghy
from frigate.shipping.base import PackageLog
from frigate.shipping.schemas import (
    Address,
    LabelResult,
    PackageStatus,
    Rate,
    ShipRequest,
    StrictAddress,
)
from frigate.shipping.service import ShipmentService

ADDRESS = {
    "name": "Ada Lovelace",
    "addressLine1": "12 St James's Square",
    "cityLocality": "London",
    "stateProvince": "LND",
    "postalCode": "SW1Y 4JH",
    "countryCode": "GB",
}

PACKAGE = {
    "length": 10,
    "width": 8,
    "height": 4,
    "weight": 1.5,
    "unitWeight": "pound",
    "unitLength": "inch",
}

RATE = Rate(carrier="ups", service="ground", rate_id="se-1", price=9.5)
LABEL = LabelResult(tracking_number="1Z999", label_url="https://labels.example.com/1Z999.pdf")


class RecordingPackageLog(PackageLog):
    """Package log that keeps statuses in memory."""

    def __init__(self):
        self.statuses: list[PackageStatus] = []

    async def record(self, request, status):
        self.statuses.append(status)


def strict(address: Address) -> StrictAddress:
    return StrictAddress(**address.model_dump(exclude={"phone"}), phone="+44 20 7946 0000")


@pytest.fixture
def ship_request() -> ShipRequest:
    """Shipment request for the office."""
    return ShipRequest.model_validate(
        {"toAddr": ADDRESS, "fromAddr": ADDRESS, "package": PACKAGE, "location": "office"}
    )


@pytest.fixture
def collaborators():
    """Mocked address, rate, label and print collaborators."""
    validator = MagicMock()
    validator.validate = AsyncMock(side_effect=strict)
    rates = MagicMock()
    rates.get_rate = AsyncMock(return_value=RATE)
    labels = MagicMock()
    labels.buy = AsyncMock(return_value=LABEL)
    orchestrator = MagicMock()
    orchestrator.print_label = AsyncMock(
        return_value=Dinghy(name="A", location="office", type="label")
    )
    return validator, rates, labels, orchestrator


@pytest.fixture
def package_log() -> RecordingPackageLog:
    return RecordingPackageLog()


@pytest.fixture
def service(collaborators, package_log) -> ShipmentService:
    validator, rates, labels, orchestrator = collaborators
    return ShipmentService(orchestrator, validator, rates, labels, package_log)


class TestValidateAddress:
    """Tests for address validation."""

    @pytest.mark.asyncio
    async def test_returns_corrected_address(self, service):
        """The validator's corrected address is returned."""
        result = await service.validate_address(Address.model_validate(ADDRESS))

        assert isinstance(result, StrictAddress)
        assert result.phone == "+44 20 7946 0000"
        assert result.address_residential_indicator == "unknown"

    @pytest.mark.asyncio
    async def test_bad_address(self, service, collaborators):
        """Validator errors propagate."""
        collaborators[0].validate.side_effect = BadAddress("Missing phone number")

        with pytest.raises(BadAddress):
            await service.validate_address(Address.model_validate(ADDRESS))


class TestGetRate:
    """Tests for rate quotes."""

    @pytest.mark.asyncio
    async def test_rates_corrected_addresses(self, service, collaborators, ship_request):
        """Both addresses are validated before the quote."""
        validator, rates, _, _ = collaborators

        rate = await service.get_rate(ship_request)

        assert rate == RATE
        assert validator.validate.await_count == 2
        quoted = rates.get_rate.await_args.args[0]
        assert isinstance(quoted.to_addr, StrictAddress)
        assert isinstance(quoted.from_addr, StrictAddress)

    @pytest.mark.asyncio
    async def test_no_rate(self, service, collaborators, ship_request):
        """NoAvailableRate propagates."""
        collaborators[1].get_rate.side_effect = NoAvailableRate("No rates found")

        with pytest.raises(NoAvailableRate):
            await service.get_rate(ship_request)


class TestShip:
    """Tests for the full shipment flow."""

    @pytest.mark.asyncio
    async def test_ship_success(self, service, collaborators, package_log, ship_request):
        """A label is bought, printed at the location and audited."""
        _, _, labels, orchestrator = collaborators

        result = await service.ship(ship_request)

        labels.buy.assert_awaited_once_with(RATE)
        orchestrator.print_label.assert_awaited_once_with("office", LABEL.label_url)
        assert result.tracking_number == "1Z999"
        assert result.dinghy == "A"
        assert result.rate == RATE
        assert result.status is PackageStatus.AWAITING_SHIPMENT
        assert package_log.statuses == [
            PackageStatus.PURCHASING_LABEL,
            PackageStatus.AWAITING_PRINTING,
            PackageStatus.AWAITING_SHIPMENT,
        ]

    @pytest.mark.asyncio
    async def test_print_failure_recorded(
        self, service, collaborators, package_log, ship_request
    ):
        """A failed print is audited as an error and re-raised."""
        collaborators[3].print_label.side_effect = PrintFailed("jam")

        with pytest.raises(PrintFailed):
            await service.ship(ship_request)

        assert package_log.statuses[-1] is PackageStatus.ERROR
        assert PackageStatus.AWAITING_SHIPMENT not in package_log.statuses

    @pytest.mark.asyncio
    async def test_no_dinghy_before_printing(
        self, service, collaborators, package_log, ship_request
    ):
        """Registry errors abort the shipment after the label is bought."""
        collaborators[3].print_label.side_effect = NoAvailableDinghy("none ready")

        with pytest.raises(NoAvailableDinghy):
            await service.ship(ship_request)

        collaborators[2].buy.assert_awaited_once()
        assert package_log.statuses == [
            PackageStatus.PURCHASING_LABEL,
            PackageStatus.AWAITING_PRINTING,
            PackageStatus.ERROR,
        ]

    @pytest.mark.asyncio
    async def test_label_not_bought_for_bad_address(
        self, service, collaborators, package_log, ship_request
    ):
        """Address errors stop the flow before any purchase."""
        collaborators[0].validate.side_effect = BadAddress("Address is incomplete")

        with pytest.raises(BadAddress):
            await service.ship(ship_request)

        collaborators[2].buy.assert_not_awaited()
        assert package_log.statuses == [PackageStatus.PURCHASING_LABEL, PackageStatus.ERROR]

    @pytest.mark.asyncio
    async def test_package_log_failure_does_not_abort(self, collaborators, ship_request):
        """Audit failures are logged, not raised."""
        validator, rates, labels, orchestrator = collaborators
        broken_log = MagicMock(spec=PackageLog)
        broken_log.record = AsyncMock(side_effect=RuntimeError("disk full"))
        service = ShipmentService(orchestrator, validator, rates, labels, broken_log)

        result = await service.ship(ship_request)

        assert result.dinghy == "A"


class TestSchemas:
    """Tests for the shipping schemas."""

    def test_camel_case_round_trip(self, ship_request):
        """Requests accept camelCase and dump with aliases."""
        assert ship_request.to_addr.postal_code == "SW1Y 4JH"
        dumped = ship_request.model_dump(by_alias=True)
        assert dumped["toAddr"]["addressLine1"] == "12 St James's Square"

    def test_ship_request_requires_location(self):
        """A shipment must name a location."""
        with pytest.raises(ValueError):
            ShipRequest.model_validate({"toAddr": ADDRESS, "fromAddr": ADDRESS, "package": PACKAGE})

    def test_package_dimensions_positive(self):
        """Zero dimensions are rejected."""
        with pytest.raises(ValueError):
            ShipRequest.model_validate(
                {
                    "toAddr": ADDRESS,
                    "fromAddr": ADDRESS,
                    "package": {**PACKAGE, "weight": 0},
                    "location": "office",
                }
            )
