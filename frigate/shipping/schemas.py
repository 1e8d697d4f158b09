"""Schemas for the shipment workflow."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model accepting and emitting camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PackageStatus(str, Enum):
    """Audit status of a shipment request."""

    PURCHASING_LABEL = "Purchasing label"
    AWAITING_PRINTING = "Awaiting printing"
    AWAITING_SHIPMENT = "Awaiting shipment"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    INVALID = "Invalid"
    ERROR = "Error"


class Address(CamelModel):
    """Postal address as entered by the requester."""

    name: str = Field(..., min_length=1)
    company_name: str | None = None
    phone: str | None = None
    address_line1: str = Field(..., min_length=1)
    address_line2: str | None = None
    city_locality: str
    state_province: str
    postal_code: str
    country_code: str


class StrictAddress(Address):
    """Address corrected by the address validator."""

    phone: str
    address_residential_indicator: str = Field("unknown", pattern="^(yes|no|unknown)$")


class Package(CamelModel):
    """Parcel dimensions and weight."""

    length: float = Field(..., gt=0)
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)
    weight: float = Field(..., gt=0)
    unit_weight: str
    unit_length: str
    description: str | None = None


class RateRequest(CamelModel):
    """Request for a shipping rate."""

    to_addr: Address
    from_addr: Address
    package: Package
    location: str | None = None


class ShipRequest(RateRequest):
    """Request to buy and print a label at a location."""

    location: str


class Rate(CamelModel):
    """Chosen carrier rate."""

    carrier: str
    service: str
    rate_id: str
    price: float


class LabelResult(CamelModel):
    """Purchased label."""

    tracking_number: str
    label_url: str


class ShipResult(CamelModel):
    """Outcome of a completed shipment request."""

    tracking_number: str
    label_url: str
    rate: Rate
    dinghy: str
    status: PackageStatus = PackageStatus.AWAITING_SHIPMENT


class PrintRequest(CamelModel):
    """Request to print a document at a location."""

    location: str
    url: str
