"""FastAPI dependencies for the hub."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from frigate.server import FrigateServer
from frigate.shipping.service import ShipmentService


def get_frigate(request: Request) -> FrigateServer:
    """Get the running frigate server from application state."""
    return request.app.state.frigate


def get_shipment_service(request: Request) -> ShipmentService:
    """Get the shipment service.

    Raises:
        HTTPException: If no shipping collaborators are configured.
    """
    service = getattr(request.app.state, "shipment_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Shipping is not configured",
        )
    return service


Frigate = Annotated[FrigateServer, Depends(get_frigate)]
Shipments = Annotated[ShipmentService, Depends(get_shipment_service)]
