"""Hub API routes: dinghy websocket endpoint and the request layer."""

from fastapi import APIRouter, WebSocket

from frigate.dependencies import Frigate, Shipments
from frigate.shipping.schemas import (
    Address,
    PrintRequest,
    Rate,
    RateRequest,
    ShipRequest,
    ShipResult,
    StrictAddress,
)

router = APIRouter()


@router.websocket("/ws")
async def dinghy_socket(websocket: WebSocket):
    """Persistent socket for one dinghy session."""
    await websocket.app.state.frigate.handle_websocket(websocket)


@router.get("/ping")
async def ping():
    """Liveness check."""
    return {"status": "ok"}


@router.get("/dinghies")
async def list_dinghies(frigate: Frigate) -> list[dict]:
    """List configured dinghies with their live status.

    Returns:
        list[dict]: name, location, type, connected, ready, lastError.
    """
    return frigate.list_dinghies()


@router.post("/print")
async def print_document(data: PrintRequest, frigate: Frigate) -> dict:
    """Print a document on a ready dinghy at a location.

    Returns:
        dict: Name of the dinghy that printed.
    """
    dinghy = await frigate.print_label(data.location, data.url)
    return {"success": True, "dinghy": dinghy.name}


@router.post("/validate-address", response_model=StrictAddress)
async def validate_address(address: Address, shipments: Shipments):
    """Validate and correct a postal address."""
    return await shipments.validate_address(address)


@router.post("/rate", response_model=Rate)
async def get_rate(data: RateRequest, shipments: Shipments):
    """Quote the best rate for a shipment."""
    return await shipments.get_rate(data)


@router.post("/ship", response_model=ShipResult)
async def ship(data: ShipRequest, shipments: Shipments):
    """Buy a label and print it at the requested location."""
    return await shipments.ship(data)
