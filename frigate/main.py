"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from frigate import __version__
from frigate.config import get_settings
from frigate.errors import (
    AddressError,
    BadAddress,
    DinghyAlreadyConnected,
    DinghyNotFound,
    FrigateError,
    LocationNotFound,
    NoAvailableDinghy,
    NoAvailableRate,
    PrintFailed,
    ShipmentFailed,
)
from frigate.router import router
from frigate.server import FrigateServer
from frigate.shipping.service import ShipmentService

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    DinghyNotFound: status.HTTP_404_NOT_FOUND,
    LocationNotFound: status.HTTP_404_NOT_FOUND,
    NoAvailableDinghy: status.HTTP_503_SERVICE_UNAVAILABLE,
    DinghyAlreadyConnected: status.HTTP_409_CONFLICT,
    BadAddress: status.HTTP_422_UNPROCESSABLE_ENTITY,
    AddressError: status.HTTP_502_BAD_GATEWAY,
    NoAvailableRate: status.HTTP_502_BAD_GATEWAY,
    ShipmentFailed: status.HTTP_502_BAD_GATEWAY,
    PrintFailed: status.HTTP_502_BAD_GATEWAY,
}


async def frigate_error_handler(request: Request, exc: FrigateError) -> JSONResponse:
    """Map frigate errors to HTTP responses.

    Args:
        request: Failed request.
        exc: Raised error.

    Returns:
        JSONResponse: ``{"detail": ..., "error": ...}``.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type in type(exc).__mro__:
        if error_type in ERROR_STATUS:
            status_code = ERROR_STATUS[error_type]
            break
    logger.warning(f"{request.method} {request.url.path} failed: {exc.error_name}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": exc.error_name},
    )


def create_app(
    server: FrigateServer | None = None,
    shipment_service: ShipmentService | None = None,
) -> FastAPI:
    """Create the hub application.

    Args:
        server: Prebuilt frigate server (built from settings if omitted).
        shipment_service: Shipment workflow; shipping routes answer 503
            without one.

    Returns:
        FastAPI: Configured application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup and shutdown events.

        Args:
            app: FastAPI application instance.
        """
        # Startup
        frigate = server or FrigateServer.from_settings(settings)
        app.state.frigate = frigate
        app.state.shipment_service = shipment_service
        logger.info(f"Frigate ready with dinghies: {', '.join(frigate.registry.names) or '-'}")
        yield
        # Shutdown
        await frigate.shutdown()

    app = FastAPI(
        title=settings.app_name,
        description="Hub coordinating remote label printing dinghies",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.add_exception_handler(FrigateError, frigate_error_handler)
    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    """Run the hub with uvicorn on the configured host and port."""
    uvicorn.run(
        "frigate.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
