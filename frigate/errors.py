"""Error taxonomy for the frigate hub."""


class FrigateError(Exception):
    """Base class for all frigate errors.

    Attributes:
        error_name: Stable name used on the wire and in HTTP error bodies.
    """

    error_name = "FrigateError"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


# ============================================================================
# Registry Errors
# ============================================================================


class DinghyError(FrigateError):
    """Registry lookup or selection failure."""

    error_name = "DinghyError"


class DinghyNotFound(DinghyError):
    """No dinghy with the requested name is configured."""

    error_name = "DinghyNotFound"


class LocationNotFound(DinghyError):
    """No dinghy is configured at the requested location."""

    error_name = "LocationNotFound"


class NoAvailableDinghy(DinghyError):
    """No connected and ready dinghy exists at the requested location."""

    error_name = "NoAvailableDinghy"


class DinghyAlreadyConnected(DinghyError):
    """Another live connection already owns this dinghy."""

    error_name = "DinghyAlreadyConnected"


# ============================================================================
# Shipment Errors
# ============================================================================


class ShipError(FrigateError):
    """Shipment workflow failure."""

    error_name = "ShipError"


class BadAddress(ShipError):
    """Address was understood but is incomplete."""

    error_name = "BadAddress"


class AddressError(ShipError):
    """Address validation service failed."""

    error_name = "AddressError"


class NoAvailableRate(ShipError):
    """No shipping rate matched the request."""

    error_name = "NoAvailableRate"


class ShipmentFailed(ShipError):
    """Rate lookup or label purchase failed."""

    error_name = "ShipmentFailed"


class PrintFailed(ShipError):
    """Print round-trip failed, timed out or was interrupted.

    Attributes:
        reason: Reason reported by the dinghy or by the hub.
    """

    error_name = "PrintFailed"

    def __init__(self, reason: str):
        super().__init__(f"Print failed: {reason}")
        self.reason = reason


# ============================================================================
# Protocol Errors
# ============================================================================


class ProtocolError(FrigateError):
    """Error in the dinghy websocket protocol."""

    error_name = "ProtocolError"


class AuthError(ProtocolError):
    """Registration rejected (bad secret or unknown name)."""

    error_name = "AuthError"


class PingError(ProtocolError):
    """Dinghy missed a heartbeat."""

    error_name = "PingError"


class MessageError(ProtocolError):
    """Frame could not be decoded into a known message."""

    error_name = "MessageError"


class UnknownMessageType(MessageError):
    """Frame carries a type tag this side does not understand.

    Attributes:
        message_type: The unrecognised tag.
    """

    error_name = "UnknownMessageType"

    def __init__(self, message_type: object):
        super().__init__(f"Unexpected message type {message_type!r}")
        self.message_type = message_type
