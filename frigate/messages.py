"""Websocket message envelopes exchanged between frigate and dinghies.

Every frame is one JSON object ``{"type": ..., "params": {...}}``. The
``type`` tag selects the params schema; frames are validated here before
they are dispatched.
"""

import json
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from frigate.errors import AuthError, MessageError, PingError, UnknownMessageType

# ============================================================================
# Dinghy -> Frigate
# ============================================================================


class RegisterReqParams(BaseModel):
    """Registration request payload."""

    name: str
    secret: str


class RegisterReq(BaseModel):
    """Dinghy asks to register under a configured name."""

    type: Literal["RegisterReq"] = "RegisterReq"
    params: RegisterReqParams


class StatusRespParams(BaseModel):
    """Heartbeat answer payload."""

    name: str
    ready: bool


class StatusResp(BaseModel):
    """Dinghy answers a status request."""

    type: Literal["StatusResp"] = "StatusResp"
    params: StatusRespParams


class PrintResponseParams(BaseModel):
    """Print outcome payload.

    ``id`` echoes the correlation id of the print request; it may be
    omitted by clients that never have more than one job in flight.
    """

    success: bool
    reason: str | None = None
    id: str | None = None


class PrintResponse(BaseModel):
    """Dinghy reports the outcome of a print request."""

    type: Literal["PrintResponse"] = "PrintResponse"
    params: PrintResponseParams


# ============================================================================
# Frigate -> Dinghy
# ============================================================================


class RegisterRespParams(BaseModel):
    """Registration outcome payload."""

    success: bool
    reason: str | None = None


class RegisterResp(BaseModel):
    """Frigate answers a registration request."""

    type: Literal["RegisterResp"] = "RegisterResp"
    params: RegisterRespParams


class EmptyParams(BaseModel):
    """No payload."""


class StatusReq(BaseModel):
    """Liveness probe."""

    type: Literal["StatusReq"] = "StatusReq"
    params: EmptyParams = Field(default_factory=EmptyParams)


class PrintReqParams(BaseModel):
    """Print request payload."""

    url: str
    id: str


class PrintReq(BaseModel):
    """Frigate asks a dinghy to print the document at ``url``."""

    type: Literal["PrintReq"] = "PrintReq"
    params: PrintReqParams


class ErrorParams(BaseModel):
    """Error notice payload."""

    reason: str


class AuthErrorNotice(BaseModel):
    """Registration was rejected; the socket is closed next."""

    type: Literal["AuthError"] = "AuthError"
    params: ErrorParams


class PingErrorNotice(BaseModel):
    """Heartbeat was missed; the socket is closed next."""

    type: Literal["PingError"] = "PingError"
    params: ErrorParams


def error_notice(error: AuthError | PingError) -> AuthErrorNotice | PingErrorNotice:
    """Build the notice sent to a dinghy before the hub closes its socket.

    Args:
        error: Protocol error ending the session.

    Returns:
        The typed notice carrying the error message as reason.
    """
    if isinstance(error, AuthError):
        return AuthErrorNotice(params=ErrorParams(reason=error.message))
    return PingErrorNotice(params=ErrorParams(reason=error.message))


ClientMessage = Annotated[
    Union[RegisterReq, StatusResp, PrintResponse], Field(discriminator="type")
]
HubMessage = Annotated[
    Union[RegisterResp, StatusReq, PrintReq, AuthErrorNotice, PingErrorNotice],
    Field(discriminator="type"),
]

CLIENT_MESSAGE_TYPES = frozenset({"RegisterReq", "StatusResp", "PrintResponse"})
HUB_MESSAGE_TYPES = frozenset({"RegisterResp", "StatusReq", "PrintReq", "AuthError", "PingError"})

_client_adapter: TypeAdapter = TypeAdapter(ClientMessage)
_hub_adapter: TypeAdapter = TypeAdapter(HubMessage)


def encode(message: BaseModel) -> str:
    """Encode a message as one JSON text frame.

    Args:
        message: Any envelope model from this module.

    Returns:
        str: JSON text.
    """
    return message.model_dump_json(exclude_none=True)


def _decode(raw: str | bytes, known: frozenset, adapter: TypeAdapter):
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MessageError(f"Frame is not valid JSON: {e}") from e

    if not isinstance(data, dict) or "type" not in data:
        raise MessageError("Frame has no type tag")

    msg_type = data["type"]
    if not isinstance(msg_type, str) or msg_type not in known:
        raise UnknownMessageType(msg_type)

    data.setdefault("params", {})
    try:
        return adapter.validate_python(data)
    except ValidationError as e:
        raise MessageError(f"Invalid {msg_type} payload: {e.error_count()} error(s)") from e


def decode_client_message(raw: str | bytes) -> RegisterReq | StatusResp | PrintResponse:
    """Decode a frame sent by a dinghy.

    Args:
        raw: Frame text.

    Returns:
        The validated message.

    Raises:
        UnknownMessageType: If the type tag is not a dinghy message.
        MessageError: If the frame is malformed.
    """
    return _decode(raw, CLIENT_MESSAGE_TYPES, _client_adapter)


def decode_hub_message(
    raw: str | bytes,
) -> RegisterResp | StatusReq | PrintReq | AuthErrorNotice | PingErrorNotice:
    """Decode a frame sent by the frigate.

    Args:
        raw: Frame text.

    Returns:
        The validated message.

    Raises:
        UnknownMessageType: If the type tag is not a frigate message.
        MessageError: If the frame is malformed.
    """
    return _decode(raw, HUB_MESSAGE_TYPES, _hub_adapter)
