"""Per-socket session with a dinghy.

A Connection owns the protocol state machine for one accepted websocket:

1. Waits for a RegisterReq and authenticates it
2. Binds to the registry record and starts heartbeating
3. Correlates print requests with the dinghy's print responses
4. Tears everything down (timers, waiters, registry status) on close

Frame handlers and timer callbacks share one lock, so at most one of them
touches the connection at any time.
"""

import asyncio
import logging
import uuid
from enum import Enum

from fastapi import WebSocket, WebSocketDisconnect

from frigate.auth import Authenticator
from frigate.errors import (
    AuthError,
    DinghyAlreadyConnected,
    MessageError,
    PingError,
    PrintFailed,
    UnknownMessageType,
)
from frigate.messages import (
    PrintReq,
    PrintReqParams,
    PrintResponse,
    PrintResponseParams,
    RegisterReq,
    RegisterReqParams,
    RegisterResp,
    RegisterRespParams,
    StatusReq,
    StatusResp,
    StatusRespParams,
    decode_client_message,
    encode,
    error_notice,
)
from frigate.registry import Dinghy, DinghyRegistry

logger = logging.getLogger(__name__)

CONNECTION_CLOSED = "connection closed"
NO_RESPONSE = "no response"
MISSED_HEARTBEAT = "ya failed ping :("


class ConnectionState(str, Enum):
    """Connection lifecycle state."""

    UNAUTHENTICATED = "unauthenticated"
    IDLE = "idle"
    PRINTING = "printing"
    CLOSED = "closed"


class Connection:
    """State machine for one dinghy websocket."""

    def __init__(
        self,
        websocket: WebSocket,
        registry: DinghyRegistry,
        authenticator: Authenticator,
        heartbeat_interval: float = 3.0,
        ping_timeout: float = 0.1,
        print_timeout: float = 1.0,
    ):
        """Initialize an unauthenticated connection.

        Args:
            websocket: Accepted websocket.
            registry: Dinghy registry to bind into.
            authenticator: Checks registration secrets.
            heartbeat_interval: Seconds between status requests.
            ping_timeout: Seconds allowed for a status response.
            print_timeout: Default seconds allowed for a print response.
        """
        self.websocket = websocket
        self.registry = registry
        self.authenticator = authenticator
        self.heartbeat_interval = heartbeat_interval
        self.ping_timeout = ping_timeout
        self.print_timeout = print_timeout

        self.state = ConnectionState.UNAUTHENTICATED
        self.dinghy: Dinghy | None = None

        self._lock = asyncio.Lock()
        self._closed = asyncio.Event()
        self._socket_open = True
        self._heartbeat: asyncio.Task | None = None
        self._ping_deadline: asyncio.Task | None = None
        self._print_waiters: dict[str, asyncio.Future] = {}

    @property
    def name(self) -> str:
        """Dinghy name once registered, peer address before."""
        if self.dinghy is not None:
            return self.dinghy.name
        client = getattr(self.websocket, "client", None)
        if client:
            return f"{client.host}:{client.port}"
        return "unregistered client"

    @property
    def is_closed(self) -> bool:
        return self.state is ConnectionState.CLOSED

    @property
    def has_pending_timers(self) -> bool:
        return self._heartbeat is not None or self._ping_deadline is not None

    @property
    def pending_prints(self) -> int:
        return len(self._print_waiters)

    # ========================================================================
    # Socket Loop
    # ========================================================================

    async def serve(self) -> None:
        """Read frames until the peer disconnects or the session closes."""
        logger.info(f"New client {self.name} has connected")
        try:
            while not self.is_closed:
                raw = await self._receive()
                if raw is None:
                    break
                await self.handle_message(raw)
        except WebSocketDisconnect as e:
            self._socket_open = False
            logger.info(f"Client {self.name} disconnected (code {e.code})")
        finally:
            await self.close()

    async def _receive(self) -> str | bytes | None:
        """Wait for the next frame, or None once the session has closed."""
        receive = asyncio.ensure_future(self.websocket.receive())
        closed = asyncio.ensure_future(self._closed.wait())
        try:
            done, _ = await asyncio.wait({receive, closed}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (receive, closed):
                if not task.done():
                    task.cancel()

        if receive not in done:
            return None

        message = receive.result()
        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(message.get("code", 1000))
        if message.get("text") is not None:
            return message["text"]
        return message.get("bytes")

    async def _send(self, message) -> bool:
        """Send one frame.

        Returns:
            bool: False if the socket is gone.
        """
        if not self._socket_open:
            return False
        try:
            await self.websocket.send_text(encode(message))
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            self._socket_open = False
            logger.warning(f"Could not send {message.type} to {self.name}: {e}")
            return False
        return True

    # ========================================================================
    # Message Dispatch
    # ========================================================================

    async def handle_message(self, raw: str | bytes) -> None:
        """Decode and dispatch one frame from the dinghy.

        Args:
            raw: Frame contents.
        """
        try:
            message = decode_client_message(raw)
        except UnknownMessageType as e:
            logger.warning(f"Unexpected message type {e.message_type!r} from {self.name}")
            return
        except MessageError as e:
            logger.warning(f"Dropping malformed frame from {self.name}: {e}")
            return

        async with self._lock:
            if self.is_closed:
                return
            if isinstance(message, RegisterReq):
                await self._handle_register(message.params)
            elif self.state is ConnectionState.UNAUTHENTICATED:
                logger.warning(f"Ignoring {message.type} from unregistered {self.name}")
            elif isinstance(message, StatusResp):
                self._handle_status(message.params)
            elif isinstance(message, PrintResponse):
                self._handle_print_response(message.params)

    async def _handle_register(self, params: RegisterReqParams) -> None:
        if self.state is not ConnectionState.UNAUTHENTICATED:
            logger.warning(f"Ignoring repeated registration from {self.name}")
            return

        try:
            self.dinghy = self._authenticate(params)
        except AuthError as e:
            await self._reject_registration(e)
            return

        self.state = ConnectionState.IDLE
        logger.info(f"Client {self.name} authenticated")
        await self._send(RegisterResp(params=RegisterRespParams(success=True)))
        self._heartbeat = asyncio.create_task(self._heartbeat_loop())

    def _authenticate(self, params: RegisterReqParams) -> Dinghy:
        """Check the secret and name, then bind the dinghy.

        Raises:
            AuthError: If the secret is wrong, the name is unknown or the
                dinghy is already connected.
        """
        if not self.authenticator.check_secret(params.secret):
            raise AuthError("Incorrect credentials")
        if not self.registry.has_dinghy(params.name):
            raise AuthError("Unknown name")
        try:
            return self.registry.bind(params.name, self)
        except DinghyAlreadyConnected as e:
            raise AuthError(e.message) from e

    async def _reject_registration(self, error: AuthError) -> None:
        reason = error.message
        logger.warning(f"Registration from {self.name} rejected: {reason}")
        await self._send(RegisterResp(params=RegisterRespParams(success=False, reason=reason)))
        await self._send(error_notice(error))
        await self._shutdown()

    def _handle_status(self, params: StatusRespParams) -> None:
        if params.name != self.dinghy.name:
            logger.warning(f"Status for {params.name!r} received on {self.name}, ignoring")
            return
        if self._ping_deadline is not None:
            self._ping_deadline.cancel()
            self._ping_deadline = None
        self.registry.set_ready(self.dinghy, self, params.ready)
        logger.debug(f"{self.name} ready={params.ready}")

    def _handle_print_response(self, params: PrintResponseParams) -> None:
        job_id = params.id
        if job_id is None and len(self._print_waiters) == 1:
            job_id = next(iter(self._print_waiters))

        future = self._print_waiters.get(job_id) if job_id is not None else None
        if future is None or future.done():
            logger.warning(f"Unexpected print response {job_id!r} from {self.name}")
            return

        if params.success:
            future.set_result(None)
        else:
            future.set_exception(PrintFailed(params.reason or "unknown error"))

    # ========================================================================
    # Heartbeat
    # ========================================================================

    async def _heartbeat_loop(self) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            async with self._lock:
                if self.is_closed:
                    return
                self._arm_ping_deadline()
                await self._send(StatusReq())

    def _arm_ping_deadline(self) -> None:
        # An unanswered ping keeps its original deadline
        if self._ping_deadline is None:
            self._ping_deadline = asyncio.create_task(self._ping_deadline_expired())

    async def _ping_deadline_expired(self) -> None:
        await asyncio.sleep(self.ping_timeout)
        async with self._lock:
            if self.is_closed or self._ping_deadline is not asyncio.current_task():
                return
            self._ping_deadline = None
            logger.warning(f"{self.name} missed ping!")
            self.registry.release(self.dinghy, self, MISSED_HEARTBEAT)
            self._cancel_timers()
            await self._send(error_notice(PingError(MISSED_HEARTBEAT)))
            await self._shutdown(MISSED_HEARTBEAT)

    def _cancel_timers(self) -> None:
        current = asyncio.current_task()
        for task in (self._heartbeat, self._ping_deadline):
            if task is not None and task is not current:
                task.cancel()
        self._heartbeat = None
        self._ping_deadline = None

    # ========================================================================
    # Printing
    # ========================================================================

    async def print_url(self, url: str, timeout: float | None = None) -> None:
        """Print the document at ``url`` on this connection's dinghy.

        Args:
            url: Document URL the dinghy downloads and prints.
            timeout: Seconds to wait for the response (default print_timeout).

        Raises:
            PrintFailed: If the dinghy is not ready, is already printing,
                reports failure, does not answer in time, or disconnects.
        """
        if timeout is None:
            timeout = self.print_timeout

        async with self._lock:
            if self.is_closed or self.dinghy is None:
                raise PrintFailed("dinghy not connected")
            if not (self.dinghy.connected and self.dinghy.ready):
                raise PrintFailed("dinghy not ready")
            if self._print_waiters:
                raise PrintFailed("print already in progress")

            job_id = uuid.uuid4().hex
            future = asyncio.get_running_loop().create_future()
            self._print_waiters[job_id] = future
            self.state = ConnectionState.PRINTING
            logger.info(f"Sending print job {job_id} to {self.name}: {url}")
            if not await self._send(PrintReq(params=PrintReqParams(url=url, id=job_id))):
                self._finish_print(job_id)
                raise PrintFailed(CONNECTION_CLOSED)

        try:
            await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Print job {job_id} on {self.name} timed out")
            self.registry.record_error(self.dinghy, self, NO_RESPONSE)
            raise PrintFailed(NO_RESPONSE) from None
        except PrintFailed as e:
            logger.warning(f"Print job {job_id} on {self.name} failed: {e.reason}")
            self.registry.record_error(self.dinghy, self, e.reason)
            raise
        finally:
            self._finish_print(job_id)

        logger.info(f"Print job {job_id} on {self.name} succeeded")

    def _finish_print(self, job_id: str) -> None:
        self._print_waiters.pop(job_id, None)
        if self.state is ConnectionState.PRINTING and not self._print_waiters:
            self.state = ConnectionState.IDLE

    # ========================================================================
    # Close
    # ========================================================================

    async def close(self, reason: str | None = None) -> None:
        """Close the session; safe to call more than once.

        Args:
            reason: Optional reason recorded on the dinghy.
        """
        async with self._lock:
            await self._shutdown(reason)

    async def _shutdown(self, reason: str | None = None) -> None:
        if self.is_closed:
            return
        self.state = ConnectionState.CLOSED
        self._closed.set()
        self._cancel_timers()

        if self.dinghy is not None:
            self.registry.release(self.dinghy, self, reason)

        for future in self._print_waiters.values():
            if not future.done():
                future.set_exception(PrintFailed(CONNECTION_CLOSED))

        if self._socket_open:
            self._socket_open = False
            try:
                await self.websocket.close()
            except (RuntimeError, OSError) as e:
                logger.debug(f"Socket for {self.name} already closed: {e}")

        logger.info(f"Connection {self.name} closed")
