"""Dinghy agent - keeps a session with the frigate and prints on request."""

import asyncio
import logging

import websockets

from dinghy.config import DinghyAgentConfig, get_config
from dinghy.printer import PrinterError, PrintTransport, get_printer
from frigate.auth import Authenticator
from frigate.errors import MessageError, UnknownMessageType
from frigate.messages import (
    AuthErrorNotice,
    PingErrorNotice,
    PrintReq,
    PrintReqParams,
    PrintResponse,
    PrintResponseParams,
    RegisterReq,
    RegisterReqParams,
    RegisterResp,
    StatusReq,
    StatusResp,
    StatusRespParams,
    decode_hub_message,
    encode,
)

logger = logging.getLogger(__name__)

# Seconds between background refreshes of the printer state
PRINTER_POLL_INTERVAL = 2.0


class DinghyAgent:
    """Print agent that holds a websocket session with its frigate.

    The agent:
    1. Registers with a time-bucketed secret
    2. Answers status requests straight away from a cached printer state
    3. Prints requested documents in a worker thread and reports the outcome
    4. Redials the frigate whenever the session drops, unless it was rejected
    """

    def __init__(
        self,
        config: DinghyAgentConfig | None = None,
        printer: PrintTransport | None = None,
    ):
        """Initialize the agent.

        Args:
            config: Configuration (loads from file if not provided).
            printer: Print transport (CUPS printer if not provided).
        """
        self.config = config or get_config()
        self.printer = printer or get_printer(
            self.config.printer_name, self.config.download_timeout
        )
        self.authenticator = Authenticator(self.config.authkey)
        self.running = False
        self.registered = False
        self.printer_ready = False
        self._websocket = None
        self._print_task: asyncio.Task | None = None

    @property
    def is_printing(self) -> bool:
        return self._print_task is not None and not self._print_task.done()

    @property
    def ready(self) -> bool:
        """Ready to accept a print job right now."""
        return self.printer_ready and not self.is_printing

    # ========================================================================
    # Session
    # ========================================================================

    async def run(self) -> None:
        """Run sessions until stopped or rejected by the frigate."""
        self.running = True
        logger.info(f"Starting dinghy {self.config.name}")
        logger.info(f"Frigate: {self.config.frigate_url}")
        logger.info(f"Printer: {self.config.printer_name or 'default'}")

        while self.running:
            try:
                keep_going = await self.run_session()
            except (OSError, websockets.WebSocketException) as e:
                logger.error(f"Connection to frigate failed: {e}")
                keep_going = True

            if not keep_going:
                logger.error("Frigate rejected this dinghy, not reconnecting")
                break
            if self.running:
                logger.info(f"Reconnecting in {self.config.reconnect_interval}s")
                await asyncio.sleep(self.config.reconnect_interval)

        self.running = False
        logger.info("Agent stopped")

    async def run_session(self) -> bool:
        """Connect, register and serve one session.

        Returns:
            bool: False if the frigate rejected the registration.
        """
        async with websockets.connect(self.config.frigate_url) as websocket:
            self._websocket = websocket
            poller = asyncio.create_task(self._poll_printer())
            try:
                await self.register()
                async for raw in websocket:
                    if not await self.handle_message(raw):
                        return False
            except websockets.ConnectionClosed as e:
                logger.warning(f"Session closed: {e}")
            finally:
                poller.cancel()
                self._websocket = None
                self.registered = False

        logger.info("Disconnected from frigate")
        return True

    def stop(self) -> None:
        """Stop after the current session."""
        self.running = False
        if self._websocket is not None:
            asyncio.ensure_future(self._websocket.close())

    def start(self) -> None:
        """Blocking entry point used by the CLI."""
        try:
            asyncio.run(self.run())
        except KeyboardInterrupt:
            logger.info("Shutdown signal received")

    async def register(self) -> None:
        """Send the registration request."""
        secret = self.authenticator.encode_secret()
        await self._send(RegisterReq(params=RegisterReqParams(name=self.config.name, secret=secret)))

    async def _send(self, message) -> bool:
        if self._websocket is None:
            logger.warning(f"Not connected, dropping {message.type}")
            return False
        try:
            await self._websocket.send(encode(message))
        except websockets.ConnectionClosed as e:
            logger.warning(f"Could not send {message.type}: {e}")
            return False
        return True

    async def _poll_printer(self) -> None:
        while True:
            try:
                self.printer_ready = await asyncio.to_thread(self.printer.is_ready)
            except Exception as e:
                logger.error(f"Error checking printer status: {e}")
                self.printer_ready = False
            await asyncio.sleep(PRINTER_POLL_INTERVAL)

    # ========================================================================
    # Message Handling
    # ========================================================================

    async def handle_message(self, raw: str | bytes) -> bool:
        """Handle one frame from the frigate.

        Args:
            raw: Frame contents.

        Returns:
            bool: False if the session must end without reconnecting.
        """
        try:
            message = decode_hub_message(raw)
        except UnknownMessageType as e:
            logger.warning(f"Unexpected message type {e.message_type!r}")
            return True
        except MessageError as e:
            logger.warning(f"Dropping malformed frame: {e}")
            return True

        if isinstance(message, RegisterResp):
            if not message.params.success:
                logger.error(f"Registration failed: {message.params.reason}")
                return False
            self.registered = True
            logger.info(f"Registered with frigate as {self.config.name}")
        elif isinstance(message, StatusReq):
            await self._send(
                StatusResp(params=StatusRespParams(name=self.config.name, ready=self.ready))
            )
        elif isinstance(message, PrintReq):
            await self._start_print(message.params)
        elif isinstance(message, AuthErrorNotice):
            logger.error(f"Authentication error: {message.params.reason}")
            return False
        elif isinstance(message, PingErrorNotice):
            logger.warning(f"Frigate dropped us for a missed heartbeat: {message.params.reason}")
        return True

    async def _start_print(self, params: PrintReqParams) -> None:
        if self.is_printing:
            logger.warning(f"Rejecting print job {params.id}: printer busy")
            await self._send_print_result(params.id, False, "printer busy")
            return
        self._print_task = asyncio.create_task(self._print(params))

    async def _print(self, params: PrintReqParams) -> None:
        logger.info(f"Processing print job {params.id}")
        try:
            await asyncio.to_thread(self.printer.print_from_url, params.url)
        except PrinterError as e:
            logger.error(f"Print error for job {params.id}: {e}")
            await self._send_print_result(params.id, False, str(e))
            return
        except Exception as e:
            logger.exception(f"Unexpected error printing job {params.id}: {e}")
            await self._send_print_result(params.id, False, str(e) or type(e).__name__)
            return
        logger.info(f"Job {params.id} printed successfully")
        await self._send_print_result(params.id, True)

    async def _send_print_result(self, job_id: str, success: bool, reason: str | None = None):
        await self._send(
            PrintResponse(params=PrintResponseParams(success=success, reason=reason, id=job_id))
        )

    # ========================================================================
    # Diagnostics
    # ========================================================================

    async def check_connection(self, timeout: float = 5.0) -> dict:
        """Test registration with the frigate and the printer.

        Args:
            timeout: Seconds to wait for the registration answer.

        Returns:
            dict: Test results with 'frigate', 'printer', 'success' keys.
        """
        results = {
            "frigate": {"status": "unknown", "message": ""},
            "printer": {"status": "unknown", "message": ""},
            "success": False,
        }

        try:
            async with websockets.connect(self.config.frigate_url) as websocket:
                self._websocket = websocket
                await self.register()
                raw = await asyncio.wait_for(websocket.recv(), timeout)
                message = decode_hub_message(raw)
                if isinstance(message, RegisterResp) and message.params.success:
                    results["frigate"] = {"status": "ok", "message": "Registered with frigate"}
                else:
                    reason = getattr(message.params, "reason", None) or "unexpected answer"
                    results["frigate"] = {"status": "error", "message": f"Rejected: {reason}"}
        except (OSError, asyncio.TimeoutError, websockets.WebSocketException, MessageError) as e:
            results["frigate"] = {"status": "error", "message": str(e) or type(e).__name__}
        finally:
            self._websocket = None

        status = await asyncio.to_thread(self.printer.is_ready)
        if status:
            results["printer"] = {"status": "ok", "message": "Printer ready"}
        else:
            results["printer"] = {"status": "error", "message": "Printer not ready"}

        results["success"] = (
            results["frigate"]["status"] == "ok" and results["printer"]["status"] == "ok"
        )
        return results


def get_agent(config: DinghyAgentConfig | None = None) -> DinghyAgent:
    """Factory function for DinghyAgent.

    Args:
        config: Optional configuration.

    Returns:
        DinghyAgent: Agent instance.
    """
    return DinghyAgent(config)
