"""Local printing for the dinghy agent.

Documents are downloaded from the URL in the frigate's print request and
submitted to CUPS, through pycups when it is installed or the ``lp``
command otherwise.
"""

import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

import requests

logger = logging.getLogger(__name__)

# pycups is optional; the lp command covers systems without it
try:
    import cups

    CUPS_AVAILABLE = True
except ImportError:
    CUPS_AVAILABLE = False
    logger.debug("pycups not available - using lp command")

# CUPS printer-state values
STATE_IDLE = 3
STATE_PROCESSING = 4
STATE_STOPPED = 5


class PrinterError(Exception):
    """Error during a download or print operation."""

    pass


@runtime_checkable
class PrintTransport(Protocol):
    """What the agent needs from a printer backend."""

    def is_ready(self) -> bool:
        """Whether a print submitted now would be accepted."""
        ...

    def print_from_url(self, url: str) -> None:
        """Download the document at ``url`` and print it.

        Raises:
            PrinterError: If download or printing fails.
        """
        ...


class CupsPrinter:
    """CUPS print transport."""

    def __init__(self, printer_name: str | None = None, download_timeout: float = 30.0):
        """Initialize the CUPS connection.

        Args:
            printer_name: CUPS printer name (None = default printer).
            download_timeout: Seconds allowed to download a document.
        """
        self.printer_name = printer_name
        self.download_timeout = download_timeout
        self._connection = None

        if CUPS_AVAILABLE:
            try:
                self._connection = cups.Connection()
            except RuntimeError as e:
                logger.error(f"Could not connect to CUPS: {e}")

    @property
    def is_available(self) -> bool:
        """Check if CUPS is reachable through pycups or lp."""
        return self._connection is not None or self._lp_available()

    def _lp_available(self) -> bool:
        try:
            result = subprocess.run(["which", "lp"], capture_output=True, text=True, timeout=5)
            return result.returncode == 0
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return False

    def get_printers(self) -> list[dict]:
        """List printers known to CUPS.

        Returns:
            list[dict]: Dicts with 'name', 'state' and 'is_default'.
        """
        if self._connection:
            try:
                default = self._connection.getDefault()
                return [
                    {
                        "name": name,
                        "state": info.get("printer-state", 0),
                        "is_default": name == default,
                    }
                    for name, info in self._connection.getPrinters().items()
                ]
            except cups.IPPError as e:
                logger.error(f"Error getting printers: {e}")
                return []

        try:
            result = subprocess.run(["lpstat", "-p"], capture_output=True, text=True, timeout=10)
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return []
        default = self.get_default_printer()
        printers = []
        for line in result.stdout.splitlines():
            parts = line.split()
            if len(parts) >= 2 and parts[0] == "printer":
                state = STATE_STOPPED if "disabled" in line else STATE_IDLE
                printers.append({"name": parts[1], "state": state, "is_default": parts[1] == default})
        return printers

    def get_default_printer(self) -> str | None:
        """Get the default printer name, or None."""
        if self._connection:
            try:
                return self._connection.getDefault()
            except cups.IPPError as e:
                logger.error(f"Error getting default printer: {e}")
                return None

        try:
            result = subprocess.run(["lpstat", "-d"], capture_output=True, text=True, timeout=5)
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return None
        if "system default destination:" in result.stdout:
            return result.stdout.split(":")[-1].strip()
        return None

    def get_printer_status(self) -> str:
        """Get the configured printer's status.

        Returns:
            str: 'ready', 'busy', 'offline' or 'unknown'.
        """
        name = self.printer_name or self.get_default_printer()
        if not name:
            return "unknown"

        for printer in self.get_printers():
            if printer["name"] == name:
                state = printer["state"]
                if state == STATE_IDLE:
                    return "ready"
                if state == STATE_PROCESSING:
                    return "busy"
                if state == STATE_STOPPED:
                    return "offline"
                return "unknown"
        return "offline"

    def is_ready(self) -> bool:
        # A busy printer still queues jobs
        return self.get_printer_status() in ("ready", "busy")

    def download(self, url: str) -> bytes:
        """Download a document.

        Raises:
            PrinterError: If the request fails.
        """
        try:
            response = requests.get(url, timeout=self.download_timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise PrinterError(f"Download failed: {e}") from e
        return response.content

    def print_document(self, data: bytes, title: str = "Dinghy Label", copies: int = 1) -> None:
        """Submit a document to the printer.

        Args:
            data: Document contents (PDF).
            title: Print job title.
            copies: Number of copies.

        Raises:
            PrinterError: If printing fails.
        """
        name = self.printer_name or self.get_default_printer()

        with tempfile.NamedTemporaryFile(suffix=".pdf", delete=False) as f:
            f.write(data)
            temp_path = f.name

        try:
            if self._connection and name:
                try:
                    job_id = self._connection.printFile(
                        name, temp_path, title, {"copies": str(copies)}
                    )
                except cups.IPPError as err:
                    raise PrinterError(f"CUPS rejected the job: {err}") from err
                logger.info(f"Print job {job_id} submitted to {name}")
                return

            cmd = ["lp", "-t", title, "-n", str(copies)]
            if name:
                cmd.extend(["-d", name])
            cmd.append(temp_path)
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=30)
            if result.returncode != 0:
                raise PrinterError(f"lp command failed: {result.stderr.strip()}")
            logger.info(f"Print job submitted via lp: {result.stdout.strip()}")
        except subprocess.TimeoutExpired as err:
            raise PrinterError("Print command timed out") from err
        except FileNotFoundError as err:
            raise PrinterError("lp command not found - is CUPS installed?") from err
        finally:
            Path(temp_path).unlink(missing_ok=True)

    def print_from_url(self, url: str) -> None:
        """Download the document at ``url`` and print it.

        Raises:
            PrinterError: If download or printing fails.
        """
        logger.info(f"Printing label from {url}")
        self.print_document(self.download(url))


def get_printer(printer_name: str | None = None, download_timeout: float = 30.0) -> CupsPrinter:
    """Factory function for CupsPrinter.

    Args:
        printer_name: Optional printer name.
        download_timeout: Seconds allowed to download a document.

    Returns:
        CupsPrinter: Printer instance.
    """
    return CupsPrinter(printer_name, download_timeout)
