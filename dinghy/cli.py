"""Command-line interface for the dinghy agent."""

import asyncio
import logging
import sys

import click

from dinghy import __version__
from dinghy.agent import get_agent
from dinghy.config import DEFAULT_CONFIG_FILE, DEFAULT_FRIGATE_URL, DinghyAgentConfig, get_config
from dinghy.printer import get_printer


def setup_logging(level: str) -> None:
    """Set up logging configuration.

    Args:
        level: Log level string.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


@click.group()
@click.version_option(version=__version__)
def main():
    """Dinghy - print agent for a Frigate hub.

    The dinghy keeps a connection to its frigate and prints shipping
    labels whenever the frigate asks for one.
    """
    pass


@main.command()
@click.option(
    "--frigate",
    "-f",
    default=DEFAULT_FRIGATE_URL,
    show_default=True,
    help="Websocket URL of the frigate",
)
@click.option("--name", "-n", prompt="Dinghy name", help="Name configured on the frigate")
@click.option(
    "--key",
    "-k",
    prompt="Shared key",
    hide_input=True,
    help="Shared authentication key",
)
@click.option("--printer", "-p", default=None, help="CUPS printer name (default printer if unset)")
def configure(frigate: str, name: str, key: str, printer: str | None):
    """Configure the dinghy agent."""
    config = DinghyAgentConfig(
        frigate_url=frigate,
        name=name,
        authkey=key,
        printer_name=printer,
    )

    config.save()
    click.echo(f"\nConfiguration saved to {DEFAULT_CONFIG_FILE}")
    click.echo("\nRun 'dinghy test' to verify the connection.")
    click.echo("Run 'dinghy start' to start the agent.")


@main.command()
def status():
    """Show current configuration and printer status."""
    config = get_config()

    click.echo("\n=== Dinghy Status ===\n")

    if not config.is_configured():
        click.echo("Status: NOT CONFIGURED")
        click.echo("\nRun 'dinghy configure' to set up the agent.")
        return

    click.echo(f"Frigate URL: {config.frigate_url}")
    click.echo(f"Name: {config.name}")
    click.echo(f"Key: {'*' * 8}")
    click.echo(f"Printer: {config.printer_name or '(default)'}")
    click.echo(f"Reconnect Interval: {config.reconnect_interval}s")

    printer = get_printer(config.printer_name)
    click.echo("\n=== Printer Status ===\n")
    if printer.is_available:
        click.echo(f"{printer.printer_name or '(default)'} [{printer.get_printer_status()}]")
    else:
        click.echo("CUPS not available")


@main.command()
def test():
    """Test registration with the frigate and the printer."""
    config = get_config()

    if not config.is_configured():
        click.echo("Error: Agent not configured. Run 'dinghy configure' first.")
        sys.exit(1)

    setup_logging("INFO")

    click.echo("\n=== Testing Dinghy Connection ===\n")

    agent = get_agent(config)
    results = asyncio.run(agent.check_connection())

    frigate = results["frigate"]
    click.echo(f"{'+' if frigate['status'] == 'ok' else 'x'} Frigate: {frigate['message']}")
    printer = results["printer"]
    click.echo(f"{'+' if printer['status'] == 'ok' else 'x'} Printer: {printer['message']}")
    click.echo("")

    if results["success"]:
        click.echo("All tests passed! You can now run 'dinghy start'.")
    else:
        click.echo("Some tests failed. Please check the configuration.")
        sys.exit(1)


@main.command()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def start(verbose: bool):
    """Start the dinghy agent.

    The agent stays connected to the frigate, redialing when the
    connection drops. Press Ctrl+C to stop.
    """
    config = get_config()

    if not config.is_configured():
        click.echo("Error: Agent not configured. Run 'dinghy configure' first.")
        sys.exit(1)

    setup_logging("DEBUG" if verbose else config.log_level)

    click.echo("Starting dinghy agent... (Ctrl+C to stop)")
    get_agent(config).start()


@main.command()
def printers():
    """List available printers."""
    printer = get_printer()

    click.echo("\n=== Available Printers ===\n")

    if not printer.is_available:
        click.echo("CUPS not available. Is it installed and running?")
        sys.exit(1)

    printers_list = printer.get_printers()
    if not printers_list:
        click.echo("No printers found.")
        return

    for p in printers_list:
        marker = "* " if p["is_default"] else "  "
        click.echo(f"{marker}{p['name']} [state {p['state']}]")

    click.echo("\n(* = default printer)")


if __name__ == "__main__":
    main()
