"""Tests for print orchestration."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from frigate.errors import LocationNotFound, NoAvailableDinghy, PrintFailed
from frigate.orchestrator import PrintOrchestrator

LABEL_URL = "https://labels.example.com/label.pdf"


def attach(registry, name, print_url=None):
    """Bind a mock connection to ``name`` and mark it ready."""
    connection = MagicMock()
    connection.print_url = print_url or AsyncMock(return_value=None)
    dinghy = registry.bind(name, connection)
    registry.set_ready(dinghy, connection, True)
    return connection


class TestPrintLabel:
    """Tests for PrintOrchestrator.print_label."""

    @pytest.mark.asyncio
    async def test_prints_on_ready_dinghy(self, registry):
        """The selected dinghy's connection receives the print."""
        connection = attach(registry, "A")
        orchestrator = PrintOrchestrator(registry)

        dinghy = await orchestrator.print_label("office", LABEL_URL)

        assert dinghy.name == "A"
        connection.print_url.assert_awaited_once_with(LABEL_URL, timeout=None)

    @pytest.mark.asyncio
    async def test_timeout_override(self, registry):
        """A configured timeout is passed to the connection."""
        connection = attach(registry, "C")
        orchestrator = PrintOrchestrator(registry, print_timeout=2.5)

        await orchestrator.print_label("warehouse", LABEL_URL)

        connection.print_url.assert_awaited_once_with(LABEL_URL, timeout=2.5)

    @pytest.mark.asyncio
    async def test_alternates_between_dinghies(self, registry):
        """Consecutive prints spread across ready dinghies."""
        attach(registry, "A")
        attach(registry, "B")
        orchestrator = PrintOrchestrator(registry)

        names = [(await orchestrator.print_label("office", LABEL_URL)).name for _ in range(3)]

        assert names == ["A", "B", "A"]

    @pytest.mark.asyncio
    async def test_no_available_dinghy(self, registry):
        """Nothing ready at the location raises NoAvailableDinghy."""
        attach(registry, "C")
        orchestrator = PrintOrchestrator(registry)

        with pytest.raises(NoAvailableDinghy):
            await orchestrator.print_label("office", LABEL_URL)

    @pytest.mark.asyncio
    async def test_unknown_location(self, registry):
        """An unconfigured location raises LocationNotFound."""
        orchestrator = PrintOrchestrator(registry)

        with pytest.raises(LocationNotFound):
            await orchestrator.print_label("attic", LABEL_URL)

    @pytest.mark.asyncio
    async def test_print_failure_propagates(self, registry):
        """PrintFailed from the connection reaches the caller."""
        attach(registry, "A", print_url=AsyncMock(side_effect=PrintFailed("jam")))
        orchestrator = PrintOrchestrator(registry)

        with pytest.raises(PrintFailed) as exc_info:
            await orchestrator.print_label("office", LABEL_URL)

        assert exc_info.value.reason == "jam"
