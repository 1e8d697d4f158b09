"""Pytest configuration and fixtures."""

import asyncio
import json
import os
from collections.abc import Callable

# Set test environment before importing the app
os.environ["FRIGATE_AUTHKEY"] = "test-shared-key-for-testing-only"
os.environ["FRIGATE_DINGHIES"] = "[]"
os.environ["FRIGATE_LOG_LEVEL"] = "WARNING"

import pytest

from frigate.auth import Authenticator
from frigate.config import DinghyConfig
from frigate.registry import DinghyRegistry

TEST_KEY = "test-shared-key-for-testing-only"


class FakeWebSocket:
    """In-memory stand-in for a Starlette WebSocket.

    Frames queued with push() are returned by receive(); frames sent by
    the connection are decoded into ``sent``.
    """

    def __init__(self):
        self.inbox: asyncio.Queue = asyncio.Queue()
        self.sent: list[dict] = []
        self.closed = False
        self.client = None

    async def receive(self) -> dict:
        return await self.inbox.get()

    async def send_text(self, data: str) -> None:
        if self.closed:
            raise RuntimeError("Cannot send once the socket is closed")
        self.sent.append(json.loads(data))

    async def close(self, code: int = 1000) -> None:
        self.closed = True

    def push(self, message: dict) -> None:
        self.inbox.put_nowait({"type": "websocket.receive", "text": json.dumps(message)})

    def disconnect(self, code: int = 1000) -> None:
        self.inbox.put_nowait({"type": "websocket.disconnect", "code": code})

    def sent_of_type(self, message_type: str) -> list[dict]:
        return [m for m in self.sent if m["type"] == message_type]


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll ``predicate`` on the event loop until it holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(0.005)


@pytest.fixture
def dinghy_configs() -> list[DinghyConfig]:
    """Two dinghies in the office, one in the warehouse."""
    return [
        DinghyConfig(name="A", location="office", type="label"),
        DinghyConfig(name="B", location="office", type="label"),
        DinghyConfig(name="C", location="warehouse", type="label"),
    ]


@pytest.fixture
def registry(dinghy_configs) -> DinghyRegistry:
    """Create a fresh registry."""
    return DinghyRegistry(dinghy_configs)


@pytest.fixture
def authenticator() -> Authenticator:
    """Authenticator using the test key."""
    return Authenticator(TEST_KEY)


@pytest.fixture
def websocket() -> FakeWebSocket:
    """Create a fake websocket."""
    return FakeWebSocket()


@pytest.fixture
def register_message(authenticator) -> Callable[[str], dict]:
    """Build a RegisterReq frame with a valid secret."""

    def build(name: str = "A") -> dict:
        return {
            "type": "RegisterReq",
            "params": {"name": name, "secret": authenticator.encode_secret()},
        }

    return build
