from __future__ import annotations

import asyncio
import os
import shutil
import socket
import tempfile
from typing import List, Union

import pytest

from socket_serial.connection import ConnectionSlot
from socket_serial.errors import TransportError


class ScriptedConnection:
    """Connection stand-in that replays a fixed list of receive events."""

    def __init__(self, events: List[Union[bytes, BaseException]]) -> None:
        self.events = list(events)
        self.receives = 0
        self.discarded = 0
        self.written: List[bytes] = []
        self.ended = False
        self.peer = "scripted"

    async def receive(self) -> bytes:
        self.receives += 1
        event = self.events.pop(0) if self.events else b""
        if isinstance(event, BaseException):
            raise TransportError(event) from event
        return event

    def discard_inbound(self) -> int:
        self.discarded += 1
        return 0

    def write(self, data: bytes) -> asyncio.Future:
        self.written.append(data)
        return asyncio.get_running_loop().create_future()

    def end(self) -> None:
        self.ended = True


@pytest.fixture
def free_tcp_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def sock_path():
    if not hasattr(socket, "AF_UNIX"):
        pytest.skip("Unix domain sockets not available")
    # short directory: AF_UNIX paths are limited to ~104 bytes
    base = tempfile.mkdtemp(prefix="ssp-", dir="/tmp" if os.path.isdir("/tmp") else None)
    yield os.path.join(base, "port.sock")
    shutil.rmtree(base, ignore_errors=True)


@pytest.fixture
def scripted_slot():
    """Factory: a ConnectionSlot whose current connection replays ``events``."""
    def make(events: List[Union[bytes, BaseException]]):
        slot = ConnectionSlot()
        conn = ScriptedConnection(events)
        slot.replace(conn)  # type: ignore[arg-type]
        return slot, conn
    return make
