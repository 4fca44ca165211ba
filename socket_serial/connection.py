from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

from .errors import TransportError

_logger = logging.getLogger(__name__)

# Inbound bytes held before the transport is asked to stop reading.
INBOUND_HIGH_WATER: int = 64 * 1024


class SocketConnection(asyncio.Protocol):
    """
    One duplex byte stream to a single peer.

    Bytes that arrive while nobody is reading are kept in the inbound buffer.
    A reader consumes one receive event at a time through ``receive()``.
    Writes return a future that completes once the transport has handed the
    bytes to the kernel; this relies on a zero write-buffer high-water mark,
    so ``resume_writing`` fires as soon as everything submitted is out.
    """

    def __init__(self, on_connected: Optional[Callable[["SocketConnection"], None]] = None) -> None:
        self._on_connected = on_connected
        self._transport: Optional[asyncio.Transport] = None
        self._inbound = bytearray()
        self._reading_paused = False
        self._eof = False
        self._lost = False
        self._error: Optional[BaseException] = None
        self._waiter: Optional[asyncio.Future] = None
        self._write_waiters: List[asyncio.Future] = []
        self.peer: object = None

    # asyncio.Protocol callbacks

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self._transport = transport  # type: ignore[assignment]
        transport.set_write_buffer_limits(high=0)
        self.peer = transport.get_extra_info("peername")
        _logger.debug("Connection made (peer=%r)", self.peer)
        if self._on_connected is not None:
            self._on_connected(self)

    def data_received(self, data: bytes) -> None:
        self._inbound += data
        if len(self._inbound) > INBOUND_HIGH_WATER and not self._reading_paused and self._transport is not None:
            self._transport.pause_reading()
            self._reading_paused = True
        self._wake()

    def eof_received(self) -> Optional[bool]:
        _logger.debug("Peer %r sent EOF", self.peer)
        self._eof = True
        self._wake()
        # Let the transport close itself; no half-open connections.
        return None

    def connection_lost(self, exc: Optional[Exception]) -> None:
        self._lost = True
        if exc is not None:
            _logger.warning("Connection to %r lost: %s", self.peer, exc)
            self._error = exc
        else:
            _logger.debug("Connection to %r closed", self.peer)
        self._wake()
        waiters, self._write_waiters = self._write_waiters, []
        for fut in waiters:
            if not fut.done():
                cause = exc or ConnectionResetError("connection closed before write completed")
                fut.set_exception(TransportError(cause))

    def pause_writing(self) -> None:
        pass

    def resume_writing(self) -> None:
        if self._transport is None or self._transport.get_write_buffer_size():
            return
        waiters, self._write_waiters = self._write_waiters, []
        for fut in waiters:
            if not fut.done():
                fut.set_result(None)

    # reading

    @property
    def at_eof(self) -> bool:
        return (self._eof or self._lost) and not self._inbound

    async def receive(self) -> bytes:
        """
        Wait for one receive event and return what it delivered.
        Returns:
            bytes: Everything pending on the transport, or b"" when the peer
            ended the stream or the event carried no data
        Raises:
            TransportError: The socket reported an error
        """
        if not self._inbound and self._error is None and not self._eof and not self._lost:
            if self._waiter is not None:
                raise RuntimeError("receive() called while another receive is waiting")
            waiter = asyncio.get_running_loop().create_future()
            self._waiter = waiter
            try:
                await waiter
            finally:
                self._waiter = None

        if self._inbound:
            chunk = bytes(self._inbound)
            self._inbound.clear()
            self._maybe_resume_reading()
            return chunk

        if self._error is not None:
            exc, self._error = self._error, None
            raise TransportError(exc) from exc

        return b""

    def discard_inbound(self) -> int:
        """Drop unread inbound bytes; returns how many were dropped."""
        dropped = len(self._inbound)
        self._inbound.clear()
        self._maybe_resume_reading()
        return dropped

    def _maybe_resume_reading(self) -> None:
        if self._reading_paused and self._transport is not None and not self._lost:
            self._transport.resume_reading()
            self._reading_paused = False

    def _wake(self) -> None:
        if self._waiter is not None and not self._waiter.done():
            self._waiter.set_result(None)

    # writing

    def write(self, data: bytes) -> asyncio.Future:
        """
        Submit bytes to the transport.
        Returns:
            asyncio.Future: Resolves once the bytes have left the transport
            buffer, fails with TransportError if the connection goes away first
        """
        fut = asyncio.get_running_loop().create_future()
        fut.add_done_callback(_log_write_failure)
        if self._transport is None or self._transport.is_closing():
            fut.set_exception(TransportError(ConnectionResetError("connection is closed")))
            return fut
        self._transport.write(data)
        if self._transport.get_write_buffer_size() == 0:
            fut.set_result(None)
        else:
            self._write_waiters.append(fut)
        return fut

    def end(self) -> None:
        """Flush pending output, send EOF and close the connection."""
        if self._transport is None or self._transport.is_closing():
            return
        _logger.debug("Ending connection to %r", self.peer)
        if self._transport.can_write_eof():
            self._transport.write_eof()
        self._transport.close()


def _log_write_failure(fut: asyncio.Future) -> None:
    if fut.cancelled():
        return
    exc = fut.exception()
    if exc is not None:
        _logger.debug("Write failed: %s", exc)


class ConnectionSlot:
    """
    Holds the single current connection of a port.
    Replacing the occupant ends the previous one. Once closed, the slot
    ends every connection offered to it instead of installing it.
    """

    def __init__(self) -> None:
        self._current: Optional[SocketConnection] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def current(self) -> Optional[SocketConnection]:
        return self._current

    def replace(self, conn: SocketConnection) -> None:
        if self._closed:
            _logger.debug("Slot closed, ending late connection %r", conn.peer)
            conn.end()
            return
        previous, self._current = self._current, conn
        if previous is not None and previous is not conn:
            _logger.debug("Replacing connection %r with %r", previous.peer, conn.peer)
            previous.end()

    def clear(self) -> Optional[SocketConnection]:
        previous, self._current = self._current, None
        return previous

    def close(self) -> None:
        """End the occupant and refuse any later connection."""
        self._closed = True
        previous = self.clear()
        if previous is not None:
            previous.end()
