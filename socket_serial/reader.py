from __future__ import annotations

from typing import NamedTuple, Union

from .connection import ConnectionSlot
from .errors import NotConnectedError

WritableBuffer = Union[bytearray, memoryview]


class ReadResult(NamedTuple):
    buffer: WritableBuffer
    bytes_read: int


class OverflowReader:
    """
    Bounded reads against the current connection of a slot.

    A single receive event may deliver more bytes than the caller asked for;
    the surplus is kept as overflow and handed out first by the next read.
    Each call consumes at most one receive event, so short reads are normal.
    Callers must not run two reads at once.
    """

    def __init__(self, slot: ConnectionSlot) -> None:
        self.slot = slot
        self._overflow = b""

    @property
    def overflow_size(self) -> int:
        return len(self._overflow)

    async def read(self, buffer: WritableBuffer, offset: int, length: int) -> ReadResult:
        """
        Read up to ``length`` bytes into ``buffer`` starting at ``offset``.
        Returns:
            ReadResult: The buffer and how many bytes were written into it;
            0 from the transport means the peer ended the stream
        Raises:
            ValueError: offset/length fall outside the buffer
            NotConnectedError: Transport data is needed but there is no connection
            TransportError: The connection reported an error
        """
        if offset < 0 or length < 0 or offset + length > len(buffer):
            raise ValueError(f"read of {length} bytes at offset {offset} does not fit buffer of {len(buffer)}")
        out = memoryview(buffer)

        from_overflow = 0
        if self._overflow:
            from_overflow = min(length, len(self._overflow))
            out[offset:offset + from_overflow] = self._overflow[:from_overflow]
            self._overflow = self._overflow[from_overflow:]
            offset += from_overflow
            length -= from_overflow

        if not length:
            return ReadResult(buffer, from_overflow)

        conn = self.slot.current
        if conn is None:
            raise NotConnectedError()

        chunk = await conn.receive()
        if len(chunk) > length:
            out[offset:offset + length] = chunk[:length]
            self._overflow = chunk[length:]
            return ReadResult(buffer, from_overflow + length)

        out[offset:offset + len(chunk)] = chunk
        return ReadResult(buffer, from_overflow + len(chunk))
