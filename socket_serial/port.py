from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Union

import serial  # type: ignore

from .address import Address, parse_address
from .connection import ConnectionSlot
from .errors import PortReuseError
from .establish import ConnectionEstablisher
from .reader import OverflowReader, ReadResult, WritableBuffer
from .writer import WriteTracker

_logger = logging.getLogger(__name__)

PARITIES: Dict[str, str] = {
    "none": serial.PARITY_NONE,
    "even": serial.PARITY_EVEN,
    "odd": serial.PARITY_ODD,
    "mark": serial.PARITY_MARK,
    "space": serial.PARITY_SPACE,
}


@dataclass(frozen=True)
class OpenOptions:
    """
    Options a port is opened with.
    Only ``path`` (the socket address) has an effect; the line settings are
    validated and kept so ``get_baud_rate`` and ``serial_settings`` can echo them.
    """
    path: str
    baud_rate: int = 9600
    data_bits: int = 8
    stop_bits: float = 1
    parity: str = "none"
    rtscts: bool = False
    xon: bool = False
    xoff: bool = False
    xany: bool = False
    hupcl: bool = True
    lock: bool = True

    def __post_init__(self) -> None:
        if not self.path:
            raise ValueError("path is required")
        if int(self.baud_rate) <= 0:
            raise ValueError(f"invalid baud rate: {self.baud_rate}")
        if self.data_bits not in serial.Serial.BYTESIZES:
            raise ValueError(f"invalid data bits: {self.data_bits}")
        if self.stop_bits not in serial.Serial.STOPBITS:
            raise ValueError(f"invalid stop bits: {self.stop_bits}")
        if self.parity not in PARITIES:
            raise ValueError(f"invalid parity: {self.parity}")

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "OpenOptions":
        known = {f.name for f in fields(cls)}
        unknown = set(options) - known
        if unknown:
            raise ValueError(f"unknown options: {', '.join(sorted(unknown))}")
        return cls(**options)

    def serial_settings(self) -> Dict[str, Any]:
        """Line settings in the shape of pyserial's ``Serial.get_settings()``."""
        return {
            "baudrate": self.baud_rate,
            "bytesize": self.data_bits,
            "parity": PARITIES[self.parity],
            "stopbits": self.stop_bits,
            "xonxoff": self.xon or self.xoff,
            "rtscts": self.rtscts,
            "dsrdtr": False,
        }


class PortStatus(NamedTuple):
    cts: bool
    dsr: bool
    dcd: bool


class BaudRate(NamedTuple):
    baud_rate: int


class BindingState(Enum):
    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"


class SocketPort:
    """
    A TCP or Unix socket presented as a serial port.

    Lifecycle is CLOSED -> OPENING -> OPEN -> CLOSED; a port is single use
    and cannot be reopened once open() has been attempted. The address in
    ``options.path`` is resolved by open().
    """

    def __init__(self, options: OpenOptions) -> None:
        self.address: Optional[Address] = None
        self.options = options
        self.state = BindingState.CLOSED
        self._used = False
        self._slot = ConnectionSlot()
        self._listener: Optional[asyncio.AbstractServer] = None
        self._reader = OverflowReader(self._slot)
        self._writer = WriteTracker(self._slot)

    @property
    def is_open(self) -> bool:
        return self.state is BindingState.OPEN

    async def open(self) -> None:
        """
        Connect or listen, then wait for the first connection.
        Raises:
            AddressError: options.path is not a usable address
            PortReuseError: The port was opened before
            TransportError: The socket could not be bound or connected
        """
        if self._used:
            raise PortReuseError("port instance cannot be reopened")
        self._used = True
        self.state = BindingState.OPENING
        try:
            self.address = parse_address(self.options.path)
            establisher = ConnectionEstablisher(self.address, self._slot)
            self._listener = await establisher.establish()
        except BaseException:
            self.state = BindingState.CLOSED
            self._slot.close()
            raise
        self.state = BindingState.OPEN
        _logger.info("Opened %s", self.address.endpoint())

    async def close(self) -> None:
        if self.state is not BindingState.OPEN:
            return
        self._slot.close()
        if self._listener is not None:
            self._listener.close()
            self._listener = None
        self.state = BindingState.CLOSED
        _logger.info("Closed %s", self.address.endpoint())

    async def __aenter__(self) -> "SocketPort":
        if self.state is BindingState.CLOSED and not self._used:
            await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def read(self, buffer: WritableBuffer, offset: int, length: int) -> ReadResult:
        return await self._reader.read(buffer, offset, length)

    def write(self, data: bytes) -> asyncio.Future:
        """
        Submit ``data`` for transmission.
        Returns:
            asyncio.Future: Completes when the bytes have been handed to the
            kernel; awaiting it is optional since drain() observes the latest write
        Raises:
            NotConnectedError: There is no current connection
        """
        return self._writer.write(data)

    async def drain(self) -> None:
        await self._writer.drain()

    async def flush(self) -> None:
        self._writer.flush()

    async def get(self) -> PortStatus:
        return PortStatus(cts=True, dsr=True, dcd=False)

    async def set(self, options: Optional[Mapping[str, Any]] = None) -> None:
        pass

    async def update(self, options: Optional[Mapping[str, Any]] = None) -> None:
        pass

    async def get_baud_rate(self) -> BaudRate:
        return BaudRate(self.options.baud_rate)


class SocketBinding:
    """Entry point that opens socket ports from serial-style options."""

    async def open(self, options: Union[OpenOptions, Mapping[str, Any]]) -> SocketPort:
        if not isinstance(options, OpenOptions):
            options = OpenOptions.from_mapping(options)
        port = SocketPort(options)
        await port.open()
        return port

    async def list(self) -> List[Dict[str, Any]]:
        # sockets cannot be enumerated
        return []


binding = SocketBinding()
