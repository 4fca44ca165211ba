from __future__ import annotations

from typing import Optional

import serial  # type: ignore


class SocketSerialError(serial.SerialException):
    """Base class for every failure raised by a socket-backed serial port."""


class AddressError(SocketSerialError, ValueError):
    """The port address could not be turned into a usable endpoint."""


class ProtocolUnspecifiedError(AddressError):
    pass


class HostnameMissingError(AddressError):
    pass


class PortMissingError(AddressError):
    pass


class PathMissingError(AddressError):
    pass


class UnsupportedProtocolError(AddressError):
    def __init__(self, protocol: str) -> None:
        super().__init__(f"Unsupported protocol: {protocol}")
        self.protocol = protocol


class NotConnectedError(SocketSerialError):
    def __init__(self, message: str = "Not connected!") -> None:
        super().__init__(message)


class PortReuseError(SocketSerialError):
    """A port instance was opened a second time."""


class TransportError(SocketSerialError):
    """
    Wraps an error reported by the underlying socket.
    Attributes:
        original: The exception raised by the socket layer
        errno: Its errno, when it carried one
    """

    def __init__(self, original: BaseException, message: Optional[str] = None) -> None:
        super().__init__(message or str(original) or type(original).__name__)
        self.original = original
        self.errno = getattr(original, "errno", None)
