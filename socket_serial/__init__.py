"""Socket Serial package.

Serial-port style access (open, read, write, drain, flush, close) to TCP and
Unix domain sockets, as a client or as a single-peer server.
"""

__all__ = [
    "Address",
    "Role",
    "Transport",
    "parse_address",
    "OpenOptions",
    "PortStatus",
    "SocketBinding",
    "SocketPort",
    "binding",
    "SocketSerialError",
    "NotConnectedError",
    "TransportError",
]

from .address import Address, Role, Transport, parse_address
from .errors import NotConnectedError, SocketSerialError, TransportError
from .port import OpenOptions, PortStatus, SocketBinding, SocketPort, binding

__version__ = "0.1.0"
