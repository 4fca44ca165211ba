from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import urlsplit

from .errors import (
    HostnameMissingError,
    PathMissingError,
    PortMissingError,
    ProtocolUnspecifiedError,
    UnsupportedProtocolError,
)

SERVER_SUFFIX = "-server"


class Transport(Enum):
    """
    Socket family behind a port address.
    TCP = "tcp": stream socket over IP
    UNIX = "unix": Unix domain stream socket
    """
    TCP = "tcp"
    UNIX = "unix"


class Role(Enum):
    """
    Which side of the connection the port takes.
    CLIENT: connects out to the endpoint
    SERVER: listens on the endpoint and accepts peers
    """
    CLIENT = "client"
    SERVER = "server"


@dataclass(frozen=True)
class Address:
    """
    Parsed port address.
    Fields:
        transport: TCP or UNIX
        role: CLIENT or SERVER
        host: TCP host name or address
        port: TCP port number
        path: Unix socket path
    """
    transport: Transport
    role: Role
    host: Optional[str] = None
    port: Optional[int] = None
    path: Optional[str] = None

    @property
    def is_server(self) -> bool:
        return self.role is Role.SERVER

    def endpoint(self) -> str:
        """Human readable endpoint, used in log lines."""
        if self.transport is Transport.UNIX:
            return f"unix:{self.path}"
        return f"tcp:{self.host}:{self.port}"


def parse_address(url: str) -> Address:
    """
    Parse a port address such as ``tcp://host:port`` or ``unix-server:///path``.
    Args:
        url (str): Address string
    Returns:
        Address: Validated address
    Raises:
        ProtocolUnspecifiedError: No scheme in the address
        HostnameMissingError: TCP address without a host
        PortMissingError: TCP address without a valid numeric port
        PathMissingError: Unix address without a path
        UnsupportedProtocolError: Any scheme other than tcp/unix(-server)
    """
    parts = urlsplit(url)
    protocol = parts.scheme.rstrip(":").lower()
    if not protocol:
        raise ProtocolUnspecifiedError("Socket protocol is not specified!")

    role = Role.SERVER if protocol.endswith(SERVER_SUFFIX) else Role.CLIENT
    kind = protocol[:-len(SERVER_SUFFIX)] if role is Role.SERVER else protocol

    if kind == Transport.TCP.value:
        if not parts.hostname:
            raise HostnameMissingError("Socket hostname is not specified!")
        try:
            port = parts.port
        except ValueError:
            # non-numeric or out of range
            port = None
        if port is None:
            raise PortMissingError("Socket port is not specified!")
        return Address(Transport.TCP, role, host=parts.hostname, port=port)

    if kind == Transport.UNIX.value:
        if not parts.path:
            raise PathMissingError("UNIX socket path is not specified!")
        return Address(Transport.UNIX, role, path=parts.path)

    raise UnsupportedProtocolError(protocol)
