from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional

from .address import Address, Transport
from .connection import ConnectionSlot, SocketConnection
from .errors import TransportError

_logger = logging.getLogger(__name__)


def remove_stale_socket(path: str) -> bool:
    """
    Remove whatever sits at ``path`` so a Unix socket can be bound there.
    Returns:
        bool: True if an entry was removed
    Raises:
        TransportError: The entry exists but could not be removed
    """
    if not os.path.lexists(path):
        return False
    try:
        os.unlink(path)
    except OSError as e:
        raise TransportError(e) from e
    _logger.debug("Removed stale socket: %s", path)
    return True


class ConnectionEstablisher:
    """
    Produces the connection for a port address.

    Client addresses connect once. Server addresses bind a listener that
    stays up for the lifetime of the port: every accepted peer becomes the
    current connection of ``slot`` and the previous one is ended.
    """

    def __init__(self, address: Address, slot: ConnectionSlot) -> None:
        self.address = address
        self.slot = slot

    async def establish(self) -> Optional[asyncio.AbstractServer]:
        """
        Connect or listen according to the address.
        Returns:
            asyncio.AbstractServer or None: The listener for server roles
        Raises:
            TransportError: Binding, listening or connecting failed
        """
        if self.address.is_server:
            return await self._listen()
        await self._connect()
        return None

    async def _connect(self) -> None:
        loop = asyncio.get_running_loop()
        address = self.address
        _logger.debug("Connecting to %s", address.endpoint())
        try:
            if address.transport is Transport.TCP:
                _, conn = await loop.create_connection(SocketConnection, address.host, address.port)
            else:
                _, conn = await loop.create_unix_connection(SocketConnection, address.path)
        except OSError as e:
            raise TransportError(e) from e
        self.slot.replace(conn)

    async def _listen(self) -> asyncio.AbstractServer:
        loop = asyncio.get_running_loop()
        address = self.address
        first_peer = loop.create_future()

        def accepted(conn: SocketConnection) -> None:
            _logger.debug("Accepted peer %r on %s", conn.peer, address.endpoint())
            self.slot.replace(conn)
            if not first_peer.done():
                first_peer.set_result(None)

        def factory() -> SocketConnection:
            return SocketConnection(on_connected=accepted)

        try:
            if address.transport is Transport.TCP:
                server = await loop.create_server(factory, address.host, address.port)
            else:
                remove_stale_socket(address.path)
                server = await loop.create_unix_server(factory, address.path)
        except OSError as e:
            raise TransportError(e) from e

        _logger.debug("Listening on %s", address.endpoint())
        try:
            await first_peer
        except asyncio.CancelledError:
            server.close()
            raise
        return server
