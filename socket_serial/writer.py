from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .connection import ConnectionSlot
from .errors import NotConnectedError

_logger = logging.getLogger(__name__)


class WriteTracker:
    """
    Issues writes on the current connection and remembers the latest one.
    drain() waits for that latest write only; earlier writes are still
    ordered by the transport but no longer observed.
    """

    def __init__(self, slot: ConnectionSlot) -> None:
        self.slot = slot
        self._last_write: Optional[asyncio.Future] = None

    @property
    def pending(self) -> Optional[asyncio.Future]:
        return self._last_write

    def write(self, data: bytes) -> asyncio.Future:
        conn = self.slot.current
        if conn is None:
            raise NotConnectedError()
        fut = conn.write(bytes(data))
        self._last_write = fut
        return fut

    async def drain(self) -> None:
        pending = self._last_write
        if pending is None:
            return
        try:
            # shield: cancelling a drain must not cancel the write itself
            await asyncio.shield(pending)
        finally:
            if self._last_write is pending and pending.done():
                self._last_write = None

    def flush(self) -> None:
        conn = self.slot.current
        if conn is None:
            return
        dropped = conn.discard_inbound()
        if dropped:
            _logger.debug("Flushed %d unread bytes", dropped)
