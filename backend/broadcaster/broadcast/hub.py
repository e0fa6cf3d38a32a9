"""In-process real-time transport: per-connection queues and symbol groups."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 100


class StreamHub:
    """Connection registry and group multicast for SSE/WebSocket clients.

    Each connection owns a bounded asyncio.Queue that its endpoint drains.
    Sending never blocks: if a consumer has fallen so far behind that its
    queue is full, the message is dropped for that consumer only.
    """

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self._queue_size = queue_size
        self._queues: dict[str, asyncio.Queue] = {}
        self._groups: dict[str, set[str]] = defaultdict(set)

    # --- Connections ---

    def connect(self, connection_id: str) -> asyncio.Queue:
        """Register a connection and return the queue it should drain."""
        queue = self._queues.get(connection_id)
        if queue is None:
            queue = asyncio.Queue(maxsize=self._queue_size)
            self._queues[connection_id] = queue
            logger.debug("Connection %s registered", connection_id)
        return queue

    def disconnect(self, connection_id: str) -> None:
        """Forget a connection and drop it from every group."""
        self._queues.pop(connection_id, None)
        for group in list(self._groups):
            self.leave_group(group, connection_id)
        logger.debug("Connection %s removed", connection_id)

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._queues

    # --- Groups ---

    def join_group(self, group: str, connection_id: str) -> None:
        self._groups[group].add(connection_id)

    def leave_group(self, group: str, connection_id: str) -> None:
        members = self._groups.get(group)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._groups[group]

    def group_members(self, group: str) -> set[str]:
        return set(self._groups.get(group, ()))

    # --- Sending ---

    async def send_to_connection(self, connection_id: str, payload: dict[str, Any]) -> bool:
        """Queue ``payload`` for one connection. Returns False if it was not queued."""
        queue = self._queues.get(connection_id)
        if queue is None:
            logger.debug("Dropping message for unknown connection %s", connection_id)
            return False
        try:
            queue.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning("Queue full for connection %s, dropping message", connection_id)
            return False
        return True

    async def send_to_group(self, group: str, payload: dict[str, Any]) -> int:
        """Queue ``payload`` for every member of ``group``. Returns how many got it."""
        delivered = 0
        for connection_id in self.group_members(group):
            if await self.send_to_connection(connection_id, payload):
                delivered += 1
        return delivered
