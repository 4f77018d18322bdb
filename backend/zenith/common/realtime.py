from __future__ import annotations

import json
import logging
from threading import Lock
from typing import Any, Protocol

from simple_websocket import ConnectionClosed


class Connection(Protocol):
    def send(self, data: str) -> None: ...

    def close(self, reason: int | None = None, message: str | None = None) -> None: ...


class ConnectionRegistry:
    """Open WebSocket connections of one application.

    Broadcasts are best effort: every open connection gets at most one copy
    of each event, and connections that fail on send are dropped.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._lock = Lock()
        self._connections: set[Connection] = set()
        self._logger = logger or logging.getLogger(__name__)

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def register(self, connection: Connection) -> None:
        with self._lock:
            self._connections.add(connection)
        self._logger.info("WebSocket client connected (%d open)", len(self))

    def unregister(self, connection: Connection) -> None:
        with self._lock:
            self._connections.discard(connection)
        self._logger.info("WebSocket client disconnected (%d open)", len(self))

    def broadcast(self, event: dict[str, Any]) -> int:
        message = json.dumps(event, default=str)
        with self._lock:
            connections = list(self._connections)

        delivered = 0
        stale: list[Connection] = []
        for connection in connections:
            try:
                connection.send(message)
                delivered += 1
            except (ConnectionClosed, OSError):
                stale.append(connection)

        for connection in stale:
            self._logger.warning("Dropping unreachable WebSocket client")
            self.unregister(connection)

        self._logger.debug("Broadcast %s to %d client(s)", event.get("type"), delivered)
        return delivered

    def close_all(self) -> None:
        with self._lock:
            connections = list(self._connections)
            self._connections.clear()
        for connection in connections:
            try:
                connection.close()
            except (ConnectionClosed, OSError):
                self._logger.debug("WebSocket client already closed")
