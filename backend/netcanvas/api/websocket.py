"""Websocket fan-out of network change events."""
import json
from collections import defaultdict
from typing import Any

from fastapi import WebSocket

from ..engine.session import NetworkSession
from ..log import get_logger

logger = get_logger(__name__)


class ConnectionManager:
    """Tracks the websocket clients listening to each network."""

    def __init__(self):
        self._clients: dict[str, list[WebSocket]] = defaultdict(list)

    async def connect(self, network_id: str, websocket: WebSocket):
        await websocket.accept()
        self._clients[network_id].append(websocket)

    def disconnect(self, network_id: str, websocket: WebSocket):
        clients = self._clients.get(network_id, [])
        if websocket in clients:
            clients.remove(websocket)
        if not clients:
            self._clients.pop(network_id, None)

    async def broadcast(self, network_id: str, event: dict[str, Any]):
        payload = json.dumps(event)
        for websocket in list(self._clients.get(network_id, [])):
            try:
                await websocket.send_text(payload)
            except Exception:
                logger.info("Dropping closed websocket client of network %s", network_id)
                self.disconnect(network_id, websocket)

    async def flush(self, session: NetworkSession):
        """Push the session's queued change events to its clients."""
        for event in session.drain_events():
            await self.broadcast(session.network_id, event)


manager = ConnectionManager()
