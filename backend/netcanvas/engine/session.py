"""Network session manager: in-memory networks edited through the API."""
from typing import Any

from ..config import settings
from .network import Network


class NetworkSession:
    def __init__(self, network_id: str):
        self.network_id = network_id
        self.network = Network()
        # snapshots waiting to be pushed to websocket clients
        self.pending_events: list[dict[str, Any]] = []
        self.network.subscribe(self._on_change)

    def _on_change(self, snapshot: dict[str, Any]) -> None:
        self.pending_events.append({
            "type": "network_updated",
            "network_id": self.network_id,
            "snapshot": snapshot,
        })

    def drain_events(self) -> list[dict[str, Any]]:
        events, self.pending_events = self.pending_events, []
        return events


_sessions: dict[str, NetworkSession] = {}


def create_session(network_id: str) -> NetworkSession:
    # Evict oldest sessions if at capacity
    while len(_sessions) >= settings.max_networks:
        _sessions.pop(next(iter(_sessions)))
    session = NetworkSession(network_id)
    _sessions[network_id] = session
    return session


def get_session(network_id: str) -> NetworkSession | None:
    return _sessions.get(network_id)


def remove_session(network_id: str) -> None:
    _sessions.pop(network_id, None)
