"""WebSocket relay for real-time execution progress."""
import json
import logging
from typing import Any

from fastapi import WebSocket

from ..engine.mutations import GraphEngine
from ..engine.progress import ProgressBoard

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages active WebSocket connections per session."""

    def __init__(self):
        self._connections: dict[str, list[WebSocket]] = {}

    async def connect(self, session_id: str, websocket: WebSocket):
        await websocket.accept()
        if session_id not in self._connections:
            self._connections[session_id] = []
        self._connections[session_id].append(websocket)

    def disconnect(self, session_id: str, websocket: WebSocket):
        if session_id in self._connections:
            self._connections[session_id] = [
                ws for ws in self._connections[session_id] if ws is not websocket
            ]
            if not self._connections[session_id]:
                del self._connections[session_id]

    async def send_to_session(
        self, session_id: str, data: dict[str, Any], exclude: WebSocket | None = None,
    ):
        if session_id not in self._connections:
            return
        message = json.dumps(data)
        dead: list[WebSocket] = []
        for ws in self._connections[session_id]:
            if ws is exclude:
                continue
            try:
                await ws.send_text(message)
            except Exception:
                dead.append(ws)
        for ws in dead:
            self.disconnect(session_id, ws)


def apply_message(data: dict[str, Any], board: ProgressBoard, engine: GraphEngine) -> bool:
    """Feed one backend message into local state. Returns False if it was ignored.

    ``progress`` updates the board; ``executed`` records node telemetry.
    """
    kind = data.get("type")
    node_id = data.get("nodeId")
    if not node_id:
        return False
    try:
        if kind == "progress":
            board.update(
                node_id,
                float(data.get("value", 0)),
                data.get("progressType", "determinate"),
            )
            return True
        if kind == "executed":
            engine.mark_executed(
                node_id,
                bool(data.get("cache", False)),
                float(data.get("time", 0)),
                float(data.get("memory", 0)),
            )
            return True
    except (TypeError, ValueError) as e:
        logger.warning("Malformed %s message for %s: %s", kind, node_id, e)
    return False


manager = ConnectionManager()
