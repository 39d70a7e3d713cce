from __future__ import annotations

import logging

from fastapi import WebSocket

from src.board.application.notifier import BoardNotifier
from src.board.domain.events.board_event import BoardEvent

logger = logging.getLogger(__name__)


class BoardConnectionManager:
    """Open board subscriptions, grouped by the user whose board they follow."""

    def __init__(self) -> None:
        self._connections: dict[str, set[WebSocket]] = {}

    async def subscribe(self, user_id: str, websocket: WebSocket, snapshot: BoardEvent | None = None) -> None:
        """Accept ``websocket`` and send ``snapshot`` before any later event."""
        await websocket.accept()
        if snapshot is not None:
            await websocket.send_json(snapshot.model_dump(mode="json"))
        self._connections.setdefault(user_id, set()).add(websocket)
        logger.info("Board subscriber connected", extra={"user_id": user_id})

    def unsubscribe(self, user_id: str, websocket: WebSocket) -> None:
        connections = self._connections.get(user_id)
        if not connections:
            return
        connections.discard(websocket)
        if not connections:
            del self._connections[user_id]

    def connection_count(self, user_id: str) -> int:
        return len(self._connections.get(user_id, ()))

    async def send_event(self, event: BoardEvent) -> None:
        payload = event.model_dump(mode="json")
        for websocket in list(self._connections.get(event.user_id, ())):
            try:
                await websocket.send_json(payload)
            except RuntimeError:
                # Socket closed without a disconnect frame.
                self.unsubscribe(event.user_id, websocket)


class WebSocketBoardNotifier(BoardNotifier):
    def __init__(self, manager: BoardConnectionManager) -> None:
        self._manager = manager

    async def publish(self, event: BoardEvent) -> None:
        await self._manager.send_event(event)


connection_manager = BoardConnectionManager()
