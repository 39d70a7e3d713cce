from __future__ import annotations

from typing import Protocol

from src.board.domain.events.board_event import BoardEvent


class BoardNotifier(Protocol):
    async def publish(self, event: BoardEvent) -> None:
        """Deliver a board update or error notification to the page shell."""
