from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Dict, Iterable, List, Optional

from modpanel.engine.orchestrator import DecisionEngine
from modpanel.errors import TweetNotFound
from modpanel.models import Decision, ModerationItem

logger = logging.getLogger(__name__)

QueueListener = Callable[[List[ModerationItem]], None]


class ModerationQueue:
    """
    In-memory review queue, newest first.

    Every processed item gets the engine's decision as its initial status;
    moderators can override it with update_status().
    """

    def __init__(self, engine: DecisionEngine, items: Optional[Iterable[ModerationItem]] = None):
        self.engine = engine
        self._items: List[ModerationItem] = list(items or [])
        self._listeners: List[QueueListener] = []

    def __len__(self) -> int:
        return len(self._items)

    def subscribe(self, listener: QueueListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.get_all()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Queue listener failed: {e}", exc_info=True)

    async def process_content(
        self,
        content: str,
        source: str = "manual",
        source_metadata: Optional[Dict[str, Any]] = None,
    ) -> ModerationItem:
        item_id = f"item-{uuid.uuid4().hex}"
        analysis = await self.engine.analyze(content, correlation_id=item_id[5:13])
        item = ModerationItem(
            id=item_id,
            content=content,
            status=analysis.decision,
            analysis=analysis,
            source=source,
            source_metadata=dict(source_metadata or {}),
        )
        self._items.insert(0, item)
        self._notify()
        return item

    def get(self, item_id: str) -> Optional[ModerationItem]:
        return next((item for item in self._items if item.id == item_id), None)

    def get_all(self) -> List[ModerationItem]:
        return list(self._items)

    def get_by_status(self, status: Decision) -> List[ModerationItem]:
        return [item for item in self._items if item.status == status]

    def update_status(self, item_id: str, status: Decision) -> ModerationItem:
        """
        Record a moderator's verdict.

        Raises:
            TweetNotFound: no item has this id; the queue is left unchanged
        """
        item = self.get(item_id)
        if item is None:
            raise TweetNotFound(item_id)
        previous = item.status
        item.status = Decision(status)
        logger.info(f"Item {item_id} status {previous.value} -> {item.status.value}")
        self._notify()
        return item
