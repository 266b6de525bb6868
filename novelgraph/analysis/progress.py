"""Session-scoped publish/subscribe for analysis progress events."""

import asyncio
import logging
import uuid
from typing import Any, Optional, Protocol

from novelgraph.analysis.models import StreamingUpdate

logger = logging.getLogger(__name__)

UPDATE_EVENT = "analysis_update"


class Subscriber(Protocol):
    """A connected client that can receive events."""

    subscriber_id: str

    async def send(self, event: str, data: dict[str, Any]) -> None:
        """Deliver one event to the client."""
        ...


class QueueSubscriber:
    """In-process subscriber that buffers events on an asyncio queue."""

    def __init__(self, subscriber_id: Optional[str] = None):
        self.subscriber_id = subscriber_id or str(uuid.uuid4())
        self.queue: asyncio.Queue[tuple[str, dict[str, Any]]] = asyncio.Queue()

    async def send(self, event: str, data: dict[str, Any]) -> None:
        await self.queue.put((event, data))

    def drain(self) -> list[tuple[str, dict[str, Any]]]:
        """Return and remove everything currently buffered."""
        events = []
        while not self.queue.empty():
            events.append(self.queue.get_nowait())
        return events


class ProgressReporter:
    """Deliver StreamingUpdates to subscribers grouped by session key.

    Delivery is best effort: there is no history, so a subscriber only sees
    updates published after it joined, and a subscriber whose send fails is
    removed.
    """

    def __init__(self):
        self._rooms: dict[str, dict[str, Subscriber]] = {}

    def join(self, session_id: str, subscriber: Subscriber) -> None:
        """Add a subscriber to a session room."""
        self._rooms.setdefault(session_id, {})[subscriber.subscriber_id] = subscriber
        logger.info(f"Subscriber {subscriber.subscriber_id} joined session {session_id}")

    def leave(self, subscriber: Subscriber, session_id: Optional[str] = None) -> None:
        """Remove a subscriber from one session, or from every session."""
        session_ids = [session_id] if session_id else list(self._rooms)
        for sid in session_ids:
            room = self._rooms.get(sid)
            if room is None:
                continue
            room.pop(subscriber.subscriber_id, None)
            if not room:
                del self._rooms[sid]

    def subscriber_count(self, session_id: str) -> int:
        return len(self._rooms.get(session_id, {}))

    def total_subscribers(self) -> int:
        """Count distinct subscribers across all sessions."""
        return len({sid for room in self._rooms.values() for sid in room})

    async def publish(self, session_id: str, update: StreamingUpdate) -> int:
        """Send an update to every subscriber of a session.

        Returns:
            Number of subscribers the update was delivered to.
        """
        logger.debug(f"Sending {update.type.value} update to session {session_id}")
        # Snapshot so joins during delivery do not disturb iteration
        subscribers = list(self._rooms.get(session_id, {}).values())
        return await self._deliver(subscribers, update)

    async def publish_all(self, update: StreamingUpdate) -> int:
        """Send an update to every connected subscriber once."""
        subscribers: dict[str, Subscriber] = {}
        for room in list(self._rooms.values()):
            subscribers.update(room)
        return await self._deliver(list(subscribers.values()), update)

    async def _deliver(self, subscribers: list[Subscriber], update: StreamingUpdate) -> int:
        payload = update.to_wire()
        delivered = 0

        for subscriber in subscribers:
            try:
                await subscriber.send(UPDATE_EVENT, payload)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping subscriber {subscriber.subscriber_id}: {e}")
                self.leave(subscriber)

        return delivered
