"""
Real-time event fan-out over Server-Sent Events.

Each connected client gets its own bounded asyncio queue. ``publish`` never
blocks: a client whose queue is full is dropped, and its stream ends.
"""

import asyncio
import itertools
import json
from typing import Any, Optional

import structlog

logger = structlog.get_logger()

DEFAULT_QUEUE_SIZE = 100


def encode_sse_event(event_type: str, data: Any) -> str:
    """
    Encode a single SSE frame.

    Args:
        event_type: SSE event name
        data: JSON-serializable payload

    Returns:
        ``event: <type>\\ndata: <json>\\n\\n``
    """
    payload = json.dumps(data, default=str, ensure_ascii=False)
    return f"event: {event_type}\ndata: {payload}\n\n"


class EventBroadcaster:
    """
    Holds one queue per SSE subscriber and fans events out to all of them.

    Must be used from the event loop thread.
    """

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self.queue_size = queue_size
        self._queues: dict[str, asyncio.Queue] = {}
        self._ids = itertools.count(1)

    @property
    def client_count(self) -> int:
        """Number of connected subscribers."""
        return len(self._queues)

    def subscribe(self) -> tuple[str, asyncio.Queue]:
        """
        Register a new subscriber.

        Returns:
            Tuple of (client id, queue receiving encoded frames or None on drop)
        """
        client_id = str(next(self._ids))
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._queues[client_id] = queue
        logger.info("sse_client_connected", client_id=client_id, clients=len(self._queues))
        return client_id, queue

    def unsubscribe(self, client_id: str) -> None:
        """Remove a subscriber. Unknown ids are ignored."""
        if self._queues.pop(client_id, None) is not None:
            logger.info("sse_client_disconnected", client_id=client_id, clients=len(self._queues))

    def publish(self, event_type: str, data: Any) -> int:
        """
        Send an event to every subscriber.

        Args:
            event_type: SSE event name
            data: JSON-serializable payload

        Returns:
            Number of subscribers the event was queued for
        """
        frame = encode_sse_event(event_type, data)
        delivered = 0
        for client_id, queue in list(self._queues.items()):
            try:
                queue.put_nowait(frame)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning("sse_client_dropped", client_id=client_id, reason="queue_full")
                self._drop(client_id, queue)
        return delivered

    def _drop(self, client_id: str, queue: asyncio.Queue) -> None:
        self._queues.pop(client_id, None)
        # Make room for the end-of-stream marker
        try:
            queue.get_nowait()
        except asyncio.QueueEmpty:
            pass
        queue.put_nowait(None)

    async def stream(self, client_id: str, queue: asyncio.Queue, first_frame: Optional[str] = None):
        """
        Async generator yielding a subscriber's frames until it is dropped.

        Args:
            client_id: Id returned by subscribe()
            queue: Queue returned by subscribe()
            first_frame: Frame sent before any published event
        """
        try:
            if first_frame is not None:
                yield first_frame
            while True:
                frame = await queue.get()
                if frame is None:
                    break
                yield frame
        finally:
            self.unsubscribe(client_id)
