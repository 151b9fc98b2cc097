"""Event Stream Gateway — in-process ChatGateway that fans events out to channel subscribers.

Invariants:
    - Every present_round returns a unique PresentationHandle
    - Publishing never blocks the engine: full subscriber queues drop their oldest event
    - Media bytes are base64-encoded before leaving the process

Design Decisions:
    - Bridge to the chat platform is an SSE subscriber (GET /api/v1/channels/{id}/events);
      a bot process relays the events into the real chat
"""

import asyncio
import base64
import itertools
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any

from arcade.core.session_state import Media

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PresentationHandle:
    channel_id: str
    message_id: str


def _encode(value: Any) -> Any:
    if isinstance(value, Media):
        return {
            "mime_type": value.mime_type,
            "filename": value.filename,
            "data_base64": base64.b64encode(value.data).decode("ascii"),
        }
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    return value


class EventStreamGateway:
    """ChatGateway publishing presentation events to per-channel asyncio queues."""

    def __init__(self, max_queue_size: int = 256):
        self._subscribers: dict[str, set[asyncio.Queue]] = defaultdict(set)
        self._ids = itertools.count(1)
        self._max_queue_size = max_queue_size

    def subscribe(self, channel_id: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
        self._subscribers[channel_id].add(queue)
        return queue

    def unsubscribe(self, channel_id: str, queue: asyncio.Queue) -> None:
        subscribers = self._subscribers.get(channel_id)
        if subscribers is None:
            return
        subscribers.discard(queue)
        if not subscribers:
            del self._subscribers[channel_id]

    def subscriber_count(self, channel_id: str) -> int:
        return len(self._subscribers.get(channel_id, ()))

    async def present_round(self, channel_id: str, content: dict[str, Any]) -> PresentationHandle:
        handle = PresentationHandle(channel_id, f"msg-{next(self._ids)}")
        self._publish(channel_id, {
            "type": "round_presented",
            "message_id": handle.message_id,
            "data": _encode(content),
        })
        return handle

    async def edit_presentation(self, handle: PresentationHandle, patch: dict[str, Any]) -> None:
        self._publish(handle.channel_id, {
            "type": "presentation_updated",
            "message_id": handle.message_id,
            "data": _encode(patch),
        })

    async def dispatch_notice(self, channel_id: str, text: str) -> None:
        self._publish(channel_id, {"type": "notice", "data": {"text": text}})

    def _publish(self, channel_id: str, event: dict[str, Any]) -> None:
        for queue in list(self._subscribers.get(channel_id, ())):
            if queue.full():
                queue.get_nowait()
                logger.warning(
                    "Subscriber queue full, dropped oldest event",
                    extra={"channel_id": channel_id},
                )
            queue.put_nowait(event)
