"""Channel Events — SSE stream of presentations and notices for one channel.

Invariants:
    - One asyncio queue per connected client, unsubscribed when the client goes away
    - Idle connections get a comment line every KEEPALIVE_SECONDS

Design Decisions:
    - StreamingResponse over a websocket: events only flow server → client;
      commands go through the games routes
"""

import asyncio
import json
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from arcade.api.dependencies import get_gateway
from arcade.infrastructure.event_gateway import EventStreamGateway

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/channels", tags=["channels"])

KEEPALIVE_SECONDS = 15.0

# SSE headers prevent proxy/browser buffering of streamed events.
_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}


@router.get("/{channel_id}/events")
async def stream_channel(
    channel_id: str, gateway: EventStreamGateway = Depends(get_gateway),
):
    queue = gateway.subscribe(channel_id)

    async def event_generator():
        try:
            while True:
                try:
                    event = await asyncio.wait_for(queue.get(), KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                yield _sse_line(event)
        except asyncio.CancelledError:
            logger.info("Client disconnected from channel stream", extra={"channel_id": channel_id})
        finally:
            gateway.unsubscribe(channel_id, queue)

    return StreamingResponse(
        event_generator(), media_type="text/event-stream", headers=_SSE_HEADERS,
    )


def _sse_line(event: dict) -> str:
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"
