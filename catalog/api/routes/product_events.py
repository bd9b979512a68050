"""Product Events — SSE stream of product change notifications.

Invariants:
    - One broadcaster listener per open stream, attached when the stream starts
      iterating and detached when it ends
    - Events emitted before the client connected are never replayed
    - Idle streams receive an SSE comment every keepalive interval so proxies
      keep the connection open and disconnects are noticed

Design Decisions:
    - StreamingResponse + text/event-stream, same headers as every SSE route
    - Router registered before the products router: /events must win over /{product_id}
"""

import asyncio
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from catalog.api.dependencies import get_broadcaster
from catalog.infrastructure.product_broadcaster import ProductBroadcaster

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/products", tags=["products"])

# Without these, nginx (X-Accel-Buffering) and browsers (Cache-Control)
# may batch small chunks before delivering them to the client.
_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}

KEEPALIVE_SECONDS = 15.0
_KEEPALIVE_LINE = ": keepalive\n\n"


async def stream_listener(
    broadcaster: ProductBroadcaster,
    keepalive_seconds: float = KEEPALIVE_SECONDS,
) -> AsyncIterator[str]:
    """Attach a listener and yield its SSE frames until the client goes away.

    The listener exists only while the generator runs: a stream closed before
    its first frame never attaches.
    """
    listener = broadcaster.attach()
    try:
        while True:
            try:
                event = await asyncio.wait_for(
                    listener.next_event(), keepalive_seconds,
                )
            except asyncio.TimeoutError:
                yield _KEEPALIVE_LINE
                continue
            yield event.to_sse()
    except asyncio.CancelledError:
        logger.info(f"Client disconnected from product events ({listener.id})")
        return
    finally:
        broadcaster.detach(listener)


@router.get("/events")
async def stream_product_events(
    broadcaster: ProductBroadcaster = Depends(get_broadcaster),
):
    """SSE stream — product:created events for as long as the client stays."""
    return StreamingResponse(
        stream_listener(broadcaster),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )
