"""
Server-Sent Events router for real-time ingestion notifications.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from pspmonitor.routers.deps import get_broadcaster
from pspmonitor.services import EventBroadcaster
from pspmonitor.services.event_broadcaster import encode_sse_event

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.get("")
async def stream_events(broadcaster: EventBroadcaster = Depends(get_broadcaster)):
    """
    Subscribe to ingestion events. The first frame is ``connected``.
    """
    client_id, queue = broadcaster.subscribe()
    connected = encode_sse_event("connected", {"client_id": client_id})
    return StreamingResponse(
        broadcaster.stream(client_id, queue, first_frame=connected),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
