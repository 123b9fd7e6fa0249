import asyncio
import json
from typing import Any, Dict, Optional

from fastapi import APIRouter
from sse_starlette.sse import EventSourceResponse

router = APIRouter(tags=["realtime"])

# events buffered per subscriber before it is considered dead
SUBSCRIBER_QUEUE_SIZE = 100
IDLE_CHECK_SECONDS = 15

# queue -> group_id filter (None = every group)
_subscribers: Dict[asyncio.Queue, Optional[int]] = {}


def subscribe(
    group_id: Optional[int] = None, maxsize: int = SUBSCRIBER_QUEUE_SIZE,
) -> asyncio.Queue:
    queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
    _subscribers[queue] = group_id
    return queue


def unsubscribe(queue: asyncio.Queue) -> None:
    _subscribers.pop(queue, None)


async def broadcast(event_type: str, payload: Dict[str, Any]) -> None:
    """Fan a membership event out to every matching subscriber."""
    dead = []
    for q, group_filter in list(_subscribers.items()):
        if group_filter is not None and payload.get("group_id") != group_filter:
            continue
        try:
            q.put_nowait({"event": event_type, "data": payload})
        except asyncio.QueueFull:
            dead.append(q)

    for q in dead:
        unsubscribe(q)


@router.get("/events")
async def sse_events(group_id: Optional[int] = None):
    queue = subscribe(group_id)

    async def generator():
        try:
            while True:
                try:
                    msg = await asyncio.wait_for(queue.get(), timeout=IDLE_CHECK_SECONDS)
                except asyncio.TimeoutError:
                    if queue not in _subscribers:
                        break  # dropped by broadcast as too slow
                    continue
                yield {
                    "event": msg["event"],
                    "data": json.dumps(msg["data"], ensure_ascii=False, default=str),
                }
        finally:
            unsubscribe(queue)

    return EventSourceResponse(generator())
