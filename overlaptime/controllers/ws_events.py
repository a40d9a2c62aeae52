import asyncio
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from overlaptime.bus import EventBus
from overlaptime.dependencies import OptionalRedis, Store
from overlaptime.events import PingEvent, SubscribedEvent

logger = logging.getLogger("overlaptime.ws.events")
router = APIRouter()

HEARTBEAT_SEC = 25
PING: PingEvent = {"type": "ping"}


@router.websocket("/ws/events/{event_id}")
async def websocket_event_updates(
    websocket: WebSocket,
    event_id: str,
    store: Store,
    redis_client: OptionalRedis,
):
    """Relay availability change signals for one event.

    Clients re-fetch the overlay when they receive ``availability_updated``.
    Delivery and ordering are best effort.
    """
    await websocket.accept()
    if await store.get_event(event_id) is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    if redis_client is None:
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
        return

    channel = EventBus.event_channel(event_id)
    pubsub = redis_client.pubsub()
    await pubsub.subscribe(channel)
    logger.info("ws subscribe event=%s", event_id)
    hello: SubscribedEvent = {"type": "subscribed", "event_id": event_id}
    await websocket.send_text(json.dumps(hello))

    async def send_updates():
        try:
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                data = message["data"]
                if isinstance(data, bytes):
                    data = data.decode("utf-8")
                await websocket.send_text(data)
        except Exception as e:
            logger.info("ws relay stopped event=%s: %r", event_id, e)

    async def heartbeat():
        try:
            while True:
                await asyncio.sleep(HEARTBEAT_SEC)
                await websocket.send_text(json.dumps(PING))
        except Exception:
            pass

    update_task = asyncio.create_task(send_updates())
    heartbeat_task = asyncio.create_task(heartbeat())

    try:
        while True:
            # Inbound frames carry nothing; reading detects the disconnect.
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        update_task.cancel()
        heartbeat_task.cancel()
        await pubsub.unsubscribe(channel)
        if hasattr(pubsub, "aclose"):
            await pubsub.aclose()
        else:
            await pubsub.close()
        logger.info("ws unsubscribe event=%s", event_id)
