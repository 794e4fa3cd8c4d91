"""Websocket fan-out of log and progress events."""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..engine.events import QueueSubscriber

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def events_socket(websocket: WebSocket):
    await websocket.accept()
    broadcaster = websocket.app.state.runtime.broadcaster
    subscriber = broadcaster.subscribe(QueueSubscriber())
    try:
        while True:
            event = await subscriber.get()
            await websocket.send_json(event)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.warning("Websocket send failed; dropping subscriber", exc_info=True)
    finally:
        subscriber.close()
        broadcaster.unsubscribe(subscriber)
