# clinicflow/streaming.py
"""Live updates over WebSocket.

Repositories publish row changes to the in-process change feed from worker
threads. A FeedSubscription moves those events onto the socket's event loop
and `pump` forwards them to the client while reading client commands.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect, status

from .application.ports.change_feed import ChangeEvent, ChangeFeed

logger = logging.getLogger(__name__)

EventHandler = Callable[[ChangeEvent], Awaitable[None]]
CommandHandler = Callable[[Any], Awaitable[None]]


async def reject(websocket: WebSocket, reason: str) -> None:
    logger.info(f"Rejected live connection: {reason}")
    await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=reason)


class FeedSubscription:
    def __init__(self, feed: ChangeFeed, table: str, filters: Optional[Dict[str, Any]] = None):
        self._loop = asyncio.get_running_loop()
        self.events: asyncio.Queue = asyncio.Queue()
        self._unsubscribe = feed.subscribe(table, self._on_change, filters)

    def _on_change(self, event: ChangeEvent) -> None:
        self._loop.call_soon_threadsafe(self.events.put_nowait, event)

    def close(self) -> None:
        self._unsubscribe()


async def pump(
    websocket: WebSocket,
    subscription: FeedSubscription,
    snapshot: Dict[str, Any],
    on_event: EventHandler,
    on_command: CommandHandler,
) -> None:
    """Accept, send the snapshot, then serve the connection until the client goes away."""
    receiver = getter = None
    try:
        await websocket.accept()
        await websocket.send_json(snapshot)
        receiver = asyncio.ensure_future(websocket.receive_json())
        getter = asyncio.ensure_future(subscription.events.get())
        while True:
            done, _ = await asyncio.wait({receiver, getter}, return_when=asyncio.FIRST_COMPLETED)
            if getter in done:
                await on_event(getter.result())
                getter = asyncio.ensure_future(subscription.events.get())
            if receiver in done:
                try:
                    data = receiver.result()
                except ValueError:
                    # json.JSONDecodeError is a ValueError
                    await websocket.send_json({"type": "error", "error": "Expected a JSON message"})
                else:
                    await on_command(data)
                receiver = asyncio.ensure_future(websocket.receive_json())
    except WebSocketDisconnect:
        logger.info("Live connection closed by client")
    finally:
        for task in (receiver, getter):
            if task is not None:
                task.cancel()
        subscription.close()
