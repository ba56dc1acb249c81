import asyncio
import json

import aiohttp

from dm_events import MalformedMessage, ingest, parse_message
from dm_sessions import SessionRegistry, now_ms


class ActConnection:
    """
    Websocket client for the combat-log emitter.

    Every text frame is one JSON message; it is stamped with the receive time
    and applied to the live record. There is no reconnection: a dropped
    connection stays closed until connect() is called again.
    """

    def __init__(self, registry: SessionRegistry, host: str, port: int):
        self.registry = registry
        self.host = host
        self.port = port
        self._task: asyncio.Task | None = None
        self._ws = None
        self._state = "closed"

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.port}"

    def ready_state(self) -> str:
        return self._state

    async def connect(self):
        await self.disconnect()
        self._state = "connecting"
        self._task = asyncio.create_task(self._listen())

    async def disconnect(self):
        task, self._task = self._task, None
        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._ws = None
        self._state = "closed"

    def handle_text(self, text: str):
        try:
            raw = json.loads(text)
            ev = parse_message(raw, received_at=now_ms())
        except (json.JSONDecodeError, MalformedMessage) as e:
            print(f"[ACT] Dropped malformed message: {e}")
            return None
        return ingest(self.registry, ev)

    async def _listen(self):
        print(f"[ACT] Connecting to {self.url}")
        try:
            async with aiohttp.ClientSession() as session:
                async with session.ws_connect(self.url) as ws:
                    self._ws = ws
                    self._state = "open"
                    print(f"[ACT] Connected to {self.url}")
                    async for msg in ws:
                        if msg.type == aiohttp.WSMsgType.TEXT:
                            self.handle_text(msg.data)
                        elif msg.type == aiohttp.WSMsgType.ERROR:
                            print(f"[ACT] Socket error: {ws.exception()}")
                            break
        except aiohttp.ClientError as e:
            print(f"[ACT] Connection failed: {e}")
        finally:
            self._ws = None
            self._state = "closed"
            print(f"[ACT] Disconnected from {self.url}")
