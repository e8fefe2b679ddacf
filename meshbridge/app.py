"""Web server that serves the viewer and accepts websocket clients."""

from __future__ import annotations

import asyncio
import logging
import socket
import threading
from dataclasses import dataclass, field
from typing import Any

from aiohttp import WSMsgType, web

from .servers.bridge import ZeroMQWebsocketBridge
from .servers.utils import DEFAULT_FILESERVER_PORT

log = logging.getLogger(__name__)

_SEND_TIMEOUT = 10.0


@dataclass(eq=False)
class _ThreadSafeWebsocket:
    """Lets the bridge push binary messages to an aiohttp websocket from any thread."""

    ws: web.WebSocketResponse
    loop: asyncio.AbstractEventLoop
    _pending: set[asyncio.Task[Any]] = field(default_factory=set)

    def send_bytes(self, data: bytes) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self.loop:
            task = self.loop.create_task(self.ws.send_bytes(data))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
            return
        future = asyncio.run_coroutine_threadsafe(self.ws.send_bytes(data), self.loop)
        future.result(timeout=_SEND_TIMEOUT)


@dataclass(eq=False)
class MeshcatWebServerApplication:
    """Runs the bridge and an HTTP server for the viewer side by side."""

    bridge: ZeroMQWebsocketBridge
    web_port: int = DEFAULT_FILESERVER_PORT
    listener: socket.socket | None = None
    web_app: web.Application = field(init=False, repr=False)

    _loop: asyncio.AbstractEventLoop | None = field(default=None, init=False, repr=False)
    _shutdown: asyncio.Event | None = field(default=None, init=False, repr=False)
    _ready: threading.Event = field(default_factory=threading.Event, init=False, repr=False)
    _threads: list[threading.Thread] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        self.web_app = self.make_app()

    @classmethod
    def create(cls, web_port: int | None = None) -> MeshcatWebServerApplication:
        """Build the application; without a port, reserve a free one."""
        listener = None
        if web_port is None:
            listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            listener.bind(("", 0))
            listener.listen()
            web_port = listener.getsockname()[1]
        bridge = ZeroMQWebsocketBridge.create(web_port)
        return cls(bridge=bridge, web_port=web_port, listener=listener)

    def make_app(self) -> web.Application:
        """Return the aiohttp application with the viewer routes."""
        app = web.Application()
        app.router.add_get("/", self.handle_root)
        app.router.add_get("/ws", self.handle_websocket)
        app.router.add_get("/health", self.handle_health)
        app.router.add_get("/static{tail:.*}", self._handle_static)
        return app

    async def handle_root(self, request: web.Request) -> web.StreamResponse:
        """Accept websocket upgrades on the root, otherwise redirect to the viewer."""
        if request.headers.get("Upgrade", "").lower() == "websocket":
            return await self.handle_websocket(request)
        raise web.HTTPTemporaryRedirect("/static/")

    async def handle_websocket(self, request: web.Request) -> web.StreamResponse:
        """Register a websocket client, send it the scene, and read its replies."""
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        loop = asyncio.get_running_loop()
        conn = _ThreadSafeWebsocket(ws, loop)
        self.bridge.add_websocket(conn)
        try:
            await loop.run_in_executor(None, self.bridge.send_scene, conn)
            async for msg in ws:
                if msg.type == WSMsgType.TEXT:
                    self.bridge.handle_websocket_text(msg.data)
                elif msg.type == WSMsgType.ERROR:
                    log.warning("websocket read error: %s", ws.exception())
                    break
        finally:
            self.bridge.remove_websocket(conn)
        return ws

    async def handle_health(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"})

    async def _handle_static(self, request: web.Request) -> web.StreamResponse:
        tail = request.match_info.get("tail", "")
        if not tail:
            raise web.HTTPMovedPermanently("/static/")
        if not tail.startswith("/"):
            raise web.HTTPNotFound()
        root = self.bridge.assets_dir.resolve()
        target = (root / tail.lstrip("/")).resolve()
        if target != root and root not in target.parents:
            raise web.HTTPNotFound()
        if target.is_dir():
            target = target / "index.html"
        if not target.is_file():
            raise web.HTTPNotFound()
        return web.FileResponse(target)

    def run_web_server(self) -> None:
        """Serve HTTP on the reserved listener or the configured port until stopped."""
        asyncio.run(self._serve())

    async def _serve(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._shutdown = asyncio.Event()
        runner = web.AppRunner(self.web_app)
        await runner.setup()
        try:
            if self.listener is not None:
                site: web.BaseSite = web.SockSite(runner, self.listener)
            else:
                site = web.TCPSite(runner, port=self.web_port)
            await site.start()
            self._ready.set()
            await self._shutdown.wait()
        finally:
            self._ready.set()
            await runner.cleanup()

    def start(self) -> None:
        """Start the bridge loop and the web server on background threads."""
        bridge_thread = threading.Thread(target=self.bridge.run, name="zmq-bridge", daemon=True)
        web_thread = threading.Thread(target=self.run_web_server, name="web-server", daemon=True)
        self._threads = [bridge_thread, web_thread]
        bridge_thread.start()
        web_thread.start()
        self._ready.wait(timeout=5)

    def stop(self) -> None:
        """Stop the bridge and shut the web server down within about a second."""
        self.bridge.stop()
        if self._loop is not None and self._shutdown is not None:
            try:
                self._loop.call_soon_threadsafe(self._shutdown.set)
            except RuntimeError:
                pass
        for thread in self._threads:
            thread.join(timeout=1)
        self.bridge.close()
        if self.listener is not None:
            self.listener.close()