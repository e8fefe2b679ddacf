"""Bridge between a ZeroMQ REP socket and browser websocket clients."""

from __future__ import annotations

import base64
import json
import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import zmq

from .. import commands
from ..scene import TreeNode
from .utils import (
    DEFAULT_FILESERVER_PORT,
    ZMQ_DEFAULT_HOST,
    find_available_port,
    generate_zmq_url,
    viewer_assets_dir,
)

log = logging.getLogger(__name__)

_DEFAULT_ZMQ_PORT = 6000
_ZMQ_PORT_ATTEMPTS = 100
_EXPECTED_3_FRAMES = b"error: expected 3 frames"


class WebsocketConnection(Protocol):
    """A websocket the bridge can push binary messages to, from any thread."""

    def send_bytes(self, data: bytes) -> None: ...


def decode_capture_image_payload(message: bytes | str) -> bytes:
    """Decode a ``{"data": "data:...;base64,..."}`` message into image bytes."""
    payload = json.loads(message)
    if not isinstance(payload, dict):
        raise ValueError("capture payload must be a JSON object")
    data = payload.get("data", "")
    if not isinstance(data, str):
        raise ValueError("capture payload data must be a string")
    _, sep, encoded = data.partition(",")
    if not sep:
        raise ValueError("capture payload missing data url prefix")
    return base64.b64decode(encoded, validate=True)


def create_command_js(data: bytes) -> str:
    """Return a viewer statement that replays a msgpack command blob."""
    encoded = base64.b64encode(data).decode("ascii")
    return (
        f'viewer.handle_command_bytearray(Uint8Array.from(atob("{encoded}"), '
        "c => c.charCodeAt(0)));\n"
    )


def _node_blobs(node: TreeNode) -> list[bytes]:
    blobs: list[Any] = [node.object, *node.properties, node.transform, node.animation]
    return [blob for blob in blobs if isinstance(blob, bytes)]


@dataclass(eq=False)
class ZeroMQWebsocketBridge:
    """Forwards scene commands from ZeroMQ to websockets and caches the scene."""

    zmq_stream: zmq.Socket | None = None
    zmq_url: str = ""
    web_url: str = ""
    host: str = ZMQ_DEFAULT_HOST
    port: int = 0
    certificate_file: str = ""
    key_file: str = ""
    scene_tree: TreeNode = field(default_factory=TreeNode)
    assets_dir: Path = field(default_factory=viewer_assets_dir)

    _pool: set[Any] = field(default_factory=set, init=False, repr=False)
    _ws_cond: threading.Condition = field(
        default_factory=threading.Condition, init=False, repr=False
    )
    _stopped: threading.Event = field(default_factory=threading.Event, init=False, repr=False)
    _scene_lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)
    _capture_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _capture: queue.Queue[bytes] | None = field(default=None, init=False, repr=False)

    @classmethod
    def create(cls, web_port: int = DEFAULT_FILESERVER_PORT) -> ZeroMQWebsocketBridge:
        """Bind a REP socket on the first free port from 6000 and set the URLs."""
        bridge = cls(host=ZMQ_DEFAULT_HOST)
        stream, port = find_available_port(
            bridge.setup_zmq, _DEFAULT_ZMQ_PORT, _ZMQ_PORT_ATTEMPTS
        )
        bridge.zmq_stream = stream
        bridge.port = port
        bridge.zmq_url = generate_zmq_url("tcp", bridge.host, port)
        bridge.web_url = bridge.build_web_url(web_port)
        log.info("ZeroMQ websocket bridge started at %s:%d", bridge.host, bridge.port)
        log.info("zmq_url: %s", bridge.zmq_url)
        log.info("web_url: %s", bridge.web_url)
        return bridge

    def setup_zmq(self, port: int) -> zmq.Socket:
        """Bind a REP socket to the port; raise OSError if that fails."""
        target = generate_zmq_url("tcp", self.host, port)
        log.debug("Attempting to bind ZMQ REP socket to %s", target)
        sock = zmq.Context.instance().socket(zmq.REP)
        try:
            sock.bind(target)
        except zmq.ZMQError as exc:
            sock.close(linger=0)
            raise OSError(f"cannot bind {target}: {exc}") from exc
        log.debug("Bound ZMQ REP socket to %s", target)
        return sock

    def build_web_url(self, port: int) -> str:
        """Return the viewer URL served on the given HTTP port."""
        return f"http://{self.host}:{port}/static/"

    # Websocket pool

    def add_websocket(self, conn: WebsocketConnection | None) -> None:
        with self._ws_cond:
            self._pool.add(conn)
            log.info("WebSocket connection added. Total connections: %d", len(self._pool))
            self._ws_cond.notify_all()

    def remove_websocket(self, conn: WebsocketConnection | None) -> None:
        with self._ws_cond:
            self._pool.discard(conn)
            log.info("WebSocket connection removed. Total connections: %d", len(self._pool))

    def has_websocket(self) -> bool:
        with self._ws_cond:
            return bool(self._pool)

    def wait_for_websocket_connection(self, timeout: float) -> None:
        """Block until a websocket is connected.

        Raises TimeoutError when the timeout passes and RuntimeError when the
        bridge is stopped first.
        """
        deadline = time.monotonic() + timeout
        with self._ws_cond:
            while not self._pool:
                if self._stopped.is_set():
                    raise RuntimeError("bridge stopped before websocket connected")
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutError("timed out waiting for websocket connection")
                self._ws_cond.wait(min(remaining, 0.025))

    def _forward(self, data: bytes) -> None:
        with self._ws_cond:
            conns = [conn for conn in self._pool if conn is not None]
            empty = not self._pool
        if empty:
            log.info("No active WebSocket connections. Cannot forward data.")
            return
        log.debug("Forwarding %d bytes to WebSocket connections", len(data))
        for conn in conns:
            try:
                conn.send_bytes(data)
            except Exception as exc:  # transport errors vary by websocket library
                log.warning("Failed to forward data to WebSocket: %s", exc)

    def send_scene(self, conn: WebsocketConnection | None) -> None:
        """Send every cached command blob to a newly connected client."""
        if conn is None:
            return
        with self._scene_lock:
            blobs = [blob for node in self.scene_tree.walk() for blob in _node_blobs(node)]
        for blob in blobs:
            try:
                conn.send_bytes(blob)
            except Exception as exc:  # transport errors vary by websocket library
                log.warning("Failed to send scene to websocket: %s", exc)

    def handle_websocket_text(self, message: bytes | str) -> None:
        """Hand a capture response from a client to a waiting capture request."""
        try:
            image = decode_capture_image_payload(message)
        except ValueError as exc:
            log.warning("Failed to parse websocket message: %s", exc)
            return
        with self._capture_lock:
            responses = self._capture
        if responses is None:
            return
        try:
            responses.put_nowait(image)
        except queue.Full:
            pass

    def scene_html(self) -> str:
        """Return a standalone HTML page that replays the cached scene."""
        script = (self.assets_dir / "main.min.js").read_text(encoding="utf-8")
        with self._scene_lock:
            drawing = "".join(
                create_command_js(blob)
                for node in self.scene_tree.walk()
                for blob in _node_blobs(node)
            )
        return f"""<!DOCTYPE html>
<html>
	<head><meta charset=utf-8><title>MeshCat</title></head>
	<body>
		<div id="meshcat-pane"></div>
		<script>{script}</script>
		<script>
			var viewer = new MeshCat.Viewer(document.getElementById("meshcat-pane"));
			{drawing}
		</script>
		<style>
			body {{ margin: 0; }}
			#meshcat-pane {{ width: 100vw; height: 100vh; overflow: hidden; }}
		</style>
		<script id="embedded-json"></script>
	</body>
</html>"""

    # Command handling

    def handle_zmq_frames(self, frames: list[bytes]) -> None:
        """Handle a request from the REP socket and send its reply."""
        self._handle(frames, send_replies=True)

    def handle_local_frames(self, frames: list[bytes]) -> None:
        """Handle a request from an in-process client; no reply is sent."""
        self._handle(frames, send_replies=False)

    def _reply(self, data: bytes) -> None:
        if self.zmq_stream is None:
            return
        try:
            self.zmq_stream.send(data)
        except zmq.ZMQError as exc:
            log.warning("Failed to send reply: %s", exc)

    def _handle(self, frames: list[bytes], send_replies: bool) -> None:
        if not frames:
            log.warning("Received empty frame list")
            if send_replies:
                self._reply(b"error: empty request")
            return

        cmd = bytes(frames[0]).decode("utf-8", errors="replace")
        log.debug("Handling command: %s", cmd)

        if send_replies and self.zmq_stream is None:
            log.error("ZMQ stream is not initialised. Cannot handle command.")
            return

        if cmd == commands.URL:
            if send_replies:
                self._reply(self.web_url.encode())
        elif cmd == commands.WAIT:
            if send_replies:
                self._wait_for_websockets()
        elif cmd == commands.SET_TARGET:
            if len(frames) != 3:
                if send_replies:
                    self._reply(_EXPECTED_3_FRAMES)
                return
            self._forward(frames[2])
            if send_replies:
                self._reply(b"ok")
        elif cmd == commands.CAPTURE_IMAGE:
            if send_replies:
                self._capture_image(frames)
        elif cmd == commands.GET_SCENE:
            if send_replies:
                try:
                    html = self.scene_html()
                except OSError as exc:
                    log.error("get_scene: cannot read viewer script: %s", exc)
                    return
                self._reply(html.encode("utf-8"))
        elif commands.is_meshcat_command(cmd):
            if len(frames) != 3:
                if send_replies:
                    self._reply(_EXPECTED_3_FRAMES)
                return
            path = [part for part in bytes(frames[1]).decode("utf-8").split("/") if part]
            self._apply_scene_command(cmd, path, bytes(frames[2]))
            if send_replies:
                self._reply(b"ok")
        else:
            log.warning("Received unrecognized command: %s", cmd)
            if send_replies:
                self._reply(b"error: unrecognized command")

    def _apply_scene_command(self, cmd: str, path: list[str], data: bytes) -> None:
        forward = True
        with self._scene_lock:
            if cmd == commands.SET_TRANSFORM:
                self.scene_tree.get_path(path).transform = data
            elif cmd == commands.SET_OBJECT:
                node = self.scene_tree.get_path(path)
                forward = node.object != data
                node.object = data
                node.properties = []
            elif cmd == commands.SET_PROPERTY:
                self.scene_tree.get_path(path).properties.append(data)
            elif cmd == commands.SET_ANIMATION:
                self.scene_tree.get_path(path).animation = data
            elif cmd == commands.DELETE:
                if path:
                    parent = self.scene_tree.get_path(path[:-1])
                    parent.children.pop(path[-1], None)
                else:
                    self.scene_tree = TreeNode()
        if forward:
            self._forward(data)

    def _wait_for_websockets(self) -> None:
        with self._ws_cond:
            while not self._pool:
                if self._stopped.is_set():
                    return
                self._ws_cond.wait(0.1)
        self._reply(b"ok")

    def _capture_image(self, frames: list[bytes]) -> None:
        if len(frames) != 3:
            self._reply(_EXPECTED_3_FRAMES)
            return
        while not self.has_websocket():
            if self._stopped.wait(0.1):
                return
        responses: queue.Queue[bytes] = queue.Queue(maxsize=1)
        with self._capture_lock:
            self._capture = responses
        try:
            self._forward(frames[2])
            while True:
                try:
                    image = responses.get(timeout=0.1)
                except queue.Empty:
                    if self._stopped.is_set():
                        return
                    continue
                self._reply(image)
                return
        finally:
            with self._capture_lock:
                self._capture = None

    # Lifecycle

    def run(self) -> None:
        """Serve requests from the REP socket until ``stop`` is called."""
        if self.zmq_stream is None:
            log.error("ZMQ stream is missing; cannot start bridge loop")
            return
        self.zmq_stream.setsockopt(zmq.RCVTIMEO, 100)
        poller = zmq.Poller()
        poller.register(self.zmq_stream, zmq.POLLIN)
        while not self._stopped.is_set():
            ready = dict(poller.poll(100))
            if self.zmq_stream not in ready:
                continue
            try:
                frames = self.zmq_stream.recv_multipart(flags=zmq.NOBLOCK)
            except zmq.Again:
                continue
            self.handle_zmq_frames(frames)

    def stop(self) -> None:
        """Ask the run loop and any waiters to finish."""
        self._stopped.set()
        with self._ws_cond:
            self._ws_cond.notify_all()

    def close(self) -> None:
        """Close the REP socket."""
        if self.zmq_stream is not None:
            self.zmq_stream.close(linger=0)