"""Viewer windows backed by a local server or a remote bridge, and the ZeroMQ client."""

from __future__ import annotations

import logging
import subprocess
import sys
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import msgpack
import zmq

from . import commands
from .app import MeshcatWebServerApplication
from .geometry.base import Geometry
from .geometry.materials import MeshPhongMaterial
from .geometry.objects import OrthographicCamera, PerspectiveCamera, SceneObject, mesh
from .servers.bridge import ZeroMQWebsocketBridge
from .visualizer import Visualizer

log = logging.getLogger(__name__)

DEFAULT_WEBSOCKET_CONNECT_TIMEOUT = 10.0
_STARTUP_DELAY = 0.1


def format_path(path: Sequence[str]) -> str:
    """Join path segments into an absolute scene path such as ``/a/b``."""
    return "/" + "/".join(path)


def normalize_set_object_payload(obj: Any) -> Any:
    """Lower scene objects to payloads; wrap a bare geometry in a Phong mesh."""
    if isinstance(obj, (SceneObject, OrthographicCamera, PerspectiveCamera)):
        return obj.lower()
    if isinstance(obj, Geometry):
        return mesh(obj, MeshPhongMaterial()).lower()
    return obj


def open_in_browser(url: str) -> None:
    """Open the URL in the system's default browser."""
    platform = sys.platform
    if platform == "darwin":
        args = ["open", url]
    elif platform.startswith("linux"):
        args = ["xdg-open", url]
    elif platform == "win32":
        args = ["cmd", "/c", "start", url]
    else:
        raise OSError(f"unsupported platform: {platform}")
    subprocess.Popen(args)


@dataclass(eq=False)
class ZMQClient:
    """Sends scene commands to a bridge, in process or over ZeroMQ."""

    zmq_url: str
    bridge: ZeroMQWebsocketBridge | None = None
    timeout: float | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def set_object(self, path: Sequence[str], obj: Any) -> None:
        payload = normalize_set_object_payload(obj)
        self._send(commands.SET_OBJECT, path, {"object": payload})

    def set_transform(self, path: Sequence[str], transform: Sequence[Sequence[float]]) -> None:
        rows = [list(row) for row in transform]
        if len(rows) != 4 or any(len(row) != 4 for row in rows):
            raise ValueError("transform must be a 4x4 matrix")
        matrix = [float(value) for row in rows for value in row]
        self._send(commands.SET_TRANSFORM, path, {"matrix": matrix})

    def set_property(self, path: Sequence[str], property: str, value: Any) -> None:
        self._send(commands.SET_PROPERTY, path, {"property": property, "value": value})

    def delete(self, path: Sequence[str]) -> None:
        self._send(commands.DELETE, path, {})

    def open(self) -> None:
        """Nothing to do here; the window opens the browser."""

    def _send(self, cmd: str, path: Sequence[str], fields: dict[str, Any]) -> None:
        path_str = format_path(path)
        message = {"type": cmd, "path": path_str, **fields}
        try:
            payload = msgpack.packb(message, use_bin_type=True)
        except (TypeError, ValueError, OverflowError) as exc:
            raise ValueError(f"failed to build {cmd} command: {exc}") from exc
        frames = [cmd.encode(), path_str.encode(), payload]
        if self.bridge is not None:
            self.bridge.handle_local_frames(frames)
            return
        self._send_remote(cmd, frames)

    def _send_remote(self, cmd: str, frames: list[bytes]) -> None:
        with self._lock:
            sock = zmq.Context.instance().socket(zmq.REQ)
            try:
                sock.setsockopt(zmq.LINGER, 0)
                if self.timeout is not None:
                    millis = int(self.timeout * 1000)
                    sock.setsockopt(zmq.RCVTIMEO, millis)
                    sock.setsockopt(zmq.SNDTIMEO, millis)
                try:
                    sock.connect(self.zmq_url)
                except zmq.ZMQError as exc:
                    raise ConnectionError(f"failed to connect to ZMQ: {exc}") from exc
                try:
                    sock.send_multipart(frames)
                    reply = sock.recv()
                except zmq.Again as exc:
                    raise TimeoutError(f"zmq command {cmd!r} timed out") from exc
            finally:
                sock.close()
        text = reply.decode("utf-8", errors="replace").strip()
        if text != "ok":
            raise RuntimeError(f"zmq command {cmd!r} failed: {text or 'empty reply'}")


@dataclass(eq=False)
class ViewerWindow:
    """A viewer: a local server started for it, or a remote one it connects to."""

    url: str
    zmq_url: str
    client: ZMQClient
    app: MeshcatWebServerApplication | None = None
    running: bool = True
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @classmethod
    def create(cls, web_port: int | None = None) -> ViewerWindow:
        """Start a local server, on a free HTTP port unless one is given."""
        app = MeshcatWebServerApplication.create(web_port)
        app.start()
        time.sleep(_STARTUP_DELAY)
        bridge = app.bridge
        window = cls(
            url=bridge.web_url,
            zmq_url=bridge.zmq_url,
            client=ZMQClient(bridge.zmq_url, bridge),
            app=app,
        )
        log.info("ViewerWindow started: %s", window.url)
        return window

    @classmethod
    def remote(cls, web_url: str, zmq_url: str) -> ViewerWindow:
        """Connect to a viewer whose bridge listens at ``zmq_url``."""
        window = cls(url=web_url, zmq_url=zmq_url, client=ZMQClient(zmq_url))
        log.info("ViewerWindow connected to remote: %s", web_url)
        return window

    def open(self) -> None:
        """Open the viewer in a browser and, locally, wait for it to connect."""
        open_in_browser(self.url)
        if self.app is not None:
            self.app.bridge.wait_for_websocket_connection(DEFAULT_WEBSOCKET_CONNECT_TIMEOUT)

    def visualizer(self) -> Visualizer:
        """Return a visualizer at the scene root."""
        return Visualizer(self.client)

    def stop(self) -> None:
        """Stop the local server; a remote window has nothing to stop."""
        with self._lock:
            if self.app is not None and self.running:
                self.app.stop()
                self.running = False

    def close(self) -> None:
        self.stop()

    def __enter__(self) -> ViewerWindow:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()