import json
import urllib.request

import pytest
import zmq
from aiohttp.test_utils import TestClient, TestServer

from meshbridge.app import MeshcatWebServerApplication
from meshbridge.servers.bridge import ZeroMQWebsocketBridge


@pytest.fixture
def app(tmp_path):
    (tmp_path / "index.html").write_text("<html><body>viewer</body></html>")
    (tmp_path / "main.min.js").write_text("var MeshCat = {};")
    return MeshcatWebServerApplication(bridge=ZeroMQWebsocketBridge(assets_dir=tmp_path))


@pytest.mark.asyncio
async def test_root_redirects_to_static(app):
    async with TestClient(TestServer(app.web_app)) as client:
        resp = await client.get("/", allow_redirects=False)
        assert resp.status == 307
        assert resp.headers["Location"] == "/static/"


@pytest.mark.asyncio
async def test_static_index_is_served(app):
    async with TestClient(TestServer(app.web_app)) as client:
        resp = await client.get("/static/")
        assert resp.status == 200
        body = await resp.text()
        assert "<html" in body.lower()


@pytest.mark.asyncio
async def test_static_missing_file_is_404(app):
    async with TestClient(TestServer(app.web_app)) as client:
        resp = await client.get("/static/missing.js")
        assert resp.status == 404


@pytest.mark.asyncio
async def test_health_reports_ok(app):
    async with TestClient(TestServer(app.web_app)) as client:
        resp = await client.get("/health")
        assert resp.status == 200
        assert await resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_websocket_receives_scene_snapshot(app):
    node = app.bridge.scene_tree.get_path(["meshcat", "box"])
    node.object = b"\x01\x02\x03"
    node.transform = b"\x04\x05\x06"
    async with TestClient(TestServer(app.web_app)) as client:
        ws = await client.ws_connect("/ws")
        first = await ws.receive_bytes(timeout=2)
        second = await ws.receive_bytes(timeout=2)
        assert {first, second} == {b"\x01\x02\x03", b"\x04\x05\x06"}
        assert app.bridge.has_websocket()
        await ws.close()


@pytest.mark.asyncio
async def test_root_accepts_websocket_and_forwards_updates(app):
    app.bridge.scene_tree.get_path(["a"]).object = b"first"
    async with TestClient(TestServer(app.web_app)) as client:
        ws = await client.ws_connect("/")
        assert await ws.receive_bytes(timeout=2) == b"first"
        app.bridge.handle_local_frames([b"set_transform", b"/a", b"moved"])
        assert await ws.receive_bytes(timeout=2) == b"moved"
        await ws.close()


def test_started_application_serves_http_and_zmq():
    app = MeshcatWebServerApplication.create()
    app.start()
    req = zmq.Context.instance().socket(zmq.REQ)
    req.setsockopt(zmq.RCVTIMEO, 2000)
    req.setsockopt(zmq.LINGER, 0)
    try:
        url = f"http://127.0.0.1:{app.web_port}/health"
        with urllib.request.urlopen(url, timeout=5) as resp:
            assert json.loads(resp.read()) == {"status": "ok"}
        req.connect(app.bridge.zmq_url)
        req.send(b"url")
        assert req.recv().decode() == f"http://127.0.0.1:{app.web_port}/static/"
    finally:
        req.close()
        app.stop()
    assert all(not thread.is_alive() for thread in app._threads)