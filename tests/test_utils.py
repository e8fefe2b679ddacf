import socket

import pytest

from meshbridge.servers.utils import (
    DEFAULT_FILESERVER_PORT,
    ZMQ_DEFAULT_HOST,
    find_available_port,
    find_available_tcp_port,
    generate_zmq_url,
    viewer_assets_dir,
)


def test_generate_zmq_url():
    assert generate_zmq_url("tcp", "127.0.0.1", 6000) == "tcp://127.0.0.1:6000"


def test_generate_zmq_url_with_default_host():
    assert generate_zmq_url("ipc", ZMQ_DEFAULT_HOST, DEFAULT_FILESERVER_PORT) == (
        "ipc://127.0.0.1:7000"
    )


def test_find_available_port_skips_failing_ports():
    tried = []

    def setup(port):
        tried.append(port)
        if port < 6003:
            raise OSError("in use")
        return f"socket-{port}"

    result, port = find_available_port(setup, 6000, 10)
    assert (result, port) == ("socket-6003", 6003)
    assert tried == [6000, 6001, 6002, 6003]


def test_find_available_port_gives_up_after_max_attempts():
    tried = []

    def setup(port):
        tried.append(port)
        raise OSError("in use")

    with pytest.raises(OSError, match="failed to find an available port"):
        find_available_port(setup, 6000, 3)
    assert tried == [6000, 6001, 6002]


def test_find_available_tcp_port_returns_bindable_port():
    port = find_available_tcp_port()
    assert port > 0
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("", port))
        assert sock.getsockname()[1] == port


def test_viewer_assets_dir_location():
    path = viewer_assets_dir()
    assert path.name == "dist"
    assert path.parent.name == "viewer_assets"
    assert path.parent.parent.name == "meshbridge"