"""Helpers for picking ports and building the bridge URLs."""

from __future__ import annotations

import socket
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

ZMQ_DEFAULT_HOST = "127.0.0.1"
DEFAULT_FILESERVER_PORT = 7000

T = TypeVar("T")


def generate_zmq_url(method: str, host: str, port: int) -> str:
    """Return a ZeroMQ endpoint such as ``tcp://127.0.0.1:6000``."""
    return f"{method}://{host}:{port}"


def find_available_port(
    setup: Callable[[int], T], default_port: int, max_attempts: int
) -> tuple[T, int]:
    """Try ``setup`` on successive ports until one does not raise OSError.

    Returns what ``setup`` returned together with the port that worked.
    """
    for port in range(default_port, default_port + max_attempts):
        try:
            return setup(port), port
        except OSError:
            continue
    raise OSError("failed to find an available port")


def find_available_tcp_port() -> int:
    """Return a TCP port that the operating system reports as free."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("", 0))
        return sock.getsockname()[1]


def viewer_assets_dir() -> Path:
    """Return the directory holding the bundled viewer files."""
    return Path(__file__).resolve().parent.parent / "viewer_assets" / "dist"