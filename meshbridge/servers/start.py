"""Start a bridge that serves ZeroMQ requests on a background thread."""

from __future__ import annotations

import threading

from .bridge import ZeroMQWebsocketBridge


def start_zmq_server_in_thread() -> tuple[ZeroMQWebsocketBridge, threading.Thread]:
    """Create a bridge on the default web port and run it in a daemon thread.

    The bridge carries the bound socket, host and port. Call its ``stop``
    method, join the thread and then ``close`` the bridge to shut it down.
    """
    bridge = ZeroMQWebsocketBridge.create()
    thread = threading.Thread(target=bridge.run, name="zmq-bridge", daemon=True)
    thread.start()
    return bridge, thread