"""The ZeroMQ-to-websocket bridge, its startup helper and port utilities."""