"""Build three.js scene payloads and stream them to a browser viewer."""

__version__ = "0.1.0"