"""Byte streams, stream reassembly, IPv4 headers, sockets and an event loop."""

__version__ = "0.1.0"