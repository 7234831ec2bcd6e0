"""Fetch a page over HTTP/1.1 and print the raw response."""

from __future__ import annotations

import os
import sys

from .address import Address
from .socket import TCPSocket


def _emit(data: bytes) -> None:
    stream = sys.stdout
    stream.flush()
    buffer = getattr(stream, "buffer", None)
    if buffer is not None:
        buffer.write(data)
        buffer.flush()
    else:
        stream.write(data.decode("latin-1"))
        stream.flush()


def get_url(host: str, path: str) -> bytes | None:
    """Request ``path`` from ``host`` on the http port and print the response.

    Returns the raw response, or None if the request failed (the error is
    printed to standard error).
    """
    print(f"Function called: get_URL({host}, {path})", file=sys.stderr)
    try:
        sock = TCPSocket()
        try:
            sock.connect(Address(host, "http"))
            request = (
                f"GET {path} HTTP/1.1\r\nHost: {host}\r\nConnection: close\r\n\r\n"
            )
            sock.write(request.encode())
            response = bytearray()
            while True:
                chunk = sock.read()
                if not chunk:
                    break
                response += chunk
        finally:
            sock.close()
    except Exception as exc:
        print(exc, file=sys.stderr)
        return None
    _emit(bytes(response))
    return bytes(response)


def _program_name() -> str:
    if sys.argv and sys.argv[0]:
        return os.path.basename(sys.argv[0])
    return "webget"


def main(argv: list[str] | None = None) -> int:
    """Run with HOST and PATH arguments (after the program name)."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        if len(args) != 2:
            program = _program_name()
            print(f"Usage: {program} HOST PATH", file=sys.stderr)
            print(f"\tExample: {program} stanford.edu /class/cs144", file=sys.stderr)
            return 1
        host, path = args
        get_url(host, path)
    except Exception as exc:
        print(exc, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())