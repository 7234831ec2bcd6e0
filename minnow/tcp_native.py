"""A netcat-like tool: connect to, or accept one connection from, a TCP peer."""

from __future__ import annotations

import os
import sys

from .address import Address
from .socket import TCPSocket
from .stream_copy import bidirectional_stream_copy


def show_usage(program: str) -> None:
    """Print the command-line usage to standard error."""
    print(
        f"Usage: {program} [-l] <host> <port>\n\n"
        "  -l specifies listen mode; <host>:<port> is the listening address.",
        file=sys.stderr,
    )


def _program_name() -> str:
    if sys.argv and sys.argv[0]:
        return os.path.basename(sys.argv[0])
    return "tcp_native"


def _accept_one(host: str, port: str) -> TCPSocket:
    listening = TCPSocket()
    listening.set_reuseaddr()
    listening.bind(Address(host, port))
    listening.listen()
    print("DEBUG: Listening for incoming connection...", file=sys.stderr)
    connected = listening.accept()
    print(f"DEBUG: New connection from {connected.peer_address()}.", file=sys.stderr)
    return connected


def _connect(host: str, port: str) -> TCPSocket:
    connecting = TCPSocket()
    peer = Address(host, port)
    print(f"DEBUG: Connecting to {peer}... ", end="", file=sys.stderr, flush=True)
    connecting.connect(peer)
    print(
        f"DEBUG: Successfully connected to {connecting.peer_address()}.", file=sys.stderr
    )
    return connecting


def main(argv: list[str] | None = None) -> int:
    """Run the tool; ``argv`` holds the arguments after the program name."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        server_mode = bool(args) and args[0] == "-l"
        if len(args) < 2 or (server_mode and len(args) < 3):
            show_usage(_program_name())
            return 1

        if server_mode:
            sock = _accept_one(args[1], args[2])
        else:
            sock = _connect(args[0], args[1])

        bidirectional_stream_copy(sock, str(sock.peer_address()))
    except Exception as exc:
        print(f"Exception: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())