"""Copy between a connected socket and a pair of local descriptors."""

from __future__ import annotations

import os
import socket as pysocket
import sys

from .byte_stream import ByteStream
from .eventloop import Direction, EventLoop, Result
from .file_descriptor import FileDescriptor
from .socket import Socket

BUFFER_SIZE = 1048576


def _debug(message: str) -> None:
    print(f"DEBUG: {message}", file=sys.stderr)


def bidirectional_stream_copy(
    sock: Socket,
    peer_name: str,
    input_fd: FileDescriptor | None = None,
    output_fd: FileDescriptor | None = None,
) -> None:
    """Copy ``input_fd`` to ``sock`` and ``sock`` to ``output_fd`` until both finish.

    The descriptors default to copies of standard input and standard output.
    """
    if input_fd is None:
        input_fd = FileDescriptor(os.dup(0))
    if output_fd is None:
        output_fd = FileDescriptor(os.dup(1))

    loop = EventLoop()
    outbound = ByteStream(BUFFER_SIZE)
    inbound = ByteStream(BUFFER_SIZE)
    outbound_shutdown = False
    inbound_shutdown = False

    sock.set_blocking(False)
    input_fd.set_blocking(False)
    output_fd.set_blocking(False)

    def fail_both() -> None:
        outbound.set_error()
        inbound.set_error()

    # rule 1: read from input into the outbound stream
    def read_input() -> None:
        writer = outbound.writer()
        writer.push(input_fd.read(writer.available_capacity()))
        if input_fd.eof():
            writer.close()

    def want_input() -> bool:
        writer = outbound.writer()
        return (
            not outbound.has_error()
            and not inbound.has_error()
            and writer.available_capacity() > 0
            and not writer.is_closed()
        )

    def input_error() -> None:
        _debug("Outbound stream had error from source.")
        fail_both()

    loop.add_fd_rule(
        "read from stdin into outbound byte stream",
        input_fd,
        Direction.IN,
        read_input,
        want_input,
        outbound.writer().close,
        input_error,
    )

    # rule 2: write the outbound stream into the socket
    def write_socket() -> None:
        nonlocal outbound_shutdown
        reader = outbound.reader()
        if reader.bytes_buffered():
            reader.pop(sock.write(reader.peek()))
        if reader.is_finished():
            sock.shutdown(pysocket.SHUT_WR)
            outbound_shutdown = True
            _debug(f"Outbound stream to {peer_name} finished.")

    def want_socket_write() -> bool:
        reader = outbound.reader()
        return bool(reader.bytes_buffered()) or (
            reader.is_finished() and not outbound_shutdown
        )

    def socket_write_error() -> None:
        _debug("Outbound stream had error from destination.")
        fail_both()

    loop.add_fd_rule(
        "read from outbound byte stream into socket",
        sock,
        Direction.OUT,
        write_socket,
        want_socket_write,
        outbound.writer().close,
        socket_write_error,
    )

    # rule 3: read from the socket into the inbound stream
    def read_socket() -> None:
        writer = inbound.writer()
        writer.push(sock.read(writer.available_capacity()))
        if sock.eof():
            writer.close()

    def want_socket_read() -> bool:
        writer = inbound.writer()
        return (
            not inbound.has_error()
            and not outbound.has_error()
            and writer.available_capacity() > 0
            and not writer.is_closed()
        )

    def socket_read_error() -> None:
        _debug("Inbound stream had error from source.")
        fail_both()

    loop.add_fd_rule(
        "read from socket into inbound byte stream",
        sock,
        Direction.IN,
        read_socket,
        want_socket_read,
        inbound.writer().close,
        socket_read_error,
    )

    # rule 4: write the inbound stream to the output
    def write_output() -> None:
        nonlocal inbound_shutdown
        reader = inbound.reader()
        if reader.bytes_buffered():
            reader.pop(output_fd.write(reader.peek()))
        if reader.is_finished():
            output_fd.close()
            inbound_shutdown = True
            ending = " uncleanly." if inbound.has_error() else "."
            _debug(f"Inbound stream from {peer_name} finished{ending}")

    def want_output() -> bool:
        reader = inbound.reader()
        return bool(reader.bytes_buffered()) or (
            reader.is_finished() and not inbound_shutdown
        )

    def output_error() -> None:
        _debug("Inbound stream had error from destination.")
        fail_both()

    loop.add_fd_rule(
        "read from inbound byte stream into stdout",
        output_fd,
        Direction.OUT,
        write_output,
        want_output,
        inbound.writer().close,
        output_error,
    )

    while loop.wait_next_event(-1) is not Result.EXIT:
        pass