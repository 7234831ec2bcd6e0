"""Network sockets built on the shared FileDescriptor bookkeeping."""

from __future__ import annotations

import socket as pysocket
import struct
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from .address import Address
from .errors import UnixError
from .file_descriptor import FileDescriptor

T = TypeVar("T")

AF_PACKET = getattr(pysocket, "AF_PACKET", 17)
SOL_PACKET = getattr(pysocket, "SOL_PACKET", 263)
SO_BINDTODEVICE = getattr(pysocket, "SO_BINDTODEVICE", 25)
SO_DOMAIN = getattr(pysocket, "SO_DOMAIN", 39)
SO_PROTOCOL = getattr(pysocket, "SO_PROTOCOL", 38)
PACKET_ADD_MEMBERSHIP = 1
PACKET_MR_PROMISC = 1


class Socket(FileDescriptor):
    """Base class for network sockets; normally used through a subclass."""

    def __init__(
        self,
        domain: int,
        sock_type: int,
        protocol: int = 0,
        fd: FileDescriptor | None = None,
    ) -> None:
        if fd is None:
            try:
                sock = pysocket.socket(domain, sock_type, protocol)
            except OSError as exc:
                raise UnixError("socket", exc.errno or 0) from exc
            super().__init__(sock.detach())
            return
        self._internal = fd._internal
        checks = (
            (SO_DOMAIN, domain, "domain"),
            (pysocket.SO_TYPE, sock_type, "type"),
            (SO_PROTOCOL, protocol, "protocol"),
        )
        for option, expected, what in checks:
            if self._getsockopt(pysocket.SOL_SOCKET, option) != expected:
                raise RuntimeError(f"socket {what} mismatch")

    @classmethod
    def _from_fd(
        cls, fd: FileDescriptor, domain: int, sock_type: int, protocol: int = 0
    ) -> Socket:
        instance = cls.__new__(cls)
        Socket.__init__(instance, domain, sock_type, protocol, fd)
        return instance

    @contextmanager
    def _borrowed(self) -> Iterator[pysocket.socket]:
        try:
            sock = pysocket.socket(fileno=self.fd_num())
        except OSError as exc:
            raise UnixError("socket", exc.errno or 0) from exc
        try:
            yield sock
        finally:
            sock.detach()

    @staticmethod
    def _strict(attempt: str, func: Callable[..., T], *args: object) -> T:
        try:
            return func(*args)
        except OSError as exc:
            raise UnixError(attempt, exc.errno or 0) from exc

    def _getsockopt(self, level: int, option: int) -> int:
        with self._borrowed() as sock:
            return self._strict("getsockopt", sock.getsockopt, level, option)

    def _setsockopt(self, level: int, option: int, value: int | bytes) -> None:
        with self._borrowed() as sock:
            self._strict("setsockopt", sock.setsockopt, level, option, value)

    def bind(self, address: Address) -> None:
        """Bind to a local address, usually before listen/accept."""
        with self._borrowed() as sock:
            self._check("bind", sock.bind, address.sockaddr)

    def bind_to_device(self, device_name: str) -> None:
        """Restrict the socket to one network device."""
        self._setsockopt(pysocket.SOL_SOCKET, SO_BINDTODEVICE, device_name.encode())

    def connect(self, address: Address) -> None:
        """Connect to a peer address."""
        with self._borrowed() as sock:
            self._check("connect", sock.connect, address.sockaddr)

    def shutdown(self, how: int) -> None:
        """Shut down reading (SHUT_RD), writing (SHUT_WR) or both (SHUT_RDWR)."""
        with self._borrowed() as sock:
            self._check("shutdown", sock.shutdown, how)
        if how == pysocket.SHUT_RD:
            self._register_read()
        elif how == pysocket.SHUT_WR:
            self._register_write()
        elif how == pysocket.SHUT_RDWR:
            self._register_read()
            self._register_write()
        else:
            raise RuntimeError("Socket.shutdown() called with invalid `how`")

    def local_address(self) -> Address:
        """The address the socket is bound to."""
        with self._borrowed() as sock:
            sockaddr = self._strict("getsockname", sock.getsockname)
            return Address.from_sockaddr(sock.family, sockaddr)

    def peer_address(self) -> Address:
        """The address of the connected peer."""
        with self._borrowed() as sock:
            sockaddr = self._strict("getpeername", sock.getpeername)
            return Address.from_sockaddr(sock.family, sockaddr)

    def set_reuseaddr(self) -> None:
        """Allow the local address to be reused sooner."""
        self._setsockopt(pysocket.SOL_SOCKET, pysocket.SO_REUSEADDR, 1)

    def throw_if_error(self) -> None:
        """Raise UnixError if the socket has a pending error."""
        socket_error = self._getsockopt(pysocket.SOL_SOCKET, pysocket.SO_ERROR)
        if socket_error:
            raise UnixError("socket error", socket_error)


class DatagramSocket(Socket):
    """A socket that sends and receives whole datagrams."""

    def recv(self) -> tuple[Address, bytes] | None:
        """Receive one datagram and its sender's address.

        Returns None if the socket is non-blocking and nothing is waiting.
        Raises RuntimeError if the datagram did not fit the receive buffer.
        """
        buffer = bytearray(self.READ_BUFFER_SIZE)
        with self._borrowed() as sock:
            result = self._check(
                "recvfrom", sock.recvfrom_into, buffer, len(buffer), pysocket.MSG_TRUNC
            )
            family = sock.family
        if not isinstance(result, tuple):
            return None
        length, sockaddr = result
        if length > len(buffer):
            raise RuntimeError("recvfrom (oversized datagram)")
        self._register_read()
        return Address.from_sockaddr(family, sockaddr), bytes(buffer[:length])

    def sendto(self, destination: Address, payload: bytes) -> None:
        """Send a datagram to ``destination``."""
        with self._borrowed() as sock:
            self._check("sendto", sock.sendto, bytes(payload), destination.sockaddr)
        self._register_write()

    def send(self, payload: bytes) -> None:
        """Send a datagram to the connected peer."""
        with self._borrowed() as sock:
            self._check("send", sock.send, bytes(payload))
        self._register_write()


class UDPSocket(DatagramSocket):
    """An unbound, unconnected UDP socket."""

    def __init__(self) -> None:
        super().__init__(pysocket.AF_INET, pysocket.SOCK_DGRAM)


class TCPSocket(Socket):
    """An IPv4 TCP socket."""

    def __init__(self) -> None:
        super().__init__(pysocket.AF_INET, pysocket.SOCK_STREAM)

    def listen(self, backlog: int = 16) -> None:
        """Mark the socket as accepting incoming connections."""
        with self._borrowed() as sock:
            self._check("listen", sock.listen, backlog)

    def accept(self) -> TCPSocket:
        """Wait for and return a new connection."""
        self._register_read()
        with self._borrowed() as sock:
            conn, _ = self._strict("accept", sock.accept)
        fd = FileDescriptor(conn.detach())
        return TCPSocket._from_fd(fd, pysocket.AF_INET, pysocket.SOCK_STREAM, pysocket.IPPROTO_TCP)


class PacketSocket(DatagramSocket):
    """A link-layer packet socket."""

    def __init__(self, type: int, protocol: int) -> None:
        super().__init__(AF_PACKET, type, protocol)

    def set_promiscuous(self) -> None:
        """Put the bound interface into promiscuous mode."""
        local = self.local_address()
        if local.family != AF_PACKET:
            raise RuntimeError("Address conversion failure")
        ifindex = pysocket.if_nametoindex(local.sockaddr[0])
        request = struct.pack("iHH8s", ifindex, PACKET_MR_PROMISC, 0, b"")
        self._setsockopt(SOL_PACKET, PACKET_ADD_MEMBERSHIP, request)


class LocalStreamSocket(Socket):
    """A Unix-domain stream socket adopted from an existing descriptor."""

    def __init__(self, fd: FileDescriptor) -> None:
        super().__init__(pysocket.AF_UNIX, pysocket.SOCK_STREAM, 0, fd)


class LocalDatagramSocket(DatagramSocket):
    """An unbound, unconnected Unix-domain datagram socket."""

    def __init__(self) -> None:
        super().__init__(pysocket.AF_UNIX, pysocket.SOCK_DGRAM)