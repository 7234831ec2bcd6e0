"""Socket addresses, with name resolution and conversions."""

from __future__ import annotations

import ipaddress
import socket
from typing import Any

from .errors import TaggedError

_INTERNET_FAMILIES = (socket.AF_INET, socket.AF_INET6)


def _resolve(node: str, service: str, flags: int) -> tuple[int, Any]:
    try:
        results = socket.getaddrinfo(node, service, socket.AF_INET, 0, 0, flags)
    except socket.gaierror as exc:
        raise TaggedError(
            f"getaddrinfo({node}, {service})", exc.errno or 0, exc.strerror or str(exc)
        ) from exc
    if not results:
        raise RuntimeError("getaddrinfo returned successfully but with no results")
    family, _, _, _, sockaddr = results[0]
    return int(family), sockaddr


def _normalize(sockaddr: Any) -> Any:
    if isinstance(sockaddr, list):
        return tuple(sockaddr)
    return sockaddr


class Address:
    """A socket address: an address family plus its socket-module form.

    ``family`` is the address family (e.g. ``AF_INET``) and ``sockaddr`` is
    the value the socket module uses for that family, such as ``(host, port)``.
    """

    __slots__ = ("family", "sockaddr")

    def __init__(self, hostname: str, service: str) -> None:
        """Resolve ``hostname`` and ``service`` (a name such as "http" or a port)."""
        family, sockaddr = _resolve(hostname, str(service), socket.AI_ALL)
        self.family = family
        self.sockaddr = _normalize(sockaddr)

    @staticmethod
    def _make(family: int, sockaddr: Any) -> Address:
        address = Address.__new__(Address)
        address.family = int(family)
        address.sockaddr = _normalize(sockaddr)
        return address

    @staticmethod
    def from_ip(ip: str, port: int = 0) -> Address:
        """Build from a dotted-quad string and a numeric port, without DNS."""
        family, sockaddr = _resolve(
            ip, str(port), socket.AI_NUMERICHOST | socket.AI_NUMERICSERV
        )
        return Address._make(family, sockaddr)

    @staticmethod
    def from_sockaddr(family: int, sockaddr: Any) -> Address:
        """Wrap an address as returned by the socket module for ``family``."""
        return Address._make(family, sockaddr)

    @staticmethod
    def from_ipv4_numeric(ip_address: int) -> Address:
        """Build an IPv4 address (port 0) from its 32-bit numeric form."""
        ip = ipaddress.IPv4Address(ip_address)
        return Address._make(socket.AF_INET, (str(ip), 0))

    def ip_port(self) -> tuple[str, int]:
        """The numeric IP address string and the port."""
        if self.family not in _INTERNET_FAMILIES:
            raise RuntimeError("Address.ip_port() called on non-Internet address")
        try:
            host, port = socket.getnameinfo(
                self.sockaddr, socket.NI_NUMERICHOST | socket.NI_NUMERICSERV
            )
        except OSError as exc:
            raise TaggedError("getnameinfo", exc.errno or 0, exc.strerror or str(exc)) from exc
        return host, int(port)

    def ip(self) -> str:
        """The numeric IP address string."""
        return self.ip_port()[0]

    def port(self) -> int:
        """The port number."""
        return self.ip_port()[1]

    def ipv4_numeric(self) -> int:
        """The IPv4 address as a 32-bit integer."""
        if self.family != socket.AF_INET:
            raise RuntimeError("ipv4_numeric called on non-IPV4 address")
        return int(ipaddress.IPv4Address(self.sockaddr[0]))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self.family == other.family and self.sockaddr == other.sockaddr

    def __hash__(self) -> int:
        return hash((self.family, self.sockaddr))

    def __str__(self) -> str:
        if self.family in _INTERNET_FAMILIES:
            ip, port = self.ip_port()
            return f"{ip}:{port}"
        return "(non-Internet address)"

    def __repr__(self) -> str:
        return f"Address(family={self.family!r}, sockaddr={self.sockaddr!r})"