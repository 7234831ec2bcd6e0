"""An IPv4 datagram: a header followed by payload buffers."""

from __future__ import annotations

from dataclasses import dataclass, field

from .ipv4_header import IPv4Header
from .parser import Parser, Serializer


@dataclass
class IPv4Datagram:
    """An IPv4 header together with its payload."""

    header: IPv4Header = field(default_factory=IPv4Header)
    payload: list[bytes] = field(default_factory=list)

    def parse(self, parser: Parser) -> None:
        """Read the header, then take everything after it as payload."""
        self.header.parse(parser)
        self.payload = parser.all_remaining()

    def serialize(self, serializer: Serializer) -> None:
        """Write the header followed by each payload buffer."""
        self.header.serialize(serializer)
        for piece in self.payload:
            serializer.buffer(piece)


InternetDatagram = IPv4Datagram