"""The Internet checksum (ones' complement sum of 16-bit words)."""

from __future__ import annotations

from collections.abc import Iterable

_BytesLike = (bytes, bytearray, memoryview)


class InternetChecksum:
    """Accumulates data and yields its Internet checksum.

    Data may be added in pieces of any length; an odd-length piece is
    continued by the next one as if the two had been concatenated.
    """

    def __init__(self, initial: int = 0) -> None:
        self._sum = initial & 0xFFFFFFFF
        self._odd = False

    def add(self, data: bytes | Iterable[bytes]) -> None:
        """Add a bytes-like object, or each bytes-like object of an iterable."""
        if isinstance(data, _BytesLike):
            self._add_bytes(bytes(data))
            return
        for piece in data:
            self._add_bytes(bytes(piece))

    def _add_bytes(self, data: bytes) -> None:
        total = self._sum
        odd = self._odd
        for byte in data:
            total += byte if odd else byte << 8
            odd = not odd
        self._sum = total & 0xFFFFFFFF
        self._odd = odd

    def value(self) -> int:
        """The checksum of everything added so far."""
        total = self._sum
        while total > 0xFFFF:
            total = (total >> 16) + (total & 0xFFFF)
        return ~total & 0xFFFF