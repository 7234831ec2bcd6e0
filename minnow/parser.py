"""Big-endian parsing from, and serialization into, lists of byte buffers."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from typing import Any

_BytesLike = (bytes, bytearray, memoryview)


class _BufferList:
    """A queue of byte buffers consumed from the front."""

    def __init__(self, buffers: Iterable[bytes]) -> None:
        self._buffers: deque[bytes] = deque()
        self._skip = 0
        self._size = 0
        for buf in buffers:
            self.append(buf)

    def __len__(self) -> int:
        return self._size

    def append(self, data: bytes) -> None:
        data = bytes(data)
        self._size += len(data)
        self._buffers.append(data)

    def remove_prefix(self, length: int) -> None:
        while length and self._buffers:
            front = self._buffers[0]
            step = min(length, len(front) - self._skip)
            self._skip += step
            length -= step
            self._size -= step
            if self._skip == len(front):
                self._buffers.popleft()
                self._skip = 0

    def take(self, length: int) -> bytes:
        out = bytearray()
        while len(out) < length and self._buffers:
            front = self._buffers[0]
            piece = front[self._skip : self._skip + length - len(out)]
            if not piece:
                self._buffers.popleft()
                self._skip = 0
                continue
            out += piece
            self.remove_prefix(len(piece))
        return bytes(out)

    def views(self) -> list[bytes]:
        if not self._size:
            return []
        views = list(self._buffers)
        views[0] = views[0][self._skip :]
        return views

    def dump(self) -> list[bytes]:
        out = self.views()
        self._buffers.clear()
        self._skip = 0
        self._size = 0
        return out


class Parser:
    """Reads big-endian integers and byte strings from a list of buffers.

    Reading past the end sets the error flag instead of raising; once the
    flag is set, further reads return zero values and consume nothing.
    """

    def __init__(self, buffers: Iterable[bytes]) -> None:
        if isinstance(buffers, _BytesLike):
            buffers = [buffers]
        self._input = _BufferList(buffers)
        self._error = False

    def has_error(self) -> bool:
        """Whether a read failed or an error was flagged."""
        return self._error

    def set_error(self) -> None:
        """Flag the parse as failed."""
        self._error = True

    def remove_prefix(self, n: int) -> None:
        """Discard up to ``n`` bytes from the front of the input."""
        self._input.remove_prefix(n)

    def _check_size(self, size: int) -> None:
        if size > len(self._input):
            self._error = True

    def integer(self, size: int) -> int:
        """Read an unsigned big-endian integer of ``size`` bytes."""
        if size <= 0:
            raise ValueError("integer size must be positive")
        self._check_size(size)
        if self._error:
            return 0
        return int.from_bytes(self._input.take(size), "big")

    def string(self, length: int) -> bytes:
        """Read exactly ``length`` bytes."""
        if length < 0:
            raise ValueError("length must be non-negative")
        self._check_size(length)
        if self._error:
            return bytes(length)
        return self._input.take(length)

    def all_remaining(self) -> list[bytes]:
        """Consume and return all remaining buffers."""
        return self._input.dump()

    def buffer(self) -> list[bytes]:
        """The remaining buffers, without consuming them."""
        return self._input.views()


class Serializer:
    """Writes big-endian integers and whole buffers into a list of buffers."""

    def __init__(self, initial: bytes = b"") -> None:
        self._output: list[bytes] = []
        self._buffer = bytearray(initial)

    def integer(self, value: int, size: int) -> None:
        """Append ``value`` as a big-endian integer of ``size`` bytes."""
        if size <= 0:
            raise ValueError("integer size must be positive")
        mask = (1 << (8 * size)) - 1
        self._buffer += (value & mask).to_bytes(size, "big")

    def buffer(self, data: bytes | Iterable[bytes]) -> None:
        """Append one buffer, or each buffer of an iterable, as separate pieces."""
        if isinstance(data, _BytesLike):
            self.flush()
            self._output.append(bytes(data))
            return
        for piece in data:
            self.buffer(piece)

    def flush(self) -> None:
        """Move pending integer bytes into the output as one buffer."""
        self._output.append(bytes(self._buffer))
        self._buffer.clear()

    def output(self) -> list[bytes]:
        """Flush and return the buffers written so far."""
        self.flush()
        return list(self._output)


def serialize(obj: Any) -> list[bytes]:
    """Serialize ``obj`` through its ``serialize(serializer)`` method."""
    serializer = Serializer()
    obj.serialize(serializer)
    return serializer.output()


def parse(obj: Any, buffers: Iterable[bytes], *args: Any) -> bool:
    """Parse ``buffers`` into ``obj``; return whether parsing succeeded."""
    parser = Parser(buffers)
    obj.parse(parser, *args)
    return not parser.has_error()