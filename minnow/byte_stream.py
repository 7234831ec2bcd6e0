"""A bounded in-memory byte stream with separate reader and writer views."""

from __future__ import annotations


class ByteStream:
    """A byte pipe holding at most ``capacity`` unread bytes at a time."""

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError("capacity must be non-negative")
        self._capacity = capacity
        self._error = False
        self._closed = False
        self._pushed = 0
        self._popped = 0
        self._buffer = bytearray()
        self._reader = Reader(self)
        self._writer = Writer(self)

    def reader(self) -> Reader:
        """Return the reading side of the stream."""
        return self._reader

    def writer(self) -> Writer:
        """Return the writing side of the stream."""
        return self._writer

    def set_error(self) -> None:
        """Mark the stream as having suffered an error."""
        self._error = True

    def has_error(self) -> bool:
        """Whether the stream has had an error."""
        return self._error


class Writer:
    """The writing side of a :class:`ByteStream`."""

    def __init__(self, stream: ByteStream) -> None:
        self._stream = stream

    def push(self, data: bytes) -> None:
        """Append as much of ``data`` as the available capacity allows."""
        stream = self._stream
        if stream._error or stream._closed:
            return
        available = self.available_capacity()
        if available == 0 or not data:
            return
        chunk = bytes(data[:available])
        stream._buffer += chunk
        stream._pushed += len(chunk)

    def close(self) -> None:
        """Signal that nothing more will be written."""
        self._stream._closed = True

    def is_closed(self) -> bool:
        """Whether the stream has been closed."""
        return self._stream._closed

    def available_capacity(self) -> int:
        """How many bytes can be pushed right now."""
        return self._stream._capacity - len(self._stream._buffer)

    def bytes_pushed(self) -> int:
        """Total number of bytes pushed so far."""
        return self._stream._pushed


class Reader:
    """The reading side of a :class:`ByteStream`."""

    def __init__(self, stream: ByteStream) -> None:
        self._stream = stream

    def peek(self) -> bytes:
        """Return the buffered bytes without removing them."""
        stream = self._stream
        if stream._error or not stream._buffer:
            return b""
        return bytes(stream._buffer)

    def pop(self, length: int) -> None:
        """Remove up to ``length`` bytes from the front of the buffer."""
        stream = self._stream
        if stream._error or length <= 0 or not stream._buffer:
            return
        count = min(length, len(stream._buffer))
        del stream._buffer[:count]
        stream._popped += count

    def is_finished(self) -> bool:
        """Whether the stream is closed and fully drained."""
        return self._stream._closed and not self._stream._buffer

    def bytes_buffered(self) -> int:
        """Number of bytes pushed but not yet popped."""
        return len(self._stream._buffer)

    def bytes_popped(self) -> int:
        """Total number of bytes popped so far."""
        return self._stream._popped


def read(reader: Reader, length: int) -> bytes:
    """Peek and pop up to ``length`` bytes from ``reader``."""
    out = bytearray()
    while reader.bytes_buffered() and len(out) < length:
        view = reader.peek()
        if not view:
            raise RuntimeError("Reader.peek() returned empty bytes")
        view = view[: length - len(out)]
        out += view
        reader.pop(len(view))
    return bytes(out)