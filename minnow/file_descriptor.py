"""A reference-counted handle to an operating-system file descriptor."""

from __future__ import annotations

import errno
import os
import sys
from collections.abc import Callable, Iterable
from typing import TypeVar

from .errors import UnixError

T = TypeVar("T")

_BytesLike = (bytes, bytearray, memoryview)
_RETRYABLE = (errno.EAGAIN, errno.EINPROGRESS)


class _FDWrapper:
    """The shared state behind one kernel file descriptor."""

    def __init__(self, fd: int) -> None:
        self.closed = True
        if fd < 0:
            raise RuntimeError(f"invalid fd number:{fd}")
        self.fd = fd
        self.eof = False
        self.read_count = 0
        self.write_count = 0
        try:
            self.non_blocking = not os.get_blocking(fd)
        except OSError as exc:
            raise UnixError("fcntl", exc.errno or 0) from exc
        self.closed = False

    def check(self, attempt: str, func: Callable[..., T], *args: object) -> T | int:
        try:
            return func(*args)
        except OSError as exc:
            if self.non_blocking and exc.errno in _RETRYABLE:
                return 0
            raise UnixError(attempt, exc.errno or 0) from exc

    def close(self) -> None:
        try:
            os.close(self.fd)
        except OSError as exc:
            raise UnixError("close", exc.errno or 0) from exc
        self.eof = self.closed = True

    def __del__(self) -> None:
        if getattr(self, "closed", True):
            return
        try:
            self.close()
        except Exception as exc:  # never raise from a finalizer
            print(f"Exception destructing FDWrapper: {exc}", file=sys.stderr)


class FileDescriptor:
    """A handle on a file descriptor, closed when its last handle goes away.

    Copies made with :meth:`duplicate` share the descriptor and its state.
    """

    READ_BUFFER_SIZE = 16384

    def __init__(self, fd: int) -> None:
        self._internal = _FDWrapper(fd)

    @classmethod
    def _from_wrapper(cls, wrapper: _FDWrapper) -> FileDescriptor:
        handle = cls.__new__(cls)
        handle._internal = wrapper
        return handle

    def __enter__(self) -> FileDescriptor:
        return self

    def __exit__(self, *exc_info: object) -> None:
        if not self.closed():
            self.close()

    def _check(self, attempt: str, func: Callable[..., T], *args: object) -> T | int:
        return self._internal.check(attempt, func, *args)

    def _set_eof(self) -> None:
        self._internal.eof = True

    def _register_read(self) -> None:
        self._internal.read_count += 1

    def _register_write(self) -> None:
        self._internal.write_count += 1

    def read(self, limit: int | None = None) -> bytes:
        """Read up to ``limit`` bytes (a default-sized chunk if not given).

        On a non-blocking descriptor with nothing to read, returns empty
        bytes without counting a read; an empty result after a counted read
        means end of file.
        """
        size = limit if limit else self.READ_BUFFER_SIZE
        try:
            data = os.read(self.fd_num(), size)
        except OSError as exc:
            if self._internal.non_blocking and exc.errno in _RETRYABLE:
                return b""
            raise UnixError("read", exc.errno or 0) from exc

        self._register_read()
        if not data:
            self._set_eof()
        if len(data) > size:
            raise RuntimeError("read() read more than requested")
        return data

    def write(self, data: bytes | Iterable[bytes]) -> int:
        """Write a buffer, or a sequence of buffers; return the bytes written."""
        if isinstance(data, _BytesLike):
            buffers = [bytes(data)]
        else:
            buffers = [bytes(piece) for piece in data]
        total = sum(len(buf) for buf in buffers)

        written = self._check("writev", os.writev, self.fd_num(), buffers)
        self._register_write()

        if written == 0 and total != 0:
            raise RuntimeError("write returned 0 given non-empty input buffer")
        if written > total:
            raise RuntimeError("write wrote more than length of input buffer")
        return written

    def close(self) -> None:
        """Close the underlying descriptor (for every handle that shares it)."""
        self._internal.close()

    def duplicate(self) -> FileDescriptor:
        """Return another handle sharing this descriptor."""
        return self._from_wrapper(self._internal)

    def set_blocking(self, blocking: bool) -> None:
        """Make the descriptor blocking or non-blocking."""
        self._check("fcntl", os.set_blocking, self.fd_num(), blocking)
        self._internal.non_blocking = not blocking

    def fd_num(self) -> int:
        """The underlying descriptor number."""
        return self._internal.fd

    def eof(self) -> bool:
        """Whether end of file has been reached."""
        return self._internal.eof

    def closed(self) -> bool:
        """Whether the descriptor has been closed."""
        return self._internal.closed

    def read_count(self) -> int:
        """How many reads have been performed."""
        return self._internal.read_count

    def write_count(self) -> int:
        """How many writes have been performed."""
        return self._internal.write_count