"""Errors raised for failed system operations, tagged with what was attempted."""

from __future__ import annotations

import os
from typing import TypeVar

T = TypeVar("T")


class TaggedError(OSError):
    """An OSError whose message names the operation that was attempted."""

    def __init__(self, attempt: str, error_code: int, message: str | None = None) -> None:
        if message is None:
            message = os.strerror(error_code)
        super().__init__(error_code, message)
        self.attempt = attempt
        self.error_code = error_code

    def __str__(self) -> str:
        return f"{self.attempt}: {self.strerror}"


class UnixError(TaggedError):
    """A failed system call, described by its errno value."""

    def __init__(self, attempt: str, errno_value: int) -> None:
        super().__init__(attempt, errno_value)


def check_system_call(attempt: str, return_value: int) -> int:
    """Return ``return_value`` if it is non-negative; otherwise raise.

    A negative return value is taken to be the negated errno of the failure.
    """
    if return_value >= 0:
        return return_value
    raise UnixError(attempt, -return_value)


def notnull(context: str, value: T | None) -> T:
    """Return ``value``, raising RuntimeError if it is None."""
    if value is None:
        raise RuntimeError(f"{context}: returned null pointer")
    return value