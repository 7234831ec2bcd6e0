"""An event loop that waits on file descriptors and runs rule callbacks."""

from __future__ import annotations

import enum
import errno
import os
import select
import socket
import stat
import sys
import weakref
from collections.abc import Callable
from dataclasses import dataclass, field

from .errors import UnixError
from .file_descriptor import FileDescriptor

Callback = Callable[[], None]
Interest = Callable[[], bool]

MAX_CATEGORIES = 64
_MAX_ITERATIONS = 128


def _always() -> bool:
    return True


def _nothing() -> None:
    return None


class Direction(enum.IntEnum):
    """Whether a rule waits for its descriptor to be readable or writable."""

    IN = select.POLLIN
    OUT = select.POLLOUT


class Result(enum.Enum):
    """The outcome of one call to :meth:`EventLoop.wait_next_event`."""

    SUCCESS = "success"
    TIMEOUT = "timeout"
    EXIT = "exit"


@dataclass(eq=False)
class _BasicRule:
    category_id: int
    interest: Interest
    callback: Callback
    cancel_requested: bool = False


@dataclass(eq=False)
class _FDRule(_BasicRule):
    fd: FileDescriptor = field(default=None)  # type: ignore[assignment]
    direction: Direction = Direction.IN
    cancel: Callback = _nothing
    error: Callback = _nothing

    def service_count(self) -> int:
        if self.direction is Direction.IN:
            return self.fd.read_count()
        return self.fd.write_count()


class RuleHandle:
    """A handle that can cancel a rule while the rule still exists."""

    def __init__(self, rule: _BasicRule) -> None:
        self._rule = weakref.ref(rule)

    def cancel(self) -> None:
        """Ask the loop to drop the rule (no cancel callback is run)."""
        rule = self._rule()
        if rule is not None:
            rule.cancel_requested = True


class EventLoop:
    """Runs callbacks for rules that are interested and whose descriptors are ready."""

    def __init__(self) -> None:
        self._categories: list[str] = []
        self._fd_rules: list[_FDRule] = []
        self._non_fd_rules: list[_BasicRule] = []

    def add_category(self, name: str) -> int:
        """Register a rule category and return its id."""
        if len(self._categories) >= MAX_CATEGORIES:
            raise RuntimeError("maximum categories reached")
        self._categories.append(name)
        return len(self._categories) - 1

    def _category_id(self, category: int | str) -> int:
        if isinstance(category, str):
            return self.add_category(category)
        if not 0 <= category < len(self._categories):
            raise IndexError("bad category_id")
        return category

    def add_rule(
        self,
        category: int | str,
        callback: Callback,
        interest: Interest | None = None,
    ) -> RuleHandle:
        """Add a rule that runs ``callback`` whenever ``interest()`` is true.

        ``category`` is a category id, or a name for a new category.
        """
        category_id = self._category_id(category)
        rule = _BasicRule(category_id, interest or _always, callback)
        self._non_fd_rules.append(rule)
        return RuleHandle(rule)

    def add_fd_rule(
        self,
        category: int | str,
        fd: FileDescriptor,
        direction: Direction,
        callback: Callback,
        interest: Interest | None = None,
        cancel: Callback | None = None,
        error: Callback | None = None,
    ) -> RuleHandle:
        """Add a rule that runs ``callback`` when ``fd`` is ready in ``direction``.

        ``cancel`` runs when the rule ends on end of file, close or hangup;
        ``error`` runs when the descriptor reports an error.
        """
        category_id = self._category_id(category)
        rule = _FDRule(
            category_id,
            interest or _always,
            callback,
            fd=fd.duplicate(),
            direction=Direction(direction),
            cancel=cancel or _nothing,
            error=error or _nothing,
        )
        self._fd_rules.append(rule)
        return RuleHandle(rule)

    def _name(self, rule: _BasicRule) -> str:
        return self._categories[rule.category_id]

    def _drop(self, rule: _FDRule) -> None:
        if rule in self._fd_rules:
            self._fd_rules.remove(rule)

    def _report_error(self, rule: _FDRule) -> None:
        fd = rule.fd.fd_num()
        try:
            is_socket = stat.S_ISSOCK(os.fstat(fd).st_mode)
        except OSError as exc:
            raise UnixError("getsockopt", exc.errno or 0) from exc
        if not is_socket:
            print(
                f'error on polled file descriptor for rule "{self._name(rule)}"',
                file=sys.stderr,
            )
            return
        sock = socket.socket(fileno=fd)
        try:
            socket_error = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        except OSError as exc:
            if exc.errno == errno.ENOTSOCK:
                print(
                    f'error on polled file descriptor for rule "{self._name(rule)}"',
                    file=sys.stderr,
                )
                return
            raise UnixError("getsockopt", exc.errno or 0) from exc
        finally:
            sock.detach()
        if socket_error:
            print(
                f'error on polled socket for rule "{self._name(rule)}": '
                f"{os.strerror(socket_error)}",
                file=sys.stderr,
            )

    def wait_next_event(self, timeout_ms: int) -> Result:
        """Serve at most one ready rule, waiting up to ``timeout_ms`` (-1: forever)."""
        for rule in list(self._non_fd_rules):
            if rule.cancel_requested:
                self._non_fd_rules.remove(rule)
                continue
            fired = False
            iterations = 0
            while rule.interest():
                if iterations >= _MAX_ITERATIONS:
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{self._name(rule)}" '
                        f"is still interested after {iterations + 1} iterations"
                    )
                iterations += 1
                fired = True
                rule.callback()
            if fired:
                return Result.SUCCESS

        polled: list[tuple[_FDRule, int]] = []
        masks: dict[int, int] = {}
        something_to_poll = False
        for rule in list(self._fd_rules):
            if rule.cancel_requested:
                self._drop(rule)
                continue
            if rule.direction is Direction.IN and rule.fd.eof():
                rule.cancel()
                self._drop(rule)
                continue
            if rule.fd.closed():
                rule.cancel()
                self._drop(rule)
                continue
            events = int(rule.direction) if rule.interest() else 0
            something_to_poll = something_to_poll or bool(events)
            polled.append((rule, events))
            fd = rule.fd.fd_num()
            masks[fd] = masks.get(fd, 0) | events

        if not something_to_poll:
            return Result.EXIT

        poller = select.poll()
        for fd, mask in masks.items():
            poller.register(fd, mask)
        try:
            ready = poller.poll(timeout_ms)
        except OSError as exc:
            raise UnixError("poll", exc.errno or 0) from exc
        if not ready:
            return Result.TIMEOUT

        revents_by_fd: dict[int, int] = {}
        for fd, revents in ready:
            revents_by_fd[fd] = revents_by_fd.get(fd, 0) | revents

        for rule, events in polled:
            revents = revents_by_fd.get(rule.fd.fd_num(), 0)

            if revents & (select.POLLERR | select.POLLNVAL):
                self._report_error(rule)
                rule.error()
                rule.cancel()
                self._drop(rule)
                continue

            poll_ready = bool(revents & events)
            poll_hup = bool(revents & select.POLLHUP)
            if poll_hup and ((events and not poll_ready) or rule.direction is Direction.OUT):
                rule.cancel()
                self._drop(rule)
                continue

            if poll_ready:
                count_before = rule.service_count()
                rule.callback()
                if (
                    count_before == rule.service_count()
                    and not rule.fd.closed()
                    and rule.interest()
                ):
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{self._name(rule)}" '
                        "did not read/write fd and is still interested"
                    )
                return Result.SUCCESS

        return Result.SUCCESS