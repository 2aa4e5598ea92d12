"""Fail handlers for mocks and options that install them."""

from __future__ import annotations

import re
import traceback
from dataclasses import dataclass
from typing import Any, Callable, Protocol

FailHandler = Callable[..., None]

_IGNORED_FRAMES = re.compile(r"[/\\](?:_pytest|pluggy|unittest)[/\\]")


class TestingT(Protocol):
    """Anything that can record a test failure message."""

    def errorf(self, message: str) -> None: ...


@dataclass(frozen=True)
class Option:
    """A setting applied to a mock when it is created."""

    func: Callable[[Any], None]

    def apply(self, mock: Any) -> None:
        self.func(mock)


def with_fail_handler(fail: FailHandler) -> Option:
    """Return an option that sets the mock's ``fail_handler``."""

    def _set(mock: Any) -> None:
        mock.fail_handler = fail

    return Option(_set)


def prune_stack(full_stack_trace: str, skip: int) -> str:
    """Drop the innermost ``skip + 1`` frames and test-runner frames.

    The trace is a sequence of two-line frame entries, innermost first.
    """
    lines = full_stack_trace.split("\n")
    if len(lines) > 2 * (skip + 1):
        lines = lines[2 * (skip + 1):]
    kept: list[str] = []
    for head, body in zip(lines[0::2], lines[1::2]):
        if not _IGNORED_FRAMES.search(head):
            kept.extend((head, body))
    return "\n".join(kept)


def _current_stack() -> str:
    frames = reversed(traceback.extract_stack()[:-1])
    lines: list[str] = []
    for frame in frames:
        lines.append(f'  File "{frame.filename}", line {frame.lineno}, in {frame.name}')
        lines.append(f"    {frame.line or ''}")
    return "\n".join(lines)


def build_testing_t_fail_handler(t: TestingT) -> FailHandler:
    """Return a fail handler reporting the message and call stack to ``t``."""

    def handler(message: str, caller_skip: int = 1) -> None:
        stack = prune_stack(_current_stack(), caller_skip)
        t.errorf(f"\n{stack}\n{message}")

    return handler


def with_t(t: TestingT) -> Option:
    """Return an option that reports failures to ``t``."""
    return with_fail_handler(build_testing_t_fail_handler(t))