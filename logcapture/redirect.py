"""Scoped redirection of stdout, stderr and logging output."""

import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TextIO, TypeAlias

from logcapture.context import OutputContext, RoutedStream, active_sink

RedirectTarget: TypeAlias = str | os.PathLike[str] | TextIO


class RedirectError(Exception):
    """Raised when a redirection conflicts with one already active."""


class ColoredSink:
    """Sink wrapper carrying the colour setting of the shared output."""

    def __init__(self, sink: TextIO, *, color: bool) -> None:
        self.sink = sink
        self.color = color

    def write(self, text: str) -> int:
        return self.sink.write(text)

    def flush(self) -> None:
        self.sink.flush()

    def isatty(self) -> bool:
        return False

    def __getattr__(self, name: str) -> Any:
        return getattr(self.sink, name)


def _same_target(active: TextIO, target: RedirectTarget) -> bool:
    sink = active.sink if isinstance(active, ColoredSink) else active
    if isinstance(target, (str, os.PathLike)):
        name = getattr(sink, "name", None)
        if not isinstance(name, (str, os.PathLike)):
            return False
        return Path(name).resolve() == Path(target).resolve()
    return sink is target


@contextmanager
def redirect_logs(context: OutputContext, target: RedirectTarget) -> Iterator[None]:
    """Send stdout, stderr and logging output to ``target`` while active.

    ``target`` is either a path, opened for writing and closed on exit, or an
    open text sink. Only the current thread or asyncio task is affected.
    Redirecting to the shared output itself, directly or through the routed
    ``sys`` streams, does nothing.
    """
    if isinstance(target, RoutedStream):
        target = target.default
    if target is context.stdout or target is context.stderr:
        yield
        return

    active = active_sink.get()
    if active is not None:
        if _same_target(active, target):
            yield
            return
        raise RedirectError(f"Output is already redirected to {active!r}")

    if isinstance(target, (str, os.PathLike)):
        with open(target, "w", encoding="utf-8") as sink:
            with _redirect_to_sink(context, sink):
                yield
        return

    with _redirect_to_sink(context, target):
        yield


@contextmanager
def _redirect_to_sink(context: OutputContext, sink: TextIO) -> Iterator[None]:
    colored = ColoredSink(sink, color=context.color)
    token = active_sink.set(colored)  # type: ignore[arg-type]
    try:
        yield
    finally:
        active_sink.reset(token)
        sink.flush()
