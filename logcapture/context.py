"""Process-wide output context.

The original ``sys.stdout``/``sys.stderr`` are captured once, before any
redirection happens, and every report is written to them through a single
lock. Redirection itself is scoped per thread or asyncio task: the streams
installed on ``sys`` route each write to the sink active in the current
execution context, falling back to the original stream.
"""

import logging
import sys
import threading
from contextvars import ContextVar
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Self, TextIO

from logcapture.styles import stream_color

log = logging.getLogger(__name__)

active_sink: ContextVar[TextIO | None] = ContextVar("active_sink", default=None)


class RoutedStream:
    """Stream that forwards to the sink active in the current context."""

    def __init__(self, default: TextIO) -> None:
        self.default = default

    @property
    def target(self) -> TextIO:
        return active_sink.get() or self.default

    def write(self, text: str) -> int:
        return self.target.write(text)

    def flush(self) -> None:
        self.target.flush()

    def isatty(self) -> bool:
        return self.target.isatty()

    def __getattr__(self, name: str) -> Any:
        return getattr(self.target, name)


def _unwrap(stream: TextIO) -> TextIO:
    return stream.default if isinstance(stream, RoutedStream) else stream


@dataclass(frozen=True, kw_only=True)
class OutputContext:
    """Original output streams, the output lock and the log directory."""

    stdout: TextIO
    stderr: TextIO
    temp_dir: Path
    color: bool = False
    lock: threading.RLock = field(
        default_factory=threading.RLock, repr=False, compare=False
    )

    @classmethod
    def capture(cls, temp_dir: Path, *, color: bool | None = None) -> Self:
        """Capture the current stdio and install routing streams on ``sys``.

        Calling this again after routing is installed captures the same
        original streams.
        """
        stdout = _unwrap(sys.stdout)
        stderr = _unwrap(sys.stderr)
        context = cls(
            stdout=stdout,
            stderr=stderr,
            temp_dir=Path(temp_dir),
            color=stream_color(stdout) if color is None else color,
        )
        context.install()
        return context

    def install(self) -> None:
        """Route ``sys.stdout``, ``sys.stderr`` and root stream handlers."""
        routed_stdout = RoutedStream(self.stdout)
        routed_stderr = RoutedStream(self.stderr)
        sys.stdout = routed_stdout  # type: ignore[assignment]
        sys.stderr = routed_stderr  # type: ignore[assignment]
        for handler in logging.getLogger().handlers:
            if not isinstance(handler, logging.StreamHandler):
                continue
            if handler.stream is self.stdout:
                handler.setStream(routed_stdout)
            elif handler.stream is self.stderr:
                handler.setStream(routed_stderr)
        log.debug("Output routing installed (temp_dir=%s)", self.temp_dir)

    def uninstall(self) -> None:
        """Put the original streams back on ``sys`` and root stream handlers."""
        for handler in logging.getLogger().handlers:
            if isinstance(handler, logging.StreamHandler) and isinstance(
                handler.stream, RoutedStream
            ):
                handler.setStream(handler.stream.default)
        sys.stdout = self.stdout
        sys.stderr = self.stderr

    def write(self, data: bytes) -> None:
        """Write ``data`` to the original stdout in one locked operation."""
        with self.lock:
            binary = getattr(self.stdout, "buffer", None)
            if binary is not None:
                self.stdout.flush()
                binary.write(data)
                binary.flush()
            else:
                self.stdout.write(data.decode("utf-8", errors="replace"))
                self.stdout.flush()
