"""ANSI styling for text written into reports."""

import io
from dataclasses import dataclass, field
from typing import TextIO


class Color:
    """ANSI escape codes used in reports."""

    BOLD = "\033[1m"
    CYAN = "\033[36m"
    RESET = "\033[0m"


INFO_COLOR = Color.CYAN


def stream_color(stream: TextIO) -> bool:
    """Return whether styled output should be written to ``stream``."""
    color = getattr(stream, "color", None)
    if color is not None:
        return bool(color)
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


@dataclass(kw_only=True)
class StyledBuffer:
    """In-memory byte buffer that knows whether to emit ANSI styles."""

    color: bool = False
    raw: io.BytesIO = field(default_factory=io.BytesIO)

    def write(self, text: str) -> None:
        self.raw.write(text.encode("utf-8"))

    def styled(self, text: str, *, bold: bool = False, fg: str | None = None) -> None:
        """Write ``text`` wrapped in the requested styles when colour is on."""
        if not self.color or not (bold or fg):
            self.write(text)
            return
        prefix = (Color.BOLD if bold else "") + (fg or "")
        self.write(f"{prefix}{text}{Color.RESET}")

    def getvalue(self) -> bytes:
        return self.raw.getvalue()
