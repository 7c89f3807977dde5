"""Configuration for log capture and reporting."""

import sys
from pathlib import Path
from typing import Literal, TypeAlias

from pydantic import BaseModel, Field

LogDisplayMode: TypeAlias = Literal["eager", "issues", "batched"]

LOG_DISPLAY_MODES: tuple[LogDisplayMode, ...] = ("eager", "issues", "batched")


def is_interactive() -> bool:
    """Return True when running inside an interactive interpreter."""
    return hasattr(sys, "ps1") or bool(sys.flags.interactive)


def default_log_display_mode(
    report: bool, nworkers: int, interactive: bool | None = None
) -> LogDisplayMode:
    """Pick a display mode when the user did not ask for one.

    Interactive sessions see logs live (``eager``) unless several workers run
    at once or a report is being generated, in which case logs are printed per
    item after it finishes (``batched``). Non-interactive sessions only print
    logs for items with failures or errors (``issues``).
    """
    if nworkers < 0:
        raise ValueError(f"nworkers must be non-negative, got {nworkers}")
    if interactive is None:
        interactive = is_interactive()
    if not interactive:
        return "issues"
    if report or nworkers > 1:
        return "batched"
    return "eager"


class CaptureConfig(BaseModel):
    """Settings for a reporting session."""

    temp_dir: Path | None = Field(
        default=None, description="Directory holding captured log files"
    )
    logs: LogDisplayMode | None = Field(
        default=None, description="Display mode, derived when not set"
    )
    color: bool | None = Field(
        default=None, description="Force ANSI styles on or off"
    )
    nworkers: int = Field(default=0, ge=0, description="Number of workers")
    report: bool = Field(default=False, description="Whether a report is generated")

    def resolve_logs(self, interactive: bool | None = None) -> LogDisplayMode:
        if self.logs is not None:
            return self.logs
        return default_log_display_mode(self.report, self.nworkers, interactive)
