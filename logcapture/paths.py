"""Deterministic log file locations for test items and setups."""

import hashlib
import re
from pathlib import Path

from logcapture.context import OutputContext
from logcapture.models.item import TestItem, TestSetup

LOGFILE_PREFIX = "logcapture"
MAX_NAME_LENGTH = 150

# Characters reserved in file names on common platforms, plus whitespace.
_UNSAFE_CHARS = re.compile(r"[/\\?%*:|\"<>.,;=\s$#@]")


def safe_name(name: str) -> str:
    """Replace characters that are not safe in file names with underscores."""
    return _UNSAFE_CHARS.sub("_", name)


def location_hash(file: str, line: int) -> str:
    """Return a hash of a source location that is stable across processes."""
    return hashlib.blake2b(f"{file}:{line}".encode(), digest_size=8).hexdigest()


def logfile_name(item: TestItem, run: int | None = None) -> str:
    """Return the log file name for a run of ``item``.

    The item id keeps names unique when two display names sanitize to the same
    text. Each run gets its own file; ``run`` defaults to the next run.
    """
    if run is None:
        run = len(item.testsets) + 1
    name = safe_name(item.name)[:MAX_NAME_LENGTH]
    return f"{LOGFILE_PREFIX}_test_{name}_{item.id}_{run}.log"


def setup_logfile_name(setup: TestSetup) -> str:
    """Return the log file name for ``setup``, one per process."""
    name = safe_name(setup.name)[:MAX_NAME_LENGTH]
    digest = location_hash(setup.file, setup.line)
    return f"{LOGFILE_PREFIX}_setup_{name}_{digest}.log"


def logpath(context: OutputContext, item: TestItem, run: int | None = None) -> Path:
    return context.temp_dir / logfile_name(item, run)


def setup_logpath(context: OutputContext, setup: TestSetup) -> Path:
    return context.temp_dir / setup_logfile_name(setup)
