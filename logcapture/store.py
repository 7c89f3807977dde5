"""Queries, read-back and cleanup of captured log files."""

import logging
import os
import shutil
from pathlib import Path
from typing import BinaryIO

from logcapture.context import OutputContext
from logcapture.models.item import TestItem, TestSetup
from logcapture.paths import logpath, setup_logpath

log = logging.getLogger(__name__)


def has_logs(path: Path) -> bool:
    """Return True if ``path`` is a file holding at least one byte.

    A missing file counts as no logs: a setup that fails before producing any
    output never gets a log file.
    """
    try:
        return path.is_file() and path.stat().st_size > 0
    except FileNotFoundError:
        return False


def has_item_logs(
    context: OutputContext, item: TestItem, run: int | None = None
) -> bool:
    return has_logs(logpath(context, item, run))


def has_setup_logs(context: OutputContext, setup: TestSetup) -> bool:
    return has_logs(setup_logpath(context, setup))


def read_into(path: Path, sink: BinaryIO) -> bool:
    """Copy the raw bytes of ``path`` into ``sink``.

    Returns False when the file no longer exists.
    """
    try:
        with open(path, "rb") as logstore:
            shutil.copyfileobj(logstore, sink)
    except FileNotFoundError:
        log.debug("Log file vanished before it could be read: %s", path)
        return False
    return True


def cleanup(path: Path | str) -> None:
    """Delete a log file if it exists."""
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
