"""Shared fixtures for unit tests."""

import io
import sys
from collections.abc import Generator
from pathlib import Path

import pytest

from logcapture.context import OutputContext


@pytest.fixture
def output() -> io.StringIO:
    """Stand-in for the process stdout."""
    return io.StringIO()


@pytest.fixture
def context(tmp_path: Path, output: io.StringIO) -> OutputContext:
    """Output context writing to an in-memory stream."""
    return OutputContext(stdout=output, stderr=io.StringIO(), temp_dir=tmp_path)


@pytest.fixture
def routed_context(
    context: OutputContext, monkeypatch: pytest.MonkeyPatch
) -> Generator[OutputContext]:
    """Output context with routing streams installed on ``sys``."""
    monkeypatch.setattr(sys, "stdout", context.stdout)
    monkeypatch.setattr(sys, "stderr", context.stderr)
    context.install()
    yield context
    context.uninstall()
