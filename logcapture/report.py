"""Composition and printing of per-run reports.

Each report is assembled in a private buffer and written to the shared output
in one locked operation, so reports from concurrent runs never interleave.
"""

import logging
import os
from datetime import datetime

from logcapture.config import LogDisplayMode
from logcapture.context import OutputContext
from logcapture.models.item import TestItem, TestSetup
from logcapture.models.result import LeafResult, TestGroup
from logcapture.paths import logpath, setup_logpath
from logcapture.store import cleanup, has_item_logs, has_setup_logs, read_into
from logcapture.styles import INFO_COLOR, StyledBuffer
from logcapture.timing import format_timing

log = logging.getLogger(__name__)


def on_worker(item: TestItem | None = None) -> str:
    """Return the worker attribution suffix for report headers."""
    if item is None or item.worker_id is None:
        return f" on worker {os.getpid()}"
    return f" on worker {item.worker_id}"


def file_info(entity: TestItem | TestSetup) -> str:
    return f"{os.path.relpath(entity.file, entity.project_root)}:{entity.line}"


def print_errors_and_captured_logs(
    context: OutputContext,
    item: TestItem,
    run_number: int,
    *,
    logs: LogDisplayMode = "batched",
) -> bool:
    """Print the failures and captured logs of one run of ``item``.

    In ``eager`` mode logs were already shown while they were captured, so only
    errors are printed. ``issues`` prints logs only for runs with failures or
    errors; ``batched`` prints them for every run.

    The run's log file is deleted afterwards unless the run failed, in which
    case it is kept for the test report.

    Returns:
        True if a report was written to the shared output.

    """
    testset = item.testsets[run_number - 1]
    has_errors = testset.anynonpass
    has_logs = has_item_logs(context, item, run_number) or any(
        has_setup_logs(context, setup) for setup in item.testsetups
    )
    flushed = False
    if has_errors or logs == "batched":
        report = StyledBuffer(color=context.color)
        report.write("\n")
        if logs != "eager":
            print_captured_logs(context, report, item, run_number)
        if has_errors:
            print_test_errors(report, testset, on_worker(item))
        if has_errors or has_logs or logs == "batched":
            report.write("\n")
            context.write(report.getvalue())
            flushed = True
    if has_errors:
        log.debug("Keeping log file of failed run %d of %r", run_number, item.name)
    else:
        cleanup(logpath(context, item, run_number))
    return flushed


def print_setup_logs(
    context: OutputContext,
    report: StyledBuffer,
    setup: TestSetup,
    item: TestItem | None = None,
) -> None:
    """Write the captured logs of ``setup``, if any, into ``report``."""
    path = setup_logpath(context, setup)
    if not has_setup_logs(context, setup):
        return
    dependency = "" if item is None else f" (dependency of {item.name!r})"
    report.styled("Captured logs", bold=True, fg=INFO_COLOR)
    report.write(f" for test setup {setup.name!r}{dependency} at ")
    report.styled(file_info(setup), bold=True)
    report.write(f"{on_worker(item)}\n")
    read_into(path, report.raw)


def print_captured_logs(
    context: OutputContext, report: StyledBuffer, item: TestItem, run_number: int
) -> None:
    """Write setup logs and the item's own logs into ``report``.

    Always writes a header for the item, saying there were no captured logs
    when that is the case.
    """
    for setup in item.testsetups:
        print_setup_logs(context, report, setup, item)
    path = logpath(context, item, run_number)
    has_logs = has_item_logs(context, item, run_number)
    report.styled(
        "Captured Logs" if has_logs else "No Captured Logs", bold=True, fg=INFO_COLOR
    )
    report.write(f" for test item {item.name!r} at ")
    report.styled(file_info(item), bold=True)
    report.write(f"{on_worker(item)}\n")
    if has_logs:
        read_into(path, report.raw)


def print_test_errors(
    report: StyledBuffer, testset: TestGroup, worker_info: str
) -> None:
    """Write every failed or errored result below ``testset`` into ``report``."""
    for node in testset.results:
        match node:
            case LeafResult() if node.failed:
                report.write(
                    f"Error in testset {testset.description!r}{worker_info}:\n"
                )
                report.write(f"{node.render()}\n\n")
            case TestGroup():
                print_test_errors(report, node, worker_info)


def _progress(item: TestItem, ntestitems: int) -> str:
    if ntestitems <= 0:
        return ""
    width = len(str(ntestitems))
    return f" ({item.eval_number:>{width}}/{ntestitems})"


def log_running(context: OutputContext, item: TestItem, ntestitems: int = 0) -> None:
    """Print the banner marking the start of a run of ``item``."""
    banner = StyledBuffer(color=context.color)
    banner.write(datetime.now().strftime("%H:%M:%S "))
    banner.styled("RUNNING ", bold=True)
    banner.write(f"{_progress(item, ntestitems)} test item {item.name!r} at ")
    banner.styled(file_info(item), bold=True)
    banner.write("\n")
    context.write(banner.getvalue())


def log_finished(context: OutputContext, item: TestItem, ntestitems: int = 0) -> None:
    """Print the banner marking the end of the latest run of ``item``."""
    stats = item.stats[-1]
    banner = StyledBuffer(color=context.color)
    banner.write(datetime.now().strftime("%H:%M:%S "))
    banner.styled("FINISHED", bold=True)
    banner.write(f"{_progress(item, ntestitems)} test item {item.name!r} ")
    banner.write(format_timing(**stats.model_dump()))
    banner.write("\n")
    context.write(banner.getvalue())
