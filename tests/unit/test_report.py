"""Tests for report composition and printing."""

import io
import os
import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from logcapture.context import OutputContext
from logcapture.models.item import RunStats, TestItem
from logcapture.models.result import LeafResult, TestGroup
from logcapture.paths import logpath, setup_logpath
from logcapture.report import (
    file_info,
    log_finished,
    log_running,
    on_worker,
    print_errors_and_captured_logs,
    print_test_errors,
)
from logcapture.styles import StyledBuffer
from logcapture.testing.factories import (
    TestItemFactory,
    TestSetupFactory,
    failing_group,
    passing_group,
)

PID = os.getpid()


def make_item(testset: TestGroup, **kwargs: object) -> TestItem:
    return TestItemFactory.build(
        id="1", name="item", testsets=[testset], stats=[RunStats()], **kwargs
    )


def test_issues_mode_passing_run_without_logs_prints_nothing(
    context: OutputContext, output: io.StringIO
) -> None:
    """Prints nothing for a clean run in issues mode."""
    item = make_item(passing_group())

    assert not print_errors_and_captured_logs(context, item, 1, logs="issues")
    assert output.getvalue() == ""


def test_issues_mode_passing_run_with_logs_prints_nothing(
    context: OutputContext, output: io.StringIO
) -> None:
    """Logs of passing runs are not shown in issues mode and are deleted."""
    item = make_item(passing_group())
    path = logpath(context, item, 1)
    path.write_text("chatter\n")

    assert not print_errors_and_captured_logs(context, item, 1, logs="issues")
    assert output.getvalue() == ""
    assert not path.exists()


def test_batched_mode_prints_for_clean_run(
    context: OutputContext, output: io.StringIO
) -> None:
    """Prints the bounded no-logs notice in batched mode."""
    item = make_item(passing_group())

    assert print_errors_and_captured_logs(context, item, 1, logs="batched")
    assert output.getvalue() == (
        "\n"
        f"No Captured Logs for test item 'item' at test/item_tests.py:10"
        f" on worker {PID}\n"
        "\n"
    )


def test_batched_mode_prints_logs_of_passing_run(
    context: OutputContext, output: io.StringIO
) -> None:
    """Includes captured logs for passing runs in batched mode."""
    item = make_item(passing_group())
    logpath(context, item, 1).write_text("hello\n")

    print_errors_and_captured_logs(context, item, 1, logs="batched")

    assert output.getvalue() == (
        "\n"
        f"Captured Logs for test item 'item' at test/item_tests.py:10"
        f" on worker {PID}\n"
        "hello\n"
        "\n"
    )


def test_failing_run_prints_logs_and_errors(
    context: OutputContext, output: io.StringIO
) -> None:
    """Prints captured logs followed by every failure."""
    item = make_item(failing_group(), worker_id=3)
    logpath(context, item, 1).write_text("debug output\n")

    assert print_errors_and_captured_logs(context, item, 1, logs="issues")
    assert output.getvalue() == (
        "\n"
        "Captured Logs for test item 'item' at test/item_tests.py:10 on worker 3\n"
        "debug output\n"
        "Error in testset 'failing' on worker 3:\n"
        "Test Failed at test/item_tests.py:12\n"
        "  Expression: 1 == 2\n"
        "  Evaluated: 1 == 2\n"
        "\n"
        "\n"
    )


def test_eager_mode_omits_logs(context: OutputContext, output: io.StringIO) -> None:
    """Logs were shown live in eager mode, so only errors are printed."""
    item = make_item(failing_group(), worker_id=3)
    logpath(context, item, 1).write_text("already shown\n")

    print_errors_and_captured_logs(context, item, 1, logs="eager")

    text = output.getvalue()
    assert "already shown" not in text
    assert "Captured Logs" not in text
    assert text.startswith("\nError in testset 'failing' on worker 3:\n")


def test_eager_mode_passing_run_prints_nothing(
    context: OutputContext, output: io.StringIO
) -> None:
    """Eager mode never prints a report for a clean run."""
    item = make_item(passing_group())

    assert not print_errors_and_captured_logs(context, item, 1, logs="eager")
    assert output.getvalue() == ""


def test_setup_logs_precede_item_logs(
    context: OutputContext, output: io.StringIO
) -> None:
    """Prints logs of each setup with logs, attributed to the item."""
    quiet = TestSetupFactory.build(name="quiet", line=1)
    noisy = TestSetupFactory.build(name="noisy", line=5)
    item = make_item(failing_group(), testsetups=[quiet, noisy], worker_id=2)
    setup_logpath(context, noisy).write_text("connecting\n")

    print_errors_and_captured_logs(context, item, 1, logs="issues")

    text = output.getvalue()
    assert "quiet" not in text
    header = (
        "Captured logs for test setup 'noisy' (dependency of 'item')"
        " at test/setups.py:5 on worker 2\nconnecting\n"
    )
    assert text.startswith("\n" + header + "No Captured Logs for test item 'item'")


def test_setup_logs_of_passing_run_in_batched_mode(
    context: OutputContext, output: io.StringIO
) -> None:
    """Prints setup logs for a passing run in batched mode."""
    setup = TestSetupFactory.build(name="noisy")
    item = make_item(passing_group(), testsetups=[setup])
    setup_logpath(context, setup).write_text("connecting\n")

    assert print_errors_and_captured_logs(context, item, 1, logs="batched")
    assert "connecting\n" in output.getvalue()


def test_keeps_log_file_of_failing_run(context: OutputContext) -> None:
    """Failed runs keep their log file for the test report."""
    item = make_item(failing_group())
    path = logpath(context, item, 1)
    path.write_text("evidence\n")

    print_errors_and_captured_logs(context, item, 1, logs="issues")

    assert path.exists()


def test_deletes_log_file_of_passing_run(context: OutputContext) -> None:
    """Passing runs have their log file removed."""
    item = make_item(passing_group())
    path = logpath(context, item, 1)
    path.write_text("noise\n")

    print_errors_and_captured_logs(context, item, 1, logs="batched")

    assert not path.exists()


def test_reports_requested_run(context: OutputContext, output: io.StringIO) -> None:
    """Uses the result tree and log file of the given run."""
    item = TestItemFactory.build(
        id="1",
        name="item",
        testsets=[failing_group("first"), passing_group()],
        stats=[RunStats(), RunStats()],
    )
    logpath(context, item, 1).write_text("run one\n")
    logpath(context, item, 2).write_text("run two\n")

    print_errors_and_captured_logs(context, item, 1, logs="issues")

    text = output.getvalue()
    assert "run one" in text
    assert "run two" not in text
    assert "Error in testset 'first'" in text


class RecordingStream(io.StringIO):
    """StringIO remembering every individual write."""

    def __init__(self) -> None:
        super().__init__()
        self.writes: list[str] = []

    def write(self, text: str) -> int:
        self.writes.append(text)
        return super().write(text)


def test_concurrent_reports_do_not_interleave(tmp_path: Path) -> None:
    """Each report reaches the shared output as one contiguous block."""
    stream = RecordingStream()
    context = OutputContext(stdout=stream, stderr=io.StringIO(), temp_dir=tmp_path)
    items = [
        TestItemFactory.build(
            id=str(i),
            name=f"item-{i:02d}",
            testsets=[failing_group()],
            stats=[RunStats()],
        )
        for i in range(20)
    ]
    for item in items:
        logpath(context, item, 1).write_text(f"line from {item.name}\n" * 200)

    with ThreadPoolExecutor(max_workers=8) as pool:
        flushed = list(
            pool.map(
                lambda item: print_errors_and_captured_logs(
                    context, item, 1, logs="issues"
                ),
                items,
            )
        )

    assert all(flushed)
    assert len(stream.writes) == len(items)
    for write in stream.writes:
        assert len(set(re.findall(r"item-\d\d", write))) == 1


def test_print_test_errors_walks_nested_groups() -> None:
    """Renders failures depth first, skipping passes."""
    tree = TestGroup(
        description="outer",
        results=[
            LeafResult(status="error", message="KeyError: 'x'"),
            TestGroup(
                description="inner",
                results=[
                    LeafResult(status="pass"),
                    LeafResult(status="fail", expression="a < b"),
                ],
                n_passed=1,
            ),
            TestGroup(description="clean", results=[LeafResult(status="pass")]),
        ],
    )
    report = StyledBuffer()

    print_test_errors(report, tree, " on worker 1")

    assert report.getvalue().decode() == (
        "Error in testset 'outer' on worker 1:\n"
        "Error During Test\n"
        "  Test threw exception\n"
        "  KeyError: 'x'\n"
        "\n"
        "Error in testset 'inner' on worker 1:\n"
        "Test Failed\n"
        "  Expression: a < b\n"
        "\n"
    )


def test_colored_report_uses_ansi_styles(tmp_path: Path) -> None:
    """Headers are bold and coloured when colour is enabled."""
    output = io.StringIO()
    context = OutputContext(
        stdout=output, stderr=io.StringIO(), temp_dir=tmp_path, color=True
    )
    item = make_item(passing_group())

    print_errors_and_captured_logs(context, item, 1, logs="batched")

    assert "\033[1m\033[36mNo Captured Logs\033[0m" in output.getvalue()


def test_on_worker() -> None:
    """Uses the process id unless the item ran on an assigned worker."""
    assert on_worker() == f" on worker {PID}"
    assert on_worker(TestItemFactory.build(worker_id=None)) == f" on worker {PID}"
    assert on_worker(TestItemFactory.build(worker_id=4)) == " on worker 4"


def test_file_info_is_relative_to_project_root() -> None:
    """Reports the source location relative to the project root."""
    item = TestItemFactory.build(file="/repo/test/a/b_tests.py", project_root="/repo")

    assert file_info(item) == f"{os.path.join('test', 'a', 'b_tests.py')}:10"


def test_log_running(context: OutputContext, output: io.StringIO) -> None:
    """Prints a timestamped banner with a padded progress counter."""
    item = TestItemFactory.build(name="item", eval_number=7)

    log_running(context, item, ntestitems=12)

    assert re.fullmatch(
        r"\d\d:\d\d:\d\d RUNNING  \( 7/12\) test item 'item'"
        r" at test/item_tests.py:10\n",
        output.getvalue(),
    )


def test_log_running_without_progress(
    context: OutputContext, output: io.StringIO
) -> None:
    """Omits the progress counter when the total is unknown."""
    log_running(context, TestItemFactory.build(name="item"))

    assert re.fullmatch(
        r"\d\d:\d\d:\d\d RUNNING  test item 'item' at test/item_tests.py:10\n",
        output.getvalue(),
    )


@pytest.mark.parametrize(
    ("stats", "timing"),
    [
        (RunStats(elapsed=1_500_000_000), "1.500000 seconds"),
        (
            RunStats(elapsed=2_000_000_000, nbytes=2048, allocs=1),
            r"2.000000 seconds \(1 allocation: 2.000 KiB\)",
        ),
    ],
)
def test_log_finished(
    context: OutputContext, output: io.StringIO, stats: RunStats, timing: str
) -> None:
    """Prints a timestamped banner with the latest run's timing."""
    item = TestItemFactory.build(
        name="item", eval_number=1, stats=[RunStats(elapsed=1), stats]
    )

    log_finished(context, item, ntestitems=3)

    assert re.fullmatch(
        rf"\d\d:\d\d:\d\d FINISHED \(1/3\) test item 'item' {timing}\n",
        output.getvalue(),
    )
