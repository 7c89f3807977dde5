"""Run test item bodies with their output captured and reported."""

import asyncio
import logging
import time
import traceback
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO, TypeAlias, TypeVar

from logcapture.config import LogDisplayMode
from logcapture.context import OutputContext
from logcapture.empty_testsets import report_empty_testsets
from logcapture.models.item import RunStats, TestItem, TestSetup
from logcapture.models.result import LeafResult, TestGroup
from logcapture.paths import logpath, setup_logpath
from logcapture.redirect import redirect_logs
from logcapture.report import (
    file_info,
    log_finished,
    log_running,
    print_errors_and_captured_logs,
)

log = logging.getLogger(__name__)

TestBody: TypeAlias = Callable[[], TestGroup]

T = TypeVar("T")


@dataclass(frozen=True, kw_only=True)
class ItemRun:
    """A test item paired with the code evaluating it."""

    item: TestItem
    body: TestBody


@dataclass(frozen=True, kw_only=True)
class TestItemRunner:
    """Evaluates test items, capturing their output into log files."""

    __test__ = False

    context: OutputContext
    logs: LogDisplayMode = "issues"

    def _target(self, path: Path) -> Path | TextIO:
        # eager mode shows output live instead of capturing it
        return self.context.stdout if self.logs == "eager" else path

    def run_setup(self, setup: TestSetup, body: Callable[[], T]) -> T:
        """Evaluate ``setup`` with its output captured into the setup log."""
        target = self._target(setup_logpath(self.context, setup))
        with redirect_logs(self.context, target):
            return body()

    def run_item(
        self, item: TestItem, body: TestBody, ntestitems: int = 0
    ) -> TestItem:
        """Evaluate one run of ``item`` and print its report.

        Returns:
            The item with the new run's results and statistics appended.

        """
        run_number = len(item.testsets) + 1
        log_running(self.context, item, ntestitems)

        target = self._target(logpath(self.context, item, run_number))
        start = time.perf_counter_ns()
        with redirect_logs(self.context, target):
            testset = self._evaluate(item, body)
        stats = RunStats(elapsed=time.perf_counter_ns() - start)

        item = item.with_run(testset, stats)
        log_finished(self.context, item, ntestitems)
        try:
            print_errors_and_captured_logs(
                self.context, item, run_number, logs=self.logs
            )
        except OSError:
            log.exception("Failed to print report for test item %r", item.name)
        report_empty_testsets(item, testset)
        return item

    @staticmethod
    def _evaluate(item: TestItem, body: TestBody) -> TestGroup:
        try:
            return body()
        except Exception as exc:
            traceback.print_exc()
            return TestGroup(
                description=item.name,
                results=[
                    LeafResult(
                        status="error",
                        source=file_info(item),
                        message=f"{type(exc).__name__}: {exc}",
                    )
                ],
            )

    async def run_items(self, runs: Sequence[ItemRun]) -> Sequence[TestItem]:
        """Run all items concurrently, one thread each.

        Returns:
            The items in the order given, updated with their new run. Items
            whose run could not complete are returned unchanged.

        """
        if not runs:
            log.info("No test items to run")
            return []

        log.info("Running %d test item(s)...", len(runs))
        tasks = [
            asyncio.to_thread(self.run_item, run.item, run.body, len(runs))
            for run in runs
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        log.info("Test item execution completed")

        return self._process_results(runs, results)

    def _process_results(
        self,
        runs: Sequence[ItemRun],
        results: Sequence[TestItem | BaseException],
    ) -> Sequence[TestItem]:
        final_items: list[TestItem] = []
        for run, result in zip(runs, results, strict=True):
            if isinstance(result, TestItem):
                final_items.append(result)
            else:
                log.error(
                    "Test item %r could not be run: %s",
                    run.item.name,
                    result,
                    exc_info=result,
                )
                final_items.append(run.item)
        return final_items
