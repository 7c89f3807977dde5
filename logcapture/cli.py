"""CLI entry point printing reports for test runs relayed by workers."""

import argparse
import json
import logging
import sys
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from logcapture.config import LOG_DISPLAY_MODES, CaptureConfig, LogDisplayMode
from logcapture.context import OutputContext
from logcapture.empty_testsets import report_empty_testsets
from logcapture.models.item import ResultsFile, TestItem
from logcapture.paths import logpath
from logcapture.report import log_finished, print_errors_and_captured_logs
from logcapture.store import has_item_logs

DEFAULT_TEMP_DIR = Path(tempfile.gettempdir()) / "logcapture"


def item_failed(item: TestItem) -> bool:
    return bool(item.testsets) and item.testsets[-1].anynonpass


def log_results_summary(log: logging.Logger, items: Sequence[TestItem]) -> None:
    """Log how many of the reported items passed and failed."""
    failed = [item for item in items if item_failed(item)]
    log.info("=" * 80)
    log.info(
        "Reported %d test item(s): %d passed, %d failed",
        len(items),
        len(items) - len(failed),
        len(failed),
    )
    for item in failed:
        log.info("  Failed: %s (%d run(s))", item.name, len(item.testsets))


def print_item_report(
    context: OutputContext,
    item: TestItem,
    logs: LogDisplayMode,
    ntestitems: int = 0,
) -> None:
    """Print the finished banner and report for the latest run of ``item``."""
    log = logging.getLogger("logcapture")
    if not item.testsets or not item.stats:
        log.warning("Test item %r has no recorded runs", item.name)
        return
    run_number = len(item.testsets)
    log_finished(context, item, ntestitems)
    print_errors_and_captured_logs(context, item, run_number, logs=logs)
    report_empty_testsets(item, item.testsets[-1])


def format_output(context: OutputContext, items: Sequence[TestItem]) -> dict[str, Any]:
    """Format item outcomes and surviving log files for JSON output."""
    results: list[dict[str, Any]] = []
    for item in items:
        run_number = len(item.testsets)
        has_logs = run_number > 0 and has_item_logs(context, item, run_number)
        results.append(
            {
                "id": item.id,
                "name": item.name,
                "runs": run_number,
                "status": "failure" if item_failed(item) else "success",
                "logfile": (
                    str(logpath(context, item, run_number)) if has_logs else None
                ),
            }
        )
    return {
        "total": len(results),
        "passed": sum(1 for r in results if r["status"] == "success"),
        "failed": sum(1 for r in results if r["status"] == "failure"),
        "results": results,
    }


def run(
    context: OutputContext,
    results_path: Path,
    logs: LogDisplayMode,
    output_path: Path | None = None,
) -> int:
    """Print reports for every item in ``results_path`` and return exit code."""
    log = logging.getLogger("logcapture")

    log.info("Loading results from %s", results_path)
    results = ResultsFile.model_validate_json(results_path.read_text())
    items = results.items

    log.info("Printing reports for %d test item(s) (logs=%s)", len(items), logs)
    for item in items:
        try:
            print_item_report(context, item, logs, len(items))
        except OSError:
            log.exception("Failed to print report for test item %r", item.name)

    log_results_summary(log, items)

    if output_path is not None:
        output_path.write_text(json.dumps(format_output(context, items), indent=2))

    return 1 if any(item_failed(item) for item in items) else 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Print captured logs and failures of finished test runs"
    )
    parser.add_argument(
        "--results",
        type=Path,
        required=True,
        help="JSON file with the test items and their recorded runs",
    )
    parser.add_argument(
        "--temp-dir",
        type=Path,
        default=None,
        help=f"Directory holding captured log files (default: {DEFAULT_TEMP_DIR})",
    )
    parser.add_argument(
        "--logs",
        choices=LOG_DISPLAY_MODES,
        default=None,
        help="When to print captured logs (default depends on the session)",
    )
    parser.add_argument(
        "--nworkers",
        type=int,
        default=0,
        help="Number of workers the runs were spread over",
    )
    parser.add_argument(
        "--report",
        action="store_true",
        help="Whether a test report is being generated",
    )
    parser.add_argument(
        "--color",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Force ANSI styles on or off",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write a JSON summary with surviving log files to this path",
    )

    args = parser.parse_args()
    config = CaptureConfig(
        temp_dir=args.temp_dir,
        logs=args.logs,
        color=args.color,
        nworkers=args.nworkers,
        report=args.report,
    )

    # Capture stdio before logging binds handlers to it.
    context = OutputContext.capture(
        config.temp_dir or DEFAULT_TEMP_DIR, color=config.color
    )
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = run(
        context,
        results_path=args.results,
        logs=config.resolve_logs(),
        output_path=args.output,
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
