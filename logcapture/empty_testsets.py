"""Detection of test groups that contain no tests."""

import logging

from logcapture.models.item import TestItem
from logcapture.models.result import TestGroup
from logcapture.report import file_info

log = logging.getLogger(__name__)


def find_empty_testsets(group: TestGroup) -> list[str]:
    """Return descriptions of groups without results, in pre-order.

    A group only counts as empty when it has no child nodes and no passes; a
    group holding nothing but empty groups is not itself empty.
    """
    empty: list[str] = []
    _collect_empty_testsets(empty, group)
    return empty


def _collect_empty_testsets(empty: list[str], group: TestGroup) -> None:
    if not group.results and group.n_passed == 0:
        empty.append(group.description)
        return
    for node in group.results:
        if isinstance(node, TestGroup):
            _collect_empty_testsets(empty, node)


def report_empty_testsets(item: TestItem, group: TestGroup) -> None:
    """Warn once about every empty group found in ``group``."""
    empty = find_empty_testsets(group)
    if not empty:
        return
    log.warning(
        "Test item %r at %s contains test sets without tests:\n%s",
        item.name,
        file_info(item),
        "\n".join(repr(description) for description in empty),
    )
