"""Issue sink that keeps each distinct finding once.

Usage:
    sink = UniqueIssueSink()
    parse_report("pclint.xml", sink)
    sink.issues          # findings in arrival order, duplicates removed
"""

import logging

from pclint_report.models import ReportIssue

log = logging.getLogger(__name__)


class UniqueIssueSink:
    """Callable sink collecting issues; an issue equal to a saved one is dropped."""

    def __init__(self) -> None:
        self.issues: list[ReportIssue] = []
        self.duplicates = 0
        self._seen: set[tuple] = set()

    def __call__(self, issue: ReportIssue) -> None:
        key = issue.key()
        if key in self._seen:
            self.duplicates += 1
            log.debug("Duplicate issue skipped: %s", issue)
            return
        self._seen.add(key)
        self.issues.append(issue)

    def __len__(self) -> int:
        return len(self.issues)
