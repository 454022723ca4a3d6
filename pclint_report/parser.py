"""PC-lint XML report parser.

Functions:
    iter_report_issues(elements)        -> Iterator[ReportIssue]
    parse_report(source, sink)          -> int
    resolve_report_paths(patterns, base_dir) -> list[Path]
    import_reports(paths, sink)         -> int

pc-lint writes "supplemental" messages right after the finding they explain.
They are attached to that finding as secondary locations, so a finding is only
handed to the sink once the next finding starts or the report ends.
"""

import logging
import re
from pathlib import Path
from typing import IO, Callable, Iterable, Iterator

from pclint_report.models import ReportIssue
from pclint_report.stream import (
    EmptyReportError,
    RawAttributes,
    StreamCorruptionError,
    iter_issue_elements,
)

log = logging.getLogger(__name__)

IssueSink = Callable[[ReportIssue], None]

# Rule nn.nn -or- Rule nn-nn-nn
MISRA_RULE_PATTERN = re.compile(r"Rule\x20(\d{1,2}\.\d{1,2}|\d{1,2}-\d{1,2}-\d{1,2})(,|\])")

_MISRA_TRIGGERS = ("MISRA 2004", "MISRA 2008", "MISRA C++ 2008", "MISRA C++ Rule")
_MISRA_2012_TRIGGER = "MISRA 2012 Rule"

_LINE_PATTERN = re.compile(r"[+-]?[0-9]+")

PREFIX_DURING_SPECIFIC_WALK_MSG = "during specific walk"
SUPPLEMENTAL_MSG_PATTERN = re.compile(
    PREFIX_DURING_SPECIFIC_WALK_MSG + r"\s+(.+):(\d+):(\d+)\s+.+"
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def iter_report_issues(elements: Iterable[RawAttributes]) -> Iterator[ReportIssue]:
    """Yield closed issues, in report order, from a stream of ``<issue>`` elements.

    A ``StreamCorruptionError`` raised by *elements* stops the pass: it is
    logged and the issue open at that point is still yielded.
    ``EmptyReportError`` propagates to the caller.
    """
    current: ReportIssue | None = None
    try:
        for raw in elements:
            closed, current = _advance(current, raw)
            if closed is not None:
                yield closed
    except StreamCorruptionError as exc:
        log.error("Ignore XML error from PC-lint: %s", exc)

    if current is not None:
        yield current


def parse_report(source: str | Path | IO[bytes], sink: IssueSink) -> int:
    """Parse one report and hand every finding to *sink*. Returns the count.

    Raises:
        EmptyReportError: the report root could not be read
    """
    log.debug("Processing 'PC-Lint' format")
    if isinstance(source, Path):
        source = str(source)

    count = 0
    for issue in iter_report_issues(iter_issue_elements(source)):
        sink(issue)
        count += 1
    return count


def resolve_report_paths(patterns: Iterable[str], base_dir: str | Path = ".") -> list[Path]:
    """Expand report path patterns (``*``, ``**``) relative to *base_dir*.

    Absolute and literal paths are kept as they are. Duplicates are removed.
    """
    base = Path(base_dir)
    found: list[Path] = []

    for pattern in patterns:
        path = Path(pattern)
        if not path.is_absolute():
            path = base / path

        if any(ch in pattern for ch in "*?["):
            anchor = Path(path.anchor) if path.is_absolute() else base
            relative = str(path.relative_to(anchor))
            matches = sorted(p for p in anchor.glob(relative) if p.is_file())
        else:
            matches = [path] if path.is_file() else []

        if not matches:
            log.warning("Report path '%s' matches no file", pattern)
        for match in matches:
            if match not in found:
                found.append(match)

    return found


def import_reports(paths: Iterable[str | Path], sink: IssueSink) -> int:
    """Parse every report in *paths*. Empty reports are skipped with a warning.

    Returns the number of reports that were read.
    """
    processed = 0
    for path in paths:
        log.info("Processing report '%s'", path)
        try:
            count = parse_report(path, sink)
        except EmptyReportError as exc:
            log.warning("The report '%s' seems to be empty, ignored. (%s)", path, exc)
            continue
        log.info("Report '%s': %d issue(s)", path, count)
        processed += 1
    return processed


# ---------------------------------------------------------------------------
# State transitions
# ---------------------------------------------------------------------------

def _advance(
    current: ReportIssue | None,
    raw: RawAttributes,
) -> tuple[ReportIssue | None, ReportIssue | None]:
    """Apply one element to the open issue. Returns ``(closed, open)``."""
    if raw.is_supplemental:
        if current is not None:
            merge_supplemental(current, raw.file, raw.line, raw.desc)
        else:
            log.debug("Supplemental message without a parent issue dropped: %s", raw.desc)
        return None, current

    if not is_input_valid(raw.file, raw.line, raw.number, raw.desc):
        log.warning("PC-lint warning ignored: %s", raw.desc)
        log.debug("File: %s, Line: %s, ID: %s, msg: %s", raw.file, raw.line, raw.number, raw.desc)
        return None, current

    rule_id = remap_rule_id(raw.number, raw.desc)
    return current, ReportIssue.create(rule_id, raw.file, raw.line, raw.desc)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def is_input_valid(file: str, line: str, rule_id: str, message: str) -> bool:
    """Return True when the attributes describe a finding worth reporting.

    With a file the line must be an integer. Without a file the finding is
    project level and the line must be empty or 0.
    """
    if not rule_id or not message:
        return False

    if file:
        return _parse_line(line) is not None

    if not line:
        return True
    return _parse_line(line) == 0


def remap_rule_id(rule_id: str, message: str) -> str:
    """Return the rule key for a finding, remapping MISRA citations.

    Only unique rules for MISRA C 2004, MISRA C/C++ 2008 and MISRA 2012 exist
    in the rule repository, so the generic pc-lint number is replaced.
    """
    if "MISRA" not in message:
        return rule_id
    if any(trigger in message for trigger in _MISRA_TRIGGERS):
        return map_misra_rule(message, misra_2012=False)
    if _MISRA_2012_TRIGGER in message:
        return map_misra_rule(message, misra_2012=True)
    return rule_id


def map_misra_rule(message: str, misra_2012: bool) -> str:
    """Concatenate M with the MISRA rule number found in *message*.

    Returns ``""`` when no rule number is cited.
    """
    match = MISRA_RULE_PATTERN.search(message)
    if match is None:
        return ""

    misra_rule = match.group(1)
    new_key = f"M2012-{misra_rule}" if misra_2012 else f"M{misra_rule}"
    log.debug("Remap MISRA rule %s to key %s", misra_rule, new_key)
    return new_key


def merge_supplemental(issue: ReportIssue, file: str, line: str, message: str) -> ReportIssue:
    """Attach a supplemental message to *issue* as a secondary location."""
    primary = issue.primary_location
    if primary is None:
        log.error("The issue of %s must have the primary location. "
                  "Skip adding more locations", issue)
        return issue

    if not file and message:
        match = SUPPLEMENTAL_MSG_PATTERN.fullmatch(message)
        if match:
            file, line = match.group(1), match.group(2)

    if not file or not line:
        return issue

    line_no = _parse_line(line)
    if line_no is None:
        return issue

    # SonarQube cannot display secondary locations in another file: point at
    # the primary location and keep the real one in the message.
    if file != primary.file:
        if not message.startswith(PREFIX_DURING_SPECIFIC_WALK_MSG):
            message = f"{PREFIX_DURING_SPECIFIC_WALK_MSG} {file}:{line} {message}"
        file, line_no = primary.file, primary.line

    issue.add_flow_element(file, line_no, message)
    return issue


def _parse_line(line: str) -> int | None:
    # int() alone would accept " 10 " and "1_0"
    if _LINE_PATTERN.fullmatch(line) is None:
        log.error("Ignore number error from PC-lint report: invalid line '%s'", line)
        return None
    return int(line)
