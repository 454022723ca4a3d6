"""Issue report builders.

Functions:
    build_issue_report(issues, reports)                              -> dict
    build_generic_import(issues, engine_id, severity, issue_type)    -> dict
    filter_known_rules(issues, known_keys)                           -> list[ReportIssue]
"""

import logging
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from pclint_report.models import ReportIssue, ReportLocation

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_issue_report(issues: list[ReportIssue], reports: Iterable[str | Path]) -> dict:
    """Return the findings of *reports* with a per-rule summary."""
    return {
        "report_type":  "pclint_issues",
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "reports":      [str(r) for r in reports],
        "summary":      _build_summary(issues),
        "issues":       [issue.to_dict() for issue in issues],
    }


def build_generic_import(
    issues: list[ReportIssue],
    engine_id: str,
    severity: str,
    issue_type: str,
) -> dict:
    """Return the findings in SonarQube's generic external issue format.

    That format requires a file for every issue, so project-level findings
    are left out.
    """
    exported = []
    for issue in issues:
        if issue.primary_location is None:
            log.warning("Project level issue cannot be exported, skipped: %s", issue)
            continue
        entry = {
            "engineId":        engine_id,
            "ruleId":          issue.rule_id,
            "severity":        severity,
            "type":            issue_type,
            "primaryLocation": _generic_location(issue.primary_location, issue.message),
        }
        if issue.secondary_locations:
            entry["secondaryLocations"] = [
                _generic_location(loc, loc.message) for loc in issue.secondary_locations
            ]
        exported.append(entry)
    return {"issues": exported}


def filter_known_rules(issues: list[ReportIssue], known_keys: set[str]) -> list[ReportIssue]:
    """Drop issues whose rule is not in the rule repository."""
    kept: list[ReportIssue] = []
    unknown: set[str] = set()
    for issue in issues:
        if issue.rule_id in known_keys:
            kept.append(issue)
        elif issue.rule_id not in unknown:
            unknown.add(issue.rule_id)
            log.warning("Rule '%s' is unknown to the rule repository, issue(s) ignored",
                        issue.rule_id)
    return kept


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _build_summary(issues: list[ReportIssue]) -> dict:
    by_rule = Counter(issue.rule_id for issue in issues)
    project_level = sum(1 for issue in issues if issue.primary_location is None)
    return {
        "total":         len(issues),
        "with_location": len(issues) - project_level,
        "project_level": project_level,
        "by_rule":       dict(sorted(by_rule.items())),
    }


def _generic_location(location: ReportLocation, message: str) -> dict:
    result: dict = {"message": message, "filePath": location.file}
    # line 0 is a file-level finding: no text range
    if location.line > 0:
        result["textRange"] = {"startLine": location.line}
    return result
