"""Tests for pclint_report/sink.py and pclint_report/models.py"""

from pclint_report.models import ReportIssue, ReportLocation
from pclint_report.sink import UniqueIssueSink


def _issue(rule="534", file="a.c", line="10", msg="Ignoring return value") -> ReportIssue:
    return ReportIssue.create(rule, file, line, msg)


# ---------------------------------------------------------------------------
# ReportIssue
# ---------------------------------------------------------------------------

def test_create_with_file_has_primary_location():
    issue = _issue()
    assert issue.primary_location == ReportLocation("a.c", 10, "Ignoring return value")
    assert issue.file == "a.c"
    assert issue.line == 10


def test_create_without_file_is_project_level():
    issue = _issue(file="", line="0")
    assert issue.primary_location is None
    assert issue.file is None
    assert issue.line is None


def test_to_dict():
    issue = _issue()
    issue.add_flow_element("a.c", 12, "note")
    assert issue.to_dict() == {
        "rule_id": "534",
        "message": "Ignoring return value",
        "file": "a.c",
        "line": 10,
        "secondary_locations": [{"file": "a.c", "line": 12, "message": "note"}],
    }


def test_str_mentions_rule_and_location():
    assert str(_issue()) == "[534] a.c:10 Ignoring return value"
    assert str(_issue(file="", line="")) == "[534] <project> Ignoring return value"


# ---------------------------------------------------------------------------
# UniqueIssueSink
# ---------------------------------------------------------------------------

def test_sink_keeps_arrival_order():
    sink = UniqueIssueSink()
    sink(_issue(rule="1"))
    sink(_issue(rule="2"))
    assert [i.rule_id for i in sink.issues] == ["1", "2"]
    assert len(sink) == 2


def test_sink_drops_identical_issue():
    sink = UniqueIssueSink()
    sink(_issue())
    sink(_issue())
    assert len(sink) == 1
    assert sink.duplicates == 1


def test_sink_keeps_issues_differing_only_in_flow():
    first = _issue()
    second = _issue()
    second.add_flow_element("a.c", 3, "note")
    sink = UniqueIssueSink()
    sink(first)
    sink(second)
    assert len(sink) == 2
    assert sink.duplicates == 0
