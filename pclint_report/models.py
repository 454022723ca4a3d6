"""Data models for PC-lint findings.

Contains dataclasses used to structure and serialize parsed findings:
    - ReportLocation   (file, line, message)
    - ReportIssue      one normalized finding with its flow elements
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ReportLocation:
    file: str
    line: int
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.file, "line": self.line, "message": self.message}


@dataclass
class ReportIssue:
    """A finding read from a PC-lint report.

    ``primary_location`` is ``None`` for project-level findings (no file).
    ``secondary_locations`` collects the "supplemental" messages pc-lint emits
    right after the finding, in arrival order.
    """

    rule_id: str
    message: str
    primary_location: ReportLocation | None = None
    secondary_locations: list[ReportLocation] = field(default_factory=list)

    @classmethod
    def create(cls, rule_id: str, file: str, line: str, message: str) -> "ReportIssue":
        """Build an issue from raw attribute strings.

        An empty *file* gives a location-free issue. Line 0 means file level.
        """
        location = None
        if file:
            location = ReportLocation(file=file, line=int(line), message=message)
        return cls(rule_id=rule_id, message=message, primary_location=location)

    @property
    def file(self) -> str | None:
        return self.primary_location.file if self.primary_location else None

    @property
    def line(self) -> int | None:
        return self.primary_location.line if self.primary_location else None

    def add_flow_element(self, file: str, line: int, message: str) -> None:
        self.secondary_locations.append(ReportLocation(file=file, line=line, message=message))

    def key(self) -> tuple:
        """Hashable fingerprint: two issues with equal keys are duplicates."""
        return (
            self.rule_id,
            self.message,
            self.primary_location,
            tuple(self.secondary_locations),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id":             self.rule_id,
            "message":             self.message,
            "file":                self.file,
            "line":                self.line,
            "secondary_locations": [loc.to_dict() for loc in self.secondary_locations],
        }

    def __str__(self) -> str:
        where = f"{self.file}:{self.line}" if self.primary_location else "<project>"
        return f"[{self.rule_id}] {where} {self.message}"
