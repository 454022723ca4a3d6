"""Sequential reader over a PC-lint XML report.

Usage:
    for raw in iter_issue_elements("pclint.xml"):
        print(raw.number, raw.desc)

The reader yields one ``RawAttributes`` per ``<issue>`` child of the root
element and nothing else, so the parser can be fed synthetic sequences in
tests. XML is read incrementally through ``defusedxml`` since reports come
from an external tool.
"""

import logging
from typing import IO, Iterator, NamedTuple
from xml.etree.ElementTree import ParseError

from defusedxml import DefusedXmlException
from defusedxml.ElementTree import iterparse

log = logging.getLogger(__name__)

ISSUE_TAG = "issue"
SUPPLEMENTAL_TYPE = "supplemental"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ReportError(Exception):
    """Base exception for report reading errors."""


class EmptyReportError(ReportError):
    """Raised when not even the root element of a report can be read."""


class StreamCorruptionError(ReportError):
    """Raised when the XML stream breaks after reading has started."""


# ---------------------------------------------------------------------------
# Raw element
# ---------------------------------------------------------------------------

class RawAttributes(NamedTuple):
    """Attributes of one ``<issue>`` element. Absent attributes are ``""``."""

    file: str = ""
    line: str = ""
    number: str = ""
    desc: str = ""
    type: str = ""

    @classmethod
    def from_attrib(cls, attrib: dict[str, str]) -> "RawAttributes":
        return cls(**{name: attrib.get(name, "") for name in cls._fields})

    @property
    def is_supplemental(self) -> bool:
        return self.type == SUPPLEMENTAL_TYPE


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------

def iter_issue_elements(source: str | IO[bytes]) -> Iterator[RawAttributes]:
    """Yield the attributes of every ``<issue>`` directly under the root.

    *source* is a path or a binary file object.

    Raises:
        EmptyReportError:      the source could not be opened, the root element
                               could not be read, or the stream ended before
                               its first child element
        StreamCorruptionError: the XML became unreadable later on
    """
    depth = 0
    root = None
    started = False

    try:
        for event, elem in iterparse(source, events=("start", "end")):
            if event == "start":
                depth += 1
                if root is None:
                    root = elem
                    log.debug("Reading report root <%s>", elem.tag)
                elif depth == 2:
                    # a child was seen: from here on breakage is corruption
                    started = True
                    if elem.tag == ISSUE_TAG:
                        yield RawAttributes.from_attrib(elem.attrib)
            else:
                depth -= 1
                if depth == 1:
                    root.clear()
                elif depth == 0:
                    # root fully read
                    started = True
    except (ParseError, DefusedXmlException, OSError) as exc:
        if not started:
            raise EmptyReportError(f"Cannot read PC-lint report: {exc}") from exc
        raise StreamCorruptionError(str(exc)) from exc

    if root is None:
        raise EmptyReportError("Cannot read PC-lint report: no root element")
