import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Union

from pydantic import ValidationError

from llm_assistant.schemas.report import LogEvent

logger = logging.getLogger(__name__)

# ----------------------------
# Filter log line pattern
# ----------------------------
# Example:
#   Jan 15 10:32:01 fw filterlog[4321]: 5,,,1000,em0,match,block,in,4,0x0,,64,0,0,DF,6,tcp,60,203.0.113.7,192.168.1.10,51514,22,0,S tcp/22
#
# syslog timestamp, then (lazily) the action token, source IPv4, destination
# IPv4 and finally a "proto/port" token holding the destination port.
LINE_RE = re.compile(
    r"^(?P<ts>[A-Z][a-z]{2}\s+\d{1,2}\s+\d{2}:\d{2}:\d{2})"
    r".*?\b(?P<action>block|pass)\b"
    r".*?\b(?P<src>\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})\b"
    r".*?\b(?P<dst>\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})\b"
    r".*?\b(?P<proto>[A-Za-z][\w-]*)/(?P<port>\d+)"
)

SYSLOG_TS_FORMAT = "%Y %b %d %H:%M:%S"


@dataclass(frozen=True)
class Parsed:
    event: LogEvent


@dataclass(frozen=True)
class Skipped:
    reason: str


ParseResult = Union[Parsed, Skipped]


def to_epoch(ts: str, year: Optional[int] = None) -> Optional[int]:
    """Convert a syslog 'Mon DD HH:MM:SS' stamp to epoch seconds.

    The stamp is in the host's local time, as syslogd writes it. It carries no
    year; the current local year is assumed unless one is given. Returns None
    for stamps strptime rejects (e.g. 'Feb 30').
    """
    if year is None:
        year = datetime.now().year
    try:
        dt = datetime.strptime(f"{year} {' '.join(ts.split())}", SYSLOG_TS_FORMAT)
    except ValueError:
        return None
    return int(dt.timestamp())


def tokenize_line(line: str, year: Optional[int] = None) -> ParseResult:
    text = line.strip()
    if not text:
        return Skipped("empty")

    m = LINE_RE.match(text)
    if not m:
        return Skipped("no_match")

    ts = to_epoch(m.group("ts"), year)
    if ts is None:
        return Skipped("bad_timestamp")

    try:
        event = LogEvent(
            timestamp=ts,
            action=m.group("action"),
            src_ip=m.group("src"),
            dst_ip=m.group("dst"),
            protocol=m.group("proto").lower(),
            dst_port=int(m.group("port")),
            raw=text,
        )
    except ValidationError:
        return Skipped("bad_port")
    return Parsed(event)


def parse_line(line: str, year: Optional[int] = None) -> Optional[LogEvent]:
    result = tokenize_line(line, year)
    if isinstance(result, Parsed):
        return result.event
    return None


def parse_lines(lines: Iterable[str], year: Optional[int] = None) -> List[LogEvent]:
    events: List[LogEvent] = []
    skipped = 0
    for line in lines:
        result = tokenize_line(line, year)
        if isinstance(result, Parsed):
            events.append(result.event)
        else:
            skipped += 1
    logger.debug("Parsed %d events, skipped %d lines", len(events), skipped)
    return events
