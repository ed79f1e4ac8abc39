import logging
from collections import deque
from pathlib import Path
from typing import Deque, List, Optional, Union

from llm_assistant.pipeline.parser import parse_lines
from llm_assistant.schemas.report import LogEvent

logger = logging.getLogger(__name__)

MAX_LOG_LINES = 10000


def collect_log_lines(path: Union[str, Path], max_lines: int = MAX_LOG_LINES) -> List[str]:
    """Return the last `max_lines` lines of the firewall log.

    A missing log file is not an error: it simply yields no lines.
    """
    log_file = Path(path)
    if not log_file.exists():
        logger.warning("Firewall log not found: %s", log_file)
        return []

    # keep only the tail window in memory
    tail: Deque[str] = deque(maxlen=max(1, max_lines))
    with log_file.open("r", encoding="utf-8", errors="ignore") as f:
        for line in f:
            tail.append(line.rstrip("\n"))
    return list(tail)


def filter_window(events: List[LogEvent], start_time: int, end_time: int) -> List[LogEvent]:
    return [e for e in events if start_time <= e.timestamp <= end_time]


def collect_events(
    path: Union[str, Path],
    start_time: int,
    end_time: int,
    year: Optional[int] = None,
    max_lines: int = MAX_LOG_LINES,
) -> List[LogEvent]:
    lines = collect_log_lines(path, max_lines=max_lines)
    events = filter_window(parse_lines(lines, year=year), start_time, end_time)
    logger.info("Collected %d events from %d log lines (%s)", len(events), len(lines), path)
    return events
