from collections import Counter
from typing import Dict, Iterable

from llm_assistant.schemas.report import LogEvent, Statistics

TOP_N = 10


def _top(counter: Counter, n: int = TOP_N) -> Dict[str, int]:
    # most_common() sorts stably, so ties keep first-seen order
    return {str(k): v for k, v in counter.most_common(n)}


def aggregate(events: Iterable[LogEvent]) -> Statistics:
    total = blocked = passed = 0
    sources: Counter = Counter()
    destinations: Counter = Counter()
    ports: Counter = Counter()
    protocols: Counter = Counter()

    for e in events:
        total += 1
        if e.action == "block":
            blocked += 1
        else:
            passed += 1
        sources[e.src_ip] += 1
        destinations[e.dst_ip] += 1
        ports[e.dst_port] += 1
        protocols[e.protocol] += 1

    return Statistics(
        total_events=total,
        blocked=blocked,
        passed=passed,
        top_sources=_top(sources),
        top_destinations=_top(destinations),
        top_ports=_top(ports),
        protocols=dict(protocols),
    )
