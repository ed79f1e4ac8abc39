from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Sequence, Tuple

from llm_assistant.schemas.report import Incident, LogEvent

# -------------------------------------------------
# Thresholds
# -------------------------------------------------

PORT_SCAN_THRESHOLD = 20        # distinct destination ports per source
PORT_SCAN_SAMPLE = 10
BRUTE_FORCE_PORTS = (22, 3389, 21, 23)
BRUTE_FORCE_THRESHOLD = 10      # attempts per source/port/minute
DDOS_THRESHOLD = 1000           # events per minute


def _minute(ts: int) -> int:
    return ts // 60


def _minute_label(minute: int) -> str:
    return datetime.fromtimestamp(minute * 60).strftime("%Y-%m-%d %H:%M")


# -------------------------------------------------
# 1) Port scan (blocked src_ip -> many distinct ports)
# -------------------------------------------------

def correlate_port_scan(
    events: Sequence[LogEvent],
    threshold: int = PORT_SCAN_THRESHOLD,
) -> List[Dict[str, Any]]:
    by_src: Dict[str, Dict[int, None]] = {}
    for e in events:
        if e.action != "block":
            continue
        # dict keeps distinct ports in encounter order
        by_src.setdefault(e.src_ip, {})[e.dst_port] = None

    scanners: List[Dict[str, Any]] = []
    for src, ports in by_src.items():
        if len(ports) > threshold:
            scanners.append({
                "source_ip": src,
                "ports_scanned": len(ports),
                "sample_ports": list(ports)[:PORT_SCAN_SAMPLE],
            })
    return scanners


# -------------------------------------------------
# 2) Brute force (blocked src_ip -> auth port, per minute)
# -------------------------------------------------

def correlate_brute_force(
    events: Sequence[LogEvent],
    threshold: int = BRUTE_FORCE_THRESHOLD,
    ports: Sequence[int] = BRUTE_FORCE_PORTS,
) -> List[Dict[str, Any]]:
    activity: Dict[Tuple[str, int, int], int] = {}
    for e in events:
        if e.action != "block" or e.dst_port not in ports:
            continue
        key = (e.src_ip, e.dst_port, _minute(e.timestamp))
        activity[key] = activity.get(key, 0) + 1

    attempts: List[Dict[str, Any]] = []
    for (src, port, minute), count in activity.items():
        if count > threshold:
            attempts.append({
                "source_ip": src,
                "target_port": port,
                "attempts": count,
                "minute": minute,
                "time": _minute_label(minute),
            })
    return attempts


# -------------------------------------------------
# 3) DDoS (all events, per minute)
# -------------------------------------------------

def correlate_ddos(
    events: Sequence[LogEvent],
    threshold: int = DDOS_THRESHOLD,
) -> List[Dict[str, Any]]:
    per_minute: Dict[int, int] = {}
    for e in events:
        minute = _minute(e.timestamp)
        per_minute[minute] = per_minute.get(minute, 0) + 1

    spikes: List[Dict[str, Any]] = []
    for minute, count in per_minute.items():
        if count > threshold:
            spikes.append({
                "minute": minute,
                "time": _minute_label(minute),
                "events": count,
                "severity": "critical" if count > threshold * 2 else "high",
            })
    return spikes


# -------------------------------------------------
# Runner: execute all correlation rules
# -------------------------------------------------

def run_correlation(events: Sequence[LogEvent]) -> List[Incident]:
    """Run every heuristic; incidents come back as port_scan, brute_force, ddos."""
    incidents: List[Incident] = []

    scans = correlate_port_scan(events)
    if scans:
        incidents.append(Incident(
            type="port_scan",
            severity="medium",
            description="Potential port scanning activity detected",
            details=scans,
        ))

    brute = correlate_brute_force(events)
    if brute:
        incidents.append(Incident(
            type="brute_force",
            severity="high",
            description="Potential brute force attempts detected",
            details=brute,
        ))

    ddos = correlate_ddos(events)
    if ddos:
        critical = any(d["severity"] == "critical" for d in ddos)
        incidents.append(Incident(
            type="ddos",
            severity="critical" if critical else "high",
            description="Potential DDoS attack detected",
            details=ddos,
        ))

    return incidents
