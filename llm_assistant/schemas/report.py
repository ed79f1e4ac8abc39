from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List, Literal

Action = Literal["block", "pass"]
IncidentType = Literal["port_scan", "brute_force", "ddos"]
Severity = Literal["medium", "high", "critical"]


class LogEvent(BaseModel):
    """One firewall log line that matched the filter log pattern."""

    model_config = {"frozen": True}

    timestamp: int                       # epoch seconds
    action: Action
    src_ip: str
    dst_ip: str
    protocol: str
    dst_port: int = Field(ge=0, le=65535)
    raw: str = ""


class Statistics(BaseModel):
    # ----------------------------
    # Counters
    # ----------------------------
    total_events: int = 0
    blocked: int = 0
    passed: int = 0

    # ----------------------------
    # Breakdowns (top 10, count desc)
    # ----------------------------
    top_sources: Dict[str, int] = Field(default_factory=dict)
    top_destinations: Dict[str, int] = Field(default_factory=dict)
    top_ports: Dict[str, int] = Field(default_factory=dict)

    # full protocol -> count mapping
    protocols: Dict[str, int] = Field(default_factory=dict)


class Incident(BaseModel):
    model_config = {"frozen": True}

    type: IncidentType
    severity: Severity
    description: str
    details: List[Dict[str, Any]] = Field(default_factory=list)


class TimelineEntry(BaseModel):
    type: IncidentType
    severity: Severity
    description: str
    count: int


class Report(BaseModel):
    summary: str
    statistics: Statistics
    incidents: List[Incident] = Field(default_factory=list)
    timeline: List[TimelineEntry] = Field(default_factory=list)
    analysis: str = ""
    recommendations: List[str] = Field(default_factory=list, max_length=3)

    period_start: Optional[int] = None
    period_end: Optional[int] = None

    # assigned by the report store
    id: Optional[str] = None
    created: Optional[int] = None


class ReportSummary(BaseModel):
    id: str
    created: int
    summary: str
