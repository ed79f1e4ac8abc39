"""Report assembly: statistics + incidents -> summary, timeline and AI narrative."""
import logging
import re
from typing import Dict, List, Optional, Sequence, Tuple

from llm_assistant.config import Settings
from llm_assistant.pipeline.collector import collect_events, filter_window
from llm_assistant.pipeline.correlate import run_correlation
from llm_assistant.pipeline.parser import parse_lines
from llm_assistant.pipeline.statistics import aggregate
from llm_assistant.schemas.report import Incident, LogEvent, Report, Statistics, TimelineEntry
from llm_assistant.services.llm import LLMQuery

logger = logging.getLogger(__name__)

NO_ISSUES_ANALYSIS = "No significant issues found."
NO_ISSUES_RECOMMENDATIONS = [
    "Continue following security best practices and review firewall logs regularly.",
]

LLM_FAILED_ANALYSIS = "Unable to generate AI analysis."
LLM_FAILED_RECOMMENDATIONS = [
    "Review logs manually for detailed analysis",
    "Consider implementing additional monitoring",
    "Update firewall rules based on attack patterns",
]

# used per missing numbered item in an otherwise good response
DEFAULT_RECOMMENDATIONS = [
    "Review firewall rules for the most attacked ports",
    "Implement rate limiting for suspicious sources",
    "Consider blocking repeat offenders at the network edge",
]

ITEM_RE = re.compile(r"^[ \t]*(\d+)[.)][ \t]+", re.MULTILINE)


def build_summary(statistics: Statistics, incidents: Sequence[Incident]) -> str:
    summary = (
        f"During the reporting period, the firewall processed {statistics.total_events} events "
        f"with {statistics.blocked} blocked and {statistics.passed} allowed connections. "
    )
    if not incidents:
        return summary + "No significant security incidents were detected."
    return summary + f"{len(incidents)} potential security incidents were identified requiring attention."


def build_timeline(incidents: Sequence[Incident]) -> List[TimelineEntry]:
    return [
        TimelineEntry(
            type=inc.type,
            severity=inc.severity,
            description=inc.description,
            count=len(inc.details),
        )
        for inc in incidents
    ]


def build_incident_prompt(statistics: Statistics, incidents: Sequence[Incident]) -> str:
    top_ports = ", ".join(list(statistics.top_ports)[:5])
    lines = [
        "Analyze this security incident report from an OPNsense firewall:",
        "",
        "Statistics:",
        f"- Total events: {statistics.total_events}",
        f"- Blocked: {statistics.blocked}",
        f"- Top attacked ports: {top_ports}",
        "",
        "Incidents detected:",
    ]
    for inc in incidents:
        lines.append(
            f"- {inc.type} ({inc.severity} severity): {inc.description} - {len(inc.details)} occurrences"
        )
    lines += [
        "",
        "Provide:",
        "1. Brief analysis of the security posture",
        "2. Three specific recommendations",
        "3. Priority actions for the security team",
    ]
    return "\n".join(lines)


def split_analysis(response: str) -> Tuple[str, List[str]]:
    """Split a numbered LLM answer into (analysis, recommendations[3]).

    The analysis is the text before the first numbered item; items 1-3 become
    the recommendations, each missing one replaced by its default.
    """
    matches = list(ITEM_RE.finditer(response))
    if not matches:
        return response.strip(), list(DEFAULT_RECOMMENDATIONS)

    items: Dict[int, str] = {}
    for i, m in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(response)
        number = int(m.group(1))
        text = response[m.end():end].strip()
        if number not in items and text:
            items[number] = text

    analysis = response[:matches[0].start()].strip()
    recommendations = [items.get(n, DEFAULT_RECOMMENDATIONS[n - 1]) for n in (1, 2, 3)]
    return analysis, recommendations


def assemble(
    events: Sequence[LogEvent],
    statistics: Statistics,
    incidents: Sequence[Incident],
    llm: LLMQuery,
) -> Report:
    report = Report(
        summary=build_summary(statistics, incidents),
        statistics=statistics,
        incidents=list(incidents),
        timeline=build_timeline(incidents),
    )

    if not incidents:
        report.analysis = NO_ISSUES_ANALYSIS
        report.recommendations = list(NO_ISSUES_RECOMMENDATIONS)
        return report

    prompt = build_incident_prompt(statistics, incidents)
    try:
        result = llm.query(prompt, {"feature": "incident_report"}, "incident_reports")
    except Exception:
        logger.exception("LLM collaborator raised during incident analysis")
        result = {"error": "collaborator raised"}

    if not isinstance(result, dict):
        result = {"error": "unexpected collaborator result"}

    response = result.get("response")
    if isinstance(response, str) and "error" not in result:
        report.analysis, report.recommendations = split_analysis(response)
    else:
        logger.warning("Falling back to static analysis: %s", result.get("error"))
        report.analysis = LLM_FAILED_ANALYSIS
        report.recommendations = list(LLM_FAILED_RECOMMENDATIONS)
    return report


def generate_report(
    start_time: int,
    end_time: int,
    settings: Settings,
    llm: LLMQuery,
    lines: Optional[Sequence[str]] = None,
) -> Report:
    """Run the whole pipeline for [start_time, end_time].

    `lines` bypasses the log collector (used by tests and the simulator).
    """
    if lines is None:
        events = collect_events(
            settings.log_path, start_time, end_time,
            year=settings.log_year, max_lines=settings.max_log_lines,
        )
    else:
        events = filter_window(parse_lines(lines, year=settings.log_year), start_time, end_time)
    statistics = aggregate(events)
    incidents = run_correlation(events)
    logger.info(
        "Report window %d-%d: %d events, %d incidents",
        start_time, end_time, statistics.total_events, len(incidents),
    )

    report = assemble(events, statistics, incidents, llm)
    report.period_start = start_time
    report.period_end = end_time
    return report
