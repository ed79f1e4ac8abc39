"""Firewall configuration review: static checks plus an LLM impact assessment."""
import ipaddress
import logging
from typing import Any, Callable, Dict, List, Set, Tuple

from llm_assistant.schemas.firewall_config import ConfigReview, FirewallConfig
from llm_assistant.services.llm import LLMQuery

logger = logging.getLogger(__name__)

REVIEW_SECTIONS = {
    "all": "Complete Configuration",
    "rules": "Firewall Rules",
    "interfaces": "Network Interfaces",
    "nat": "NAT Rules",
}

DISABLED_RULES_LIMIT = 10
RULE_COUNT_LIMIT = 500
PORT_FORWARD_LIMIT = 20
DUPLICATE_SAMPLE = 3
RISKY_NAT_PORTS = ("22", "23", "3389", "445", "135", "139")

PRIVATE_NETWORKS = tuple(
    ipaddress.ip_network(n) for n in ("10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16")
)

CLEAN_ANALYSIS = "No significant issues found."
CLEAN_RECOMMENDATIONS = ["Your configuration appears to be following best practices."]
LLM_FAILED_ANALYSIS = "Unable to generate analysis."

Findings = Tuple[List[str], List[str]]


def is_public_ip(ip: str) -> bool:
    """True for an IPv4 address outside the RFC1918 ranges."""
    if not ip or ip == "dhcp":
        return False
    try:
        addr = ipaddress.IPv4Address(ip)
    except ValueError:
        return False
    return not any(addr in net for net in PRIVATE_NETWORKS)


# -------------------------------------------------
# 1) Filter rules
# -------------------------------------------------
def review_rules(config: FirewallConfig) -> Findings:
    issues: List[str] = []
    recommendations: List[str] = []
    if not config.rules:
        return issues, recommendations

    any_any = 0
    disabled = 0
    duplicates: List[str] = []
    seen: Set[Tuple[str, str, str, str]] = set()

    for rule in config.rules:
        if rule.disabled:
            disabled += 1

        src = rule.source.label()
        dst = rule.destination.label()
        if src == "any" and dst == "any" and rule.type == "pass":
            any_any += 1
            issues.append(f"Rule allows any source to any destination: {rule.descr}")

        key = (src, dst, rule.protocol, rule.destination.port)
        if key in seen:
            duplicates.append(rule.descr)
        seen.add(key)

        if rule.protocol == "any" and rule.type == "pass":
            issues.append(f"Rule allows all protocols: {rule.descr}")

    if any_any:
        recommendations.append(
            f"Found {any_any} overly permissive any/any rules. Consider restricting source/destination."
        )
    if disabled > DISABLED_RULES_LIMIT:
        recommendations.append(f"You have {disabled} disabled rules. Consider removing unused rules.")
    if duplicates:
        recommendations.append(
            "Found potentially duplicate rules: " + ", ".join(duplicates[:DUPLICATE_SAMPLE])
        )
    if len(config.rules) > RULE_COUNT_LIMIT:
        recommendations.append(
            f"You have {len(config.rules)} firewall rules. Consider consolidating rules using aliases."
        )
    return issues, recommendations


# -------------------------------------------------
# 2) Interfaces (public address without a restrictive rule)
# -------------------------------------------------
def _has_restrictive_rules(config: FirewallConfig, ifname: str) -> bool:
    return any(r.interface == ifname and r.type != "pass" for r in config.rules)


def review_interfaces(config: FirewallConfig) -> Findings:
    issues: List[str] = []
    recommendations: List[str] = []

    exposed = [
        name for name, iface in config.interfaces.items()
        if iface.enable and is_public_ip(iface.ipaddr) and not _has_restrictive_rules(config, name)
    ]
    if exposed:
        issues.append("Interfaces with public IPs but no restrictive rules: " + ", ".join(exposed))
        recommendations.append("Add restrictive firewall rules for public-facing interfaces.")
    return issues, recommendations


# -------------------------------------------------
# 3) NAT port forwards
# -------------------------------------------------
def review_nat(config: FirewallConfig) -> Findings:
    issues: List[str] = []
    recommendations: List[str] = []
    if not config.nat:
        return issues, recommendations

    risky = [
        f"{rule.destination.port} ({rule.descr})"
        for rule in config.nat
        if rule.destination.port in RISKY_NAT_PORTS
    ]
    if risky:
        issues.append("NAT rules forwarding potentially risky ports: " + ", ".join(risky))
        recommendations.append("Consider using VPN instead of exposing management ports.")
    if len(config.nat) > PORT_FORWARD_LIMIT:
        recommendations.append(
            f"You have {len(config.nat)} port forwards. Consider using reverse proxy for HTTP/HTTPS services."
        )
    return issues, recommendations


CHECKS: Dict[str, List[Callable[[FirewallConfig], Findings]]] = {
    "rules": [review_rules],
    "interfaces": [review_interfaces],
    "nat": [review_nat],
    "all": [review_rules, review_interfaces, review_nat],
}


def build_review_prompt(issues: List[str], recommendations: List[str]) -> str:
    prompt = "As a security expert, analyze these OPNsense firewall configuration issues:\n\n"
    prompt += "Issues found:\n"
    prompt += "".join(f"- {issue}\n" for issue in issues)
    prompt += "\nCurrent recommendations:\n"
    prompt += "".join(f"- {rec}\n" for rec in recommendations)
    prompt += "\nProvide a brief security impact assessment and prioritized action plan."
    return prompt


def review_configuration(config: FirewallConfig, section: str, llm: LLMQuery) -> ConfigReview:
    """Run the checks for `section` and, when they find issues, ask the LLM for an assessment.

    Raises ValueError for a section outside REVIEW_SECTIONS.
    """
    if section not in CHECKS:
        raise ValueError(f"Invalid section: {section}")

    issues: List[str] = []
    recommendations: List[str] = []
    for check in CHECKS[section]:
        found, recs = check(config)
        issues += found
        recommendations += recs

    if not issues:
        return ConfigReview(issues=[], recommendations=list(CLEAN_RECOMMENDATIONS), analysis=CLEAN_ANALYSIS)

    prompt = build_review_prompt(issues, recommendations)
    try:
        result = llm.query(prompt, {"feature": "config_review"}, "config_review")
    except Exception:
        logger.exception("LLM collaborator raised during configuration review")
        result = {}

    response = result.get("response") if isinstance(result, dict) else None
    if not isinstance(response, str):
        logger.warning("Configuration review without AI analysis: %s",
                       result.get("error") if isinstance(result, dict) else result)
        response = LLM_FAILED_ANALYSIS

    logger.info("Configuration review (%s): %d issues", section, len(issues))
    return ConfigReview(issues=issues, recommendations=recommendations, analysis=response)


def system_info(config: FirewallConfig) -> Dict[str, Any]:
    """Small description of the firewall used as context for learning-mode questions."""
    info: Dict[str, Any] = {
        "version": "OPNsense",
        "has_rules": bool(config.rules),
        "interface_count": sum(1 for iface in config.interfaces.values() if iface.enable),
    }
    if config.rules:
        info["rule_count"] = len(config.rules)
    return info
