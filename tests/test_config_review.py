import pytest

from llm_assistant.pipeline.config_review import (
    CLEAN_ANALYSIS,
    CLEAN_RECOMMENDATIONS,
    LLM_FAILED_ANALYSIS,
    is_public_ip,
    review_configuration,
    review_interfaces,
    review_nat,
    review_rules,
    system_info,
)
from llm_assistant.schemas.firewall_config import FilterRule, FirewallConfig, Interface, NatRule, RuleEndpoint


def _rule(**kw):
    kw.setdefault("protocol", "tcp")
    kw.setdefault("source", RuleEndpoint(address="10.0.0.0/24"))
    kw.setdefault("destination", RuleEndpoint(address="10.0.1.5", port="443"))
    return FilterRule(**kw)


def test_any_any_and_all_protocol_rules():
    config = FirewallConfig(rules=[
        _rule(descr="allow all", protocol="any", source=RuleEndpoint(any=True), destination=RuleEndpoint(any=True)),
        _rule(descr="web"),
    ])
    issues, recs = review_rules(config)
    assert issues == [
        "Rule allows any source to any destination: allow all",
        "Rule allows all protocols: allow all",
    ]
    assert recs == ["Found 1 overly permissive any/any rules. Consider restricting source/destination."]


def test_block_any_any_is_not_an_issue():
    config = FirewallConfig(rules=[
        _rule(type="block", protocol="any", source=RuleEndpoint(any=True), destination=RuleEndpoint(any=True)),
    ])
    assert review_rules(config) == ([], [])


def test_duplicates_disabled_and_rule_count():
    rules = [_rule(descr=f"dup {i}") for i in range(5)]
    rules += [_rule(descr=f"off {i}", disabled=True, destination=RuleEndpoint(address="10.0.2.1", port=str(i)))
              for i in range(11)]
    issues, recs = review_rules(FirewallConfig(rules=rules))
    assert issues == []
    assert "You have 11 disabled rules. Consider removing unused rules." in recs
    assert "Found potentially duplicate rules: dup 1, dup 2, dup 3" in recs

    many = FirewallConfig(rules=[_rule(destination=RuleEndpoint(address="10.0.3.1", port=str(i))) for i in range(501)])
    assert "You have 501 firewall rules. Consider consolidating rules using aliases." in review_rules(many)[1]


@pytest.mark.parametrize("ip, public", [
    ("198.51.100.2", True),
    ("10.1.2.3", False),
    ("172.20.0.1", False),
    ("172.32.0.1", True),
    ("192.168.1.1", False),
    ("dhcp", False),
    ("", False),
    ("not-an-ip", False),
])
def test_is_public_ip(ip, public):
    assert is_public_ip(ip) is public


def test_public_interface_needs_restrictive_rule():
    interfaces = {
        "wan": Interface(enable=True, ipaddr="198.51.100.2"),
        "opt1": Interface(enable=True, ipaddr="203.0.113.9"),
        "lan": Interface(enable=True, ipaddr="192.168.1.1"),
        "opt2": Interface(enable=False, ipaddr="203.0.113.10"),
    }
    config = FirewallConfig(interfaces=interfaces, rules=[_rule(interface="opt1", type="block")])
    issues, recs = review_interfaces(config)
    assert issues == ["Interfaces with public IPs but no restrictive rules: wan"]
    assert recs == ["Add restrictive firewall rules for public-facing interfaces."]


def test_risky_nat_forwards():
    nat = [NatRule(destination=RuleEndpoint(port="3389"), descr="rdp"), NatRule(destination=RuleEndpoint(port="443"))]
    issues, recs = review_nat(FirewallConfig(nat=nat))
    assert issues == ["NAT rules forwarding potentially risky ports: 3389 (rdp)"]
    assert recs == ["Consider using VPN instead of exposing management ports."]

    many = FirewallConfig(nat=[NatRule(destination=RuleEndpoint(port="8080"))] * 21)
    assert review_nat(many) == ([], ["You have 21 port forwards. Consider using reverse proxy for HTTP/HTTPS services."])


def test_clean_config_skips_llm(stub_llm):
    llm = stub_llm()
    review = review_configuration(FirewallConfig(rules=[_rule()]), "all", llm)
    assert llm.calls == []
    assert review.issues == []
    assert review.recommendations == CLEAN_RECOMMENDATIONS
    assert review.analysis == CLEAN_ANALYSIS


def test_issues_go_to_llm(stub_llm):
    llm = stub_llm({"success": True, "response": "Close RDP first."})
    config = FirewallConfig(
        rules=[_rule(descr="allow all", protocol="any", source=RuleEndpoint(any=True), destination=RuleEndpoint(any=True))],
        nat=[NatRule(destination=RuleEndpoint(port="22"), descr="ssh")],
    )
    review = review_configuration(config, "nat", llm)

    assert review.issues == ["NAT rules forwarding potentially risky ports: 22 (ssh)"]
    assert review.analysis == "Close RDP first."
    prompt, context, feature = llm.calls[0]
    assert feature == "config_review"
    assert context == {"feature": "config_review"}
    assert "- NAT rules forwarding potentially risky ports: 22 (ssh)\n" in prompt
    assert prompt.endswith("Provide a brief security impact assessment and prioritized action plan.")
    # only the requested section is checked
    assert "any source" not in prompt


def test_llm_failure_keeps_findings(stub_llm):
    config = FirewallConfig(nat=[NatRule(destination=RuleEndpoint(port="23"), descr="telnet")])
    review = review_configuration(config, "all", stub_llm({"error": "timeout"}))
    assert review.analysis == LLM_FAILED_ANALYSIS
    assert review.recommendations == ["Consider using VPN instead of exposing management ports."]


def test_unknown_section(stub_llm):
    with pytest.raises(ValueError):
        review_configuration(FirewallConfig(), "vpn", stub_llm())


def test_system_info():
    config = FirewallConfig(
        rules=[_rule(), _rule()],
        interfaces={"wan": Interface(enable=True), "opt1": Interface(enable=False)},
    )
    assert system_info(config) == {"version": "OPNsense", "has_rules": True, "interface_count": 1, "rule_count": 2}
    assert system_info(FirewallConfig()) == {"version": "OPNsense", "has_rules": False, "interface_count": 0}
