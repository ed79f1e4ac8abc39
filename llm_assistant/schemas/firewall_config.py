from pydantic import BaseModel, Field
from typing import Dict, List


class RuleEndpoint(BaseModel):
    any: bool = False
    address: str = ""
    port: str = ""

    def label(self) -> str:
        return "any" if self.any else self.address


class FilterRule(BaseModel):
    type: str = "pass"                   # pass / block / reject
    interface: str = ""
    protocol: str = "any"
    source: RuleEndpoint = Field(default_factory=RuleEndpoint)
    destination: RuleEndpoint = Field(default_factory=RuleEndpoint)
    disabled: bool = False
    descr: str = ""


class Interface(BaseModel):
    enable: bool = False
    ipaddr: str = ""                     # address or "dhcp"
    descr: str = ""


class NatRule(BaseModel):
    interface: str = ""
    protocol: str = "tcp"
    destination: RuleEndpoint = Field(default_factory=RuleEndpoint)
    target: str = ""
    descr: str = ""


class FirewallConfig(BaseModel):
    """Read-only snapshot of the firewall configuration handed to the reviewer."""

    model_config = {"frozen": True}

    rules: List[FilterRule] = Field(default_factory=list)
    interfaces: Dict[str, Interface] = Field(default_factory=dict)
    nat: List[NatRule] = Field(default_factory=list)


class ConfigReview(BaseModel):
    issues: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    analysis: str = ""
