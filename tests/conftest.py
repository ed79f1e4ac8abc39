import os
import time

import pytest

from llm_assistant.config import Settings
from llm_assistant.schemas.report import LogEvent

# 2023-11-14 22:14:00 UTC, start of a minute bucket
BASE = 1_700_000_040
YEAR = 2023


@pytest.fixture
def host_tz():
    """Switch the process timezone; syslog stamps are read as local time."""
    saved = os.environ.get("TZ")

    def _set(name):
        os.environ["TZ"] = name
        time.tzset()

    yield _set
    if saved is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = saved
    time.tzset()


@pytest.fixture(autouse=True)
def utc_host(host_tz):
    host_tz("UTC")


class StubLLM:
    def __init__(self, result=None):
        self.result = result if result is not None else {
            "success": True,
            "response": "Posture is under pressure.\n1. Block the scanner\n2. Rate limit SSH\n3. Review rules",
        }
        self.calls = []

    def query(self, prompt, context=None, feature="general"):
        self.calls.append((prompt, context, feature))
        return self.result


@pytest.fixture
def stub_llm():
    return StubLLM


@pytest.fixture
def make_event():
    def _make(ts=BASE, action="block", src="203.0.113.7", dst="192.168.1.10", port=22, proto="tcp"):
        return LogEvent(timestamp=ts, action=action, src_ip=src, dst_ip=dst, protocol=proto, dst_port=port)
    return _make


@pytest.fixture
def settings(tmp_path):
    return Settings(
        enabled=True,
        api_key="test-key",
        api_endpoint="https://llm.test/v1",
        log_path=str(tmp_path / "filter" / "latest.log"),
        reports_dir=str(tmp_path / "reports"),
        rate_limit_file=str(tmp_path / "rate.json"),
        audit_log=str(tmp_path / "audit.log"),
        config_snapshot=str(tmp_path / "config.json"),
        log_year=YEAR,
    )
