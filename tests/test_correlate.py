from llm_assistant.pipeline.correlate import (
    correlate_brute_force,
    correlate_ddos,
    correlate_port_scan,
    run_correlation,
)

from conftest import BASE


def test_port_scan_flags_source_over_threshold(make_event):
    events = [make_event(src="198.51.100.4", port=1000 + i) for i in range(25)]
    events += [make_event(src="198.51.100.5", port=2000 + i) for i in range(5)]
    scans = correlate_port_scan(events)
    assert len(scans) == 1
    assert scans[0]["source_ip"] == "198.51.100.4"
    assert scans[0]["ports_scanned"] == 25
    assert scans[0]["sample_ports"] == list(range(1000, 1010))


def test_port_scan_ignores_passed_traffic(make_event):
    events = [make_event(action="pass", port=1000 + i) for i in range(30)]
    assert correlate_port_scan(events) == []


def test_port_scan_needs_more_than_threshold(make_event):
    events = [make_event(port=1000 + i) for i in range(20)]
    assert correlate_port_scan(events) == []


def test_brute_force_eleven_attempts(make_event):
    events = [make_event(ts=BASE + i, port=22) for i in range(11)]
    attempts = correlate_brute_force(events)
    assert len(attempts) == 1
    assert attempts[0]["source_ip"] == "203.0.113.7"
    assert attempts[0]["target_port"] == 22
    assert attempts[0]["attempts"] == 11
    assert attempts[0]["minute"] == BASE // 60
    assert attempts[0]["time"] == "2023-11-14 22:14"


def test_brute_force_ten_attempts_not_flagged(make_event):
    events = [make_event(ts=BASE + i, port=22) for i in range(10)]
    assert correlate_brute_force(events) == []


def test_brute_force_split_across_minutes(make_event):
    events = [make_event(ts=BASE + 50 + i, port=3389) for i in range(20)]
    assert correlate_brute_force(events) == []


def test_brute_force_only_auth_ports(make_event):
    events = [make_event(ts=BASE, port=8080) for _ in range(30)]
    assert correlate_brute_force(events) == []


def test_ddos_severity(make_event):
    high = [make_event(ts=BASE + i % 60, action="pass", port=80) for i in range(1001)]
    spikes = correlate_ddos(high)
    assert len(spikes) == 1
    assert spikes[0]["events"] == 1001
    assert spikes[0]["severity"] == "high"

    critical = [make_event(ts=BASE + i % 60, action="pass", port=80) for i in range(2001)]
    assert correlate_ddos(critical)[0]["severity"] == "critical"


def test_ddos_threshold_not_exceeded(make_event):
    events = [make_event(ts=BASE, action="pass", port=80) for _ in range(1000)]
    assert correlate_ddos(events) == []


def test_run_correlation_fixed_order(make_event):
    events = [make_event(ts=BASE + i % 60, action="pass", port=80) for i in range(2001)]
    events += [make_event(ts=BASE, port=22) for _ in range(12)]
    events += [make_event(ts=BASE, src="198.51.100.4", port=1000 + i) for i in range(21)]

    incidents = run_correlation(events)
    assert [i.type for i in incidents] == ["port_scan", "brute_force", "ddos"]
    assert [i.severity for i in incidents] == ["medium", "high", "critical"]


def test_ddos_incident_high_when_no_critical_bucket(make_event):
    events = [make_event(ts=BASE + i % 60, action="pass", port=80) for i in range(1500)]
    incidents = run_correlation(events)
    assert len(incidents) == 1
    assert incidents[0].type == "ddos"
    assert incidents[0].severity == "high"


def test_no_incidents_for_quiet_traffic(make_event):
    assert run_correlation([make_event(), make_event(action="pass")]) == []
