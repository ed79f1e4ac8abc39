import random
from datetime import datetime
from typing import Callable, Dict, List

# Each scenario returns ready-to-write filter log lines.
Scenario = Callable[..., List[str]]

COMMON_PORTS = [21, 22, 23, 25, 53, 80, 110, 135, 139, 143, 443, 445, 993, 995,
                1433, 1723, 3306, 3389, 5432, 5900, 6379, 8080, 8443, 9200, 27017]


def _syslog_ts(ts: int) -> str:
    # local time, like syslogd
    dt = datetime.fromtimestamp(ts)
    return f"{dt:%b} {dt.day:2d} {dt:%H:%M:%S}"


def _rand_ip(prefix: str = "203.0.113") -> str:
    return f"{prefix}.{random.randint(2, 254)}"


def make_filterlog_line(
    ts: int,
    action: str,
    src_ip: str,
    dst_ip: str,
    dst_port: int,
    protocol: str = "tcp",
    src_port: int = 51514,
    host: str = "fw",
) -> str:
    proto_id = {"tcp": 6, "udp": 17}.get(protocol, 0)
    return (
        f"{_syslog_ts(ts)} {host} filterlog[4321]: "
        f"5,,,1000,em0,match,{action},in,4,0x0,,64,0,0,DF,{proto_id},{protocol},60,"
        f"{src_ip},{dst_ip},{src_port},{dst_port},0,S {protocol}/{dst_port}"
    )


def normal(start: int, count: int = 50, **_) -> List[str]:
    lines = []
    for i in range(count):
        action = "block" if random.random() < 0.3 else "pass"
        port = random.choice([53, 80, 443, 123])
        proto = "udp" if port in (53, 123) else "tcp"
        lines.append(make_filterlog_line(start + i, action, _rand_ip("192.168.1"), _rand_ip("198.51.100"), port, proto))
    return lines


def portscan(start: int, count: int = 25, src_ip: str = "203.0.113.77", dst_ip: str = "192.168.1.10", **_) -> List[str]:
    ports = COMMON_PORTS * (count // len(COMMON_PORTS) + 1)
    return [make_filterlog_line(start + i, "block", src_ip, dst_ip, ports[i]) for i in range(count)]


def bruteforce(start: int, count: int = 15, src_ip: str = "203.0.113.9", dst_ip: str = "192.168.1.10",
               port: int = 22, **_) -> List[str]:
    # packed into one minute bucket
    base = start - start % 60
    return [make_filterlog_line(base + (i % 60), "block", src_ip, dst_ip, port) for i in range(count)]


def flood(start: int, count: int = 1200, dst_ip: str = "192.168.1.10", **_) -> List[str]:
    base = start - start % 60
    return [
        make_filterlog_line(base + (i % 60), random.choice(["block", "pass"]), _rand_ip(), dst_ip, 80)
        for i in range(count)
    ]


ATTACKS: Dict[str, Scenario] = {
    "normal": normal,
    "portscan": portscan,
    "bruteforce": bruteforce,
    "flood": flood,
}
