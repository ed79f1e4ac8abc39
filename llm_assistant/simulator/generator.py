from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import List, Optional, Union

from llm_assistant.simulator.attack_catalog import ATTACKS

logger = logging.getLogger(__name__)


def append_to_log(path: Union[str, Path], lines: List[str]) -> int:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("a", encoding="utf-8") as f:
        for line in lines:
            f.write(line + "\n")
    return len(lines)


def run_scenario(mode: str, path: Union[str, Path], start: Optional[int] = None, **kwargs) -> int:
    if mode not in ATTACKS:
        raise ValueError(f"Unknown mode: {mode}")
    lines = ATTACKS[mode](start=int(time.time()) if start is None else start, **kwargs)
    written = append_to_log(path, lines)
    logger.info("[SIM] mode=%s wrote %d lines to %s", mode, written, path)
    return written


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Append synthetic firewall filter log lines")
    parser.add_argument("--out", default="synthetic_logs/filter.log", help="Log file to append to")
    parser.add_argument("--mode", choices=sorted(ATTACKS), default="normal")
    parser.add_argument("--count", type=int, default=None, help="Number of lines (scenario default if omitted)")
    parser.add_argument("--start", type=int, default=None, help="Epoch seconds of the first line (default: now)")
    parser.add_argument("--src-ip", default=None)
    parser.add_argument("--dst-ip", default=None)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(message)s")

    kwargs = {}
    if args.count is not None:
        kwargs["count"] = args.count
    if args.src_ip:
        kwargs["src_ip"] = args.src_ip
    if args.dst_ip:
        kwargs["dst_ip"] = args.dst_ip

    run_scenario(args.mode, args.out, start=args.start, **kwargs)


if __name__ == "__main__":
    main()
