from __future__ import annotations

import json
import logging
import os
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple, Union
from uuid import uuid4

from llm_assistant.schemas.report import Report, ReportSummary

logger = logging.getLogger(__name__)

KEEP_REPORTS = 100
LIST_LIMIT = 20
SUMMARY_CHARS = 200

_ID_UNSAFE = re.compile(r"[^a-zA-Z0-9_-]")


class ReportStoreError(Exception):
    pass


class InvalidReportId(ValueError):
    pass


class ReportStore:
    """Reports persisted as one JSON file each, newest `keep` retained.

    Ids embed the creation time down to the nanosecond, so sorting file names
    sorts reports by creation.
    """

    def __init__(self, directory: Union[str, Path], keep: int = KEEP_REPORTS):
        self.directory = Path(directory)
        self.keep = keep
        self._last_ns = 0

    def _gen_id(self) -> Tuple[str, int]:
        ns = max(time.time_ns(), self._last_ns + 1)
        self._last_ns = ns
        seconds = ns // 1_000_000_000
        stamp = datetime.fromtimestamp(seconds, tz=timezone.utc)
        return f"{stamp:%Y%m%d_%H%M%S}_{ns % 1_000_000_000:09d}_{uuid4().hex[:8]}", seconds

    def _files(self) -> List[Path]:
        if not self.directory.is_dir():
            return []
        return sorted(self.directory.glob("*.json"), key=lambda p: p.name)

    def save(self, report: Report) -> str:
        """Persist the report, assign id/created on it and return the id."""
        try:
            self.directory.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            raise ReportStoreError(f"Failed to create reports directory: {e}") from e

        report_id, created = self._gen_id()
        stored = report.model_copy(update={"id": report_id, "created": created})

        out_path = self.directory / f"{report_id}.json"
        tmp_path = self.directory / f".{report_id}.tmp"
        try:
            tmp_path.write_text(stored.model_dump_json(indent=2), encoding="utf-8")
            os.replace(tmp_path, out_path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise ReportStoreError(f"Failed to save report to disk: {e}") from e

        report.id = stored.id
        report.created = stored.created
        self.cleanup()
        logger.info("Saved report %s", report_id)
        return report_id

    def cleanup(self) -> int:
        """Delete the oldest reports beyond `keep`. Returns how many went."""
        files = self._files()
        excess = len(files) - self.keep
        removed = 0
        for path in files[:max(0, excess)]:
            try:
                path.unlink()
                removed += 1
            except OSError as e:
                logger.warning("Could not remove old report %s: %s", path, e)
        return removed

    def list_reports(self, limit: Optional[int] = LIST_LIMIT) -> List[ReportSummary]:
        """Return report summaries, newest first."""
        items: List[ReportSummary] = []
        for path in self._files():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                if not isinstance(data, dict):
                    continue
                created = data.get("created")
                if not isinstance(created, (int, float)):
                    created = path.stat().st_mtime
            except (OSError, ValueError):
                continue
            summary = data.get("summary")
            items.append(ReportSummary(
                id=path.stem,
                created=int(created),
                summary=summary[:SUMMARY_CHARS] if isinstance(summary, str) and summary else "No summary available",
            ))

        # file names order creation; stable sort keeps that for equal seconds
        items.reverse()
        items.sort(key=lambda s: s.created, reverse=True)
        return items if limit is None else items[:limit]

    def get_report(self, report_id: str) -> Optional[Report]:
        safe_id = _ID_UNSAFE.sub("", report_id or "")
        if not safe_id:
            raise InvalidReportId("Invalid report ID")

        path = self.directory / f"{safe_id}.json"
        if path.resolve().parent != self.directory.resolve():
            raise InvalidReportId("Invalid report path")
        if not path.is_file():
            return None

        try:
            return Report.model_validate_json(path.read_text(encoding="utf-8"))
        # ValueError also covers bad UTF-8 and pydantic's ValidationError
        except (OSError, ValueError) as e:
            raise ReportStoreError(f"Invalid report format: {e}") from e

    def count(self) -> int:
        return len(self._files())
