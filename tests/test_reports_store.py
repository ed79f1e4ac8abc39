import json

import pytest

from llm_assistant.schemas.report import Report, Statistics
from llm_assistant.services.reports_store import InvalidReportId, ReportStore, ReportStoreError


def _report(n=0):
    return Report(summary=f"report {n}", statistics=Statistics(total_events=n), analysis="ok")


def test_save_assigns_id_and_created(tmp_path):
    store = ReportStore(tmp_path / "reports")
    report = _report()
    report_id = store.save(report)

    assert report.id == report_id
    assert report.created is not None
    saved = json.loads((tmp_path / "reports" / f"{report_id}.json").read_text())
    assert saved["id"] == report_id
    assert saved["summary"] == "report 0"


def test_get_report_round_trip(tmp_path):
    store = ReportStore(tmp_path)
    report_id = store.save(_report(5))
    loaded = store.get_report(report_id)
    assert loaded is not None
    assert loaded.statistics.total_events == 5
    assert loaded.id == report_id


def test_retention_evicts_oldest(tmp_path):
    store = ReportStore(tmp_path, keep=100)
    ids = [store.save(_report(i)) for i in range(101)]

    listed = store.list_reports(limit=None)
    assert len(listed) == 100
    assert store.count() == 100
    listed_ids = {s.id for s in listed}
    assert ids[0] not in listed_ids
    assert ids[-1] in listed_ids
    assert store.get_report(ids[0]) is None


def test_list_newest_first_capped(tmp_path):
    store = ReportStore(tmp_path)
    ids = [store.save(_report(i)) for i in range(25)]
    listed = store.list_reports()
    assert len(listed) == 20
    assert [s.id for s in listed] == list(reversed(ids))[:20]
    assert listed[0].summary == "report 24"


def test_list_truncates_summary_and_skips_corrupt(tmp_path):
    store = ReportStore(tmp_path)
    long = Report(summary="x" * 500, statistics=Statistics())
    store.save(long)
    (tmp_path / "broken.json").write_text("{not json")

    listed = store.list_reports()
    assert len(listed) == 1
    assert len(listed[0].summary) == 200


def test_list_empty_when_directory_missing(tmp_path):
    assert ReportStore(tmp_path / "nope").list_reports() == []


def test_invalid_ids(tmp_path):
    store = ReportStore(tmp_path)
    with pytest.raises(InvalidReportId):
        store.get_report("../..")
    # sanitised to "etcpasswd", which doesn't exist
    assert store.get_report("../etc/passwd") is None


def test_corrupt_report_raises(tmp_path):
    store = ReportStore(tmp_path)
    (tmp_path / "bad_report.json").write_text('{"summary": 3}')
    with pytest.raises(ReportStoreError):
        store.get_report("bad_report")


def test_save_failure_raises_and_keeps_report(tmp_path):
    blocker = tmp_path / "reports"
    blocker.write_text("not a directory")
    store = ReportStore(blocker)
    report = _report()
    with pytest.raises(ReportStoreError):
        store.save(report)
    assert report.id is None


def test_non_utf8_report_raises_store_error(tmp_path):
    store = ReportStore(tmp_path)
    (tmp_path / "bad.json").write_bytes(b'{"summary": "\xff\xfe"}')
    with pytest.raises(ReportStoreError):
        store.get_report("bad")
    assert store.list_reports() == []
