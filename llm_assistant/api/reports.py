import logging
import time
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from llm_assistant.api.deps import get_llm, get_report_store, get_settings
from llm_assistant.config import Settings
from llm_assistant.pipeline.report import generate_report
from llm_assistant.services.llm import LLMQuery
from llm_assistant.services.reports_store import InvalidReportId, ReportStore, ReportStoreError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reports"])

MIN_HOURS = 1
MAX_HOURS = 720


class GenerateRequest(BaseModel):
    hours: int = 24


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message})


@router.post("/reports/generate")
def generate(
    payload: Optional[GenerateRequest] = Body(default=None),
    settings: Settings = Depends(get_settings),
    store: ReportStore = Depends(get_report_store),
    llm: LLMQuery = Depends(get_llm),
):
    """Build an incident report for the last `hours` hours and save it."""
    payload = payload or GenerateRequest()
    if not settings.is_feature_enabled("incident_reports"):
        return _error(403, "Incident report feature is not enabled")

    if payload.hours < MIN_HOURS or payload.hours > MAX_HOURS:
        return _error(422, f"Invalid time range specified (must be between {MIN_HOURS} and {MAX_HOURS} hours)")

    end_time = int(time.time())
    start_time = end_time - payload.hours * 3600

    try:
        report = generate_report(start_time, end_time, settings, llm)
    except Exception as e:
        logger.exception("Incident report generation failed")
        return _error(500, f"Failed to generate report: {e}")

    # a storage fault must not throw the computed report away
    try:
        report_id = store.save(report)
    except ReportStoreError as e:
        logger.error("Report not saved: %s", e)
        return {
            "status": "error",
            "message": f"Failed to save report: {e}",
            "report_id": None,
            "report": report.model_dump(mode="json"),
        }

    return {
        "status": "success",
        "report_id": report_id,
        "report": report.model_dump(mode="json"),
    }


@router.get("/reports")
def list_reports(store: ReportStore = Depends(get_report_store)) -> dict:
    return {
        "status": "success",
        "reports": [s.model_dump() for s in store.list_reports()],
    }


@router.get("/reports/{report_id}")
def get_report(report_id: str, store: ReportStore = Depends(get_report_store)):
    try:
        report = store.get_report(report_id)
    except InvalidReportId as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ReportStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if report is None:
        raise HTTPException(status_code=404, detail="report not found")
    return {"status": "success", "report": report.model_dump(mode="json")}
