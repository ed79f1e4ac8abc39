import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from llm_assistant.api.deps import get_llm, get_settings
from llm_assistant.config import Settings
from llm_assistant.pipeline.config_review import REVIEW_SECTIONS, review_configuration
from llm_assistant.services.config_snapshot import ConfigSnapshotError, load_config_snapshot
from llm_assistant.services.llm import LLMQuery

logger = logging.getLogger(__name__)

router = APIRouter(tags=["config"])


class ReviewRequest(BaseModel):
    section: str = "all"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message})


@router.post("/config/review")
def review(
    payload: Optional[ReviewRequest] = Body(default=None),
    settings: Settings = Depends(get_settings),
    llm: LLMQuery = Depends(get_llm),
):
    payload = payload or ReviewRequest()
    if not settings.is_feature_enabled("config_review"):
        return _error(403, "Configuration review feature is not enabled")

    if payload.section not in REVIEW_SECTIONS:
        return _error(422, "Invalid section specified")

    try:
        config = load_config_snapshot(settings.config_snapshot)
    except ConfigSnapshotError as e:
        logger.error("Config review error: %s", e)
        return _error(500, f"Failed to review configuration: {e}")

    result = review_configuration(config, payload.section, llm)
    return {"status": "success", "review": result.model_dump()}


@router.get("/config/sections")
def sections() -> dict:
    return {"sections": REVIEW_SECTIONS}
