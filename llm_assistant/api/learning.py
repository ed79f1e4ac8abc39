import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from llm_assistant.api.deps import get_llm, get_settings
from llm_assistant.config import Settings
from llm_assistant.pipeline.config_review import system_info
from llm_assistant.services.config_snapshot import ConfigSnapshotError, load_config_snapshot
from llm_assistant.services.llm import LLMQuery

logger = logging.getLogger(__name__)

router = APIRouter(tags=["learning"])

MAX_QUESTION_CHARS = 1000

SUGGESTIONS = {
    "Getting Started": [
        "How do I configure a basic firewall rule?",
        "What is the difference between LAN and WAN?",
        "How do I set up port forwarding?",
    ],
    "Security Best Practices": [
        "What ports should I block for security?",
        "How do I configure a DMZ?",
        "What are the best practices for SSH access?",
    ],
    "Troubleshooting": [
        "Why is my traffic being blocked?",
        "How do I check firewall logs?",
        "What does this error message mean?",
    ],
    "Advanced Topics": [
        "How do I set up VLANs?",
        "What is stateful inspection?",
        "How do I configure intrusion detection?",
    ],
}


class AskRequest(BaseModel):
    question: str = ""


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message})


def _context(settings: Settings) -> Dict[str, Any]:
    try:
        info = system_info(load_config_snapshot(settings.config_snapshot))
    except ConfigSnapshotError as e:
        # answer without firewall details
        logger.debug("No system info for learning context: %s", e)
        info = {"version": "OPNsense", "has_rules": False, "interface_count": 0}
    return {"mode": "learning", "system_info": info}


@router.post("/learning/ask")
def ask(
    payload: Optional[AskRequest] = Body(default=None),
    settings: Settings = Depends(get_settings),
    llm: LLMQuery = Depends(get_llm),
):
    """Answer a free-form firewall question."""
    payload = payload or AskRequest()
    if not settings.is_feature_enabled("learning_mode"):
        return _error(403, "Learning mode is not enabled")

    question = payload.question.strip()
    if not question:
        return _error(422, "Question cannot be empty")
    if len(question) > MAX_QUESTION_CHARS:
        return _error(422, f"Question is too long (max {MAX_QUESTION_CHARS} characters)")

    try:
        result = llm.query(question, _context(settings), "learning_mode")
    except Exception as e:
        logger.exception("Learning mode error")
        return _error(500, f"Failed to process question: {e}")

    if "error" in result:
        return _error(502, result["error"])

    return {
        "status": "success",
        "answer": result.get("response", ""),
        "model": result.get("model") or settings.model_name,
    }


@router.get("/learning/suggestions")
def suggestions() -> dict:
    return {"status": "success", "suggestions": SUGGESTIONS}
