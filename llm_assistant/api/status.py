from fastapi import APIRouter, Depends

from llm_assistant.api.deps import get_settings
from llm_assistant.config import FEATURES, Settings

router = APIRouter(tags=["status"])


@router.get("/status")
def get_status(settings: Settings = Depends(get_settings)) -> dict:
    return {
        "configured": settings.is_configured(),
        "provider": settings.api_provider,
        "features": {name: settings.is_feature_enabled(name) for name in FEATURES},
    }
