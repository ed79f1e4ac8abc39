from functools import lru_cache
from typing import Iterator

from fastapi import Depends

from llm_assistant.config import Settings, load_settings
from llm_assistant.services.llm import LLMQuery, LLMService
from llm_assistant.services.reports_store import ReportStore


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def get_report_store(settings: Settings = Depends(get_settings)) -> ReportStore:
    return ReportStore(settings.reports_dir, keep=settings.report_retention)


def get_llm(settings: Settings = Depends(get_settings)) -> Iterator[LLMQuery]:
    service = LLMService(settings)
    try:
        yield service
    finally:
        service.close()
