import os
from typing import Dict, Optional

from pydantic import BaseModel, Field

ENV_PREFIX = "LLM_ASSISTANT_"

FEATURES = ("config_review", "incident_reports", "learning_mode")


def _env(name: str, default: str) -> str:
    return os.getenv(ENV_PREFIX + name, default)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Read-only configuration snapshot handed to services and routes."""

    model_config = {"frozen": True}

    # ----------------------------
    # General
    # ----------------------------
    enabled: bool = False
    api_provider: str = "openai"         # openai / openrouter / anthropic / local
    api_endpoint: str = "https://api.openai.com/v1"
    api_key: str = ""
    model_name: str = "gpt-4o-mini"
    max_tokens: int = Field(default=1024, ge=1)
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    request_timeout: float = Field(default=30.0, gt=0)

    # ----------------------------
    # Security
    # ----------------------------
    rate_limit: int = Field(default=10, ge=0)   # requests per minute, 0 = unlimited

    # ----------------------------
    # Features
    # ----------------------------
    features: Dict[str, bool] = Field(default_factory=lambda: {"incident_reports": True})

    # ----------------------------
    # Paths
    # ----------------------------
    log_path: str = "/var/log/filter/latest.log"
    reports_dir: str = "/var/llm_assistant/reports"
    rate_limit_file: str = "/tmp/llm_rate_limit.json"
    audit_log: str = "/var/log/llm_assistant_audit.log"
    config_snapshot: str = "/var/llm_assistant/config.json"

    report_retention: int = Field(default=100, ge=1)
    max_log_lines: int = Field(default=10000, ge=1)
    log_year: Optional[int] = None

    def is_configured(self) -> bool:
        if not self.enabled:
            return False
        # local models don't need an API key
        if self.api_provider == "local":
            return True
        return bool(self.api_key)

    def is_feature_enabled(self, feature: str) -> bool:
        if not self.is_configured():
            return False
        return bool(self.features.get(feature, False))


def load_settings() -> Settings:
    """Build a Settings snapshot from LLM_ASSISTANT_* environment variables."""
    features = {name: _env_bool(f"FEATURE_{name.upper()}", name == "incident_reports") for name in FEATURES}
    year = _env("LOG_YEAR", "")
    return Settings(
        enabled=_env_bool("ENABLED", False),
        api_provider=_env("API_PROVIDER", "openai").lower(),
        api_endpoint=_env("API_ENDPOINT", "https://api.openai.com/v1").rstrip("/"),
        api_key=_env("API_KEY", ""),
        model_name=_env("MODEL_NAME", "gpt-4o-mini"),
        max_tokens=int(_env("MAX_TOKENS", "1024")),
        temperature=float(_env("TEMPERATURE", "0.2")),
        request_timeout=float(_env("REQUEST_TIMEOUT", "30")),
        rate_limit=int(_env("RATE_LIMIT", "10")),
        features=features,
        log_path=_env("LOG_PATH", "/var/log/filter/latest.log"),
        reports_dir=_env("REPORTS_DIR", "/var/llm_assistant/reports"),
        rate_limit_file=_env("RATE_LIMIT_FILE", "/tmp/llm_rate_limit.json"),
        audit_log=_env("AUDIT_LOG", "/var/log/llm_assistant_audit.log"),
        config_snapshot=_env("CONFIG_SNAPSHOT", "/var/llm_assistant/config.json"),
        report_retention=int(_env("REPORT_RETENTION", "100")),
        max_log_lines=int(_env("MAX_LOG_LINES", "10000")),
        log_year=int(year) if year else None,
    )
