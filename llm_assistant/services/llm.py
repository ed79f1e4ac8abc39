from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol

import httpx

from llm_assistant.config import Settings
from llm_assistant.services.audit import AuditLogger
from llm_assistant.services.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"

SYSTEM_PROMPT = (
    "You are a security assistant for OPNsense firewall. "
    "Provide clear, actionable advice. "
    "Always prioritize security best practices. "
    "Be concise and technically accurate.\n\n"
)

RATE_LIMIT_ERROR = "Rate limit exceeded. Please wait before trying again."


class LLMQuery(Protocol):
    """Anything that can answer a prompt.

    Returns {"success": True, "response": str} or {"error": str}.
    """

    def query(self, prompt: str, context: Optional[Mapping[str, Any]] = None, feature: str = "general") -> Dict[str, Any]:
        ...


class LLMError(Exception):
    pass


def build_prompt(prompt: str, context: Optional[Mapping[str, Any]] = None) -> str:
    text = SYSTEM_PROMPT
    if context:
        text += "Context:\n"
        for key, value in context.items():
            text += f"{key}: {value}\n"
        text += "\n"
    return text + "User Query: " + prompt


class LLMService:
    """LLMQuery backed by a provider HTTP API, with rate limiting and auditing."""

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.Client] = None,
        rate_limiter: Optional[RateLimiter] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.settings = settings
        self.client = client or httpx.Client(timeout=settings.request_timeout, verify=True)
        self.rate_limiter = rate_limiter or RateLimiter(settings.rate_limit_file)
        self.audit = audit or AuditLogger(settings.audit_log)

    def close(self) -> None:
        self.client.close()

    def query(self, prompt: str, context: Optional[Mapping[str, Any]] = None, feature: str = "general") -> Dict[str, Any]:
        if not self.rate_limiter.check_limit(self.settings.rate_limit):
            return {"error": RATE_LIMIT_ERROR}

        self.audit.log_request(feature, prompt)
        try:
            response = self._send(build_prompt(prompt, context))
        except (LLMError, httpx.HTTPError) as e:
            logger.warning("LLM query failed (feature=%s): %s", feature, e)
            self.audit.log_error(feature, str(e))
            return {"error": f"Failed to query LLM: {e}"}

        self.audit.log_response(feature, response)
        return {"success": True, "response": response}

    # ----------------------------
    # Providers
    # ----------------------------

    def _send(self, prompt: str) -> str:
        provider = self.settings.api_provider
        endpoint = self.settings.api_endpoint.rstrip("/")

        if provider in ("openai", "openrouter", "local"):
            headers = {"Content-Type": "application/json"}
            if provider != "local":
                headers["Authorization"] = f"Bearer {self.settings.api_key}"
            if provider == "openrouter":
                headers["HTTP-Referer"] = "https://opnsense.local"
                headers["X-Title"] = "OPNsense LLM Assistant"
            data = self._post(f"{endpoint}/chat/completions", headers, self._chat_payload(prompt))
            return self._chat_content(data)

        if provider == "anthropic":
            headers = {
                "Content-Type": "application/json",
                "x-api-key": self.settings.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
            }
            data = self._post(f"{endpoint}/messages", headers, self._chat_payload(prompt))
            return self._anthropic_content(data)

        raise LLMError(f"Unknown provider: {provider}")

    def _chat_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.settings.model_name,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.settings.max_tokens,
            "temperature": self.settings.temperature,
        }

    def _post(self, url: str, headers: Dict[str, str], payload: Dict[str, Any]) -> Dict[str, Any]:
        resp = self.client.post(url, json=payload, headers=headers, timeout=self.settings.request_timeout)
        if resp.status_code != 200:
            raise LLMError(f"HTTP error {resp.status_code}: {resp.text[:200]}")
        try:
            data = resp.json()
        except ValueError:
            raise LLMError("Invalid JSON response")
        if not isinstance(data, dict) or not data:
            raise LLMError("Invalid JSON response")
        return data

    @staticmethod
    def _chat_content(data: Dict[str, Any]) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise LLMError("Unexpected response format")
        if not isinstance(content, str):
            raise LLMError("Unexpected response format")
        return content

    @staticmethod
    def _anthropic_content(data: Dict[str, Any]) -> str:
        blocks: List[Dict[str, Any]] = data.get("content") or []
        texts = [b.get("text", "") for b in blocks if isinstance(b, dict) and b.get("type") == "text"]
        if not texts:
            raise LLMError("Unexpected response format")
        return "".join(texts)
