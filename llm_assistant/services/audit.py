import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Union

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLogger:
    """Append-only JSON lines trail of LLM requests, responses and errors.

    Prompt and response bodies are never written, only their lengths.
    """

    def __init__(self, path: Union[str, Path], user: str = "system"):
        self.path = Path(path)
        self.user = user

    def log_request(self, feature: str, prompt: str) -> None:
        self._log("REQUEST", feature, {"prompt_length": len(prompt)})

    def log_response(self, feature: str, response: str) -> None:
        self._log("RESPONSE", feature, {"response_length": len(response)})

    def log_error(self, feature: str, error: str) -> None:
        self._log("ERROR", feature, {"error": error})

    def _log(self, kind: str, feature: str, data: Dict[str, Any]) -> None:
        entry = {
            "timestamp": _now(),
            "type": kind,
            "feature": feature,
            "user": self.user,
            "data": data,
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False) + "\n")
        except OSError as e:
            logger.warning("Audit log write failed (%s): %s", self.path, e)
