import fcntl
import json
import logging
import os
import time
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)

LOCK_TIMEOUT_SECONDS = 0.05
LOCK_RETRY_SECONDS = 0.005


class RateLimiter:
    """Per-minute request quota shared between processes through a JSON file.

    The counter map is updated under an exclusive flock. If the lock can't be
    taken within `lock_timeout` (or the file is unusable) the request is
    allowed.
    """

    def __init__(self, path: Union[str, Path], lock_timeout: float = LOCK_TIMEOUT_SECONDS):
        self.path = Path(path)
        self.lock_timeout = lock_timeout

    def _acquire(self, fd: int) -> bool:
        deadline = time.monotonic() + self.lock_timeout
        while True:
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                return True
            except BlockingIOError:
                if time.monotonic() >= deadline:
                    return False
                time.sleep(LOCK_RETRY_SECONDS)

    @staticmethod
    def _load(fd: int) -> Dict[str, int]:
        os.lseek(fd, 0, os.SEEK_SET)
        chunks = []
        while True:
            chunk = os.read(fd, 65536)
            if not chunk:
                break
            chunks.append(chunk)
        raw = b"".join(chunks)
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _save(fd: int, data: Dict[str, int]) -> None:
        os.lseek(fd, 0, os.SEEK_SET)
        os.ftruncate(fd, 0)
        os.write(fd, json.dumps(data).encode("utf-8"))

    def check_limit(self, max_per_minute: int, now: Optional[float] = None) -> bool:
        if max_per_minute <= 0:
            return True

        minute = int((time.time() if now is None else now) // 60)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o600)
        except OSError as e:
            logger.warning("Rate limit store unavailable (%s), allowing request", e)
            return True

        try:
            if not self._acquire(fd):
                logger.warning("Rate limit lock busy, allowing request")
                return True
            try:
                data = self._load(fd)
                # keep the current and previous minute only
                data = {
                    k: v for k, v in data.items()
                    if k.lstrip("-").isdigit() and int(k) >= minute - 1 and isinstance(v, int)
                }

                current = data.get(str(minute), 0)
                if current >= max_per_minute:
                    return False

                data[str(minute)] = current + 1
                self._save(fd, data)
                return True
            finally:
                fcntl.flock(fd, fcntl.LOCK_UN)
        except OSError as e:
            logger.warning("Rate limit update failed (%s), allowing request", e)
            return True
        finally:
            os.close(fd)
