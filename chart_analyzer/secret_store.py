import json
import logging
import os
from pathlib import Path

from chart_analyzer.constants import DEFAULT_SECRET_STORE_PATH

logger = logging.getLogger(__name__)


class SecretStore:
    """Tiny JSON-file key/value store. Every write is flushed to disk immediately."""

    def __init__(self, path: Path = Path(DEFAULT_SECRET_STORE_PATH)):
        self._path = Path(path)
        self._store: dict[str, str] = {}
        self._load()

    def _load(self) -> None:
        match self._path.exists():
            case True:
                try:
                    with open(self._path) as f:
                        raw = json.load(f)
                    match raw:
                        case dict():
                            self._store = {k: v for k, v in raw.items() if isinstance(v, str)}
                        case _:
                            logger.warning(f"Ignoring {self._path.name}: not a JSON object")
                except Exception as e:
                    logger.warning(f"Secret store load failed: {e}, starting fresh")
            case False:
                pass

    def _save(self) -> None:
        try:
            # owner-only, including a file that already existed
            fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            os.fchmod(fd, 0o600)
            with os.fdopen(fd, "w") as f:
                json.dump(self._store, f, indent=2)
        except Exception as e:
            logger.warning(f"Secret store save failed: {e}")

    def get(self, key: str) -> str | None:
        return self._store.get(key)

    def set(self, key: str, value: str) -> None:
        self._store[key] = value
        self._save()

    def remove(self, key: str) -> None:
        match self._store.pop(key, None):
            case None:
                pass
            case _:
                self._save()
