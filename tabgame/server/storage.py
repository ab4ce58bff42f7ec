from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from loguru import logger


class JsonStore:
    """One JSON document on disk, rewritten atomically on every save."""

    def __init__(self, path: str | os.PathLike[str]):
        self.path = Path(path)

    def load(self, default: Any = None) -> Any:
        fallback = {} if default is None else default
        if not self.path.exists():
            return fallback
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning(f"Could not read {self.path}: {exc}; starting empty")
            return fallback

    def save(self, data: Any) -> bool:
        tmp = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp, self.path)
            return True
        except (OSError, TypeError, ValueError) as exc:
            logger.warning(f"Could not write {self.path}: {exc}")
            if tmp is not None and os.path.exists(tmp):
                os.unlink(tmp)
            return False
