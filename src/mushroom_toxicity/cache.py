import os
from typing import Any, Callable

import joblib

from .utils.logger import get_logger


class ResultCache:
    """One joblib file per key, reused while the settings fingerprint matches."""

    def __init__(self, cache_dir: str, enabled: bool = True):
        self.cache_dir = cache_dir
        self.enabled = enabled
        self.logger = get_logger(self.__class__.__name__)

    def path(self, key: str) -> str:
        return os.path.join(self.cache_dir, f"{key}.joblib")

    def load_or_compute(self, key: str, settings: Any, compute: Callable[[], Any]) -> Any:
        fingerprint = joblib.hash(settings)
        path = self.path(key)

        if self.enabled and os.path.exists(path):
            cached = joblib.load(path)
            if cached.get("fingerprint") == fingerprint:
                self.logger.info(f"Loaded cached results: {path}")
                return cached["value"]
            self.logger.info(f"Settings changed since {path} was written; recomputing")

        value = compute()

        if self.enabled:
            os.makedirs(self.cache_dir, exist_ok=True)
            joblib.dump({"fingerprint": fingerprint, "value": value}, path)
            self.logger.info(f"Saved results: {path}")
        return value
