"""
Persisted connectivity configuration: the store endpoint the dashboard talks to.

Kept in a small YAML file so it survives restarts. No file, or an empty
``api_url``, means no remote store (offline/local mode).
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path.home() / ".seopro" / "settings.yaml"


class EndpointSettings:
    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or os.getenv("SEOPRO_SETTINGS_PATH") or DEFAULT_SETTINGS_PATH)

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def get_api_url(self) -> str:
        return str(self._load().get("api_url") or "")

    def set_api_url(self, url: str) -> None:
        data = self._load()
        data["api_url"] = url
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(yaml.safe_dump(data, sort_keys=True), encoding="utf-8")
        logger.info("API endpoint saved to %s", self.path)
