"""Application settings backed by a small JSON file."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional

logger = logging.getLogger(__name__)

APP_NAME = "PromptSite"

API_KEY_ENV_VARS = ("PROMPTSITE_API_KEY", "OPENAI_API_KEY")

DEFAULTS: Dict[str, str] = {
    "api_base": "https://api.openai.com/v1",
    "model": "gpt-4o-mini",
    "request_timeout": "60",
    "log_level": "INFO",
}


def app_data_dir() -> Path:
    """Return the platform-specific application data directory."""
    if os.name == "nt":
        base = Path(os.getenv("LOCALAPPDATA", Path.home()))
    else:
        base = Path.home() / ".local" / "share"
    return base / APP_NAME


@dataclass
class Settings:
    api_base: str = DEFAULTS["api_base"]
    model: str = DEFAULTS["model"]
    request_timeout: float = float(DEFAULTS["request_timeout"])
    log_level: str = DEFAULTS["log_level"]
    api_key: Optional[str] = field(default=None, repr=False)

    @property
    def chat_completions_url(self) -> str:
        return f"{self.api_base.rstrip('/')}/chat/completions"


class SettingsManager:
    """Very small settings helper storing JSON data.

    The API key is deliberately not part of the file; it is read from the
    environment each time ``settings()`` is called.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else app_data_dir() / "settings.json"
        self._settings: Dict[str, str] = {}
        self.load()

    def load(self) -> None:
        changed = False
        if self.path.exists():
            try:
                loaded = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                logger.warning("Ignoring unreadable settings file %s: %s", self.path, exc)
                loaded = {}
            self._settings = {str(k): str(v) for k, v in loaded.items()} if isinstance(loaded, dict) else {}
        else:
            self._settings = {}

        for key, value in DEFAULTS.items():
            if self._settings.get(key, "") == "":
                self._settings[key] = value
                changed = True

        if changed:
            try:
                self.save()
            except OSError as exc:
                logger.warning("Could not write settings to %s: %s", self.path, exc)

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._settings, indent=2), encoding="utf-8")

    def get(self, key: str, default: str = "") -> str:
        return self._settings.get(key, default)

    def set(self, key: str, value: str) -> None:
        self._settings[key] = value
        self.save()

    def settings(self, environ: Optional[Mapping[str, str]] = None) -> Settings:
        env = os.environ if environ is None else environ
        try:
            timeout = float(self.get("request_timeout", DEFAULTS["request_timeout"]))
        except ValueError:
            timeout = float(DEFAULTS["request_timeout"])
        api_key = next((env[name] for name in API_KEY_ENV_VARS if env.get(name)), None)
        return Settings(
            api_base=self.get("api_base", DEFAULTS["api_base"]),
            model=self.get("model", DEFAULTS["model"]),
            request_timeout=timeout,
            log_level=self.get("log_level", DEFAULTS["log_level"]).upper(),
            api_key=api_key,
        )
