from __future__ import annotations

import json
import os
from typing import Any

from .logger import get_logger

_logger = get_logger("settings")

_TRUTHY = ("1", "true", "yes", "on")


class SettingsManager:
    """JSON-backed settings for the action layer.

    A manager without a path keeps everything in memory; `set` only persists
    when a path was given.
    """

    def __init__(self, settings_path: str | None = None):
        self.settings_path = settings_path
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "design_mode": False,
        "log_invocations": True,
        "fault_join_timeout": 5.0,
    }

    def load(self) -> None:
        if not self.settings_path:
            self._settings = {}
            return
        try:
            if os.path.exists(self.settings_path):
                with open(self.settings_path, encoding="utf-8") as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        self._settings = data
                        _logger.debug("settings loaded: %s", self.settings_path)
                        return
        except (OSError, ValueError) as e:
            _logger.warning("settings load failed: %s", e)
        self._settings = {}

    def save(self) -> None:
        if not self.settings_path:
            return
        try:
            parent = os.path.dirname(self.settings_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except OSError as e:
            _logger.error("settings save failed: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def has(self, key: str) -> bool:
        return key in self._settings

    def set(self, key: str, value: Any) -> None:
        self._settings[key] = value
        self.save()

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    @property
    def design_mode(self) -> bool:
        env = os.getenv("VIEW_ACTIONS_DESIGN_MODE")
        if env is not None and env.strip():
            return env.strip().lower() in _TRUTHY
        return bool(self.get("design_mode"))

    @property
    def log_invocations(self) -> bool:
        return bool(self.get("log_invocations"))

    @property
    def fault_join_timeout(self) -> float:
        try:
            return max(0.0, float(self.get("fault_join_timeout")))
        except (TypeError, ValueError):
            _logger.warning("fault_join_timeout invalid: %r", self.get("fault_join_timeout"))
            return float(self.DEFAULTS["fault_join_timeout"])


_settings = SettingsManager()


def get_settings() -> SettingsManager:
    return _settings


def configure(settings_path: str | None) -> SettingsManager:
    """Replace the process-wide settings, e.g. at host startup."""
    global _settings
    _settings = SettingsManager(settings_path)
    return _settings


def in_design_mode() -> bool:
    return _settings.design_mode


def set_design_mode(enabled: bool) -> None:
    _settings.set("design_mode", bool(enabled))
