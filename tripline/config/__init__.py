"""Runtime configuration helpers."""

from tripline.config.settings import EngineSettings, resolve_settings

__all__ = ["EngineSettings", "resolve_settings"]
