"""Settings package exposing the cached configuration accessor."""

from inspection_insights.settings.config import PROJECT_ROOT, Settings, get_settings, reload_settings

__all__ = ["PROJECT_ROOT", "Settings", "get_settings", "reload_settings"]
