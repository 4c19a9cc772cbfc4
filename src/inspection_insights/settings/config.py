"""Environment-driven configuration for the analytics engine."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "INSIGHTS_"


def _detect_project_root() -> Path:
    """Return the project root, honouring explicit environment overrides."""

    for key in (f"{ENV_PREFIX}PROJECT_ROOT", f"{ENV_PREFIX}RUNTIME__PROJECT_ROOT"):
        raw = os.getenv(key)
        if raw:
            candidate = Path(raw).expanduser().resolve()
            if candidate.is_dir():
                return candidate
    # settings/config.py -> inspection_insights -> src -> repository root
    return Path(__file__).resolve().parents[3]


PROJECT_ROOT = _detect_project_root()


class RuntimeSettings(BaseModel):
    """Process-level knobs shared by jobs and scripts."""

    log_level: str = "INFO"
    project_root: Optional[Path] = None


class AnalyticsSettings(BaseModel):
    """Sizing for correlation batches and ranked lists."""

    batch_size: int = Field(default=25, ge=1)
    frequent_theme_limit: int = Field(default=10, ge=1)
    theme_pair_limit: int = Field(default=10, ge=1)
    most_common_limit: int = Field(default=10, ge=1)
    top_n: int = Field(default=5, ge=1)


class DateSettings(BaseModel):
    """Display-date parsing rules used when grouping reports."""

    date_format: str = "%d/%m/%Y"
    separator: str = " - "


class SearchSettings(BaseModel):
    """Live search behaviour."""

    debounce_ms: int = Field(default=300, ge=0)


class Settings(BaseSettings):
    """Top-level settings object returned by :func:`get_settings`."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        extra="ignore",
    )

    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    dates: DateSettings = Field(default_factory=DateSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    data_dir: Optional[Path] = None

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        if self.runtime.project_root is None:
            self.runtime.project_root = PROJECT_ROOT
        if self.data_dir is None:
            self.data_dir = self.runtime.project_root / "data"
        elif not self.data_dir.is_absolute():
            self.data_dir = (self.runtime.project_root / self.data_dir).resolve()
        return self

    @property
    def project_root(self) -> Path:
        return self.runtime.project_root or PROJECT_ROOT


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached settings instance."""

    return Settings()


def reload_settings() -> Settings:
    """Drop the cached settings so the next call re-reads the environment."""

    get_settings.cache_clear()
    return get_settings()


__all__ = [
    "AnalyticsSettings",
    "DateSettings",
    "PROJECT_ROOT",
    "RuntimeSettings",
    "SearchSettings",
    "Settings",
    "get_settings",
    "reload_settings",
]
