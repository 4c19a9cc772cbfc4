"""Exception types raised at the edges of the analytics engine."""

from __future__ import annotations


class InsightsError(RuntimeError):
    """Base class for errors surfaced by inspection_insights."""


class ReportLoadError(InsightsError, ValueError):
    """Raised when a report snapshot cannot be read or validated."""


class AnalysisCancelled(InsightsError):
    """Raised when a theme correlation run is cancelled between chunks."""


__all__ = ["AnalysisCancelled", "InsightsError", "ReportLoadError"]
