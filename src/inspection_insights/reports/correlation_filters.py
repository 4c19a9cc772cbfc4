"""Synchronous re-filtering of an already computed correlation result."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

from inspection_insights.reports.aggregates import percentage_of
from inspection_insights.reports.report_model import GRADES, OUTCOMES, rating_rank
from inspection_insights.reports.theme_correlation import (
    CorrelationResult,
    RatingOccurrence,
    ThemeCorrelation,
    ThemeCount,
)

ALL_RATINGS = "All"


class PercentageRange(str, Enum):
    """Buckets over a correlation's original percentage (closed ranges)."""

    ALL = "All"
    SEVENTY_FIVE_TO_HUNDRED = "75-100%"
    FIFTY_TO_SEVENTY_FIVE = "50-75%"
    TWENTY_FIVE_TO_FIFTY = "25-50%"
    ZERO_TO_TWENTY_FIVE = "0-25%"

    @property
    def bounds(self) -> Optional[Tuple[float, float]]:
        return {
            PercentageRange.ALL: None,
            PercentageRange.SEVENTY_FIVE_TO_HUNDRED: (75.0, 100.0),
            PercentageRange.FIFTY_TO_SEVENTY_FIVE: (50.0, 75.0),
            PercentageRange.TWENTY_FIVE_TO_FIFTY: (25.0, 50.0),
            PercentageRange.ZERO_TO_TWENTY_FIVE: (0.0, 25.0),
        }[self]

    def contains(self, percentage: float) -> bool:
        bounds = self.bounds
        if bounds is None:
            return True
        low, high = bounds
        return low <= percentage <= high


@dataclass(frozen=True)
class FilteredCorrelations:
    """Correlations re-based on the population that survived the filters."""

    correlations: Tuple[ThemeCorrelation, ...] = field(default_factory=tuple)
    themes: Tuple[ThemeCount, ...] = field(default_factory=tuple)
    total_reports: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_reports": self.total_reports,
            "correlations": [item.to_dict() for item in self.correlations],
            "themes": [item.to_dict() for item in self.themes],
        }


def matches_rating(rating: str, selector: str) -> bool:
    """Grades match by case-insensitive prefix, outcomes exactly, ``All`` always."""

    if selector == ALL_RATINGS:
        return True
    if selector in OUTCOMES:
        return rating == selector
    folded = selector.casefold()
    if any(folded == grade.casefold() for grade in GRADES):
        return rating.casefold().startswith(folded)
    return rating.casefold() == folded


def _rating_category(rating: str) -> Optional[str]:
    if rating in OUTCOMES:
        return rating
    folded = rating.casefold()
    for grade in GRADES:
        if folded.startswith(grade.casefold()):
            return grade
    return None


def _occurrence_matches(occurrence: RatingOccurrence, rating: str, peer: Optional[str]) -> bool:
    if peer is not None and occurrence.peer != peer:
        return False
    return matches_rating(occurrence.rating, rating)


def filter_correlations(
    result: CorrelationResult,
    *,
    percentage_range: PercentageRange = PercentageRange.ALL,
    rating: str = ALL_RATINGS,
    peer: Optional[str] = None,
) -> FilteredCorrelations:
    """Narrow ``result`` and recompute percentages over the surviving reports.

    The denominator is the number of distinct reports whose occurrences match
    the rating and peer filters within the kept correlations.
    """

    in_range = [item for item in result.correlations if percentage_range.contains(item.percentage)]

    matching: Dict[str, List[RatingOccurrence]] = {}
    report_ids: Set[str] = set()
    for correlation in in_range:
        hits = [item for item in correlation.rating_reports if _occurrence_matches(item, rating, peer)]
        if hits:
            matching[correlation.theme] = hits
            report_ids.update(item.report_id for item in hits)

    total = len(report_ids)
    rebased = [
        replace(correlation, percentage=percentage_of(len(matching[correlation.theme]), total))
        for correlation in in_range
        if correlation.theme in matching
    ]
    rebased.sort(key=lambda item: (-item.percentage, item.theme))

    themes = sorted(
        (ThemeCount(theme=theme, count=len(hits)) for theme, hits in matching.items()),
        key=lambda item: (-item.count, item.theme),
    )
    return FilteredCorrelations(correlations=tuple(rebased), themes=tuple(themes), total_reports=total)


def available_ratings(result: CorrelationResult, peer: Optional[str] = None) -> List[str]:
    """Rating selectors present in ``result``, with ``All`` first."""

    categories: Set[str] = set()
    seen: Set[str] = set()
    for correlation in result.correlations:
        for occurrence in correlation.rating_reports:
            if occurrence.report_id in seen:
                continue
            if peer is not None and occurrence.peer != peer:
                continue
            category = _rating_category(occurrence.rating)
            if category:
                categories.add(category)
            seen.add(occurrence.report_id)
    return [ALL_RATINGS] + sorted(categories, key=rating_rank)


def available_peers(result: CorrelationResult, rating: str = ALL_RATINGS) -> List[str]:
    peers: Set[str] = set()
    seen: Set[str] = set()
    for correlation in result.correlations:
        for occurrence in correlation.rating_reports:
            if occurrence.report_id in seen or not matches_rating(occurrence.rating, rating):
                continue
            peers.add(occurrence.peer)
            seen.add(occurrence.report_id)
    return sorted(peers)


__all__ = [
    "ALL_RATINGS",
    "FilteredCorrelations",
    "PercentageRange",
    "available_peers",
    "available_ratings",
    "filter_correlations",
    "matches_rating",
]
