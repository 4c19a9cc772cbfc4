"""Aggregate statistics and on-demand profiles over report collections."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence, Tuple

from inspection_insights.reports.report_model import UNKNOWN_GRADE, Report


def percentage_of(count: int, total: int) -> float:
    """Share of ``count`` in ``total`` floor-truncated to one decimal place.

    >>> percentage_of(1, 3)
    33.3
    """

    if total <= 0:
        return 0.0
    return (count * 1000 // total) / 10


@dataclass(frozen=True)
class Profile:
    """Read-only snapshot of one inspector or authority.

    ``breakdown`` counts the complementary dimension: authorities for an
    inspector profile, inspectors for an authority profile.
    """

    name: str
    total_inspections: int
    breakdown: Mapping[str, int]
    grade_distribution: Mapping[str, int]
    provision_types: Mapping[str, int] = field(default_factory=dict)
    themes: Sequence[Tuple[str, int]] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "total_inspections": self.total_inspections,
            "breakdown": dict(self.breakdown),
            "grade_distribution": dict(self.grade_distribution),
            "provision_types": dict(self.provision_types),
            "themes": [{"theme": theme, "count": count} for theme, count in self.themes],
        }


@dataclass(frozen=True)
class MonthlyCount:
    month: str
    count: int


def count_by(reports: Iterable[Report], key: Callable[[Report], str]) -> List[Tuple[str, int]]:
    """Group-count ``reports`` by ``key``, highest count first (stable on first seen)."""

    counts: Dict[str, int] = {}
    for report in reports:
        value = key(report)
        counts[value] = counts.get(value, 0) + 1
    return sorted(counts.items(), key=lambda item: -item[1])


def most_common_themes(reports: Iterable[Report], limit: int = 10) -> List[Tuple[str, int]]:
    """Themes ranked by summed per-report ``frequency`` weight."""

    weights: Dict[str, int] = {}
    for report in reports:
        for theme in report.themes:
            weights[theme.topic] = weights.get(theme.topic, 0) + theme.frequency
    ranked = sorted(weights.items(), key=lambda item: -item[1])
    return ranked[: max(limit, 0)]


def distribution_by_grade(reports: Iterable[Report]) -> List[Tuple[str, int]]:
    return count_by(reports, lambda report: report.grade_or_outcome or UNKNOWN_GRADE)


def distribution_by_authority(reports: Iterable[Report]) -> List[Tuple[str, int]]:
    return count_by(reports, lambda report: report.local_authority)


def distribution_by_inspector(reports: Iterable[Report]) -> List[Tuple[str, int]]:
    return count_by(reports, lambda report: report.inspector)


def distribution_by_provision_type(reports: Iterable[Report]) -> List[Tuple[str, int]]:
    return count_by(reports, lambda report: report.provision_label)


def most_inspected_areas(reports: Iterable[Report], limit: int = 5) -> List[Tuple[str, int]]:
    ranked = [item for item in distribution_by_authority(reports) if item[0]]
    return ranked[:limit]


def top_inspectors(reports: Iterable[Report], limit: int = 5) -> List[Tuple[str, int]]:
    ranked = [item for item in distribution_by_inspector(reports) if item[0]]
    return ranked[:limit]


def unique_values(reports: Iterable[Report], field_name: str) -> List[str]:
    """Sorted distinct non-empty values of a report attribute."""

    values = {getattr(report, field_name) for report in reports}
    return sorted(value for value in values if value)


def unique_inspectors(reports: Iterable[Report]) -> List[str]:
    return unique_values(reports, "inspector")


def unique_authorities(reports: Iterable[Report]) -> List[str]:
    return unique_values(reports, "local_authority")


def theme_prevalence(reports: Sequence[Report]) -> List[Tuple[str, float]]:
    """Percentage of reports mentioning each theme, most prevalent first."""

    counter: Counter[str] = Counter()
    for report in reports:
        counter.update(report.theme_topics)
    total = len(reports)
    ranked = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    return [(theme, percentage_of(count, total)) for theme, count in ranked]


def theme_counts(reports: Iterable[Report]) -> List[Tuple[str, int]]:
    """Number of reports mentioning each theme, ties broken by name."""

    counter: Counter[str] = Counter()
    for report in reports:
        counter.update(report.theme_topics)
    return sorted(counter.items(), key=lambda item: (-item[1], item[0]))


def inspector_profile(reports: Iterable[Report], name: str) -> Profile:
    subset = [report for report in reports if report.inspector == name]
    return Profile(
        name=name,
        total_inspections=len(subset),
        breakdown=dict(count_by(subset, lambda report: report.local_authority)),
        grade_distribution=_grade_counts(subset),
        provision_types=dict(distribution_by_provision_type(subset)),
    )


def authority_profile(reports: Iterable[Report], name: str) -> Profile:
    subset = [report for report in reports if report.local_authority == name]
    return Profile(
        name=name,
        total_inspections=len(subset),
        breakdown=dict(count_by(subset, lambda report: report.inspector)),
        grade_distribution=_grade_counts(subset),
        provision_types=dict(distribution_by_provision_type(subset)),
        themes=tuple(theme_counts(subset)),
    )


def monthly_counts(reports: Iterable[Report], months: int = 12) -> List[MonthlyCount]:
    """Inspections per calendar month (UTC, by timestamp), oldest first."""

    counter: Counter[str] = Counter()
    for report in reports:
        counter[report.inspected_at.strftime("%Y-%m")] += 1
    ordered = sorted(counter.items())
    if months > 0:
        ordered = ordered[-months:]
    return [MonthlyCount(month=month, count=count) for month, count in ordered]


def _grade_counts(reports: Iterable[Report]) -> Dict[str, int]:
    # Reports with neither a grade nor an outcome are left out of the distribution.
    grades: Dict[str, int] = {}
    for report in reports:
        grade = report.grade_or_outcome
        if grade:
            grades[grade] = grades.get(grade, 0) + 1
    return grades


__all__ = [
    "MonthlyCount",
    "Profile",
    "authority_profile",
    "count_by",
    "distribution_by_authority",
    "distribution_by_grade",
    "distribution_by_inspector",
    "distribution_by_provision_type",
    "inspector_profile",
    "monthly_counts",
    "most_common_themes",
    "most_inspected_areas",
    "percentage_of",
    "theme_counts",
    "theme_prevalence",
    "top_inspectors",
    "unique_authorities",
    "unique_inspectors",
    "unique_values",
]
