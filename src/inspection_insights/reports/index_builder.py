"""Grouping indices over a report collection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from inspection_insights.reports.dates import ReportDateParser
from inspection_insights.reports.report_model import Report


@dataclass(frozen=True)
class GroupedView:
    """Reports grouped under a key together with the display order of the keys."""

    grouped: Mapping[str, Tuple[Report, ...]] = field(default_factory=dict)
    sorted_keys: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return sum(len(group) for group in self.grouped.values())

    def is_empty(self) -> bool:
        return not self.grouped

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sorted_keys": list(self.sorted_keys),
            "grouped": {key: [report.id for report in self.grouped[key]] for key in self.sorted_keys},
            "total": self.total,
        }


@dataclass(frozen=True)
class ReportIndex:
    """Lookup tables rebuilt whenever the underlying collection changes."""

    by_date: Mapping[str, Tuple[Report, ...]]
    by_inspector: Mapping[str, Tuple[Report, ...]]
    by_authority: Mapping[str, Tuple[Report, ...]]
    sorted_dates: Tuple[str, ...]

    def reports_for_date(self, key: str) -> Tuple[Report, ...]:
        return self.by_date.get(key, ())

    def reports_for_inspector(self, inspector: str) -> Tuple[Report, ...]:
        return self.by_inspector.get(inspector, ())

    def reports_for_authority(self, authority: str) -> Tuple[Report, ...]:
        return self.by_authority.get(authority, ())

    def date_view(self) -> GroupedView:
        return GroupedView(grouped=self.by_date, sorted_keys=self.sorted_dates)


def partition(reports: Iterable[Report], key: Callable[[Report], str]) -> Dict[str, Tuple[Report, ...]]:
    """Group reports by ``key`` preserving input order inside each group."""

    buckets: Dict[str, List[Report]] = {}
    for report in reports:
        buckets.setdefault(key(report), []).append(report)
    return {bucket_key: tuple(members) for bucket_key, members in buckets.items()}


def group_by_date(reports: Sequence[Report], parser: Optional[ReportDateParser] = None) -> GroupedView:
    """Group ``reports`` by normalized display date, newest first."""

    date_parser = parser or ReportDateParser.from_settings()
    grouped = partition(reports, lambda report: date_parser.group_key(report.date))
    return GroupedView(grouped=grouped, sorted_keys=tuple(date_parser.sort_keys(grouped)))


def build_index(reports: Sequence[Report], parser: Optional[ReportDateParser] = None) -> ReportIndex:
    """Build the date, inspector, and authority partitions for ``reports``."""

    date_view = group_by_date(reports, parser)
    return ReportIndex(
        by_date=date_view.grouped,
        by_inspector=partition(reports, lambda report: report.inspector),
        by_authority=partition(reports, lambda report: report.local_authority),
        sorted_dates=date_view.sorted_keys,
    )


__all__ = ["GroupedView", "ReportIndex", "build_index", "group_by_date", "partition"]
