"""Composable report filters and progressively narrowing option sets."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Sequence, Tuple

from inspection_insights.reports.dates import DateRange, ReportDateParser
from inspection_insights.reports.index_builder import group_by_date
from inspection_insights.reports.report_model import Report

FilterField = Literal["inspector", "authority", "provision_type", "grade_or_outcome", "date_range"]

# Fields whose selectable values are derived from the collection.
OPTION_FIELDS: Tuple[FilterField, ...] = ("inspector", "authority", "provision_type", "grade_or_outcome")

_FIELD_VALUES: Dict[str, Callable[[Report], Optional[str]]] = {
    "inspector": lambda report: report.inspector,
    "authority": lambda report: report.local_authority,
    "provision_type": lambda report: report.type_of_provision,
    "grade_or_outcome": lambda report: report.grade_or_outcome,
}


@dataclass(frozen=True)
class FilterSpec:
    """Optional equality/range predicates combined with AND.

    ``grade_or_outcome`` is a single selector matched against a report's
    outcome, or its overall effectiveness grade when it has no outcome.
    """

    inspector: Optional[str] = None
    authority: Optional[str] = None
    provision_type: Optional[str] = None
    grade_or_outcome: Optional[str] = None
    date_range: Optional[DateRange] = None

    def matches(self, report: Report) -> bool:
        if self.inspector is not None and report.inspector != self.inspector:
            return False
        if self.authority is not None and report.local_authority != self.authority:
            return False
        if self.provision_type is not None and report.type_of_provision != self.provision_type:
            return False
        if self.grade_or_outcome is not None and report.grade_or_outcome != self.grade_or_outcome:
            return False
        if self.date_range is not None and not self.date_range.contains(report.inspected_at):
            return False
        return True

    def is_active(self) -> bool:
        return any(getattr(self, item.name) is not None for item in fields(self))

    def cleared(self, name: FilterField) -> "FilterSpec":
        return replace(self, **{name: None})

    def active_filters(self) -> List[Tuple[str, str]]:
        """Return ``(field, label)`` pairs for every active predicate."""

        active: List[Tuple[str, str]] = []
        for item in fields(self):
            value = getattr(self, item.name)
            if value is None:
                continue
            label = value.label() if isinstance(value, DateRange) else str(value)
            active.append((item.name, label))
        return active


@dataclass(frozen=True)
class FilterOptions:
    """Values selectable for each field given the other active filters."""

    inspectors: Tuple[str, ...] = field(default_factory=tuple)
    authorities: Tuple[str, ...] = field(default_factory=tuple)
    provision_types: Tuple[str, ...] = field(default_factory=tuple)
    grades_or_outcomes: Tuple[str, ...] = field(default_factory=tuple)

    def for_field(self, name: str) -> Tuple[str, ...]:
        return {
            "inspector": self.inspectors,
            "authority": self.authorities,
            "provision_type": self.provision_types,
            "grade_or_outcome": self.grades_or_outcomes,
        }[name]

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "inspectors": list(self.inspectors),
            "authorities": list(self.authorities),
            "provision_types": list(self.provision_types),
            "grades_or_outcomes": list(self.grades_or_outcomes),
        }


@dataclass(frozen=True)
class FilteredView:
    """Filtered reports plus their date grouping and the available options."""

    reports: Tuple[Report, ...]
    grouped: Mapping[str, Tuple[Report, ...]]
    sorted_keys: Tuple[str, ...]
    options: FilterOptions
    has_active_filters: bool

    @property
    def is_empty(self) -> bool:
        return not self.reports

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": len(self.reports),
            "report_ids": [report.id for report in self.reports],
            "sorted_keys": list(self.sorted_keys),
            "grouped": {key: [report.id for report in self.grouped[key]] for key in self.sorted_keys},
            "options": self.options.to_dict(),
            "has_active_filters": self.has_active_filters,
            "is_empty": self.is_empty,
        }


def apply_filters(reports: Sequence[Report], spec: FilterSpec) -> List[Report]:
    """Return the reports matching every active predicate, in original order."""

    if not spec.is_active():
        return list(reports)
    return [report for report in reports if spec.matches(report)]


def distinct_values(reports: Sequence[Report], name: str) -> Tuple[str, ...]:
    """Sorted distinct non-empty values of an option field."""

    extract = _FIELD_VALUES[name]
    values = {value for value in (extract(report) for report in reports) if value}
    return tuple(sorted(values))


def available_values(reports: Sequence[Report], spec: FilterSpec, name: str) -> Tuple[str, ...]:
    """Values of ``name`` selectable when every other active filter stays applied."""

    return distinct_values(apply_filters(reports, spec.cleared(name)), name)


def available_options(reports: Sequence[Report], spec: FilterSpec) -> FilterOptions:
    return FilterOptions(
        inspectors=available_values(reports, spec, "inspector"),
        authorities=available_values(reports, spec, "authority"),
        provision_types=available_values(reports, spec, "provision_type"),
        grades_or_outcomes=available_values(reports, spec, "grade_or_outcome"),
    )


def revise_filters(reports: Sequence[Report], spec: FilterSpec, **changes: Any) -> FilterSpec:
    """Apply ``changes`` and clear any other field left without a selectable value."""

    unknown = set(changes) - {item.name for item in fields(FilterSpec)}
    if unknown:
        raise TypeError(f"Unknown filter field(s): {sorted(unknown)}")

    revised = replace(spec, **changes)
    for name in OPTION_FIELDS:
        if name in changes:
            continue
        current = getattr(revised, name)
        if current is None:
            continue
        if current not in available_values(reports, revised, name):
            revised = revised.cleared(name)
    return revised


def build_filtered_view(
    reports: Sequence[Report],
    spec: FilterSpec,
    parser: Optional[ReportDateParser] = None,
) -> FilteredView:
    """Filter ``reports`` and derive the grouped view and option sets."""

    filtered = tuple(apply_filters(reports, spec))
    date_view = group_by_date(filtered, parser)
    return FilteredView(
        reports=filtered,
        grouped=date_view.grouped,
        sorted_keys=date_view.sorted_keys,
        options=available_options(reports, spec),
        has_active_filters=spec.is_active(),
    )


__all__ = [
    "FilterOptions",
    "FilterSpec",
    "FilteredView",
    "OPTION_FIELDS",
    "apply_filters",
    "available_options",
    "available_values",
    "build_filtered_view",
    "distinct_values",
    "revise_filters",
]
