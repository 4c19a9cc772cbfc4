"""Tests for the filter engine."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from inspection_insights.reports.dates import DateRange
from inspection_insights.reports.filters import (
    FilterSpec,
    apply_filters,
    available_options,
    build_filtered_view,
    revise_filters,
)


@pytest.fixture
def reports(make_report):
    return [
        make_report("a", inspector="Ann", authority="Kent", provision="Childminder", grade="Good", date="01/02/2024"),
        make_report("b", inspector="Ann", authority="Surrey", provision="Nursery", grade="Outstanding", date="02/03/2024"),
        make_report("c", inspector="Ben", authority="Kent", provision="Nursery", outcome="Met", date="05/06/2023"),
        make_report("d", inspector="Ben", authority="Essex", provision="", grade="Inadequate", date="TBC"),
    ]


def test_conjunction_of_filters(reports) -> None:
    spec = FilterSpec(inspector="Ann", authority="Kent")

    result = apply_filters(reports, spec)

    assert [report.id for report in result] == ["a"]
    assert all(report.inspector == "Ann" and report.local_authority == "Kent" for report in result)


def test_removing_a_filter_never_shrinks_the_result(reports) -> None:
    spec = FilterSpec(inspector="Ann", authority="Kent", grade_or_outcome="Good")

    for name in ("inspector", "authority", "grade_or_outcome"):
        assert len(apply_filters(reports, spec.cleared(name))) >= len(apply_filters(reports, spec))


def test_grade_or_outcome_matches_outcome_or_overall_grade(reports) -> None:
    assert [report.id for report in apply_filters(reports, FilterSpec(grade_or_outcome="Met"))] == ["c"]
    assert [report.id for report in apply_filters(reports, FilterSpec(grade_or_outcome="Outstanding"))] == ["b"]


def test_date_range_uses_timestamp(reports) -> None:
    window = DateRange(
        start=datetime(2024, 1, 1, tzinfo=timezone.utc),
        end=datetime(2024, 12, 31, tzinfo=timezone.utc),
    )

    assert [report.id for report in apply_filters(reports, FilterSpec(date_range=window))] == ["a", "b"]


def test_available_options_ignore_the_field_itself(reports) -> None:
    options = available_options(reports, FilterSpec(inspector="Ann"))

    assert options.inspectors == ("Ann", "Ben")
    assert options.authorities == ("Kent", "Surrey")
    assert options.grades_or_outcomes == ("Good", "Outstanding")
    assert options.for_field("provision_type") == ("Childminder", "Nursery")


def test_revise_filters_clears_unavailable_selections(reports) -> None:
    spec = FilterSpec(inspector="Ann", authority="Surrey")

    revised = revise_filters(reports, spec, inspector="Ben")

    assert revised.inspector == "Ben"
    assert revised.authority is None


def test_revise_filters_keeps_compatible_selections(reports) -> None:
    revised = revise_filters(reports, FilterSpec(authority="Kent"), inspector="Ben")

    assert revised == FilterSpec(inspector="Ben", authority="Kent")


def test_revise_filters_rejects_unknown_fields(reports) -> None:
    with pytest.raises(TypeError):
        revise_filters(reports, FilterSpec(), colour="blue")


def test_filtered_view_distinguishes_empty_from_inactive(reports) -> None:
    inactive = build_filtered_view(reports, FilterSpec())
    empty = build_filtered_view(reports, FilterSpec(inspector="Ann", authority="Essex"))

    assert not inactive.has_active_filters
    assert len(inactive.reports) == 4
    assert inactive.sorted_keys == ("02/03/2024", "01/02/2024", "05/06/2023", "TBC")
    assert empty.has_active_filters
    assert empty.is_empty
    assert empty.to_dict()["is_empty"] is True
    assert FilterSpec(inspector="Ann").active_filters() == [("inspector", "Ann")]
