"""Tests for report records and derived accessors."""

from __future__ import annotations

from datetime import datetime, timezone

from inspection_insights.reports.report_model import (
    NOT_SPECIFIED,
    OVERALL_EFFECTIVENESS,
    Rating,
    Report,
    Theme,
    Timestamp,
    rating_rank,
    sort_by_timestamp,
)


def _report(**overrides) -> Report:
    values = dict(id="r1", date="Inspection - 01/02/2024", inspector="Ann", local_authority="Kent")
    values.update(overrides)
    return Report(**values)


def test_grade_or_outcome_prefers_outcome() -> None:
    with_outcome = _report(outcome="Met")
    with_grade = _report(
        ratings=(
            Rating(category="Personal development", rating="Good"),
            Rating(category=OVERALL_EFFECTIVENESS, rating="Requires improvement"),
        )
    )

    assert with_outcome.grade_or_outcome == "Met"
    assert with_grade.overall_rating == "Requires improvement"
    assert with_grade.grade_or_outcome == "Requires improvement"
    assert _report().grade_or_outcome is None


def test_sorted_and_most_common_themes() -> None:
    themes = tuple(Theme(topic=f"t{index}", frequency=index) for index in range(7))
    report = _report(themes=themes)

    assert [theme.topic for theme in report.sorted_themes][:2] == ["t6", "t5"]
    assert len(report.most_common_themes) == 5
    assert report.most_common_themes[-1].topic == "t2"


def test_theme_topics_are_distinct_in_first_seen_order() -> None:
    report = _report(themes=(Theme("Safety"), Theme("Play"), Theme("Safety")))

    assert report.theme_topics == ("Safety", "Play")


def test_sentinels_for_blank_fields() -> None:
    report = _report(date="")

    assert report.provision_label == NOT_SPECIFIED
    assert report.formatted_date == "No date"


def test_outcome_invariant() -> None:
    assert _report(outcome="Not Met").satisfies_outcome_invariant()
    assert _report(ratings=(Rating(OVERALL_EFFECTIVENESS, "Good"),)).satisfies_outcome_invariant()
    assert not _report().satisfies_outcome_invariant()
    assert not _report(outcome="Met", ratings=(Rating(OVERALL_EFFECTIVENESS, "Good"),)).satisfies_outcome_invariant()


def test_timestamp_round_trip_and_ordering() -> None:
    moment = datetime(2024, 3, 12, 9, 30, tzinfo=timezone.utc)
    older = _report(id="old", timestamp=Timestamp.from_datetime(datetime(2023, 1, 1, tzinfo=timezone.utc)))
    newer = _report(id="new", timestamp=Timestamp.from_datetime(moment))

    assert newer.inspected_at == moment
    assert [report.id for report in sort_by_timestamp([older, newer])] == ["new", "old"]
    assert [report.id for report in sort_by_timestamp([newer, older], descending=False)] == ["old", "new"]


def test_rating_rank_orders_grades_before_outcomes_and_unknowns() -> None:
    ratings = ["Met", "unknown", "Good", "Outstanding", "Inadequate"]

    assert sorted(ratings, key=rating_rank) == ["Outstanding", "Good", "Inadequate", "Met", "unknown"]


def test_to_dict_uses_wire_field_names() -> None:
    payload = _report(type_of_provision="Nursery", timestamp=Timestamp(seconds=10, nanoseconds=5)).to_dict()

    assert payload["localAuthority"] == "Kent"
    assert payload["typeOfProvision"] == "Nursery"
    assert payload["timestamp"] == {"_seconds": 10, "_nanoseconds": 5}
