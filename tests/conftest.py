"""Shared fixtures for inspection_insights tests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Sequence

import pytest

from inspection_insights.reports.dates import ReportDateParser
from inspection_insights.reports.report_model import OVERALL_EFFECTIVENESS, Rating, Report, Theme, Timestamp
from inspection_insights.settings import get_settings

ReportFactory = Callable[..., Report]
_EPOCH = datetime(2020, 1, 1, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def build_report(
    report_id: str,
    *,
    inspector: str = "Alex Morgan",
    authority: str = "Kent",
    date: str = "12/03/2024",
    grade: str | None = "Good",
    outcome: str = "",
    themes: Sequence[str] | Sequence[tuple[str, int]] = (),
    provision: str = "Childminder",
    reference: str | None = None,
    inspected_at: datetime | None = None,
) -> Report:
    """Return a report honouring the exactly-one-of outcome/ratings rule."""

    ratings: tuple[Rating, ...] = ()
    if not outcome:
        ratings = (Rating(category=OVERALL_EFFECTIVENESS, rating=grade or "Good"),)
    theme_values = tuple(
        Theme(topic=item, frequency=1) if isinstance(item, str) else Theme(topic=item[0], frequency=item[1])
        for item in themes
    )
    moment = inspected_at
    if moment is None:
        parsed = ReportDateParser().parse(date)
        moment = datetime(parsed.year, parsed.month, parsed.day, tzinfo=timezone.utc) if parsed else _EPOCH
    return Report(
        id=report_id,
        date=date,
        inspector=inspector,
        local_authority=authority,
        type_of_provision=provision,
        outcome=outcome,
        ratings=ratings,
        reference_number=reference or f"EY{report_id.upper()}",
        themes=theme_values,
        timestamp=Timestamp.from_datetime(moment),
    )


@pytest.fixture
def make_report() -> ReportFactory:
    return build_report


@pytest.fixture
def sarah_johnson_reports() -> list[Report]:
    """Five reports for one inspector: Safeguarding x3, Staff Training x2."""

    return [
        build_report("r1", inspector="Sarah Johnson", authority="Kent", grade="Good", themes=["Safeguarding"]),
        build_report("r2", inspector="Sarah Johnson", authority="Kent", grade="Good", themes=["Safeguarding"]),
        build_report(
            "r3", inspector="Sarah Johnson", authority="Surrey", grade="Outstanding", themes=["Safeguarding"]
        ),
        build_report(
            "r4", inspector="Sarah Johnson", authority="Surrey", grade="Outstanding", themes=["Staff Training"]
        ),
        build_report("r5", inspector="Sarah Johnson", authority="Kent", grade="Good", themes=["Staff Training"]),
    ]
