"""Shared report fixtures carry exactly one of an outcome or ratings."""

from __future__ import annotations

import pytest


@pytest.mark.parametrize("fixture_name", ["sarah_johnson_reports"])
def test_fixture_reports_satisfy_outcome_invariant(request, fixture_name) -> None:
    reports = request.getfixturevalue(fixture_name)

    assert reports
    assert all(report.satisfies_outcome_invariant() for report in reports)


@pytest.mark.parametrize(
    "overrides",
    [{}, {"outcome": "Met"}, {"outcome": "Not Met", "grade": "Good"}, {"grade": None}, {"grade": "Inadequate"}],
)
def test_report_factory_satisfies_outcome_invariant(make_report, overrides) -> None:
    assert make_report("r", **overrides).satisfies_outcome_invariant()
