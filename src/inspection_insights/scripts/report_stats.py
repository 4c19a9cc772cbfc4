"""Print an aggregate overview of a report snapshot."""

from __future__ import annotations

import argparse
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Sequence

from inspection_insights.errors import ReportLoadError
from inspection_insights.reports import aggregates
from inspection_insights.reports.dates import TimeWindow
from inspection_insights.reports.filters import FilterSpec, apply_filters
from inspection_insights.reports.report_loader import load_reports
from inspection_insights.reports.report_model import Report
from inspection_insights.settings import get_settings

SETTINGS = get_settings()


def build_argument_parser() -> argparse.ArgumentParser:
    """Return the CLI argument parser for the overview helper."""

    parser = argparse.ArgumentParser(description="Summarize an inspection report snapshot as JSON.")
    parser.add_argument("--input", required=True, help="Path to a JSON report snapshot.")
    parser.add_argument("--output", help="Write the overview to this file instead of stdout.")
    parser.add_argument("--inspector", help="Only include reports by this inspector.")
    parser.add_argument("--authority", help="Only include reports for this local authority.")
    parser.add_argument("--provision-type", help="Only include reports of this provision type.")
    parser.add_argument("--grade", help="Only include reports with this outcome or overall grade.")
    parser.add_argument(
        "--window",
        choices=[window.value for window in TimeWindow],
        help="Only include reports inspected within this rolling window.",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=SETTINGS.analytics.top_n,
        help=f"Entries in the top areas/inspectors lists (default: {SETTINGS.analytics.top_n}).",
    )
    return parser


def filter_spec_from_args(args: argparse.Namespace, *, now: datetime | None = None) -> FilterSpec:
    window = TimeWindow(args.window).date_range(now) if args.window else None
    return FilterSpec(
        inspector=args.inspector,
        authority=args.authority,
        provision_type=args.provision_type,
        grade_or_outcome=args.grade,
        date_range=window,
    )


def _pairs(items: Sequence[tuple[str, Any]], key: str) -> list[dict[str, Any]]:
    return [{key: name, "count": count} for name, count in items]


def build_overview(reports: Sequence[Report], *, limit: int, theme_limit: int) -> dict[str, Any]:
    """Return the JSON-serializable overview for ``reports``."""

    return {
        "total_reports": len(reports),
        "inspectors": len(aggregates.unique_inspectors(reports)),
        "authorities": len(aggregates.unique_authorities(reports)),
        "grades": _pairs(aggregates.distribution_by_grade(reports), "grade"),
        "provision_types": _pairs(aggregates.distribution_by_provision_type(reports), "provision_type"),
        "most_common_themes": _pairs(aggregates.most_common_themes(reports, theme_limit), "theme"),
        "most_inspected_areas": _pairs(aggregates.most_inspected_areas(reports, limit), "authority"),
        "top_inspectors": _pairs(aggregates.top_inspectors(reports, limit), "inspector"),
        "monthly_counts": [
            {"month": entry.month, "count": entry.count} for entry in aggregates.monthly_counts(reports)
        ],
    }


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entrypoint for the overview helper."""

    parser = build_argument_parser()
    args = parser.parse_args(argv)
    try:
        reports = load_reports(Path(args.input))
    except ReportLoadError as exc:
        parser.error(str(exc))

    spec = filter_spec_from_args(args)
    selected = apply_filters(reports, spec)
    overview = build_overview(selected, limit=args.limit, theme_limit=SETTINGS.analytics.most_common_limit)
    overview["filters"] = dict(spec.active_filters())
    rendered = json.dumps(overview, indent=2)

    if args.output:
        destination = Path(args.output)
        destination.write_text(rendered + "\n", encoding="utf-8")
        print(f"Summarized {len(selected)} report(s); wrote {destination}")
        return
    print(rendered)


__all__ = ["build_argument_parser", "build_overview", "filter_spec_from_args", "main"]
