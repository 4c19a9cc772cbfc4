"""Job entrypoint computing theme correlations for one inspector or authority."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import sys
from dataclasses import dataclass
from pathlib import Path

from inspection_insights.errors import AnalysisCancelled, ReportLoadError
from inspection_insights.reports.report_loader import load_reports
from inspection_insights.reports.theme_correlation import (
    CancellationToken,
    CorrelationResult,
    SubjectDimension,
    SubjectSelector,
    analyze_subject,
)
from inspection_insights.settings import get_settings
from inspection_insights.task_status import TaskStatusReporter

LOGGER = logging.getLogger("inspection_insights.worker.jobs.theme_analytics")


@dataclass(frozen=True)
class ThemeJobSummary:
    selector: SubjectSelector
    total_reports: int
    themes: int
    output_path: Path


def _configure_logging() -> None:
    level_name = os.getenv("INSIGHTS_RUNTIME__LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or "unnamed"


def output_path_for(selector: SubjectSelector, data_dir: Path) -> Path:
    return data_dir / "analytics" / f"{selector.dimension.value}-{slugify(selector.name)}.json"


def write_result(result: CorrelationResult, destination: Path) -> Path:
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(json.dumps(result.to_dict(), indent=2) + "\n", encoding="utf-8")
    return destination


def run_job(
    *,
    reports_path: Path,
    selector: SubjectSelector,
    output_dir: Path | None = None,
    batch_size: int | None = None,
    reporter: TaskStatusReporter | None = None,
    cancel_token: CancellationToken | None = None,
) -> ThemeJobSummary:
    """Load the snapshot, run the analyzer and persist its result (test helper)."""

    reports = load_reports(reports_path)
    LOGGER.info("Loaded %d reports from %s", len(reports), reports_path)
    result = asyncio.run(
        analyze_subject(
            reports,
            selector,
            batch_size=batch_size,
            cancel_token=cancel_token,
            reporter=reporter,
        )
    )
    destination = write_result(result, output_path_for(selector, output_dir or get_settings().data_dir))
    return ThemeJobSummary(
        selector=selector,
        total_reports=result.total_reports,
        themes=len(result.correlations),
        output_path=destination,
    )


def main() -> int:
    """Entry point executed by the job runner and local CLI."""

    _configure_logging()
    reports_path = os.getenv("INSIGHTS_JOB__REPORTS_PATH", "").strip()
    subject = os.getenv("INSIGHTS_JOB__SUBJECT", "").strip()
    dimension_name = os.getenv("INSIGHTS_JOB__DIMENSION", SubjectDimension.INSPECTOR.value).strip().lower()

    if not reports_path or not subject:
        LOGGER.error("INSIGHTS_JOB__REPORTS_PATH and INSIGHTS_JOB__SUBJECT must both be set")
        return 2
    try:
        dimension = SubjectDimension(dimension_name)
    except ValueError:
        LOGGER.error("Unsupported INSIGHTS_JOB__DIMENSION %r (expected inspector or authority)", dimension_name)
        return 2

    selector = SubjectSelector(dimension=dimension, name=subject)
    LOGGER.info("Starting theme analytics job: %s=%r reports=%s", dimension.value, subject, reports_path)
    reporter = TaskStatusReporter()
    active_reporter = reporter if reporter.is_enabled() else None

    try:
        summary = run_job(reports_path=Path(reports_path), selector=selector, reporter=active_reporter)
    except ReportLoadError as exc:
        LOGGER.error("Theme analytics job could not load reports: %s", exc)
        if active_reporter:
            active_reporter.update(status="failed", message=str(exc))
        return 1
    except AnalysisCancelled:
        LOGGER.warning("Theme analytics job cancelled for %r", subject)
        return 1

    LOGGER.info(
        "Theme analytics job complete: total_reports=%s themes=%s output=%s",
        summary.total_reports,
        summary.themes,
        summary.output_path,
    )
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
