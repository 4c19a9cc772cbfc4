"""Validation of raw report documents pushed by the sync collaborator."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from inspection_insights.errors import ReportLoadError
from inspection_insights.reports.report_model import Rating, Report, Theme, Timestamp

LOGGER = logging.getLogger(__name__)


class _RatingDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    category: str = ""
    rating: str = ""


class _ThemeDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    topic: str = ""
    frequency: int = 0


class _TimestampDocument(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    seconds: int = Field(default=0, alias="_seconds")
    nanoseconds: int = Field(default=0, ge=0, lt=1_000_000_000, alias="_nanoseconds")


class ReportDocument(BaseModel):
    """Wire shape of a single report as stored by the remote document store."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    date: str = ""
    inspector: str = ""
    local_authority: str = Field(default="", alias="localAuthority")
    type_of_provision: str = Field(default="", alias="typeOfProvision")
    outcome: str = ""
    previous_inspection: str = Field(default="", alias="previousInspection")
    ratings: List[_RatingDocument] = Field(default_factory=list)
    reference_number: str = Field(default="", alias="referenceNumber")
    themes: List[_ThemeDocument] = Field(default_factory=list)
    timestamp: _TimestampDocument = Field(default_factory=_TimestampDocument)

    @field_validator(
        "date",
        "inspector",
        "local_authority",
        "type_of_provision",
        "outcome",
        "previous_inspection",
        "reference_number",
        mode="before",
    )
    @classmethod
    def _none_as_blank(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("ratings", "themes", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def to_report(self) -> Report:
        return Report(
            id=self.id,
            date=self.date,
            inspector=self.inspector,
            local_authority=self.local_authority,
            type_of_provision=self.type_of_provision,
            outcome=self.outcome,
            previous_inspection=self.previous_inspection,
            ratings=tuple(Rating(category=item.category, rating=item.rating) for item in self.ratings),
            reference_number=self.reference_number,
            themes=tuple(Theme(topic=item.topic, frequency=item.frequency) for item in self.themes),
            timestamp=Timestamp(seconds=self.timestamp.seconds, nanoseconds=self.timestamp.nanoseconds),
        )


def parse_reports(documents: Iterable[Mapping[str, Any]]) -> Tuple[Report, ...]:
    """Validate ``documents`` and return them as an immutable report snapshot.

    Raises:
        ReportLoadError: when a document fails validation.
    """

    reports: List[Report] = []
    for index, document in enumerate(documents):
        try:
            report = ReportDocument.model_validate(document).to_report()
        except ValidationError as exc:
            raise ReportLoadError(f"Report #{index} failed validation: {exc.error_count()} error(s)\n{exc}") from exc
        if not report.satisfies_outcome_invariant():
            LOGGER.warning(
                "Report %s has outcome=%r and %d rating(s); expected exactly one of the two",
                report.id,
                report.outcome,
                len(report.ratings),
            )
        reports.append(report)
    LOGGER.debug("Parsed %d report documents", len(reports))
    return tuple(reports)


def load_reports(path: Path) -> Tuple[Report, ...]:
    """Load a JSON snapshot (array, or object with a ``reports`` array) from disk."""

    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ReportLoadError(f"Unable to read report snapshot {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ReportLoadError(f"Report snapshot {path} is not valid JSON: {exc}") from exc

    if isinstance(payload, dict):
        payload = payload.get("reports")
    if not isinstance(payload, list):
        raise ReportLoadError("Report snapshot must contain a JSON array of report objects.")
    if not all(isinstance(item, dict) for item in payload):
        raise ReportLoadError("Every entry in the report snapshot must be a JSON object.")
    return parse_reports(payload)


__all__ = ["ReportDocument", "load_reports", "parse_reports"]
