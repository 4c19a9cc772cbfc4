"""Immutable inspection report records and their derived accessors."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence, Tuple

OVERALL_EFFECTIVENESS = "Overall effectiveness"
NOT_SPECIFIED = "Not Specified"
UNKNOWN_GRADE = "Unknown"
NO_DATE = "No date"

# Canonical severity order, best first. Outcomes follow grades.
GRADES: Tuple[str, ...] = ("Outstanding", "Good", "Requires improvement", "Inadequate")
OUTCOMES: Tuple[str, ...] = ("Met", "Not Met")
RATING_ORDER: Tuple[str, ...] = GRADES + OUTCOMES


def rating_rank(rating: str) -> Tuple[int, str]:
    """Sort key placing known ratings in severity order and the rest alphabetically."""

    folded = rating.strip().casefold()
    for index, known in enumerate(RATING_ORDER):
        if folded == known.casefold():
            return index, folded
    return len(RATING_ORDER), folded


@dataclass(frozen=True, order=True)
class Timestamp:
    """Seconds + nanoseconds since the epoch, as pushed by the sync collaborator."""

    seconds: int = 0
    nanoseconds: int = 0

    def to_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.seconds, tz=timezone.utc).replace(microsecond=self.nanoseconds // 1000)

    @classmethod
    def from_datetime(cls, value: datetime) -> "Timestamp":
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        seconds = int(value.timestamp())
        return cls(seconds=seconds, nanoseconds=value.microsecond * 1000)


@dataclass(frozen=True)
class Rating:
    category: str
    rating: str


@dataclass(frozen=True)
class Theme:
    """A theme attached to one report; ``frequency`` is a per-report weight."""

    topic: str
    frequency: int = 0


@dataclass(frozen=True)
class Report:
    """One inspection event.

    Exactly one of ``outcome`` or a non-empty ``ratings`` is expected to be
    populated. ``date`` is display-only; ``timestamp`` drives ordering and
    date-range filtering.
    """

    id: str
    date: str
    inspector: str
    local_authority: str
    timestamp: Timestamp = field(default_factory=Timestamp)
    type_of_provision: str = ""
    outcome: str = ""
    previous_inspection: str = ""
    ratings: Tuple[Rating, ...] = field(default_factory=tuple)
    reference_number: str = ""
    themes: Tuple[Theme, ...] = field(default_factory=tuple)

    @property
    def overall_rating(self) -> Optional[str]:
        for entry in self.ratings:
            if entry.category == OVERALL_EFFECTIVENESS:
                return entry.rating
        return None

    @property
    def grade_or_outcome(self) -> Optional[str]:
        """Outcome when present, otherwise the overall effectiveness grade."""

        if self.outcome:
            return self.outcome
        return self.overall_rating

    @property
    def sorted_themes(self) -> Tuple[Theme, ...]:
        return tuple(sorted(self.themes, key=lambda theme: -theme.frequency))

    @property
    def most_common_themes(self) -> Tuple[Theme, ...]:
        return self.sorted_themes[:5]

    @property
    def theme_topics(self) -> Tuple[str, ...]:
        """Distinct theme topics in first-seen order."""

        seen: set[str] = set()
        ordered = []
        for theme in self.themes:
            if theme.topic in seen:
                continue
            seen.add(theme.topic)
            ordered.append(theme.topic)
        return tuple(ordered)

    @property
    def formatted_date(self) -> str:
        return self.date or NO_DATE

    @property
    def provision_label(self) -> str:
        return self.type_of_provision or NOT_SPECIFIED

    @property
    def inspected_at(self) -> datetime:
        return self.timestamp.to_datetime()

    def satisfies_outcome_invariant(self) -> bool:
        """Return ``True`` when exactly one of outcome/ratings is populated."""

        return (not self.outcome) == bool(self.ratings)

    def to_dict(self) -> Dict[str, Any]:
        """Return the record in the sync collaborator's field naming."""

        return {
            "id": self.id,
            "date": self.date,
            "inspector": self.inspector,
            "localAuthority": self.local_authority,
            "typeOfProvision": self.type_of_provision,
            "outcome": self.outcome,
            "previousInspection": self.previous_inspection,
            "ratings": [{"category": entry.category, "rating": entry.rating} for entry in self.ratings],
            "referenceNumber": self.reference_number,
            "themes": [{"topic": theme.topic, "frequency": theme.frequency} for theme in self.themes],
            "timestamp": {"_seconds": self.timestamp.seconds, "_nanoseconds": self.timestamp.nanoseconds},
        }


def sort_by_timestamp(reports: Sequence[Report], *, descending: bool = True) -> Tuple[Report, ...]:
    """Return ``reports`` ordered by their authoritative timestamp."""

    return tuple(sorted(reports, key=lambda report: report.timestamp, reverse=descending))


__all__ = [
    "GRADES",
    "NOT_SPECIFIED",
    "OUTCOMES",
    "OVERALL_EFFECTIVENESS",
    "RATING_ORDER",
    "Rating",
    "Report",
    "Theme",
    "Timestamp",
    "UNKNOWN_GRADE",
    "rating_rank",
    "sort_by_timestamp",
]
