"""Theme/rating correlation analysis for one inspector or one authority."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import Counter
from concurrent.futures import Executor
from dataclasses import dataclass, field
from enum import Enum
from itertools import combinations
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from inspection_insights.errors import AnalysisCancelled
from inspection_insights.reports.aggregates import percentage_of
from inspection_insights.reports.report_model import Report, rating_rank
from inspection_insights.settings import get_settings

LOGGER = logging.getLogger(__name__)


class SubjectDimension(str, Enum):
    """Report field that selects the subject; the other one is the peer."""

    INSPECTOR = "inspector"
    AUTHORITY = "authority"

    @property
    def peer(self) -> "SubjectDimension":
        if self is SubjectDimension.INSPECTOR:
            return SubjectDimension.AUTHORITY
        return SubjectDimension.INSPECTOR

    def value_of(self, report: Report) -> str:
        if self is SubjectDimension.INSPECTOR:
            return report.inspector
        return report.local_authority


@dataclass(frozen=True)
class SubjectSelector:
    dimension: SubjectDimension
    name: str

    def matches(self, report: Report) -> bool:
        return self.dimension.value_of(report) == self.name

    def peer_of(self, report: Report) -> str:
        return self.dimension.peer.value_of(report)

    def to_dict(self) -> Dict[str, str]:
        return {"dimension": self.dimension.value, "name": self.name}


class CancellationToken:
    """Thread-safe flag checked by the analyzer between chunks."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise AnalysisCancelled("Theme correlation analysis was cancelled.")


@dataclass(frozen=True)
class RatingOccurrence:
    """One theme occurrence in a report that carries a grade or outcome."""

    rating: str
    report_id: str
    peer: str

    def to_dict(self) -> Dict[str, str]:
        return {"rating": self.rating, "report_id": self.report_id, "peer": self.peer}


@dataclass(frozen=True)
class ThemeCount:
    theme: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"theme": self.theme, "count": self.count}


@dataclass(frozen=True)
class ThemeCorrelation:
    """Co-occurrence statistics for a single theme within the subject's reports."""

    theme: str
    report_count: int
    percentage: float
    rating_reports: Tuple[RatingOccurrence, ...] = field(default_factory=tuple)
    dominant_rating: Optional[str] = None
    rating_value: int = 0
    distinct_ratings: Tuple[str, ...] = field(default_factory=tuple)
    peers: FrozenSet[str] = field(default_factory=frozenset)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "theme": self.theme,
            "report_count": self.report_count,
            "percentage": self.percentage,
            "dominant_rating": self.dominant_rating,
            "rating_value": self.rating_value,
            "distinct_ratings": list(self.distinct_ratings),
            "peers": sorted(self.peers),
            "rating_reports": [occurrence.to_dict() for occurrence in self.rating_reports],
        }


@dataclass(frozen=True)
class ThemePairStatistic:
    """Two themes seen together in one report; ``first`` sorts before ``second``."""

    first: str
    second: str
    count: int
    percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "themes": [self.first, self.second],
            "count": self.count,
            "percentage": self.percentage,
        }


@dataclass(frozen=True)
class CorrelationResult:
    selector: SubjectSelector
    total_reports: int = 0
    average_themes_per_report: float = 0.0
    correlations: Tuple[ThemeCorrelation, ...] = field(default_factory=tuple)
    frequent_themes: Tuple[ThemeCount, ...] = field(default_factory=tuple)
    peers: FrozenSet[str] = field(default_factory=frozenset)
    themes_by_provision_type: Mapping[str, Tuple[ThemeCount, ...]] = field(default_factory=dict)
    common_theme_pairs: Tuple[ThemePairStatistic, ...] = field(default_factory=tuple)
    distinctive_theme_pairs: Tuple[ThemePairStatistic, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls, selector: SubjectSelector) -> "CorrelationResult":
        return cls(selector=selector)

    def correlation_for(self, theme: str) -> Optional[ThemeCorrelation]:
        for correlation in self.correlations:
            if correlation.theme == theme:
                return correlation
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.selector.to_dict(),
            "total_reports": self.total_reports,
            "average_themes_per_report": self.average_themes_per_report,
            "correlations": [item.to_dict() for item in self.correlations],
            "frequent_themes": [item.to_dict() for item in self.frequent_themes],
            "peers": sorted(self.peers),
            "themes_by_provision_type": {
                label: [item.to_dict() for item in counts] for label, counts in self.themes_by_provision_type.items()
            },
            "common_theme_pairs": [item.to_dict() for item in self.common_theme_pairs],
            "distinctive_theme_pairs": [item.to_dict() for item in self.distinctive_theme_pairs],
        }


class _Accumulator:
    """Mutable tallies built chunk by chunk; owned by a single analysis run."""

    def __init__(self, selector: SubjectSelector) -> None:
        self.selector = selector
        self.subject_total = 0
        self.other_total = 0
        self.theme_entries = 0
        self.theme_reports: Dict[str, int] = {}
        self.theme_occurrences: Dict[str, List[RatingOccurrence]] = {}
        self.theme_peers: Dict[str, set[str]] = {}
        self.frequency: Counter[str] = Counter()
        self.peers: set[str] = set()
        self.by_provision: Dict[str, Counter[str]] = {}
        self.pairs: Counter[Tuple[str, str]] = Counter()
        self.other_pairs: Counter[Tuple[str, str]] = Counter()

    def consume(self, chunk: Sequence[Report]) -> int:
        for report in chunk:
            if self.selector.matches(report):
                self._add_subject_report(report)
            else:
                self.other_total += 1
                self.other_pairs.update(_theme_pairs(report))
        return len(chunk)

    def _add_subject_report(self, report: Report) -> None:
        self.subject_total += 1
        self.theme_entries += len(report.themes)
        peer = self.selector.peer_of(report)
        self.peers.add(peer)
        rating = report.grade_or_outcome

        provision = self.by_provision.setdefault(report.provision_label, Counter())
        for theme in report.themes:
            self.frequency[theme.topic] += 1
            provision[theme.topic] += 1

        for topic in report.theme_topics:
            self.theme_reports[topic] = self.theme_reports.get(topic, 0) + 1
            self.theme_peers.setdefault(topic, set()).add(peer)
            occurrences = self.theme_occurrences.setdefault(topic, [])
            if rating:
                occurrences.append(RatingOccurrence(rating=rating, report_id=report.id, peer=peer))

        self.pairs.update(_theme_pairs(report))

    def result(self, *, frequent_limit: int, pair_limit: int) -> CorrelationResult:
        total = self.subject_total
        if total == 0:
            return CorrelationResult.empty(self.selector)

        correlations = [self._correlation(topic, count, total) for topic, count in self.theme_reports.items()]
        correlations.sort(key=lambda item: (-item.percentage, item.theme))

        return CorrelationResult(
            selector=self.selector,
            total_reports=total,
            average_themes_per_report=self.theme_entries / total,
            correlations=tuple(correlations),
            frequent_themes=tuple(_ranked_counts(self.frequency)[:frequent_limit]),
            peers=frozenset(self.peers),
            themes_by_provision_type={
                label: tuple(_ranked_counts(counts)) for label, counts in sorted(self.by_provision.items())
            },
            common_theme_pairs=tuple(self._common_pairs()[:pair_limit]),
            distinctive_theme_pairs=tuple(self._distinctive_pairs()[:pair_limit]),
        )

    def _correlation(self, topic: str, report_count: int, total: int) -> ThemeCorrelation:
        occurrences = tuple(self.theme_occurrences.get(topic, ()))
        dominant, dominant_count = _dominant_rating(occurrences)
        return ThemeCorrelation(
            theme=topic,
            report_count=report_count,
            percentage=percentage_of(report_count, total),
            rating_reports=occurrences,
            dominant_rating=dominant,
            rating_value=dominant_count,
            distinct_ratings=tuple(sorted({item.rating for item in occurrences}, key=rating_rank)),
            peers=frozenset(self.theme_peers.get(topic, ())),
        )

    def _common_pairs(self) -> List[ThemePairStatistic]:
        total_pairs = sum(self.pairs.values())
        return [self._pair_statistic(pair, count, total_pairs) for pair, count in _ranked_pairs(self.pairs)]

    def _distinctive_pairs(self) -> List[ThemePairStatistic]:
        # A pair is distinctive when it is more than twice as frequent per report
        # for the subject as it is across everyone else's reports.
        total_pairs = sum(self.pairs.values())
        distinctive: List[ThemePairStatistic] = []
        for pair, count in _ranked_pairs(self.pairs):
            subject_rate = count / self.subject_total
            other_rate = self.other_pairs.get(pair, 0) / self.other_total if self.other_total else 0.0
            if subject_rate > other_rate * 2:
                distinctive.append(self._pair_statistic(pair, count, total_pairs))
        return distinctive

    @staticmethod
    def _pair_statistic(pair: Tuple[str, str], count: int, total_pairs: int) -> ThemePairStatistic:
        return ThemePairStatistic(
            first=pair[0],
            second=pair[1],
            count=count,
            percentage=percentage_of(count, total_pairs),
        )


def _theme_pairs(report: Report) -> List[Tuple[str, str]]:
    return [(min(a, b), max(a, b)) for a, b in combinations(report.theme_topics, 2)]


def _ranked_counts(counter: Mapping[str, int]) -> List[ThemeCount]:
    ranked = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    return [ThemeCount(theme=theme, count=count) for theme, count in ranked]


def _ranked_pairs(counter: Mapping[Tuple[str, str], int]) -> List[Tuple[Tuple[str, str], int]]:
    return sorted(counter.items(), key=lambda item: (-item[1], item[0]))


def _dominant_rating(occurrences: Sequence[RatingOccurrence]) -> Tuple[Optional[str], int]:
    """Most frequent rating; ties go to the better grade, then alphabetical."""

    if not occurrences:
        return None, 0
    counts = Counter(item.rating for item in occurrences)
    rating, count = min(counts.items(), key=lambda item: (-item[1], rating_rank(item[0])))
    return rating, count


def _chunks(reports: Sequence[Report], size: int) -> List[Sequence[Report]]:
    return [reports[start : start + size] for start in range(0, len(reports), size)]


def _resolve_batch_size(batch_size: Optional[int], default: int) -> int:
    if batch_size is None:
        return default
    if batch_size < 1:
        raise ValueError(f"batch_size must be a positive integer, got {batch_size!r}")
    return batch_size


def _has_subject(reports: Sequence[Report], selector: SubjectSelector) -> bool:
    return any(selector.matches(report) for report in reports)


def _limits() -> Tuple[int, int, int]:
    analytics = get_settings().analytics
    return analytics.batch_size, analytics.frequent_theme_limit, analytics.theme_pair_limit


def _report(reporter: Any, status: str, message: str, **payload: Any) -> None:
    if reporter is not None:
        reporter.update(status=status, message=message, **payload)


async def analyze_subject(
    reports: Sequence[Report],
    selector: SubjectSelector,
    *,
    batch_size: Optional[int] = None,
    cancel_token: Optional[CancellationToken] = None,
    reporter: Any = None,
    executor: Optional[Executor] = None,
) -> CorrelationResult:
    """Compute the correlation result for ``selector`` off the event loop.

    The snapshot is scanned in chunks of ``batch_size`` reports, each chunk on
    a worker thread of ``executor`` (the loop's default executor when omitted).
    ``cancel_token`` is checked before every chunk.

    Raises:
        ValueError: when ``batch_size`` is smaller than one.
        AnalysisCancelled: when ``cancel_token`` is cancelled mid-run.
    """

    default_batch, frequent_limit, pair_limit = _limits()
    size = _resolve_batch_size(batch_size, default_batch)
    snapshot = tuple(reports)
    loop = asyncio.get_running_loop()

    if not await loop.run_in_executor(executor, _has_subject, snapshot, selector):
        LOGGER.debug("No reports for %s %r; returning empty correlation result", selector.dimension.value, selector.name)
        return CorrelationResult.empty(selector)

    accumulator = _Accumulator(selector)
    chunks = _chunks(snapshot, size)
    _report(reporter, "started", f"Analyzing {selector.dimension.value} {selector.name}", total=len(snapshot))

    processed = 0
    for index, chunk in enumerate(chunks, start=1):
        if cancel_token is not None and cancel_token.cancelled:
            LOGGER.info("Correlation run for %r cancelled after %d/%d chunks", selector.name, index - 1, len(chunks))
            _report(reporter, "cancelled", "Analysis cancelled", processed=processed, total=len(snapshot))
            cancel_token.raise_if_cancelled()
        processed += await loop.run_in_executor(executor, accumulator.consume, chunk)
        LOGGER.debug("Chunk %d/%d processed for %r (%d reports)", index, len(chunks), selector.name, processed)
        _report(reporter, "in_progress", f"Processed chunk {index}/{len(chunks)}", processed=processed, total=len(snapshot))

    result = accumulator.result(frequent_limit=frequent_limit, pair_limit=pair_limit)
    _report(reporter, "completed", "Analysis complete", total_reports=result.total_reports)
    return result


def analyze_subject_sync(
    reports: Sequence[Report],
    selector: SubjectSelector,
    *,
    batch_size: Optional[int] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> CorrelationResult:
    """Run the same chunked accumulation inline on the calling thread."""

    default_batch, frequent_limit, pair_limit = _limits()
    size = _resolve_batch_size(batch_size, default_batch)
    accumulator = _Accumulator(selector)
    for chunk in _chunks(tuple(reports), size):
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        accumulator.consume(chunk)
    return accumulator.result(frequent_limit=frequent_limit, pair_limit=pair_limit)


__all__ = [
    "CancellationToken",
    "CorrelationResult",
    "RatingOccurrence",
    "SubjectDimension",
    "SubjectSelector",
    "ThemeCorrelation",
    "ThemeCount",
    "ThemePairStatistic",
    "analyze_subject",
    "analyze_subject_sync",
]
