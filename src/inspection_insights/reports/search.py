"""Case-insensitive substring search over report snapshots."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterable, Optional, Sequence, Tuple

from inspection_insights.reports.dates import ReportDateParser
from inspection_insights.reports.index_builder import GroupedView, group_by_date
from inspection_insights.reports.report_model import Report
from inspection_insights.settings import get_settings

LOGGER = logging.getLogger(__name__)

SearchListener = Callable[[str, GroupedView], None]


def _searchable_fields(report: Report) -> Iterable[str]:
    yield report.reference_number
    yield report.inspector
    yield report.local_authority
    yield report.type_of_provision
    yield from (theme.topic for theme in report.themes)
    yield report.date


def matches_query(report: Report, needle: str) -> bool:
    """``needle`` must already be case-folded."""

    return any(needle in value.casefold() for value in _searchable_fields(report) if value)


def search_reports(
    reports: Sequence[Report],
    query: str,
    parser: Optional[ReportDateParser] = None,
) -> GroupedView:
    """Return matching reports grouped by display date, newest first.

    A blank query yields an empty view rather than the whole collection.
    """

    needle = (query or "").strip().casefold()
    if not needle:
        return GroupedView()
    hits = [report for report in reports if matches_query(report, needle)]
    LOGGER.debug("Search %r matched %d of %d reports", query, len(hits), len(reports))
    return group_by_date(hits, parser)


class LiveSearch:
    """Debounced search driven by keystroke-level query updates.

    Each :meth:`submit` restarts the quiesce timer; when it expires the query
    runs unless it equals the last executed query. Must be used from within a
    running event loop.
    """

    def __init__(
        self,
        reports: Sequence[Report],
        *,
        debounce_ms: Optional[int] = None,
        parser: Optional[ReportDateParser] = None,
        listener: Optional[SearchListener] = None,
    ) -> None:
        if debounce_ms is None:
            debounce_ms = get_settings().search.debounce_ms
        self._reports: Tuple[Report, ...] = tuple(reports)
        self._delay = debounce_ms / 1000
        self._parser = parser
        self._listener = listener
        self._pending: Optional[asyncio.Task[None]] = None
        self._last_query: Optional[str] = None
        self.view = GroupedView()

    @property
    def last_query(self) -> Optional[str]:
        return self._last_query

    def submit(self, query: str) -> None:
        self.cancel()
        self._pending = asyncio.get_running_loop().create_task(self._debounced(query))

    def update_reports(self, reports: Sequence[Report]) -> None:
        """Swap the snapshot and refresh the view for the last executed query."""

        self._reports = tuple(reports)
        if self._last_query is not None:
            self._execute(self._last_query)

    async def wait(self) -> None:
        """Wait for a pending debounce tick, if any, to finish."""

        if self._pending is not None:
            await asyncio.wait({self._pending})

    def cancel(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _debounced(self, query: str) -> None:
        await asyncio.sleep(self._delay)
        if query == self._last_query:
            LOGGER.debug("Skipping duplicate search for %r", query)
            return
        self._execute(query)

    def _execute(self, query: str) -> None:
        self._last_query = query
        self.view = search_reports(self._reports, query, self._parser)
        if self._listener is not None:
            self._listener(query, self.view)


__all__ = ["LiveSearch", "matches_query", "search_reports"]
