"""Paginated event collection under a deadline."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from calendar_csv import config
from calendar_csv.calendar.client import CalendarClient, EventPage
from calendar_csv.exceptions import CancelledError, DeadlineExceededError
from calendar_csv.window import QueryWindow
from calendar_csv.writer import RecordWriter

logger = logging.getLogger(__name__)


@dataclass
class CollectionCounters:
    """Pages and items seen during one run."""

    pages: int = 0
    items: int = 0


class Deadline:
    """Cooperative cancellation token with an optional timeout.

    Checked between pages only, a slow single request is not interrupted.
    """

    def __init__(
        self,
        timeout: float | None = config.DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.timeout = timeout
        self._clock = clock
        self._expires_at = clock() + timeout if timeout is not None else None
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def expired(self) -> bool:
        return self._expires_at is not None and self._clock() >= self._expires_at

    def check(self) -> None:
        """Raise if the deadline passed or cancellation was requested.

        Raises:
            CancelledError: If :meth:`cancel` was called.
            DeadlineExceededError: If the timeout elapsed.
        """
        if self._cancelled:
            raise CancelledError("Event collection cancelled")
        if self.expired:
            raise DeadlineExceededError(self.timeout)


class PageCollector:
    """Feed pages of events to a writer, counting what it sees.

    Args:
        writer: Receives each event in order.
        deadline: Checked before each page is processed.
        limit: Maximum number of rows to write; None or 0 for no cap.
    """

    def __init__(
        self,
        writer: RecordWriter,
        deadline: Deadline,
        limit: int | None = None,
    ) -> None:
        self.writer = writer
        self.deadline = deadline
        self.limit = limit or None
        self.counters = CollectionCounters()

    def _limit_reached(self) -> bool:
        return self.limit is not None and self.writer.rows_written >= self.limit

    def collect(self, pages: Iterable[EventPage]) -> CollectionCounters:
        """Consume pages until exhausted, the limit is reached or cancelled.

        Returns:
            Counters for the pages and items seen.

        Raises:
            CancellationError: If the deadline elapsed before a page was processed.
            WriteError: If the writer fails.
        """
        for page in pages:
            self.deadline.check()

            self.counters.pages += 1
            self.counters.items += len(page.items)

            for event in page.items:
                if self._limit_reached():
                    break
                self.writer.write(event)

            if self._limit_reached():
                logger.info(f"Reached limit of {self.limit} events, not fetching more pages")
                break

        return self.counters


def run_query(
    client: CalendarClient,
    window: QueryWindow,
    writer: RecordWriter,
    timeout: float | None = config.DEFAULT_TIMEOUT,
    limit: int | None = None,
    calendar_id: str = config.DEFAULT_CALENDAR_ID,
) -> CollectionCounters:
    """Stream all events in the window to the writer.

    The deadline covers the whole paginated query.
    """
    deadline = Deadline(timeout)
    collector = PageCollector(writer, deadline, limit=limit)
    logger.info(f"Fetching events from {window.time_min} to {window.time_max}")
    counters = collector.collect(client.iter_event_pages(window, calendar_id=calendar_id))
    logger.info(f"Collected {counters.items} events over {counters.pages} pages")
    return counters
