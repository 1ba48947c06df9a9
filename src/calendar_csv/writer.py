"""CSV output of calendar events."""

from __future__ import annotations

import csv
from typing import TextIO

from calendar_csv.calendar.client import Event
from calendar_csv.exceptions import WriteError


class RecordWriter:
    """Write one ``date,summary`` row per event.

    The stream is flushed after every row so partial output stays
    visible if collection stops early.
    """

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self._writer = csv.writer(stream, lineterminator="\n")
        self.rows_written = 0

    def write(self, event: Event) -> None:
        """Write a single event.

        Raises:
            WriteError: If the output stream rejects the row.
        """
        # Timed events carry dateTime, all-day events only date
        date = event.start_date_time or event.start_date
        try:
            self._writer.writerow([date, event.summary])
            self._stream.flush()
        except (OSError, csv.Error) as e:
            raise WriteError(f"Unable to write event {event.id or event.summary!r}: {e}") from e
        self.rows_written += 1
