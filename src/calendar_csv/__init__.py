"""Export Google Calendar events in a date range as CSV."""

from calendar_csv.calendar import CalendarClient, Event, EventPage
from calendar_csv.collector import CollectionCounters, Deadline, PageCollector, run_query
from calendar_csv.window import QueryWindow, resolve_window
from calendar_csv.writer import RecordWriter

__version__ = "0.1.0"

__all__ = [
    "CalendarClient",
    "Event",
    "EventPage",
    "CollectionCounters",
    "Deadline",
    "PageCollector",
    "run_query",
    "QueryWindow",
    "resolve_window",
    "RecordWriter",
]
