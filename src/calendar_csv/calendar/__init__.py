"""Read-only Google Calendar API client.

Usage:
    from calendar_csv.calendar import CalendarClient
    from calendar_csv.window import resolve_window

    client = CalendarClient()
    for page in client.iter_event_pages(resolve_window(to_offset=timedelta(days=7))):
        ...

OAuth Setup:
    1. Download OAuth credentials from Google Cloud Console as credentials.json
    2. Run calendar-csv once and paste the authorization code when prompted
"""

from __future__ import annotations

from calendar_csv.calendar.client import CalendarClient, Event, EventPage

__all__ = ["CalendarClient", "Event", "EventPage"]
