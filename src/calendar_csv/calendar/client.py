"""Google Calendar API client implementation."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

import httplib2
from google.auth import exceptions as google_auth_exceptions
from googleapiclient.errors import HttpError

from calendar_csv import config
from calendar_csv.exceptions import TransportError
from calendar_csv.google import GoogleOAuth
from calendar_csv.google.exceptions import TokenError
from calendar_csv.window import QueryWindow

logger = logging.getLogger(__name__)


@dataclass
class Event:
    """Represents a Google Calendar event."""

    id: str
    summary: str
    start_date_time: str = ""
    start_date: str = ""

    @classmethod
    def from_api(cls, data: dict) -> Event:
        """Parse event from API response."""
        start_data = data.get("start") or {}
        return cls(
            id=data.get("id", ""),
            summary=data.get("summary", ""),
            start_date_time=start_data.get("dateTime", ""),
            start_date=start_data.get("date", ""),
        )


@dataclass
class EventPage:
    """One page of events from a list request."""

    items: list[Event] = field(default_factory=list)


class CalendarClient:
    """Read-only Google Calendar API client with OAuth authentication.

    Usage:
        client = CalendarClient(auth=GoogleOAuth(scopes=["calendar_readonly"]))

        for page in client.iter_event_pages(window):
            for event in page.items:
                print(event.summary)

    Note:
        The OAuth manager must already hold a token; see
        :func:`calendar_csv.google.obtain_credentials`.
    """

    def __init__(self, auth: GoogleOAuth | None = None, service: Any = None) -> None:
        """Initialize Calendar client.

        Args:
            auth: OAuth manager used to build the API service.
            service: Prebuilt Calendar API service; takes precedence over ``auth``.
        """
        self._auth = auth
        self._service = service

    def _get_service(self) -> Any:
        """Get or create Calendar API service."""
        if self._service is None:
            if self._auth is None:
                self._auth = GoogleOAuth(scopes=["calendar_readonly"])
            if not self._auth.is_authorized():
                raise TokenError("Calendar API requires OAuth authorization")
            self._service = self._auth.build_service("calendar", "v3")
        return self._service

    def iter_event_pages(
        self,
        window: QueryWindow,
        calendar_id: str = config.DEFAULT_CALENDAR_ID,
        page_size: int = config.PAGE_SIZE,
    ) -> Iterator[EventPage]:
        """Lazily yield pages of events starting inside the window.

        Recurring events are expanded into single instances, deleted events
        are skipped and results are ordered by start time. The next page is
        only requested once the consumer asks for it.

        Args:
            window: Time range; ``time_min`` inclusive, ``time_max`` exclusive.
            calendar_id: Calendar ID or "primary" for the main calendar.
            page_size: Events requested per round trip.

        Raises:
            TransportError: If a request fails.
            TokenError: If the access token cannot be refreshed.
        """
        events = self._get_service().events()
        request = events.list(
            calendarId=calendar_id,
            showDeleted=False,
            singleEvents=True,
            timeMin=window.time_min,
            timeMax=window.time_max,
            maxResults=page_size,
            orderBy="startTime",
        )

        while request is not None:
            response = self._execute(request)
            page = EventPage(items=[Event.from_api(item) for item in response.get("items", [])])
            logger.debug(f"Fetched page with {len(page.items)} events")
            yield page
            request = events.list_next(request, response)

    def _execute(self, request: Any) -> dict:
        """Execute a request, mapping library errors to ours."""
        try:
            return request.execute()
        except HttpError as e:
            raise TransportError(
                f"Unable to retrieve events: {e}", status_code=e.resp.status
            ) from e
        except google_auth_exceptions.RefreshError as e:
            raise TokenError(f"Failed to refresh token: {e}") from e
        except (
            google_auth_exceptions.TransportError,
            httplib2.HttpLib2Error,
            OSError,
        ) as e:
            raise TransportError(f"Unable to retrieve events: {e}") from e
