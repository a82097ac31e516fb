from __future__ import annotations

from .base import DispatchResult, EventDispatcher, EventParams
from .google_api import api_request_json, require_access_token


class CalendarDispatcher(EventDispatcher):
    CALENDAR_EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"

    def __init__(self, timezone_name: str = "Europe/Madrid", timeout_seconds: int = 8) -> None:
        self._timezone_name = timezone_name
        self._timeout_seconds = max(1, timeout_seconds)

    def create(self, access_token: str, params: EventParams) -> DispatchResult:
        try:
            token = require_access_token(access_token)
            created = api_request_json(
                url=self.CALENDAR_EVENTS_URL,
                method="POST",
                access_token=token,
                timeout=self._timeout_seconds,
                service_name="Google Calendar",
                body=build_event_body(params, self._timezone_name),
            )
        except RuntimeError as exc:
            return DispatchResult(success=False, error=str(exc))

        event_id = str(created.get("id") or "").strip()
        if not event_id:
            return DispatchResult(
                success=False,
                error="Google Calendar returned an unexpected create payload.",
            )
        link = str(created.get("htmlLink") or "https://calendar.google.com/").strip()
        return DispatchResult(success=True, resource_id=event_id, link=link)


def build_event_body(params: EventParams, timezone_name: str) -> dict[str, object]:
    body: dict[str, object] = {
        "summary": params.summary,
        "start": {
            "dateTime": params.start.replace(microsecond=0).isoformat(),
            "timeZone": timezone_name,
        },
        "end": {
            "dateTime": params.end.replace(microsecond=0).isoformat(),
            "timeZone": timezone_name,
        },
    }
    if params.location:
        body["location"] = params.location
    return body
