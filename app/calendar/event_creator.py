"""
Calendar event creation for the voice scheduling agent.

Creates a single calendar event from the details the voice agent collected,
authenticating as a service account (the target calendar is shared with the
service account out of band). Every outcome, including misconfiguration and
provider failures, is returned as a CalendarEventResult; nothing is raised.
"""

import logging
from typing import Any, Dict, Optional

from app.calendar.provider import CalendarProvider, select_calendar_provider
from app.calendar.time_utils import compose_datetime, derive_end_time, parse_time, validate_date
from app.calendar.types import CalendarEventRequest, CalendarEventResult
from app.core.config import AppConfig, load_config
from app.observability.logger import log_error, log_event, log_warning, timing

logger = logging.getLogger("voice_scheduler")

MISSING_CONFIG_ERROR = "Calendar service is not configured. Missing environment variables."


def default_title(name: str) -> str:
    name = name.strip()
    return f"Meeting with {name}" if name else "Meeting"


def event_description(name: str) -> str:
    name = name.strip()
    if not name:
        return "Scheduled via Voice Scheduling Agent"
    return f"Scheduled by {name} via Voice Scheduling Agent"


def build_event_body(
    request: CalendarEventRequest,
    summary: str,
    start: str,
    end: str,
    timezone_name: str,
) -> Dict[str, Any]:
    """Event resource for the Calendar API insert call."""
    return {
        "summary": summary,
        "description": event_description(request.name),
        "start": {"dateTime": start, "timeZone": timezone_name},
        "end": {"dateTime": end, "timeZone": timezone_name},
        "attendees": [],
        "reminders": {"useDefault": True},
    }


def create_calendar_event(
    request: CalendarEventRequest,
    config: Optional[AppConfig] = None,
    provider: Optional[CalendarProvider] = None,
) -> CalendarEventResult:
    """
    Create a calendar event for the requested meeting.

    Args:
        request: Meeting details; end_time defaults to start_time + 30 minutes
        config: Application config, loaded from the environment when omitted
        provider: Calendar provider, selected from config when omitted

    Returns:
        CalendarEventResult with either the created event or an error message
    """
    cfg = config or load_config()

    try:
        validate_date(request.date)
        parse_time(request.start_time)
        end_time = request.end_time or derive_end_time(request.start_time)
        parse_time(end_time)
    except ValueError as exc:
        log_warning("Rejected calendar event request", {
            "error": str(exc),
            "date": request.date,
            "start_time": request.start_time,
            "end_time": request.end_time,
        })
        return CalendarEventResult.failed(f"Invalid event details: {exc}")

    summary = request.title or default_title(request.name)

    # The mock provider needs no credentials; everything else does
    if cfg.calendar_provider != "mock":
        missing = cfg.missing_calendar_settings()
        if missing:
            logger.error(f"Missing Google Calendar environment variables: {', '.join(missing)}")
            return CalendarEventResult.failed(MISSING_CONFIG_ERROR)

    start = compose_datetime(request.date, request.start_time)
    end = compose_datetime(request.date, end_time)
    body = build_event_body(request, summary, start, end, cfg.calendar_timezone)
    calendar_id = cfg.google_calendar_id or "primary"

    provider_name = getattr(provider, "name", cfg.calendar_provider)
    try:
        calendar = provider or select_calendar_provider(cfg)
        provider_name = getattr(calendar, "name", provider_name)
        with timing("calendar_insert") as t:
            event = calendar.insert_event(calendar_id, body)
    except Exception as exc:
        log_error(exc, {"action": "create_calendar_event", "provider": provider_name, "summary": summary})
        return CalendarEventResult.failed(f"Failed to create calendar event: {exc}")

    log_event(
        action="created",
        provider=provider_name,
        summary=summary,
        event_id=event.get("id"),
        duration_ms=t.get_duration_ms(),
        date=request.date,
        time_range=f"{request.start_time}-{end_time}",
        link=event.get("htmlLink"),
    )

    return CalendarEventResult.created(
        event_id=event.get("id"),
        event_link=event.get("htmlLink"),
        summary=summary,
        start=start,
        end=end,
    )
