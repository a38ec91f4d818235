from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CalendarEventRequest(BaseModel):
    """Meeting details collected by the voice agent."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    date: str  # YYYY-MM-DD
    start_time: str = Field(alias="startTime")  # HH:MM, 24h
    end_time: Optional[str] = Field(default=None, alias="endTime")  # defaults to start + 30min
    title: Optional[str] = None


class CalendarEventResult(BaseModel):
    success: bool
    event_id: Optional[str] = None
    event_link: Optional[str] = None
    summary: Optional[str] = None
    start: Optional[str] = None  # YYYY-MM-DDTHH:MM:SS, calendar timezone
    end: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def created(cls, event_id: Optional[str], event_link: Optional[str], summary: str, start: str, end: str) -> "CalendarEventResult":
        return cls(success=True, event_id=event_id, event_link=event_link, summary=summary, start=start, end=end)

    @classmethod
    def failed(cls, error: str) -> "CalendarEventResult":
        return cls(success=False, error=error)
