import itertools
from typing import Any, Dict, List, Optional


MOCK_LINK_BASE = "https://calendar.google.com/calendar/event?eid="


class MockCalendarProvider:
    """In-memory calendar used for local development and tests."""

    name = "mock"

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self.inserted: List[Dict[str, Any]] = []

    def insert_event(self, calendar_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        event_id = f"mock-{next(self._counter)}"
        event = {
            **body,
            "id": event_id,
            "htmlLink": f"{MOCK_LINK_BASE}{event_id}",
            "organizer": {"email": calendar_id},
        }
        self.inserted.append(event)
        return event


_provider: Optional[MockCalendarProvider] = None


def get_mock_provider() -> MockCalendarProvider:
    """Process-wide mock instance so created events stay inspectable."""
    global _provider
    if _provider is None:
        _provider = MockCalendarProvider()
    return _provider
