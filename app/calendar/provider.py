from typing import Any, Dict, Optional, Protocol

from app.core.config import AppConfig, load_config


class CalendarProvider(Protocol):
    name: str

    def insert_event(self, calendar_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert one event into the given calendar.

        Returns the provider's event resource; at least "id" and "htmlLink".
        Raises on any provider failure.
        """
        ...


def select_calendar_provider(config: Optional[AppConfig] = None) -> CalendarProvider:
    """Factory function to select calendar provider based on CALENDAR_PROVIDER env var."""
    cfg = config or load_config()
    provider = cfg.calendar_provider

    if provider == "mock":
        from app.calendar.mock_provider import get_mock_provider
        return get_mock_provider()
    elif provider == "google":
        from app.calendar.google_adapter import create_google_adapter
        return create_google_adapter(cfg)
    else:
        raise ValueError(f"Unsupported CALENDAR_PROVIDER: {provider}")
