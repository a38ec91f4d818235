from typing import Any, Dict, Optional

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from app.core.config import AppConfig, load_config


CALENDAR_EVENTS_SCOPE = "https://www.googleapis.com/auth/calendar.events"


class GoogleCalendarError(RuntimeError):
    """Raised when Google Calendar rejects a request or cannot be reached."""


class GoogleCalendarAdapter:
    """Google Calendar adapter authenticated as a service account.

    The target calendar must have been shared with the service account's
    email beforehand; no user consent flow is involved.
    """

    name = "google"

    def __init__(self, client_email: str, private_key: str):
        self.client_email = client_email
        self.private_key = private_key
        self._service: Any = None

    def _get_service(self) -> Any:
        if self._service is not None:
            return self._service

        credentials = service_account.Credentials.from_service_account_info(
            {
                "type": "service_account",
                "client_email": self.client_email,
                "private_key": self.private_key,
                "token_uri": "https://oauth2.googleapis.com/token",
            },
            scopes=[CALENDAR_EVENTS_SCOPE],
        )
        self._service = build("calendar", "v3", credentials=credentials, cache_discovery=False)
        return self._service

    def _parse_http_error(self, error: HttpError) -> str:
        """Pull the human-readable message out of a Google API error."""
        reason = getattr(error, "reason", None)
        if reason:
            return str(reason)
        return str(error)

    def insert_event(self, calendar_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert an event into calendar_id.

        Args:
            calendar_id: Calendar identifier shared with the service account
            body: Event resource (summary, description, start, end, ...)

        Returns:
            The created event resource as returned by the API
        """
        try:
            service = self._get_service()
            return service.events().insert(calendarId=calendar_id, body=body).execute()
        except HttpError as exc:
            raise GoogleCalendarError(self._parse_http_error(exc)) from exc
        except GoogleCalendarError:
            raise
        except Exception as exc:
            raise GoogleCalendarError(str(exc)) from exc


def create_google_adapter(config: Optional[AppConfig] = None) -> GoogleCalendarAdapter:
    """Factory function to create GoogleCalendarAdapter from environment variables."""
    cfg = config or load_config()
    return GoogleCalendarAdapter(
        client_email=cfg.google_service_account_email or "",
        private_key=cfg.google_private_key or "",
    )
