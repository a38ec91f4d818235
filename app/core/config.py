import os
from typing import Optional

from pydantic import BaseModel


DEFAULT_CALENDAR_TIMEZONE = "Africa/Lagos"  # WAT (UTC+1)


class AppConfig(BaseModel):
    google_service_account_email: Optional[str] = None
    google_private_key: Optional[str] = None
    google_calendar_id: Optional[str] = None
    calendar_provider: str = "google"
    calendar_timezone: str = DEFAULT_CALENDAR_TIMEZONE
    vapi_public_key: Optional[str] = None
    public_base_url: Optional[str] = None
    obs_enabled: bool = False
    sentry_dsn: Optional[str] = None

    def missing_calendar_settings(self) -> list[str]:
        """Names of the calendar secrets that are not set."""
        missing = []
        if not self.google_service_account_email:
            missing.append("GOOGLE_SERVICE_ACCOUNT_EMAIL")
        if not self.google_private_key:
            missing.append("GOOGLE_PRIVATE_KEY")
        if not self.google_calendar_id:
            missing.append("GOOGLE_CALENDAR_ID")
        return missing

    @property
    def calendar_configured(self) -> bool:
        return not self.missing_calendar_settings()


def _unescape_private_key(raw: Optional[str]) -> Optional[str]:
    # Keys stored in .env files carry literal "\n" sequences
    if not raw:
        return None
    return raw.replace("\\n", "\n")


def load_config() -> AppConfig:
    public_base_url = os.getenv("PUBLIC_BASE_URL", "").strip().rstrip("/") or None
    return AppConfig(
        google_service_account_email=os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL") or None,
        google_private_key=_unescape_private_key(os.getenv("GOOGLE_PRIVATE_KEY")),
        google_calendar_id=os.getenv("GOOGLE_CALENDAR_ID") or None,
        calendar_provider=os.getenv("CALENDAR_PROVIDER", "google").lower(),
        calendar_timezone=os.getenv("CALENDAR_TIMEZONE", DEFAULT_CALENDAR_TIMEZONE),
        vapi_public_key=os.getenv("VAPI_PUBLIC_KEY") or os.getenv("NEXT_PUBLIC_VAPI_PUBLIC_KEY") or None,
        public_base_url=public_base_url,
        obs_enabled=os.getenv("OBS_ENABLED", "false").lower() == "true",
        sentry_dsn=os.getenv("SENTRY_DSN") or None,
    )
