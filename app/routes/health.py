import os
from datetime import datetime, timezone
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.core.config import load_config
from app.observability.logger import init_sentry

router = APIRouter()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/healthz")
async def health_check() -> JSONResponse:
    """
    Health check endpoint with calendar and observability status.

    Returns:
        JSON response with status and configuration flags (never secrets)
    """
    cfg = load_config()
    response = {
        "status": "ok",
        "timestamp": _now_iso(),
        "calendar": {
            "provider": cfg.calendar_provider,
            "configured": cfg.calendar_configured,
            "timezone": cfg.calendar_timezone,
        },
    }

    obs_enabled = os.getenv("OBS_ENABLED", "false").lower() == "true"
    response["observability"] = {
        "enabled": obs_enabled,
        "sentry_configured": bool(os.getenv("SENTRY_DSN")),
    }

    return JSONResponse(status_code=200, content=response)


@router.get("/healthz/ready")
async def readiness_check() -> JSONResponse:
    """
    Readiness check for container orchestration.

    The service is ready once calendar writes can succeed, i.e. the mock
    provider is selected or all Google secrets are present.
    """
    cfg = load_config()
    calendar_ok = cfg.calendar_provider == "mock" or cfg.calendar_configured
    checks = {
        "calendar": "ok" if calendar_ok else "missing_configuration",
    }

    all_healthy = all(status == "ok" for status in checks.values())

    response = {
        "status": "ready" if all_healthy else "not_ready",
        "timestamp": _now_iso(),
        "checks": checks,
    }
    if not calendar_ok:
        response["missing"] = cfg.missing_calendar_settings()

    status_code = 200 if all_healthy else 503
    return JSONResponse(status_code=status_code, content=response)


@router.get("/healthz/live")
async def liveness_check() -> JSONResponse:
    """Liveness check for container orchestration."""
    response = {
        "status": "alive",
        "timestamp": _now_iso(),
    }

    return JSONResponse(status_code=200, content=response)


# Initialize Sentry on module import if enabled
init_sentry()
