from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from app.observability.logger import log_error, log_info
from app.webhook.dispatcher import handle_webhook

router = APIRouter()

SERVICE_NAME = "Voice Scheduling Agent - VAPI Webhook"


@router.post("/webhook")
async def vapi_webhook(request: Request) -> JSONResponse:
    """
    Receive tool-call and status messages from VAPI.

    Any failure while decoding or dispatching is answered with a 500 and a
    generic message; details are only logged.
    """
    try:
        payload = await request.json()
        message = payload.get("message") if isinstance(payload, dict) else None
        log_info("VAPI webhook received", {"message_type": message.get("type") if isinstance(message, dict) else None})

        # Calendar writes are blocking calls
        status_code, body = await run_in_threadpool(handle_webhook, payload)
        return JSONResponse(status_code=status_code, content=body)
    except Exception as exc:
        log_error(exc, {"route": "vapi_webhook"})
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


@router.get("/webhook")
async def vapi_webhook_health() -> JSONResponse:
    """Liveness probe used by VAPI when validating the server URL."""
    return JSONResponse(
        status_code=200,
        content={
            "status": "ok",
            "service": SERVICE_NAME,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )
