from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse

from app.core.config import load_config
from app.rendering.view import ASSISTANT_CONFIG_PATH, CLIENT_SCRIPT_PATH, STATIC_DIR, render_page
from app.voice.assistant import build_assistant_config, resolve_webhook_url

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    cfg = load_config()
    return HTMLResponse(render_page(public_key=cfg.vapi_public_key))


@router.get(CLIENT_SCRIPT_PATH)
async def client_script() -> FileResponse:
    """Browser module that runs the call against the voice platform."""
    return FileResponse(STATIC_DIR / "voice_agent.js", media_type="text/javascript")


@router.get(ASSISTANT_CONFIG_PATH)
async def assistant_config(request: Request) -> JSONResponse:
    """
    Assistant configuration for a browser client about to start a session.

    The calendar tool's server URL points back at this deployment's webhook.
    PUBLIC_BASE_URL wins over the request's own base URL (useful behind
    proxies and tunnels).
    """
    cfg = load_config()
    base_url = cfg.public_base_url or str(request.base_url)
    server_url = resolve_webhook_url(base_url)
    return JSONResponse({
        "publicKey": cfg.vapi_public_key,
        "serverUrl": server_url,
        "assistant": build_assistant_config(server_url),
    })
