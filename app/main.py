import logging

from dotenv import load_dotenv
from fastapi import FastAPI

load_dotenv()

from app.routes.health import router as health_router
from app.routes.ui import router as ui_router
from app.routes.webhook import router as webhook_router

logger = logging.getLogger("voice_scheduler")
logging.basicConfig(level=logging.INFO)

app = FastAPI(title="Voice Scheduling Agent")

# Routes
app.include_router(webhook_router, prefix="/api/vapi", tags=["vapi"])
app.include_router(health_router, tags=["health"])
app.include_router(ui_router, tags=["ui"])
