from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.voice.controller import CallStatus, SessionState


TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
STATIC_DIR = Path(__file__).resolve().parent.parent / "static"

ASSISTANT_CONFIG_PATH = "/api/assistant"
CLIENT_SCRIPT_PATH = "/static/voice_agent.js"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)

ROLE_LABELS = {
    "assistant": "🤖 Assistant",
    "user": "👤 You",
}

# Below this volume the orb shows the microphone instead of the waveform
WAVEFORM_MIN_VOLUME = 0.05


def status_text(status: CallStatus, is_speaking: bool) -> str:
    if status == "connecting":
        return "Connecting..."
    if status == "active":
        return "AI is speaking..." if is_speaking else "Listening..."
    return "Ready to schedule"


def status_dot_class(status: CallStatus, is_speaking: bool) -> str:
    if status == "connecting":
        return "status__dot--connecting"
    if status == "active":
        return "status__dot--speaking" if is_speaking else "status__dot--listening"
    return ""


def format_event_date(date_str: str) -> str:
    """'2025-03-10' -> 'Monday, March 10, 2025'; unparseable input is returned as is."""
    try:
        day = datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError:
        return date_str
    return f"{day.strftime('%A')}, {day.strftime('%B')} {day.day}, {day.year}"


def format_event_time(time_24: str) -> str:
    """'09:45' -> '9:45 AM', '00:15' -> '12:15 AM'."""
    try:
        hours_str, minutes_str = time_24.split(":")
        hours, minutes = int(hours_str), int(minutes_str)
    except ValueError:
        return time_24
    period = "PM" if hours >= 12 else "AM"
    display_hours = hours % 12 or 12
    return f"{display_hours}:{minutes:02d} {period}"


def waveform_heights(volume_level: float, bar_count: int = 12) -> list[float]:
    """Bar heights in px, tallest in the middle, scaled by volume."""
    heights = []
    for i in range(bar_count):
        center_distance = abs(i - bar_count / 2) / (bar_count / 2)
        heights.append(round(6 + 40 * volume_level * (1 - center_distance * 0.6), 1))
    return heights


def build_view_context(state: SessionState, public_key: Optional[str] = None) -> Dict[str, Any]:
    event = state.created_event
    event_card = None
    if event is not None:
        event_card = {
            "summary": event.summary,
            "date": format_event_date(event.date),
            "start": format_event_time(event.start_time),
            "end": format_event_time(event.end_time),
            "link": event.link,
        }

    show_waveform = state.status == "active" and state.volume_level > WAVEFORM_MIN_VOLUME
    return {
        "status": state.status,
        "status_text": status_text(state.status, state.is_speaking),
        "status_dot_class": status_dot_class(state.status, state.is_speaking),
        "orb_active": state.status == "active",
        "show_waveform": show_waveform,
        "waveform": waveform_heights(state.volume_level) if show_waveform else [],
        "waveform_opacity": round(0.4 + state.volume_level * 0.6, 2),
        "show_transcript": state.status == "active" or bool(state.transcript),
        "transcript": [
            {"role": entry.role, "label": ROLE_LABELS[entry.role], "text": entry.text}
            for entry in state.transcript
        ],
        "event_card": event_card,
        "public_key": public_key,
        "assistant_url": ASSISTANT_CONFIG_PATH,
        "script_url": CLIENT_SCRIPT_PATH,
    }


def render_page(state: Optional[SessionState] = None, public_key: Optional[str] = None) -> str:
    template = _env.get_template("index.html")
    return template.render(**build_view_context(state or SessionState(), public_key))
