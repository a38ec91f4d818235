"""
VAPI assistant configuration.

Defines the voice agent's personality, conversation flow and the single
calendar tool. The tool's server URL is filled in when a session starts so
VAPI calls back into this service's webhook.
"""

import copy
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from app.webhook.messages import SCHEDULING_FUNCTION

WEBHOOK_PATH = "/api/vapi/webhook"

# VAPI validates the tool URL when a call starts and rejects local hosts
PLACEHOLDER_WEBHOOK_URL = "https://your-app.vercel.app/api/vapi/webhook"
LOCAL_HOSTS = ("localhost", "127.0.0.1")

SYSTEM_PROMPT = """You are a friendly and efficient scheduling assistant. Your job is to help users schedule meetings by collecting the necessary details through natural conversation.

## Conversation Flow
1. Greet and ask for their name. Be warm and natural.
2. Ask for the meeting date. If they say "tomorrow" or "next Tuesday", work with that.
3. Ask for the preferred time: start time and optionally an end time. Default meeting length is 30 minutes if they don't specify an end time.
4. Ask for a meeting title (optional). Suggest something like "Meeting with [name]" if they don't have one.
5. Confirm all details by reading back the name, date, time and title clearly.
6. Once confirmed, call the createCalendarEvent function.
7. Tell them the event was created and wish them a great day.

## Important Rules
- Always be conversational and natural, never robotic.
- Keep responses SHORT, 1 to 2 sentences max. You are on a voice call.
- When parsing dates, always use YYYY-MM-DD format for the function call.
- When parsing times, always use HH:MM in 24-hour format for the function call.
- If the user gives a relative date like "tomorrow" or "next Friday", calculate the actual date.
- If the user gives a 12-hour time like "3pm", convert it to 24-hour format (15:00).
- If no end time is given, default to 30 minutes after the start time.
- Do not ask more than one question at a time.
- If you cannot understand something, politely ask them to repeat."""

CALENDAR_TOOL_PARAMETERS: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {
            "type": "string",
            "description": "The name of the person scheduling the meeting",
        },
        "date": {
            "type": "string",
            "description": "The date of the meeting in YYYY-MM-DD format (e.g. 2026-02-20)",
        },
        "startTime": {
            "type": "string",
            "description": "The start time of the meeting in HH:MM 24-hour format (e.g. 14:00)",
        },
        "endTime": {
            "type": "string",
            "description": "The end time of the meeting in HH:MM 24-hour format (e.g. 14:30). Defaults to 30 minutes after start if not provided.",
        },
        "title": {
            "type": "string",
            "description": "The title/subject of the meeting (e.g. 'Team Standup', 'Coffee Chat with John')",
        },
    },
    "required": ["name", "date", "startTime"],
}

_BASE_CONFIG: Dict[str, Any] = {
    "name": "Scheduling Assistant",
    "firstMessage": "Hey there! I'm your scheduling assistant. I can help you set up a meeting on your calendar. What's your name?",
    "model": {
        "provider": "openai",
        "model": "gpt-4o-mini",
        "messages": [{"role": "system", "content": SYSTEM_PROMPT}],
        "tools": [
            {
                "type": "function",
                "function": {
                    "name": SCHEDULING_FUNCTION,
                    "description": "Creates a new event on the user's Google Calendar. Call this after confirming all event details with the user.",
                    "parameters": CALENDAR_TOOL_PARAMETERS,
                },
                "async": False,
                "server": {"url": PLACEHOLDER_WEBHOOK_URL},
            }
        ],
    },
    "voice": {
        "provider": "11labs",
        "voiceId": "21m00Tcm4TlvDq8ikWAM",
        "stability": 0.5,
        "similarityBoost": 0.75,
        "useSpeakerBoost": True,
    },
    "transcriber": {
        "provider": "deepgram",
        "model": "nova-2",
        "language": "en-US",
    },
    "silenceTimeoutSeconds": 30,
    "maxDurationSeconds": 300,
    "endCallMessage": "Thanks for scheduling with me! Have a wonderful day. Goodbye!",
}


def build_assistant_config(server_url: str) -> Dict[str, Any]:
    """Session start payload with the calendar tool pointed at server_url."""
    config = copy.deepcopy(_BASE_CONFIG)
    config["model"]["tools"][0]["server"]["url"] = server_url
    return config


def resolve_webhook_url(base_url: Optional[str]) -> str:
    """
    Public webhook URL for a deployment reachable at base_url.

    Local hosts get the placeholder URL so the session can at least start;
    tool calls will not reach this process in that case.
    """
    if not base_url:
        return PLACEHOLDER_WEBHOOK_URL
    host = urlparse(base_url).hostname or ""
    if host in LOCAL_HOSTS:
        return PLACEHOLDER_WEBHOOK_URL
    return base_url.rstrip("/") + WEBHOOK_PATH
