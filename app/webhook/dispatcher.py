"""
VAPI webhook dispatch.

Routes a normalized webhook message to its handler and produces the JSON body
returned to VAPI. Tool results are plain sentences the assistant reads back
to the caller.
"""

import logging
import re
from typing import Any, Callable, Dict, Optional, Tuple

from pydantic import ValidationError

from app.calendar.event_creator import create_calendar_event
from app.calendar.types import CalendarEventRequest, CalendarEventResult
from app.observability.logger import log_info
from app.webhook.messages import (
    SCHEDULING_FUNCTION,
    AcknowledgeMessage,
    FunctionCallMessage,
    ToolCallsMessage,
    ToolInvocation,
    parse_webhook_message,
)

logger = logging.getLogger("voice_scheduler")

EventCreator = Callable[[CalendarEventRequest], CalendarEventResult]


def format_event_result(result: CalendarEventResult) -> str:
    """Sentence spoken back to the caller for a create-event outcome."""
    if result.success:
        sentence = f'Event "{result.summary}" has been successfully created for {result.start} to {result.end}.'
        if result.event_link:
            sentence += f" Calendar link: {result.event_link}."
        return sentence
    return f"Sorry, I couldn't create the event: {result.error}"


_CREATED_SENTENCE_RE = re.compile(
    r'Event "(?P<summary>.*)" has been successfully created for (?P<start>\S+) to (?P<end>\S+?)\.'
    r'(?: Calendar link: (?P<link>\S+)\.)?'
)


def parse_event_result(sentence: str) -> Optional[CalendarEventResult]:
    """Inverse of format_event_result for the success sentence; None for anything else."""
    match = _CREATED_SENTENCE_RE.fullmatch(sentence.strip())
    if not match:
        return None
    return CalendarEventResult.created(
        event_id=None,
        event_link=match.group("link"),
        summary=match.group("summary"),
        start=match.group("start"),
        end=match.group("end"),
    )


def _describe_validation_error(exc: ValidationError) -> str:
    missing = []
    invalid = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()))
        if error.get("type") == "missing":
            missing.append(field)
        else:
            invalid.append(field)
    parts = []
    if missing:
        parts.append(f"missing {', '.join(missing)}")
    if invalid:
        parts.append(f"invalid {', '.join(invalid)}")
    return "; ".join(parts) or "invalid arguments"


def _schedule(arguments: Dict[str, Any], arguments_error: Optional[str], creator: EventCreator) -> str:
    if arguments_error:
        return f"Sorry, I couldn't create the event: {arguments_error}"
    try:
        request = CalendarEventRequest.model_validate(arguments)
    except ValidationError as exc:
        return f"Sorry, I couldn't create the event: {_describe_validation_error(exc)}"
    return format_event_result(creator(request))


def _run_tool_call(invocation: ToolInvocation, creator: EventCreator) -> Dict[str, str]:
    logger.info(f"Tool call: {invocation.function_name} {invocation.arguments}")
    if invocation.function_name == SCHEDULING_FUNCTION:
        result = _schedule(invocation.arguments, invocation.arguments_error, creator)
    else:
        result = f"Unknown tool: {invocation.function_name}"
    return {"toolCallId": invocation.call_id, "result": result}


def handle_webhook(payload: Any, creator: Optional[EventCreator] = None) -> Tuple[int, Dict[str, Any]]:
    """
    Dispatch a decoded webhook body.

    Args:
        payload: The JSON body sent by VAPI
        creator: Function creating the calendar event, defaults to
            create_calendar_event

    Returns:
        (status_code, response body). Exceptions propagate to the caller,
        which maps them to a 500 response.
    """
    creator = creator or create_calendar_event
    message = parse_webhook_message(payload)

    if isinstance(message, ToolCallsMessage):
        results = [_run_tool_call(invocation, creator) for invocation in message.invocations]
        return 200, {"results": results}

    if isinstance(message, AcknowledgeMessage):
        log_info(f"VAPI {message.type} received", {"message_type": message.type, "payload": message.raw})
        return 200, {"ok": True}

    if isinstance(message, FunctionCallMessage):
        if message.name == SCHEDULING_FUNCTION:
            return 200, {"result": _schedule(message.parameters, message.arguments_error, creator)}
        return 200, {"result": "Unknown function"}

    logger.info(f"Unhandled message type: {message.type}")
    return 200, {"ok": True}
