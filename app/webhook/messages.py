"""
Normalization of inbound VAPI webhook payloads.

VAPI has shipped several payload shapes over time (``toolCallList`` vs
``toolCalls``, string vs object arguments, the legacy ``function-call``
message). Everything is converted here into one of the message models below
so the dispatcher never looks at the raw body.
"""

import json
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel


SCHEDULING_FUNCTION = "createCalendarEvent"
ACKNOWLEDGED_TYPES = ("status-update", "end-of-call-report", "hang")


class WebhookPayloadError(ValueError):
    """Raised when the webhook body is not a usable VAPI message."""


class ToolInvocation(BaseModel):
    call_id: str
    function_name: str
    arguments: Dict[str, Any] = {}
    # Set when the arguments could not be decoded into a mapping
    arguments_error: Optional[str] = None


class ToolCallsMessage(BaseModel):
    kind: Literal["tool-calls"] = "tool-calls"
    invocations: List[ToolInvocation] = []


class AcknowledgeMessage(BaseModel):
    kind: Literal["acknowledge"] = "acknowledge"
    type: str
    raw: Dict[str, Any] = {}


class FunctionCallMessage(BaseModel):
    kind: Literal["function-call"] = "function-call"
    name: Optional[str] = None
    parameters: Dict[str, Any] = {}
    arguments_error: Optional[str] = None


class UnhandledMessage(BaseModel):
    kind: Literal["unhandled"] = "unhandled"
    type: Optional[str] = None


WebhookMessage = Union[ToolCallsMessage, AcknowledgeMessage, FunctionCallMessage, UnhandledMessage]


def parse_arguments(raw: Any) -> Dict[str, Any]:
    """
    Decode tool arguments which arrive either as a JSON string or an object.

    Raises WebhookPayloadError when the value is not a JSON object.
    """
    if raw is None:
        return {}
    if isinstance(raw, str):
        if not raw.strip():
            return {}
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise WebhookPayloadError(f"Arguments are not valid JSON: {exc.msg}")
    if not isinstance(raw, dict):
        raise WebhookPayloadError("Arguments must be a JSON object")
    return raw


def _parse_invocation(item: Any, index: int) -> ToolInvocation:
    if not isinstance(item, dict):
        raise WebhookPayloadError(f"Tool call #{index} is not an object")
    function = item.get("function") or {}
    if not isinstance(function, dict):
        raise WebhookPayloadError(f"Tool call #{index} has no function object")

    call_id = str(item.get("id") or "")
    name = str(function.get("name") or "")
    try:
        arguments = parse_arguments(function.get("arguments"))
        return ToolInvocation(call_id=call_id, function_name=name, arguments=arguments)
    except WebhookPayloadError as exc:
        return ToolInvocation(call_id=call_id, function_name=name, arguments_error=str(exc))


def parse_webhook_message(payload: Any) -> WebhookMessage:
    """Convert a decoded webhook body into a WebhookMessage."""
    if not isinstance(payload, dict):
        raise WebhookPayloadError("Webhook body must be a JSON object")
    message = payload.get("message")
    if not isinstance(message, dict):
        raise WebhookPayloadError("Webhook body has no message object")

    message_type = message.get("type")

    if message_type == "tool-calls":
        # Depending on version VAPI names the list toolCallList or toolCalls
        items = message.get("toolCallList") or message.get("toolCalls") or []
        if not isinstance(items, list):
            raise WebhookPayloadError("Tool call list must be an array")
        return ToolCallsMessage(invocations=[_parse_invocation(item, i) for i, item in enumerate(items)])

    if message_type in ACKNOWLEDGED_TYPES:
        return AcknowledgeMessage(type=message_type, raw=payload)

    if message_type == "function-call":
        function_call = message.get("functionCall") or {}
        if not isinstance(function_call, dict):
            return FunctionCallMessage()
        try:
            parameters = parse_arguments(function_call.get("parameters"))
            return FunctionCallMessage(name=function_call.get("name"), parameters=parameters)
        except WebhookPayloadError as exc:
            return FunctionCallMessage(name=function_call.get("name"), arguments_error=str(exc))

    return UnhandledMessage(type=message_type if isinstance(message_type, str) else None)
