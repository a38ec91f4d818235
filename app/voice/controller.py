"""
Client-side call controller.

Owns at most one voice session and mirrors the events it pushes into a
SessionState that views can render:

    idle --start_call()--> connecting --on_call_start--> active
    connecting/active --end_call() | on_call_end | on_error--> idle

Events from a session that has already been torn down are dropped.
"""

import logging
import math
import time
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel

from app.calendar.types import CalendarEventResult
from app.voice.assistant import build_assistant_config
from app.voice.session import VoiceSession, VoiceSessionFactory
from app.webhook.dispatcher import parse_event_result
from app.webhook.messages import SCHEDULING_FUNCTION

logger = logging.getLogger("voice_scheduler")

CallStatus = Literal["idle", "connecting", "active"]
TRANSCRIPT_ROLES = ("assistant", "user")


class TranscriptEntry(BaseModel):
    role: Literal["assistant", "user"]
    text: str
    timestamp: float


class CreatedEvent(BaseModel):
    summary: str
    date: str  # YYYY-MM-DD
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    link: Optional[str] = None


class SessionState(BaseModel):
    status: CallStatus = "idle"
    is_speaking: bool = False
    volume_level: float = 0.0
    transcript: List[TranscriptEntry] = []
    created_event: Optional[CreatedEvent] = None


def clamp_volume(level: float) -> float:
    """Clamp a volume sample to [0, 1]; NaN and infinities read as silence."""
    level = float(level)
    if not math.isfinite(level):
        return 0.0
    return min(max(level, 0.0), 1.0)


def created_event_from_result(result: CalendarEventResult) -> Optional[CreatedEvent]:
    """Event card data for a successful create, None otherwise."""
    if not result.success or not result.start or not result.end:
        return None
    date, _, start_clock = result.start.partition("T")
    _, _, end_clock = result.end.partition("T")
    return CreatedEvent(
        summary=result.summary or "",
        date=date,
        start_time=start_clock[:5],
        end_time=end_clock[:5],
        link=result.event_link,
    )


def created_event_from_tool_message(message: Dict[str, Any]) -> Optional[CreatedEvent]:
    """
    Event card data from a tool result relayed to the client.

    VAPI relays the string our webhook returned, under ``toolCallResult`` for
    tool calls and ``functionCallResult`` for legacy function calls. Results
    of other tools and failure sentences yield None.
    """
    for key in ("toolCallResult", "functionCallResult"):
        payload = message.get(key)
        if not isinstance(payload, dict):
            continue
        if payload.get("name") not in (None, SCHEDULING_FUNCTION):
            continue
        result = payload.get("result")
        if not isinstance(result, str):
            continue
        parsed = parse_event_result(result)
        if parsed is not None:
            return created_event_from_result(parsed)
    return None


class _BoundSink:
    """Forwards session events to the controller while the session is current."""

    def __init__(self, controller: "CallController", token: object):
        self._controller = controller
        self._token = token

    def _live(self) -> bool:
        return self._controller._token is self._token

    def on_call_start(self) -> None:
        if self._live():
            self._controller._handle_call_start()

    def on_call_end(self) -> None:
        if self._live():
            self._controller._handle_call_end()

    def on_speech_start(self) -> None:
        if self._live():
            self._controller._update(is_speaking=True)

    def on_speech_end(self) -> None:
        if self._live():
            self._controller._update(is_speaking=False)

    def on_volume_level(self, level: float) -> None:
        if self._live():
            self._controller._update(volume_level=clamp_volume(level))

    def on_message(self, message: Dict[str, Any]) -> None:
        if self._live():
            self._controller._handle_message(message)

    def on_error(self, error: Any) -> None:
        if self._live():
            self._controller._handle_error(error)


class CallController:
    def __init__(
        self,
        session_factory: VoiceSessionFactory,
        server_url: str,
        clock: Callable[[], float] = time.time,
    ):
        self._session_factory = session_factory
        self.server_url = server_url
        self._clock = clock
        self._session: Optional[VoiceSession] = None
        self._token: Optional[object] = None
        self._listeners: List[Callable[[SessionState], None]] = []
        self.state = SessionState()

    @property
    def has_session(self) -> bool:
        return self._session is not None

    def subscribe(self, listener: Callable[[SessionState], None]) -> Callable[[], None]:
        """Register a listener called with the state after every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.state)

    def _update(self, **changes: Any) -> None:
        self.state = self.state.model_copy(update=changes)
        self._notify()

    def _release(self, stop: bool) -> None:
        session = self._session
        self._session = None
        self._token = None
        if stop and session is not None:
            try:
                session.stop()
            except Exception as exc:
                logger.warning(f"Voice session stop failed: {exc}")

    async def start_call(self) -> None:
        """Open a new session unless one is already connecting or active."""
        if self._session is not None:
            return

        token = object()
        session = self._session_factory(_BoundSink(self, token))
        self._session = session
        self._token = token
        self._update(status="connecting", transcript=[], created_event=None, is_speaking=False, volume_level=0.0)

        config = build_assistant_config(self.server_url)
        try:
            await session.start(config)
        except Exception as exc:
            logger.error(f"Failed to start call: {exc}")
            if self._token is token:
                self._release(stop=True)
                self._update(status="idle")

    def end_call(self) -> None:
        """Tear down the session immediately, whatever state it is in."""
        self._release(stop=True)
        self._update(status="idle", is_speaking=False, volume_level=0.0)

    def set_created_event(self, event: Optional[CreatedEvent]) -> None:
        """Override the event card, e.g. when the embedder learns of the event out of band."""
        self._update(created_event=event)

    def _handle_call_start(self) -> None:
        logger.info("Call started")
        self._update(status="active")

    def _handle_call_end(self) -> None:
        logger.info("Call ended")
        self._release(stop=False)
        self._update(status="idle", is_speaking=False, volume_level=0.0)

    def _handle_error(self, error: Any) -> None:
        logger.error(f"Voice session error: {error!r}")
        self._release(stop=True)
        self._update(status="idle", is_speaking=False, volume_level=0.0)

    def _handle_message(self, message: Dict[str, Any]) -> None:
        message_type = message.get("type")

        if message_type == "transcript":
            if message.get("transcriptType") != "final":
                return
            role = message.get("role")
            text = message.get("transcript")
            if role not in TRANSCRIPT_ROLES or not text:
                return
            transcript = self.state.transcript
            # Final utterances are sometimes delivered twice in a row
            if transcript and transcript[-1].role == role and transcript[-1].text == text:
                return
            entry = TranscriptEntry(role=role, text=text, timestamp=self._clock())
            self._update(transcript=[*transcript, entry])
        elif message_type in ("tool-calls-result", "function-call-result"):
            logger.info(f"Tool result: {message}")
            event = created_event_from_tool_message(message)
            if event is not None:
                self._update(created_event=event)
        elif message_type == "conversation-update":
            # Transcript is built from final transcript messages only
            return
