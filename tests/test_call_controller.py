from typing import Any, Dict, List, Optional

import pytest

from app.calendar.types import CalendarEventResult
from app.voice.controller import (
    CallController,
    CreatedEvent,
    clamp_volume,
    created_event_from_result,
    created_event_from_tool_message,
)
from app.webhook.dispatcher import format_event_result


SERVER_URL = "https://scheduler.example.com/api/vapi/webhook"


class FakeSession:
    """Voice session double; the test drives platform events through .sink."""

    def __init__(self, sink, start_error: Optional[Exception] = None):
        self.sink = sink
        self.start_error = start_error
        self.started_with: Optional[Dict[str, Any]] = None
        self.stopped = 0

    async def start(self, config: Dict[str, Any]) -> None:
        self.started_with = config
        if self.start_error:
            raise self.start_error

    def stop(self) -> None:
        self.stopped += 1


class FakeFactory:
    def __init__(self, start_error: Optional[Exception] = None):
        self.start_error = start_error
        self.sessions: List[FakeSession] = []

    def __call__(self, sink) -> FakeSession:
        session = FakeSession(sink, self.start_error)
        self.sessions.append(session)
        return session


def _final(role: str, text: str) -> Dict[str, Any]:
    return {"type": "transcript", "role": role, "transcript": text, "transcriptType": "final"}


def _controller(factory: Optional[FakeFactory] = None) -> CallController:
    ticks = iter(range(1, 1000))
    return CallController(factory or FakeFactory(), SERVER_URL, clock=lambda: float(next(ticks)))


class TestCallLifecycle:
    """idle -> connecting -> active -> idle."""

    @pytest.mark.asyncio
    async def test_start_goes_connecting_then_active_on_open(self):
        factory = FakeFactory()
        controller = _controller(factory)
        seen = []
        controller.subscribe(lambda state: seen.append(state.status))

        await controller.start_call()

        assert controller.state.status == "connecting"
        assert seen[0] == "connecting"
        session = factory.sessions[0]
        tool = session.started_with["model"]["tools"][0]
        assert tool["server"]["url"] == SERVER_URL

        session.sink.on_call_start()
        assert controller.state.status == "active"

    @pytest.mark.asyncio
    async def test_end_while_connecting_forces_idle(self):
        factory = FakeFactory()
        controller = _controller(factory)

        await controller.start_call()
        controller.end_call()

        assert controller.state.status == "idle"
        assert controller.has_session is False
        assert factory.sessions[0].stopped == 1

        # A late open acknowledgment from the torn-down session is ignored
        factory.sessions[0].sink.on_call_start()
        assert controller.state.status == "idle"

    @pytest.mark.asyncio
    async def test_start_is_noop_while_session_exists(self):
        factory = FakeFactory()
        controller = _controller(factory)

        await controller.start_call()
        await controller.start_call()
        factory.sessions[0].sink.on_call_start()
        await controller.start_call()

        assert len(factory.sessions) == 1
        assert controller.state.status == "active"

    @pytest.mark.asyncio
    async def test_platform_close_returns_to_idle(self):
        factory = FakeFactory()
        controller = _controller(factory)
        await controller.start_call()
        sink = factory.sessions[0].sink
        sink.on_call_start()
        sink.on_speech_start()
        sink.on_volume_level(0.7)

        sink.on_call_end()

        assert controller.state.status == "idle"
        assert controller.state.is_speaking is False
        assert controller.state.volume_level == 0.0
        assert controller.has_session is False

    @pytest.mark.asyncio
    async def test_fault_releases_session(self):
        factory = FakeFactory()
        controller = _controller(factory)
        await controller.start_call()
        factory.sessions[0].sink.on_call_start()

        factory.sessions[0].sink.on_error({"message": "ejected"})

        assert controller.state.status == "idle"
        assert factory.sessions[0].stopped == 1
        # A new call can start after the fault
        await controller.start_call()
        assert len(factory.sessions) == 2

    @pytest.mark.asyncio
    async def test_start_failure_returns_to_idle(self):
        factory = FakeFactory(start_error=RuntimeError("invalid assistant"))
        controller = _controller(factory)

        await controller.start_call()

        assert controller.state.status == "idle"
        assert controller.has_session is False

    @pytest.mark.asyncio
    async def test_start_clears_previous_transcript_and_event(self):
        factory = FakeFactory()
        controller = _controller(factory)
        await controller.start_call()
        sink = factory.sessions[0].sink
        sink.on_call_start()
        sink.on_message(_final("user", "Hi"))
        controller.set_created_event(CreatedEvent(summary="x", date="2025-03-10", start_time="09:00", end_time="09:30"))
        controller.end_call()

        await controller.start_call()

        assert controller.state.transcript == []
        assert controller.state.created_event is None

    @pytest.mark.asyncio
    async def test_events_after_end_are_ignored(self):
        factory = FakeFactory()
        controller = _controller(factory)
        await controller.start_call()
        sink = factory.sessions[0].sink
        sink.on_call_start()
        controller.end_call()

        sink.on_speech_start()
        sink.on_volume_level(0.9)
        sink.on_message(_final("assistant", "Hello"))

        assert controller.state.is_speaking is False
        assert controller.state.volume_level == 0.0
        assert controller.state.transcript == []


class TestSessionEvents:
    """Mirroring of speech, volume and transcript events."""

    @pytest.mark.asyncio
    async def test_speech_and_volume(self):
        factory = FakeFactory()
        controller = _controller(factory)
        await controller.start_call()
        sink = factory.sessions[0].sink
        sink.on_call_start()

        sink.on_speech_start()
        assert controller.state.is_speaking is True
        sink.on_speech_end()
        assert controller.state.is_speaking is False

        sink.on_volume_level(0.42)
        assert controller.state.volume_level == pytest.approx(0.42)
        sink.on_volume_level(3)
        assert controller.state.volume_level == 1.0

    @pytest.mark.asyncio
    async def test_transcript_appends_final_and_drops_immediate_repeat(self):
        factory = FakeFactory()
        controller = _controller(factory)
        await controller.start_call()
        sink = factory.sessions[0].sink
        sink.on_call_start()

        sink.on_message(_final("assistant", "What's your name?"))
        sink.on_message(_final("assistant", "What's your name?"))
        sink.on_message({"type": "transcript", "role": "user", "transcript": "Ad", "transcriptType": "partial"})
        sink.on_message(_final("user", "Ada"))
        sink.on_message(_final("system", "ignored"))
        sink.on_message(_final("user", ""))
        sink.on_message(_final("assistant", "What's your name?"))

        entries = [(e.role, e.text) for e in controller.state.transcript]
        assert entries == [
            ("assistant", "What's your name?"),
            ("user", "Ada"),
            ("assistant", "What's your name?"),
        ]
        timestamps = [e.timestamp for e in controller.state.transcript]
        assert timestamps == sorted(timestamps)

    @pytest.mark.asyncio
    async def test_conversation_snapshots_do_not_replace_transcript(self):
        factory = FakeFactory()
        controller = _controller(factory)
        await controller.start_call()
        sink = factory.sessions[0].sink
        sink.on_message(_final("user", "Ada"))

        sink.on_message({"type": "conversation-update", "conversation": [{"role": "assistant", "content": "Other"}]})

        assert [e.text for e in controller.state.transcript] == ["Ada"]

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        controller = _controller()
        seen = []
        unsubscribe = controller.subscribe(lambda state: seen.append(state.status))
        unsubscribe()

        await controller.start_call()

        assert seen == []


class TestCreatedEvent:
    def test_from_success_result(self):
        result = CalendarEventResult.created(
            "evt123", "https://calendar.google.com/evt123", "Meeting with Ada",
            "2025-03-10T09:45:00", "2025-03-10T10:15:00",
        )

        event = created_event_from_result(result)

        assert event == CreatedEvent(
            summary="Meeting with Ada",
            date="2025-03-10",
            start_time="09:45",
            end_time="10:15",
            link="https://calendar.google.com/evt123",
        )

    def test_from_failure_result(self):
        assert created_event_from_result(CalendarEventResult.failed("nope")) is None


class TestVolumeAndToolResults:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("level", [float("nan"), float("inf"), float("-inf")])
    async def test_non_finite_volume_reads_as_silence(self, level):
        factory = FakeFactory()
        controller = _controller(factory)
        await controller.start_call()
        sink = factory.sessions[0].sink
        sink.on_call_start()
        sink.on_volume_level(0.6)

        sink.on_volume_level(level)

        assert controller.state.volume_level == 0.0

    def test_clamp_volume(self):
        assert clamp_volume(-0.5) == 0.0
        assert clamp_volume(0.25) == 0.25
        assert clamp_volume(7) == 1.0
        assert clamp_volume(float("nan")) == 0.0

    @pytest.mark.asyncio
    async def test_tool_result_fills_created_event(self):
        factory = FakeFactory()
        controller = _controller(factory)
        await controller.start_call()
        sink = factory.sessions[0].sink
        sink.on_call_start()

        sink.on_message({
            "type": "tool-calls-result",
            "toolCallResult": {
                "name": "createCalendarEvent",
                "toolCallId": "call_1",
                "result": format_event_result(CalendarEventResult.created(
                    "evt123", "https://calendar.google.com/evt123", "Meeting with Ada",
                    "2025-03-10T09:45:00", "2025-03-10T10:15:00",
                )),
            },
        })

        assert controller.state.created_event == CreatedEvent(
            summary="Meeting with Ada",
            date="2025-03-10",
            start_time="09:45",
            end_time="10:15",
            link="https://calendar.google.com/evt123",
        )

    def test_legacy_function_result_without_link(self):
        message = {
            "type": "function-call-result",
            "functionCallResult": {
                "result": 'Event "Design review" has been successfully created for 2025-03-10T14:00:00 to 2025-03-10T15:00:00.',
            },
        }

        event = created_event_from_tool_message(message)

        assert event.summary == "Design review"
        assert (event.start_time, event.end_time) == ("14:00", "15:00")
        assert event.link is None

    @pytest.mark.parametrize("payload", [
        {"name": "createCalendarEvent", "result": "Sorry, I couldn't create the event: boom"},
        {"name": "lookupWeather", "result": 'Event "x" has been successfully created for a to b.'},
        {"name": "createCalendarEvent", "result": {"ok": True}},
    ])
    def test_other_tool_results_are_ignored(self, payload):
        assert created_event_from_tool_message({"type": "tool-calls-result", "toolCallResult": payload}) is None
