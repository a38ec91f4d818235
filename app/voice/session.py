from typing import Any, Dict, Protocol


class SessionEventSink(Protocol):
    """Receiver of events pushed by a live voice session."""

    def on_call_start(self) -> None: ...

    def on_call_end(self) -> None: ...

    def on_speech_start(self) -> None: ...

    def on_speech_end(self) -> None: ...

    def on_volume_level(self, level: float) -> None: ...

    def on_message(self, message: Dict[str, Any]) -> None: ...

    def on_error(self, error: Any) -> None: ...


class VoiceSession(Protocol):
    """
    One voice session with the voice platform.

    Implementations wrap the platform SDK and forward its events to the
    sink they were created with. start() returns once the platform has
    accepted the configuration; on_call_start follows when audio is live.
    """

    async def start(self, config: Dict[str, Any]) -> None: ...

    def stop(self) -> None: ...


class VoiceSessionFactory(Protocol):
    def __call__(self, sink: SessionEventSink) -> VoiceSession: ...
