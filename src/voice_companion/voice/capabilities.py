"""Contracts for platform speech capabilities.

Capture and synthesis are provided by the platform (browser bridge, local
Whisper/Piper, console). Adapters report progress by emitting the events
below to a subscribed handler; sessions never block on them.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID

from voice_companion.engine.schemas import UtteranceParams, VoiceOption

# Capture events. Exactly one of result(final)/error/ended arrives per start().


@dataclass(frozen=True)
class RecognitionResult:
    attempt_id: int
    text: str
    is_final: bool = True


@dataclass(frozen=True)
class RecognitionError:
    attempt_id: int
    error: str


@dataclass(frozen=True)
class RecognitionEnded:
    attempt_id: int


CaptureCapabilityEvent = RecognitionResult | RecognitionError | RecognitionEnded


# Synthesis events, tagged with the utterance they belong to.


@dataclass(frozen=True)
class SpeechRequest:
    utterance_id: UUID
    text: str
    params: UtteranceParams = field(default_factory=UtteranceParams)
    voice: VoiceOption | None = None


@dataclass(frozen=True)
class SpeechStarted:
    utterance_id: UUID


@dataclass(frozen=True)
class SpeechEnded:
    utterance_id: UUID


@dataclass(frozen=True)
class SpeechError:
    utterance_id: UUID
    error: str


@dataclass(frozen=True)
class VoicesChanged:
    pass


SynthesisCapabilityEvent = SpeechStarted | SpeechEnded | SpeechError | VoicesChanged


class CaptureCapability(Protocol):
    @property
    def is_supported(self) -> bool: ...

    def subscribe(self, handler: Callable[[CaptureCapabilityEvent], None]) -> None: ...

    def start(self, attempt_id: int) -> None: ...

    def stop(self) -> None: ...


class SynthesisCapability(Protocol):
    @property
    def is_supported(self) -> bool: ...

    def subscribe(self, handler: Callable[[SynthesisCapabilityEvent], None]) -> None: ...

    def voices(self) -> Sequence[VoiceOption]: ...

    def speak(self, request: SpeechRequest) -> None: ...

    def cancel_all(self) -> None: ...


class EventEmitter:
    """Fan-out of events to subscribed handlers, shared by adapters."""

    def __init__(self) -> None:
        self._handlers: list[Callable] = []

    def subscribe(self, handler: Callable) -> None:
        self._handlers.append(handler)

    def emit(self, event: object) -> None:
        for handler in list(self._handlers):
            handler(event)
