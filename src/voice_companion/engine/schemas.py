"""
Pydantic schemas for the voice interaction engine.

Defines the transcript message, voice catalog entries, rule entries,
session state, and the normalized events passed between sessions and
orchestrators.
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


def _now_utc() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class SessionState(str, Enum):
    """State of an orchestrator's voice session."""

    IDLE = "idle"
    LISTENING = "listening"
    SPEAKING = "speaking"
    ERROR = "error"


class Severity(str, Enum):
    """Severity marker of a user-facing notification."""

    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class Message(BaseModel):
    """A single transcript entry. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4, description="Unique message identifier")
    text: str = Field(..., description="Message text")
    is_user: bool = Field(..., description="True for user utterances, False for responses")
    timestamp: datetime = Field(default_factory=_now_utc, description="Creation time")


class VoiceOption(BaseModel):
    """A synthesis voice offered by the platform."""

    model_config = ConfigDict(frozen=True)

    display_name: str = Field(..., description="Human-readable voice name")
    language_tag: str = Field(default="", description="BCP 47 language tag, e.g. en-US")


class RuleEntry(BaseModel):
    """An ordered response rule: any trigger keyword selects the response."""

    model_config = ConfigDict(frozen=True)

    trigger_keywords: tuple[str, ...] = Field(..., min_length=1, description="Lower-case keywords")
    response_text: str = Field(..., min_length=1, description="Canned response")


class UtteranceParams(BaseModel):
    """Prosody of one utterance."""

    model_config = ConfigDict(frozen=True)

    rate: float = Field(default=0.9, gt=0.0, le=10.0)
    pitch: float = Field(default=1.0, ge=0.0, le=2.0)
    volume: float = Field(default=0.8, ge=0.0, le=1.0)


class Notification(BaseModel):
    """A user-facing notification emitted by the engine."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    severity: Severity = Severity.DEFAULT


class GuideContext(BaseModel):
    """Optional navigation context supplied alongside a location key."""

    model_config = ConfigDict(frozen=True)

    is_first_time: bool = Field(default=False, description="First visit after signing in")


class GreetingMemory(BaseModel):
    """Remembers which location key was last greeted by the guide."""

    last_greeted_key: str | None = None


# Session events (normalized, never raw capability errors)


class RecognizedText(BaseModel):
    """Final recognized text from one capture attempt."""

    model_config = ConfigDict(frozen=True)

    text: str


class CaptureFailure(BaseModel):
    """A capture attempt failed or produced nothing usable."""

    model_config = ConfigDict(frozen=True)

    reason: str
    detail: str = ""


class UtteranceStarted(BaseModel):
    """The current utterance started playing."""

    model_config = ConfigDict(frozen=True)

    utterance_id: UUID
    text: str


class UtteranceEnded(BaseModel):
    """The current utterance finished playing."""

    model_config = ConfigDict(frozen=True)

    utterance_id: UUID


class SynthesisFailure(BaseModel):
    """The current utterance could not be played."""

    model_config = ConfigDict(frozen=True)

    utterance_id: UUID | None = None
    reason: str


CaptureEvent = RecognizedText | CaptureFailure
SynthesisEvent = UtteranceStarted | UtteranceEnded | SynthesisFailure


class ConversationSnapshot(BaseModel):
    """Read-only view of a conversation for the presentation layer."""

    state: SessionState
    is_supported: bool
    is_listening: bool
    is_speaking: bool
    transcript: list[Message] = Field(default_factory=list)


class GuideSnapshot(BaseModel):
    """Read-only view of the guide for the presentation layer."""

    is_supported: bool
    is_enabled: bool
    is_speaking: bool
    location_key: str | None = None
    last_greeted_key: str | None = None
