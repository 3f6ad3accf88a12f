"""Synthesis session: at most one active utterance, latest speak() wins.

There is no queue. A new speak() cancels whatever is playing and the
cancelled utterance never reports an end; stop() is immediate from the
caller's point of view even if the platform tears down asynchronously.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from uuid import UUID, uuid4

from voice_companion.engine.schemas import (
    SynthesisEvent,
    SynthesisFailure,
    UtteranceEnded,
    UtteranceParams,
    UtteranceStarted,
    VoiceOption,
)
from voice_companion.engine.voice_policy import VoicePreferencePolicy
from voice_companion.voice.capabilities import (
    SpeechEnded,
    SpeechError,
    SpeechRequest,
    SpeechStarted,
    SynthesisCapability,
    SynthesisCapabilityEvent,
    VoicesChanged,
)
from voice_companion.voice.speakable import to_speakable

logger = logging.getLogger(__name__)

SynthesisListener = Callable[[SynthesisEvent], None]


class SynthesisSession:
    def __init__(
        self,
        capability: SynthesisCapability | None,
        *,
        policy: VoicePreferencePolicy | None = None,
        params: UtteranceParams | None = None,
    ) -> None:
        self._capability = capability
        self._policy = policy or VoicePreferencePolicy()
        self._default_params = params or UtteranceParams()
        self._listeners: list[SynthesisListener] = []

        self._voices: tuple[VoiceOption, ...] = ()
        self._selected_voice: VoiceOption | None = None
        self._current_id: UUID | None = None
        self._current_text: str = ""

        self._supported = False
        if capability is not None:
            try:
                self._supported = bool(capability.is_supported)
            except Exception as e:
                logger.warning(f"[VOICE][TTS] support check failed: {e}")

        if self._supported:
            capability.subscribe(self._on_capability_event)
            self.refresh_voices()
        else:
            logger.info("[VOICE][TTS] capability unsupported; speech disabled")

    @property
    def is_supported(self) -> bool:
        return self._supported

    @property
    def is_speaking(self) -> bool:
        return self._current_id is not None

    @property
    def current_utterance_id(self) -> UUID | None:
        return self._current_id

    @property
    def voices(self) -> tuple[VoiceOption, ...]:
        return self._voices

    @property
    def selected_voice(self) -> VoiceOption | None:
        return self._selected_voice

    @property
    def default_params(self) -> UtteranceParams:
        return self._default_params

    def add_listener(self, listener: SynthesisListener) -> None:
        self._listeners.append(listener)

    def refresh_voices(self) -> None:
        """Re-query the catalog and re-run voice selection."""
        if not self._supported:
            return
        try:
            self._voices = tuple(self._capability.voices())
        except Exception as e:
            logger.warning(f"[VOICE][TTS] voice catalog query failed: {e}")
            return
        self._selected_voice = self._policy.select(self._voices)
        logger.debug(
            f"[VOICE][TTS] catalog voices={len(self._voices)} selected="
            f"{self._selected_voice.display_name if self._selected_voice else None}"
        )

    def speak(
        self,
        text: str,
        voice_hint: VoiceOption | str | None = None,
        params: UtteranceParams | None = None,
    ) -> UUID | None:
        """
        Speak text, cancelling any utterance in progress.

        Args:
            text: Text to speak.
            voice_hint: Voice (or voice display name) to use instead of the policy choice.
            params: Prosody override for this utterance.

        Returns:
            The new utterance id, or None if nothing was spoken.
        """
        if not self._supported:
            return None

        speakable, skip_reason = to_speakable(text)
        if speakable is None:
            logger.info(f"[VOICE][TTS] skipped reason={skip_reason}")
            return None

        if self._current_id is not None:
            logger.debug(f"[VOICE][TTS] cancel utterance={self._current_id} for new speak")
            # Detach first so events raised by the cancel itself are treated as stale.
            self._current_id = None
            self._cancel_platform()

        utterance_id = uuid4()
        self._current_id = utterance_id
        self._current_text = speakable

        request = SpeechRequest(
            utterance_id=utterance_id,
            text=speakable,
            params=params or self._default_params,
            voice=self._resolve_voice(voice_hint),
        )
        excerpt = speakable[:80]
        logger.info(f'[VOICE][TTS] speak len={len(speakable)} text="{excerpt}"')
        try:
            self._capability.speak(request)
        except Exception as e:
            logger.warning(f"[VOICE][TTS] speak failed: {e}")
            if self._current_id == utterance_id:
                self._current_id = None
                self._emit(SynthesisFailure(utterance_id=utterance_id, reason=str(e)))
            return None
        return utterance_id

    def stop(self) -> None:
        """Silence immediately. The cancelled utterance never reports an end."""
        if not self._supported:
            return
        if self._current_id is not None:
            logger.debug(f"[VOICE][TTS] stop utterance={self._current_id}")
        self._current_id = None
        self._cancel_platform()

    def _cancel_platform(self) -> None:
        try:
            self._capability.cancel_all()
        except Exception as e:
            logger.warning(f"[VOICE][TTS] cancel failed: {e}")

    def _resolve_voice(self, voice_hint: VoiceOption | str | None) -> VoiceOption | None:
        if isinstance(voice_hint, VoiceOption):
            return voice_hint
        if isinstance(voice_hint, str) and voice_hint:
            wanted = voice_hint.lower()
            for voice in self._voices:
                if voice.display_name.lower() == wanted:
                    return voice
            logger.debug(f"[VOICE][TTS] voice hint {voice_hint!r} not in catalog")
        return self._selected_voice

    def _on_capability_event(self, event: SynthesisCapabilityEvent) -> None:
        if isinstance(event, VoicesChanged):
            self.refresh_voices()
            return

        if self._current_id is None or event.utterance_id != self._current_id:
            logger.debug(f"[VOICE][TTS] ignoring event for stale utterance {event!r}")
            return

        if isinstance(event, SpeechStarted):
            self._emit(UtteranceStarted(utterance_id=event.utterance_id, text=self._current_text))
        elif isinstance(event, SpeechEnded):
            self._current_id = None
            self._emit(UtteranceEnded(utterance_id=event.utterance_id))
        elif isinstance(event, SpeechError):
            self._current_id = None
            logger.info(f"[VOICE][TTS] utterance failed: {event.error}")
            self._emit(SynthesisFailure(utterance_id=event.utterance_id, reason=event.error))

    def _emit(self, event: SynthesisEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("[VOICE][TTS] listener failed")
