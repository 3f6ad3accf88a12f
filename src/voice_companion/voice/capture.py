"""Capture session: at most one recognition attempt at a time.

IDLE --start()--> LISTENING
LISTENING --final result--> IDLE   (RecognizedText, once)
LISTENING --error/no result--> IDLE (CaptureFailure)
LISTENING --stop()--> IDLE          (nothing emitted)
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from voice_companion.engine.schemas import CaptureEvent, CaptureFailure, RecognizedText
from voice_companion.voice.capabilities import (
    CaptureCapability,
    CaptureCapabilityEvent,
    RecognitionEnded,
    RecognitionError,
    RecognitionResult,
)

logger = logging.getLogger(__name__)

CaptureListener = Callable[[CaptureEvent], None]


class CaptureSession:
    def __init__(self, capability: CaptureCapability | None) -> None:
        self._capability = capability
        self._listening = False
        self._attempt_id = 0
        self._listeners: list[CaptureListener] = []

        self._supported = False
        if capability is not None:
            try:
                self._supported = bool(capability.is_supported)
            except Exception as e:
                logger.warning(f"[VOICE][CAPTURE] support check failed: {e}")

        if self._supported:
            capability.subscribe(self._on_capability_event)
        else:
            logger.info("[VOICE][CAPTURE] capability unsupported; capture disabled")

    @property
    def is_supported(self) -> bool:
        return self._supported

    @property
    def is_listening(self) -> bool:
        return self._listening

    def add_listener(self, listener: CaptureListener) -> None:
        self._listeners.append(listener)

    def start(self) -> bool:
        """Begin a recognition attempt. Returns False if nothing was started."""
        if not self._supported or self._listening:
            return False

        self._attempt_id += 1
        self._listening = True
        logger.debug(f"[VOICE][CAPTURE] start attempt={self._attempt_id}")
        try:
            self._capability.start(self._attempt_id)
        except Exception as e:
            logger.warning(f"[VOICE][CAPTURE] start failed: {e}")
            if self._listening:
                self._listening = False
                self._emit(CaptureFailure(reason="start_failed", detail=str(e)))
            return False
        return True

    def stop(self) -> None:
        """Abandon the current attempt; any late result is discarded."""
        if not self._listening:
            return

        self._listening = False
        logger.debug(f"[VOICE][CAPTURE] stop attempt={self._attempt_id}")
        try:
            self._capability.stop()
        except Exception as e:
            logger.warning(f"[VOICE][CAPTURE] stop failed: {e}")

    def _on_capability_event(self, event: CaptureCapabilityEvent) -> None:
        if not self._listening or event.attempt_id != self._attempt_id:
            logger.debug(f"[VOICE][CAPTURE] ignoring stale event {event!r}")
            return

        if isinstance(event, RecognitionResult):
            if not event.is_final:
                return
            self._listening = False
            text = (event.text or "").strip()
            if not text:
                self._emit(CaptureFailure(reason="no_speech"))
                return
            logger.info(f"[VOICE][CAPTURE] recognized chars={len(text)}")
            self._emit(RecognizedText(text=text))
        elif isinstance(event, RecognitionError):
            self._listening = False
            logger.warning(f"[VOICE][CAPTURE] recognition error: {event.error}")
            self._emit(CaptureFailure(reason="recognition_error", detail=event.error))
        elif isinstance(event, RecognitionEnded):
            self._listening = False
            logger.info("[VOICE][CAPTURE] ended without result")
            self._emit(CaptureFailure(reason="no_result"))

    def _emit(self, event: CaptureEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("[VOICE][CAPTURE] listener failed")
