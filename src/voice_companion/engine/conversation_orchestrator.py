"""
Conversation orchestrator.

Composes a capture session, the response rule table and a synthesis
session into a turn-taking loop:

mic -> CaptureSession -> text -> ResponseRuleTable -> SynthesisSession -> speaker

Both transcript messages are appended before speech is requested, so the
transcript always matches what will be (or is being) spoken.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from uuid import UUID

from voice_companion.config import get_settings
from voice_companion.engine.conversation_state import ConversationState
from voice_companion.engine.rules import ResponseRuleTable, default_rule_table
from voice_companion.engine.scheduling import AsyncioScheduler, PendingCall, Scheduler
from voice_companion.engine.schemas import (
    CaptureEvent,
    CaptureFailure,
    ConversationSnapshot,
    Message,
    Notification,
    RecognizedText,
    SessionState,
    Severity,
    SynthesisEvent,
    SynthesisFailure,
    UtteranceEnded,
    UtteranceStarted,
)
from voice_companion.voice.capture import CaptureSession
from voice_companion.voice.synthesis import SynthesisSession

logger = logging.getLogger(__name__)

NotificationSink = Callable[[Notification], None]
StateListener = Callable[[SessionState], None]

CAPTURE_ERROR_NOTIFICATION = Notification(
    title="Speech Recognition Error",
    description="Please try speaking again.",
    severity=Severity.DESTRUCTIVE,
)


def log_notification(notification: Notification) -> None:
    """Default notification sink: write the notification to the log."""
    level = logging.WARNING if notification.severity == Severity.DESTRUCTIVE else logging.INFO
    logger.log(level, f"[NOTIFY] {notification.title}: {notification.description}")


class ConversationOrchestrator:
    """
    Runs voice turns: listen, match a response, pause, speak.

    The system never listens while it is speaking (or about to speak).
    Capture failures surface one notification and leave the transcript
    untouched.
    """

    def __init__(
        self,
        capture: CaptureSession,
        synthesis: SynthesisSession,
        *,
        rules: ResponseRuleTable | None = None,
        scheduler: Scheduler | None = None,
        notify: NotificationSink | None = None,
        reply_delay_s: float | None = None,
    ) -> None:
        """
        Initialize the conversation orchestrator.

        Args:
            capture: Capture session owned by this orchestrator.
            synthesis: Synthesis session owned by this orchestrator.
            rules: Response rules. Uses the predefined support rules if None.
            scheduler: Timer source for the reply pause. Uses asyncio if None.
            notify: Sink for user-facing notifications. Logs if None.
            reply_delay_s: Pause before speaking a reply. Uses settings if None.
        """
        if reply_delay_s is None:
            reply_delay_s = get_settings().reply_delay_ms / 1000.0

        self._capture = capture
        self._synthesis = synthesis
        self._rules = rules or default_rule_table()
        self._notify = notify or log_notification
        self._reply_delay_s = reply_delay_s
        self._reply = PendingCall(scheduler or AsyncioScheduler())
        self._conversation = ConversationState()
        self._state_listeners: list[StateListener] = []
        self._closed = False

        capture.add_listener(self._on_capture_event)
        synthesis.add_listener(self._on_synthesis_event)

        if not capture.is_supported:
            logger.warning("Speech capture is not supported on this platform")
            self._conversation.set_state(SessionState.ERROR)

    @property
    def session_id(self) -> UUID:
        """Get the conversation session identifier."""
        return self._conversation.session_id

    @property
    def state(self) -> SessionState:
        """Get the current session state."""
        return self._conversation.state

    @property
    def transcript(self) -> list[Message]:
        """Get the transcript in conversation order."""
        return self._conversation.transcript

    @property
    def is_supported(self) -> bool:
        """Check if voice capture is available."""
        return self._capture.is_supported

    @property
    def is_listening(self) -> bool:
        return self._capture.is_listening

    @property
    def is_speaking(self) -> bool:
        return self._synthesis.is_speaking

    @property
    def reply_pending(self) -> bool:
        """Check if a reply is waiting out the pause before being spoken."""
        return self._reply.is_pending

    def add_state_listener(self, listener: StateListener) -> None:
        self._state_listeners.append(listener)

    def snapshot(self) -> ConversationSnapshot:
        """Get a read-only view for rendering."""
        return ConversationSnapshot(
            state=self.state,
            is_supported=self.is_supported,
            is_listening=self.is_listening,
            is_speaking=self.is_speaking,
            transcript=self.transcript,
        )

    def begin_turn(self) -> bool:
        """
        Start listening for the user.

        Returns:
            True if capture started.
        """
        if self._closed or not self._capture.is_supported:
            return False
        if self._synthesis.is_speaking or self._reply.is_pending:
            logger.info("Not listening while a reply is being spoken")
            return False
        if self._capture.is_listening:
            return False

        self._set_state(SessionState.LISTENING)
        started = self._capture.start()
        if not started and self.state == SessionState.LISTENING and not self._capture.is_listening:
            self._set_state(SessionState.IDLE)
        return started

    def end_turn(self) -> bool:
        """
        Stop listening without producing a message.

        Returns:
            True if a capture attempt was stopped.
        """
        if not self._capture.is_listening:
            return False
        self._capture.stop()
        if self.state == SessionState.LISTENING:
            self._set_state(SessionState.IDLE)
        return True

    def toggle_listening(self) -> bool:
        """Capture button: begin a turn, or end the one in progress."""
        if self._capture.is_listening:
            self.end_turn()
            return False
        return self.begin_turn()

    def cancel_speech(self) -> None:
        """Silence the reply, including one still waiting out its pause."""
        self._reply.cancel()
        self._synthesis.stop()
        if self.state == SessionState.SPEAKING:
            self._set_state(SessionState.IDLE)

    def close(self) -> None:
        """Tear down: cancel the pending reply and release both sessions."""
        if self._closed:
            return
        self._closed = True
        self._reply.cancel()
        self._capture.stop()
        self._synthesis.stop()
        if self.state != SessionState.ERROR:
            self._set_state(SessionState.IDLE)
        logger.debug(f"Conversation {self.session_id} closed")

    def _on_capture_event(self, event: CaptureEvent) -> None:
        if self._closed:
            return

        if isinstance(event, RecognizedText):
            self._handle_user_text(event.text)
        elif isinstance(event, CaptureFailure):
            logger.info(f"Capture failed reason={event.reason} detail={event.detail}")
            self._set_state(SessionState.IDLE)
            self._notify(CAPTURE_ERROR_NOTIFICATION)

    def _handle_user_text(self, text: str) -> None:
        self._conversation.append_message(text, is_user=True)
        response = self._rules.match(text)
        self._conversation.append_message(response, is_user=False)
        self._set_state(SessionState.IDLE)

        self._reply.schedule(self._reply_delay_s, lambda: self._speak_reply(response))

    def _speak_reply(self, response: str) -> None:
        if self._closed:
            return
        self._synthesis.speak(response)
        if self._synthesis.is_speaking:
            self._set_state(SessionState.SPEAKING)

    def _on_synthesis_event(self, event: SynthesisEvent) -> None:
        if self._closed:
            return

        if isinstance(event, UtteranceStarted):
            self._set_state(SessionState.SPEAKING)
        elif isinstance(event, (UtteranceEnded, SynthesisFailure)):
            if self.state == SessionState.SPEAKING:
                self._set_state(SessionState.IDLE)

    def _set_state(self, state: SessionState) -> None:
        if not self._conversation.set_state(state):
            return
        logger.debug(f"Conversation state -> {state.value}")
        for listener in list(self._state_listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener failed")
