"""
Tests for the conversation orchestrator.

Drives full turns through fake capabilities and a manual clock.
"""

import pytest

from voice_companion.engine.conversation_orchestrator import (
    CAPTURE_ERROR_NOTIFICATION,
    ConversationOrchestrator,
)
from voice_companion.engine.rules import SUPPORT_RULES
from voice_companion.engine.schemas import Notification, SessionState, Severity
from voice_companion.voice.capture import CaptureSession
from voice_companion.voice.synthesis import SynthesisSession

from tests.fakes import FakeCapture, FakeSynthesis, ManualScheduler

REPLY_DELAY_S = 0.5
ANXIETY_RESPONSE = SUPPORT_RULES[0].response_text


@pytest.fixture
def notifications() -> list[Notification]:
    return []


@pytest.fixture
def orchestrator(
    capture_cap: FakeCapture,
    synthesis_cap: FakeSynthesis,
    scheduler: ManualScheduler,
    notifications: list[Notification],
) -> ConversationOrchestrator:
    return ConversationOrchestrator(
        CaptureSession(capture_cap),
        SynthesisSession(synthesis_cap),
        scheduler=scheduler,
        notify=notifications.append,
        reply_delay_s=REPLY_DELAY_S,
    )


class TestTurns:
    def test_initial_state(self, orchestrator: ConversationOrchestrator) -> None:
        assert orchestrator.state == SessionState.IDLE
        assert orchestrator.transcript == []
        assert orchestrator.is_supported

    def test_end_to_end_anxiety_turn(self, orchestrator, capture_cap, synthesis_cap, scheduler) -> None:
        assert orchestrator.begin_turn() is True
        assert orchestrator.state == SessionState.LISTENING

        capture_cap.say("I feel anxious about exams")

        transcript = orchestrator.transcript
        assert [(m.text, m.is_user) for m in transcript] == [
            ("I feel anxious about exams", True),
            (ANXIETY_RESPONSE, False),
        ]
        # Both messages are in place before any speech is requested.
        assert synthesis_cap.requests == []
        assert orchestrator.state == SessionState.IDLE

        scheduler.advance(REPLY_DELAY_S)

        assert synthesis_cap.spoken == [ANXIETY_RESPONSE]
        assert orchestrator.state == SessionState.SPEAKING

        synthesis_cap.start()
        synthesis_cap.finish()
        assert orchestrator.state == SessionState.IDLE
        assert len(orchestrator.transcript) == 2

    def test_reply_waits_for_delay(self, orchestrator, capture_cap, synthesis_cap, scheduler) -> None:
        orchestrator.begin_turn()
        capture_cap.say("hello")

        scheduler.advance(REPLY_DELAY_S / 2)
        assert synthesis_cap.requests == []
        assert orchestrator.reply_pending

        scheduler.advance(REPLY_DELAY_S / 2)
        assert len(synthesis_cap.requests) == 1
        assert not orchestrator.reply_pending

    def test_messages_keep_conversation_order(self, orchestrator, capture_cap, synthesis_cap, scheduler) -> None:
        for text in ("hello", "I can't sleep", "thanks"):
            orchestrator.begin_turn()
            capture_cap.say(text)
            scheduler.advance(REPLY_DELAY_S)
            synthesis_cap.finish()

        transcript = orchestrator.transcript
        assert [m.is_user for m in transcript] == [True, False] * 3
        assert [m.text for m in transcript if m.is_user] == ["hello", "I can't sleep", "thanks"]
        assert len({m.id for m in transcript}) == 6

    def test_transcript_is_a_copy(self, orchestrator, capture_cap) -> None:
        orchestrator.begin_turn()
        capture_cap.say("hello")

        orchestrator.transcript.clear()
        assert len(orchestrator.transcript) == 2

    def test_snapshot(self, orchestrator, capture_cap) -> None:
        orchestrator.begin_turn()
        snap = orchestrator.snapshot()
        assert snap.state == SessionState.LISTENING
        assert snap.is_listening
        assert snap.transcript == []


class TestMutualExclusion:
    def test_cannot_listen_while_speaking(self, orchestrator, capture_cap, synthesis_cap, scheduler) -> None:
        orchestrator.begin_turn()
        capture_cap.say("hello")
        scheduler.advance(REPLY_DELAY_S)
        assert orchestrator.is_speaking

        assert orchestrator.begin_turn() is False
        assert capture_cap.started == [1]

        synthesis_cap.finish()
        assert orchestrator.begin_turn() is True

    def test_cannot_listen_while_reply_pending(self, orchestrator, capture_cap) -> None:
        orchestrator.begin_turn()
        capture_cap.say("hello")

        assert orchestrator.begin_turn() is False

    def test_begin_turn_twice_is_noop(self, orchestrator, capture_cap) -> None:
        assert orchestrator.begin_turn() is True
        assert orchestrator.begin_turn() is False
        assert capture_cap.started == [1]

    def test_end_turn_stops_without_message(self, orchestrator, capture_cap, synthesis_cap, scheduler) -> None:
        orchestrator.begin_turn()
        assert orchestrator.end_turn() is True
        assert orchestrator.state == SessionState.IDLE

        capture_cap.say("late words")
        scheduler.advance(REPLY_DELAY_S)

        assert orchestrator.transcript == []
        assert synthesis_cap.requests == []
        assert orchestrator.end_turn() is False

    def test_toggle_listening(self, orchestrator, capture_cap) -> None:
        assert orchestrator.toggle_listening() is True
        assert orchestrator.is_listening
        assert orchestrator.toggle_listening() is False
        assert not orchestrator.is_listening


class TestCancellation:
    def test_cancel_speech_while_speaking(self, orchestrator, capture_cap, synthesis_cap, scheduler) -> None:
        orchestrator.begin_turn()
        capture_cap.say("hello")
        scheduler.advance(REPLY_DELAY_S)

        orchestrator.cancel_speech()

        assert orchestrator.state == SessionState.IDLE
        assert not orchestrator.is_speaking
        assert len(orchestrator.transcript) == 2

    def test_cancel_speech_drops_pending_reply(self, orchestrator, capture_cap, synthesis_cap, scheduler) -> None:
        orchestrator.begin_turn()
        capture_cap.say("hello")

        orchestrator.cancel_speech()
        scheduler.advance(REPLY_DELAY_S)

        assert synthesis_cap.requests == []
        assert orchestrator.begin_turn() is True

    def test_close_cancels_pending_reply(self, orchestrator, capture_cap, synthesis_cap, scheduler) -> None:
        orchestrator.begin_turn()
        capture_cap.say("hello")

        orchestrator.close()
        scheduler.advance(REPLY_DELAY_S * 4)

        assert synthesis_cap.requests == []
        assert scheduler.pending == 0
        assert orchestrator.begin_turn() is False

    def test_close_stops_listening(self, orchestrator, capture_cap) -> None:
        orchestrator.begin_turn()
        orchestrator.close()

        assert not orchestrator.is_listening
        assert capture_cap.stop_calls == 1


class TestFailures:
    def test_capture_error_notifies_once(self, orchestrator, capture_cap, notifications) -> None:
        orchestrator.begin_turn()
        capture_cap.fail("network")

        assert orchestrator.state == SessionState.IDLE
        assert orchestrator.transcript == []
        assert notifications == [CAPTURE_ERROR_NOTIFICATION]
        assert notifications[0].severity == Severity.DESTRUCTIVE

    def test_no_retry_after_failure(self, orchestrator, capture_cap) -> None:
        orchestrator.begin_turn()
        capture_cap.fail()
        assert capture_cap.started == [1]
        assert orchestrator.begin_turn() is True
        assert capture_cap.started == [1, 2]

    def test_capture_start_exception(self, orchestrator, capture_cap, notifications) -> None:
        capture_cap.start_error = RuntimeError("permission denied")

        assert orchestrator.begin_turn() is False
        assert orchestrator.state == SessionState.IDLE
        assert len(notifications) == 1

    def test_synthesis_failure_is_not_notified(
        self, orchestrator, capture_cap, synthesis_cap, scheduler, notifications
    ) -> None:
        orchestrator.begin_turn()
        capture_cap.say("hello")
        scheduler.advance(REPLY_DELAY_S)

        synthesis_cap.error()

        assert orchestrator.state == SessionState.IDLE
        assert notifications == []

    def test_unsupported_capture_reports_error_state(self, synthesis_cap, scheduler) -> None:
        cap = FakeCapture(supported=False)
        orchestrator = ConversationOrchestrator(
            CaptureSession(cap),
            SynthesisSession(synthesis_cap),
            scheduler=scheduler,
            reply_delay_s=REPLY_DELAY_S,
        )

        assert orchestrator.state == SessionState.ERROR
        assert not orchestrator.is_supported
        assert orchestrator.begin_turn() is False
        assert cap.started == []

    def test_state_listener_receives_transitions(self, orchestrator, capture_cap, synthesis_cap, scheduler) -> None:
        seen: list[SessionState] = []
        orchestrator.add_state_listener(seen.append)

        orchestrator.begin_turn()
        capture_cap.say("hello")
        scheduler.advance(REPLY_DELAY_S)
        synthesis_cap.finish()

        assert seen == [
            SessionState.LISTENING,
            SessionState.IDLE,
            SessionState.SPEAKING,
            SessionState.IDLE,
        ]
