"""
Tests for the capture session state machine.
"""

import pytest

from voice_companion.engine.schemas import CaptureFailure, RecognizedText
from voice_companion.voice.capture import CaptureSession

from tests.fakes import FakeCapture


@pytest.fixture
def events() -> list:
    return []


@pytest.fixture
def session(capture_cap: FakeCapture, events: list) -> CaptureSession:
    s = CaptureSession(capture_cap)
    s.add_listener(events.append)
    return s


class TestCaptureSession:
    def test_start_then_result_emits_text_once(self, session, capture_cap, events) -> None:
        assert session.start() is True
        assert session.is_listening

        capture_cap.say("  hello there ")

        assert not session.is_listening
        assert events == [RecognizedText(text="hello there")]

    def test_start_while_listening_is_noop(self, session, capture_cap, events) -> None:
        session.start()
        assert session.start() is False
        assert capture_cap.started == [1]

        capture_cap.say("once")
        capture_cap.say("twice")
        assert events == [RecognizedText(text="once")]

    def test_interim_results_are_ignored(self, session, capture_cap, events) -> None:
        session.start()
        capture_cap.say("hel", is_final=False)
        assert session.is_listening
        assert events == []

        capture_cap.say("hello")
        assert events == [RecognizedText(text="hello")]

    def test_error_returns_to_idle_without_text(self, session, capture_cap, events) -> None:
        session.start()
        capture_cap.fail("not-allowed")

        assert not session.is_listening
        assert events == [CaptureFailure(reason="recognition_error", detail="not-allowed")]

    def test_ended_without_result_is_a_failure(self, session, capture_cap, events) -> None:
        session.start()
        capture_cap.end()
        assert events == [CaptureFailure(reason="no_result")]

    def test_blank_transcript_is_a_failure(self, session, capture_cap, events) -> None:
        session.start()
        capture_cap.say("   ")
        assert events == [CaptureFailure(reason="no_speech")]

    def test_stop_discards_late_result(self, session, capture_cap, events) -> None:
        session.start()
        session.stop()

        assert not session.is_listening
        assert capture_cap.stop_calls == 1
        capture_cap.say("too late")
        assert events == []

    def test_stale_attempt_ignored_after_restart(self, session, capture_cap, events) -> None:
        session.start()
        session.stop()
        session.start()

        capture_cap.say("old", attempt_id=1)
        assert session.is_listening
        capture_cap.say("new", attempt_id=2)
        assert events == [RecognizedText(text="new")]

    def test_stop_while_idle_is_noop(self, session, capture_cap) -> None:
        session.stop()
        assert capture_cap.stop_calls == 0

    def test_unsupported_capability_never_starts(self, events) -> None:
        cap = FakeCapture(supported=False)
        session = CaptureSession(cap)

        assert not session.is_supported
        assert session.start() is False
        assert cap.started == []

    def test_missing_capability_is_unsupported(self) -> None:
        session = CaptureSession(None)
        assert not session.is_supported
        assert session.start() is False

    def test_start_exception_is_normalized(self, session, capture_cap, events) -> None:
        capture_cap.start_error = RuntimeError("microphone busy")

        assert session.start() is False
        assert not session.is_listening
        assert events == [CaptureFailure(reason="start_failed", detail="microphone busy")]

    def test_listener_exception_does_not_break_session(self, capture_cap, events) -> None:
        session = CaptureSession(capture_cap)

        def _boom(event) -> None:
            raise ValueError("listener bug")

        session.add_listener(_boom)
        session.add_listener(events.append)
        session.start()
        capture_cap.say("hello")

        assert events == [RecognizedText(text="hello")]
        assert session.start() is True
