import pytest

from voice_companion.engine.schemas import VoiceOption

from tests.fakes import FakeCapture, FakeSynthesis, ManualScheduler


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def capture_cap() -> FakeCapture:
    return FakeCapture()


@pytest.fixture
def synthesis_cap() -> FakeSynthesis:
    return FakeSynthesis(
        voices=[
            VoiceOption(display_name="Daniel", language_tag="en-GB"),
            VoiceOption(display_name="Samantha", language_tag="en-US"),
        ]
    )
