"""Terminal stand-ins for the speech capabilities.

Typed lines play the role of recognized speech and printed lines play the
role of synthesized speech, so the engine can be exercised without any
audio dependencies.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Callable, Sequence
from typing import TextIO

from voice_companion.engine.schemas import VoiceOption
from voice_companion.voice.capabilities import (
    EventEmitter,
    RecognitionEnded,
    RecognitionError,
    RecognitionResult,
    SpeechEnded,
    SpeechRequest,
    SpeechStarted,
)

logger = logging.getLogger(__name__)

CONSOLE_VOICES: tuple[VoiceOption, ...] = (VoiceOption(display_name="Console", language_tag="en-US"),)


class ConsoleCapture:
    """Reads one line from stdin per capture attempt.

    A blocked read cannot be interrupted, so stop() only detaches it from
    the attempt. The next start() adopts the read still in flight instead
    of starting a second reader; a line that arrives while detached is
    dropped.
    """

    def __init__(self, prompt: str = "You: ", reader: Callable[[str], str] | None = None) -> None:
        self._prompt = prompt
        self._reader = reader or input
        self._events = EventEmitter()
        self._pending: asyncio.Task | None = None
        self._attempt_id: int | None = None

    @property
    def is_supported(self) -> bool:
        return sys.stdin is not None

    @property
    def read_in_flight(self) -> bool:
        return self._pending is not None

    def subscribe(self, handler) -> None:  # noqa: ANN001
        self._events.subscribe(handler)

    def start(self, attempt_id: int) -> None:
        self._attempt_id = attempt_id
        if self._pending is None:
            self._pending = asyncio.get_running_loop().create_task(self._read())

    def stop(self) -> None:
        self._attempt_id = None

    async def _read(self) -> None:
        line: str | None = None
        error: str | None = None
        try:
            line = await asyncio.to_thread(self._reader, self._prompt)
        except EOFError:
            line = None
        except OSError as e:
            error = str(e)
        finally:
            self._pending = None

        attempt_id, self._attempt_id = self._attempt_id, None
        if attempt_id is None:
            logger.debug("[VOICE][CAPTURE] console input arrived after stop; dropped")
            return

        if error is not None:
            self._events.emit(RecognitionError(attempt_id=attempt_id, error=error))
        elif line is None:
            self._events.emit(RecognitionEnded(attempt_id=attempt_id))
        else:
            self._events.emit(RecognitionResult(attempt_id=attempt_id, text=line))


class ConsoleSynthesis:
    """Prints utterances and holds them for a reading-time estimate."""

    def __init__(
        self,
        voices: Sequence[VoiceOption] = CONSOLE_VOICES,
        *,
        words_per_second: float = 3.0,
        out: TextIO | None = None,
    ) -> None:
        self._voices = tuple(voices)
        self._words_per_second = words_per_second
        self._out = out
        self._events = EventEmitter()
        self._tasks: set[asyncio.Task] = set()

    @property
    def is_supported(self) -> bool:
        return True

    def subscribe(self, handler) -> None:  # noqa: ANN001
        self._events.subscribe(handler)

    def voices(self) -> Sequence[VoiceOption]:
        return self._voices

    def speak(self, request: SpeechRequest) -> None:
        task = asyncio.get_running_loop().create_task(self._play(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    async def _play(self, request: SpeechRequest) -> None:
        self._events.emit(SpeechStarted(utterance_id=request.utterance_id))
        name = request.voice.display_name if request.voice else "Assistant"
        print(f"\n[{name}] {request.text}\n", file=self._out or sys.stdout, flush=True)

        words = max(1, len(request.text.split()))
        await asyncio.sleep(words / (self._words_per_second * request.params.rate))
        self._events.emit(SpeechEnded(utterance_id=request.utterance_id))
