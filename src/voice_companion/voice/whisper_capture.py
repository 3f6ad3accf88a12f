"""Local speech capture: record from the microphone, transcribe with faster-whisper.

One capture attempt records a fixed window (the platform "ends" the
recognition on its own), then reports exactly one of result, error or
ended-without-result.
"""

from __future__ import annotations

import asyncio
import importlib.util
import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path

from voice_companion.config import Settings, get_settings
from voice_companion.voice.audio_io import AudioIO, sounddevice_available
from voice_companion.voice.capabilities import (
    EventEmitter,
    RecognitionEnded,
    RecognitionError,
    RecognitionResult,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WhisperCaptureConfig:
    model_size: str = "small"
    # CPU by default; CUDA needs cuDNN present.
    device: str = "cpu"  # cpu|cuda|auto
    compute_type: str | None = None  # e.g. int8, float16
    language: str | None = "en"
    vad_filter: bool = True
    listen_seconds: float = 5.0
    work_dir: str | None = None

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "WhisperCaptureConfig":
        s = settings or get_settings()
        language = s.recognition_language.split("-", 1)[0].lower() or None
        return cls(
            model_size=s.stt_model_size,
            device=s.stt_device,
            language=language,
            listen_seconds=s.listen_seconds,
        )


class WhisperCapture:
    def __init__(self, config: WhisperCaptureConfig | None = None, audio: AudioIO | None = None) -> None:
        self._config = config or WhisperCaptureConfig.from_settings()
        self._audio = audio or AudioIO()
        self._events = EventEmitter()
        self._model = None
        self._task: asyncio.Task | None = None
        self._supported = importlib.util.find_spec("faster_whisper") is not None and sounddevice_available()
        if not self._supported:
            logger.info("[VOICE][CAPTURE] faster-whisper or sounddevice missing; install '.[voice]'")

    @property
    def config(self) -> WhisperCaptureConfig:
        return self._config

    @property
    def is_supported(self) -> bool:
        return self._supported

    def subscribe(self, handler) -> None:  # noqa: ANN001
        self._events.subscribe(handler)

    def start(self, attempt_id: int) -> None:
        self._task = asyncio.get_running_loop().create_task(self._attempt(attempt_id))

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _attempt(self, attempt_id: int) -> None:
        try:
            await self._audio.start_recording()
            try:
                await asyncio.sleep(self._config.listen_seconds)
            finally:
                samples = await self._audio.stop_recording()

            if getattr(samples, "size", 0) == 0:
                self._events.emit(RecognitionEnded(attempt_id=attempt_id))
                return

            with tempfile.TemporaryDirectory(dir=self._config.work_dir) as tmp:
                wav_path = self._audio.write_wav(Path(tmp) / f"capture_{attempt_id:04d}.wav", samples)
                text = await asyncio.to_thread(self._transcribe, wav_path)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"[VOICE][CAPTURE] local capture failed: {e}")
            self._events.emit(RecognitionError(attempt_id=attempt_id, error=str(e)))
            return

        if text:
            self._events.emit(RecognitionResult(attempt_id=attempt_id, text=text))
        else:
            self._events.emit(RecognitionEnded(attempt_id=attempt_id))

    def _load_model(self):
        if self._model is not None:
            return self._model

        from faster_whisper import WhisperModel  # type: ignore

        device = "cpu" if self._config.device == "auto" else self._config.device
        kwargs = {}
        if self._config.compute_type:
            kwargs["compute_type"] = self._config.compute_type
        self._model = WhisperModel(self._config.model_size, device=device, **kwargs)
        return self._model

    def _transcribe(self, wav_path: Path) -> str:
        model = self._load_model()
        segments, _info = model.transcribe(
            str(wav_path),
            language=self._config.language,
            vad_filter=self._config.vad_filter,
        )
        parts = [s.text.strip() for s in segments if s.text and s.text.strip()]
        return " ".join(parts).strip()
