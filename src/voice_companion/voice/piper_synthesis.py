"""Local speech synthesis with the Piper CLI.

Voices are Piper `*.onnx` models found in a directory; the catalog starts
empty and is filled by `load_voices()`, which announces the change with a
`VoicesChanged` event.
"""

from __future__ import annotations

import asyncio
import logging
import re
import shutil
import subprocess
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from voice_companion.config import Settings, get_settings
from voice_companion.engine.schemas import VoiceOption
from voice_companion.voice.audio_io import AudioIO, sounddevice_available
from voice_companion.voice.capabilities import (
    EventEmitter,
    SpeechEnded,
    SpeechError,
    SpeechRequest,
    SpeechStarted,
    VoicesChanged,
)

logger = logging.getLogger(__name__)

_MODEL_NAME_RE = re.compile(r"^(?P<lang>[a-z]{2,3})_(?P<region>[A-Z]{2})-")


@dataclass(frozen=True)
class PiperConfig:
    piper_bin: str = "piper"
    voices_dir: str = "./data/voices"
    speaker_id: int | None = None
    max_chars_per_chunk: int = 350
    timeout_s: float = 60.0

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "PiperConfig":
        s = settings or get_settings()
        return cls(piper_bin=s.piper_bin, voices_dir=s.piper_voices_dir)


def voice_from_model_path(model_path: Path) -> VoiceOption:
    """Describe a Piper model file, e.g. en_US-amy-medium.onnx -> en-US."""
    name = model_path.stem
    m = _MODEL_NAME_RE.match(name)
    language_tag = f"{m.group('lang')}-{m.group('region')}" if m else ""
    return VoiceOption(display_name=name, language_tag=language_tag)


def chunk_text(text: str, max_chars: int) -> list[str]:
    """Split text at sentence boundaries into chunks of at most max_chars."""
    t = (text or "").strip()
    if not t:
        return []

    parts = [p.strip() for p in re.split(r"(?<=[.!?])\s+", t) if p.strip()]
    chunks: list[str] = []
    current = ""
    for p in parts:
        if current and len(current) + 1 + len(p) <= max_chars:
            current = f"{current} {p}"
            continue
        if current:
            chunks.append(current)
        current = p
    if current:
        chunks.append(current)

    out: list[str] = []
    for chunk in chunks:
        # A single sentence longer than the limit is cut hard.
        out.extend(chunk[i : i + max_chars] for i in range(0, len(chunk), max_chars))
    return out


class PiperSynthesis:
    def __init__(self, config: PiperConfig | None = None, audio: AudioIO | None = None) -> None:
        self._config = config or PiperConfig.from_settings()
        self._audio = audio or AudioIO()
        self._events = EventEmitter()
        self._models: dict[str, Path] = {}
        self._voices: tuple[VoiceOption, ...] = ()
        self._tasks: set[asyncio.Task] = set()
        self._piper_path = shutil.which(self._config.piper_bin)
        self._supported = self._piper_path is not None and sounddevice_available()
        if not self._supported:
            logger.info(f"[VOICE][TTS] piper binary {self._config.piper_bin!r} or sounddevice missing")

    @property
    def config(self) -> PiperConfig:
        return self._config

    @property
    def is_supported(self) -> bool:
        return self._supported

    def subscribe(self, handler) -> None:  # noqa: ANN001
        self._events.subscribe(handler)

    def voices(self) -> Sequence[VoiceOption]:
        return self._voices

    async def load_voices(self) -> tuple[VoiceOption, ...]:
        """Scan the voices directory and announce the new catalog."""
        voices_dir = Path(self._config.voices_dir)

        def _scan() -> list[Path]:
            if not voices_dir.is_dir():
                return []
            return sorted(voices_dir.glob("*.onnx"))

        paths = await asyncio.to_thread(_scan)
        self._models = {p.stem: p for p in paths}
        self._voices = tuple(voice_from_model_path(p) for p in paths)
        logger.info(f"[VOICE][TTS] loaded {len(self._voices)} piper voices from {voices_dir}")
        self._events.emit(VoicesChanged())
        return self._voices

    def speak(self, request: SpeechRequest) -> None:
        task = asyncio.get_running_loop().create_task(self._play(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self._audio.stop_playback()

    def _model_for(self, request: SpeechRequest) -> Path:
        if request.voice is not None and request.voice.display_name in self._models:
            return self._models[request.voice.display_name]
        if self._models:
            return next(iter(self._models.values()))
        raise RuntimeError(f"No Piper voice models found in {self._config.voices_dir}")

    async def _play(self, request: SpeechRequest) -> None:
        uid = request.utterance_id
        try:
            model = self._model_for(request)
            with tempfile.TemporaryDirectory() as tmp:
                wavs = []
                for idx, chunk in enumerate(chunk_text(request.text, self._config.max_chars_per_chunk)):
                    wav_path = Path(tmp) / f"{uid.hex[:12]}_{idx:02d}.wav"
                    await asyncio.to_thread(self._synthesize, chunk, model, wav_path, request.params.rate)
                    wavs.append(wav_path)

                self._events.emit(SpeechStarted(utterance_id=uid))
                for wav in wavs:
                    await self._audio.play_wav(wav, volume=request.params.volume)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"[VOICE][TTS] piper utterance failed: {e}")
            self._events.emit(SpeechError(utterance_id=uid, error=str(e)))
            return
        self._events.emit(SpeechEnded(utterance_id=uid))

    def _synthesize(self, text: str, model: Path, wav_path: Path, rate: float) -> None:
        # Piper has no pitch control; rate maps to the inverse length scale.
        cmd = [
            str(self._piper_path),
            "--model",
            str(model),
            "--output_file",
            str(wav_path),
            "--length_scale",
            f"{1.0 / rate:.3f}",
        ]
        if self._config.speaker_id is not None:
            cmd += ["--speaker", str(self._config.speaker_id)]

        try:
            subprocess.run(
                cmd,
                input=text,
                text=True,
                check=True,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                timeout=self._config.timeout_s,
            )
        except subprocess.TimeoutExpired as e:  # pragma: no cover
            raise RuntimeError(f"piper timed out after {self._config.timeout_s:.1f}s model={model}") from e
        except subprocess.CalledProcessError as e:  # pragma: no cover
            stderr = (e.stderr or "").strip()
            raise RuntimeError(f"piper failed (exit={e.returncode}) model={model} stderr={stderr or '<empty>'}") from e
