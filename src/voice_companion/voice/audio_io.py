"""Microphone capture + speaker playback.

This module is plain hardware I/O: it knows nothing about sessions,
transcripts or rules.

It provides:
- start/stop microphone recording
- WAV saving/loading helpers
- speaker playback with a volume factor, stoppable from another task
"""

from __future__ import annotations

import asyncio
import logging
import wave
from dataclasses import dataclass
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudioIOConfig:
    sample_rate: int = 16000
    channels: int = 1
    dtype: str = "int16"


def sounddevice_available() -> bool:
    try:
        import sounddevice  # type: ignore  # noqa: F401
    except (ImportError, OSError):
        # OSError: PortAudio library missing.
        return False
    return True


class AudioIO:
    def __init__(self, config: AudioIOConfig | None = None) -> None:
        self._config = config or AudioIOConfig()
        self._stream = None
        self._frames: list[np.ndarray] = []
        self._playing = False

    @property
    def config(self) -> AudioIOConfig:
        return self._config

    @property
    def is_recording(self) -> bool:
        return self._stream is not None

    def _sd(self):
        try:
            import sounddevice as sd  # type: ignore
        except (ImportError, OSError) as e:  # pragma: no cover
            raise RuntimeError(
                "sounddevice is required for local audio. Install with: pip install -e '.[voice]'. "
                "If you see 'PortAudio library not found', install PortAudio "
                "(Debian/Ubuntu: sudo apt-get install portaudio19-dev)."
            ) from e
        return sd

    async def start_recording(self) -> None:
        sd = self._sd()
        self._frames = []

        def on_block(indata, frames, time, status):  # noqa: ANN001
            if status:
                logger.debug(f"[VOICE][AUDIO] input status: {status}")
            self._frames.append(indata.copy())

        self._stream = sd.InputStream(
            samplerate=self._config.sample_rate,
            channels=self._config.channels,
            dtype=self._config.dtype,
            callback=on_block,
        )
        await asyncio.to_thread(self._stream.start)

    async def stop_recording(self) -> np.ndarray:
        """Stop recording and return int16 samples shaped [samples, channels]."""
        empty = np.zeros((0, self._config.channels), dtype=np.int16)
        stream, self._stream = self._stream, None
        if stream is None:
            return empty

        await asyncio.to_thread(stream.stop)
        await asyncio.to_thread(stream.close)
        if not self._frames:
            return empty
        return np.concatenate(self._frames, axis=0)

    def write_wav(self, wav_path: str | Path, samples: np.ndarray) -> Path:
        wav_path = Path(wav_path)
        wav_path.parent.mkdir(parents=True, exist_ok=True)
        if samples.ndim == 1:
            samples = samples[:, None]

        with wave.open(str(wav_path), "wb") as wf:
            wf.setnchannels(self._config.channels)
            wf.setsampwidth(2)
            wf.setframerate(self._config.sample_rate)
            wf.writeframes(samples.astype(np.int16, copy=False).tobytes())
        return wav_path

    def read_wav(self, wav_path: str | Path) -> tuple[np.ndarray, int]:
        with wave.open(str(wav_path), "rb") as wf:
            if wf.getsampwidth() != 2:
                raise ValueError(f"Only 16-bit WAV supported, got sampwidth={wf.getsampwidth()}")
            rate = wf.getframerate()
            n_channels = wf.getnchannels()
            frames = wf.readframes(wf.getnframes())

        samples = np.frombuffer(frames, dtype=np.int16).reshape(-1, n_channels)
        return samples, rate

    async def play_wav(self, wav_path: str | Path, *, volume: float = 1.0) -> None:
        """Play a WAV file to the default output device and wait for it to finish."""
        sd = self._sd()
        samples, rate = self.read_wav(wav_path)
        scaled = samples.astype(np.float32) / 32768.0 * float(np.clip(volume, 0.0, 1.0))

        self._playing = True
        sd.play(scaled, samplerate=rate, blocking=False)
        try:
            await asyncio.to_thread(sd.wait)
        finally:
            self._playing = False

    def stop_playback(self) -> None:
        if not self._playing:
            return
        try:
            self._sd().stop()
        except RuntimeError as e:
            logger.debug(f"[VOICE][AUDIO] stop failed: {e}")
        self._playing = False
