"""Voice subsystem.

Sessions wrapping the platform speech capabilities:

mic -> capture capability -> CaptureSession -> orchestrator
orchestrator -> SynthesisSession -> synthesis capability -> speaker

Local audio adapters (`whisper_capture`, `piper_synthesis`) need the
optional `voice` extra and are imported on demand.
"""

from voice_companion.voice.capabilities import CaptureCapability, SpeechRequest, SynthesisCapability
from voice_companion.voice.capture import CaptureSession
from voice_companion.voice.console import ConsoleCapture, ConsoleSynthesis
from voice_companion.voice.synthesis import SynthesisSession

__all__ = [
    "CaptureCapability",
    "CaptureSession",
    "ConsoleCapture",
    "ConsoleSynthesis",
    "SpeechRequest",
    "SynthesisCapability",
    "SynthesisSession",
]
