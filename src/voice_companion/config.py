"""
Application configuration using pydantic-settings.

Loads configuration from environment variables and .env files.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="VOICE_COMPANION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Voice selection
    default_language: str = Field(
        default="en",
        description="Language tag prefix used when no preferred voice is available",
    )
    preferred_voice_markers: list[str] = Field(
        default_factory=lambda: ["female", "woman", "samantha", "karen", "susan"],
        description="Case-insensitive display-name markers, in preference order",
    )

    # Utterance preset
    speech_rate: float = Field(default=0.9, gt=0.0, le=10.0, description="Speaking rate")
    speech_pitch: float = Field(default=1.0, ge=0.0, le=2.0, description="Speaking pitch")
    speech_volume: float = Field(default=0.8, ge=0.0, le=1.0, description="Speaking volume")

    # Timing
    reply_delay_ms: int = Field(
        default=500,
        ge=0,
        description="Pause between transcript append and reply speech",
    )
    greeting_delay_ms: int = Field(
        default=1000,
        ge=0,
        description="Settle delay before the guide greets a new location",
    )

    # Capture
    recognition_language: str = Field(
        default="en-US",
        description="Language passed to the speech recognizer",
    )
    listen_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="Recording window for one local capture attempt",
    )
    stt_model_size: str = Field(
        default="small",
        description="faster-whisper model size",
    )
    stt_device: str = Field(
        default="cpu",
        description="faster-whisper device (cpu|cuda|auto)",
    )

    # Synthesis
    piper_bin: str = Field(
        default="piper",
        description="Path or name of the Piper TTS binary",
    )
    piper_voices_dir: str = Field(
        default="./data/voices",
        description="Directory holding Piper *.onnx voice models",
    )

    # Application
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Force DEBUG logging regardless of log_level",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
