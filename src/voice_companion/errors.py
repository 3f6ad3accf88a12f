"""Exceptions raised while wiring the voice engine to a platform."""


class VoiceCompanionError(Exception):
    """Base class for voice companion errors."""


class CapabilityUnavailableError(VoiceCompanionError):
    """Raised when a requested platform adapter cannot be built."""

    def __init__(self, message: str, capability: str = "") -> None:
        super().__init__(message)
        self.capability = capability
