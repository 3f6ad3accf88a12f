"""Synthesis voice selection."""

from collections.abc import Sequence

from voice_companion.engine.schemas import VoiceOption

DEFAULT_VOICE_MARKERS: tuple[str, ...] = ("female", "woman", "samantha", "karen", "susan")


class VoicePreferencePolicy:
    """
    Picks a friendly-sounding voice from the platform catalog.

    Priority: first voice whose name contains a preferred marker, then the
    first voice in the default language, then the first voice at all.
    """

    def __init__(
        self,
        preferred_markers: Sequence[str] = DEFAULT_VOICE_MARKERS,
        default_language: str = "en",
    ) -> None:
        self._markers = tuple(m.lower() for m in preferred_markers if m)
        self._default_language = default_language.lower()

    @property
    def preferred_markers(self) -> tuple[str, ...]:
        return self._markers

    @property
    def default_language(self) -> str:
        return self._default_language

    def select(self, voices: Sequence[VoiceOption]) -> VoiceOption | None:
        """
        Select a voice from the catalog.

        Args:
            voices: Voice catalog in platform order.

        Returns:
            The selected voice, or None for an empty catalog.
        """
        if not voices:
            return None

        for voice in voices:
            name = voice.display_name.lower()
            if any(marker in name for marker in self._markers):
                return voice

        for voice in voices:
            if voice.language_tag.lower().startswith(self._default_language):
                return voice

        return voices[0]
