"""
Guide orchestrator.

Narrates context help as the user navigates: each newly observed location
is greeted once, after a short settle delay, and the user can ask for the
greeting again or for a location-specific help message.
"""

from __future__ import annotations

import logging

from voice_companion.config import get_settings
from voice_companion.engine.guide_messages import DEFAULT_GUIDE_MESSAGES, GuideMessageCatalog
from voice_companion.engine.scheduling import AsyncioScheduler, PendingCall, Scheduler
from voice_companion.engine.schemas import GreetingMemory, GuideContext, GuideSnapshot
from voice_companion.voice.synthesis import SynthesisSession

logger = logging.getLogger(__name__)


class GuideOrchestrator:
    """
    Speaks one greeting per distinct location key.

    Greeting memory is reset whenever the key changes, so returning to a
    location after visiting another one greets it again. A greeting that is
    still waiting out its settle delay is cancelled if the location changes,
    the guide is disabled, or the guide is closed.
    """

    def __init__(
        self,
        synthesis: SynthesisSession,
        *,
        messages: GuideMessageCatalog | None = None,
        scheduler: Scheduler | None = None,
        settle_delay_s: float | None = None,
        enabled: bool = True,
    ) -> None:
        """
        Initialize the guide.

        Args:
            synthesis: Synthesis session owned by the guide.
            messages: Message catalog. Uses the built-in catalog if None.
            scheduler: Timer source for the settle delay. Uses asyncio if None.
            settle_delay_s: Delay before greeting a new location. Uses settings if None.
            enabled: Initial enablement.
        """
        if settle_delay_s is None:
            settle_delay_s = get_settings().greeting_delay_ms / 1000.0

        self._synthesis = synthesis
        self._messages = messages or DEFAULT_GUIDE_MESSAGES
        self._settle_delay_s = settle_delay_s
        self._greeting = PendingCall(scheduler or AsyncioScheduler())
        self._memory = GreetingMemory()
        self._enabled = enabled
        self._location_key: str | None = None
        self._context = GuideContext()
        self._closed = False

    @property
    def is_supported(self) -> bool:
        return self._synthesis.is_supported

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def is_speaking(self) -> bool:
        return self._synthesis.is_speaking

    @property
    def location_key(self) -> str | None:
        return self._location_key

    @property
    def last_greeted_key(self) -> str | None:
        return self._memory.last_greeted_key

    @property
    def greeting_pending(self) -> bool:
        return self._greeting.is_pending

    def snapshot(self) -> GuideSnapshot:
        """Get a read-only view for rendering."""
        return GuideSnapshot(
            is_supported=self.is_supported,
            is_enabled=self._enabled,
            is_speaking=self.is_speaking,
            location_key=self._location_key,
            last_greeted_key=self._memory.last_greeted_key,
        )

    def current_message(self) -> str:
        """Get the greeting for the current location and context."""
        return self._messages.greeting_for(self._location_key, self._context)

    def current_help(self) -> str:
        """Get the help message for the current location."""
        return self._messages.help_for(self._location_key)

    def on_location_change(self, location_key: str, context: GuideContext | None = None) -> None:
        """
        Observe a navigation event.

        Args:
            location_key: The location the user is now at.
            context: Optional context, e.g. a first-visit flag.
        """
        if self._closed:
            return

        if location_key != self._location_key:
            logger.debug(f"[GUIDE] location {self._location_key!r} -> {location_key!r}")
            self._greeting.cancel()
            self._memory = GreetingMemory()
            self._location_key = location_key
        self._context = context or GuideContext()
        self._schedule_greeting()

    def toggle_enabled(self) -> bool:
        """
        Flip enablement, silencing any speech in progress.

        Returns:
            The new enablement.
        """
        self._enabled = not self._enabled
        logger.info(f"[GUIDE] enabled={self._enabled}")
        if self._synthesis.is_speaking:
            self._synthesis.stop()
        if self._enabled:
            self._schedule_greeting()
        else:
            self._greeting.cancel()
        return self._enabled

    def repeat(self) -> bool:
        """Speak the current location's greeting again. Returns True if spoken."""
        if not self._can_speak_on_demand():
            return False
        return self._speak(self.current_message())

    def request_help(self) -> bool:
        """Speak the current location's help message. Returns True if spoken."""
        if not self._can_speak_on_demand():
            return False
        return self._speak(self.current_help())

    def stop(self) -> None:
        """Silence the guide."""
        self._synthesis.stop()

    def close(self) -> None:
        """Tear down: cancel a pending greeting and silence the guide."""
        if self._closed:
            return
        self._closed = True
        self._greeting.cancel()
        self._synthesis.stop()

    def _can_speak_on_demand(self) -> bool:
        return (
            not self._closed
            and self._synthesis.is_supported
            and self._enabled
            and not self._synthesis.is_speaking
        )

    def _schedule_greeting(self) -> None:
        if self._closed or not self._synthesis.is_supported or not self._enabled:
            return
        if self._location_key is None or self._memory.last_greeted_key == self._location_key:
            return
        if self._greeting.is_pending:
            return

        key = self._location_key
        self._greeting.schedule(self._settle_delay_s, lambda: self._greet(key))

    def _greet(self, location_key: str) -> None:
        if self._closed or not self._enabled or location_key != self._location_key:
            return
        if self._memory.last_greeted_key == location_key:
            return

        self._memory.last_greeted_key = location_key
        logger.info(f"[GUIDE] greeting location={location_key!r}")
        self._speak(self.current_message())

    def _speak(self, text: str) -> bool:
        self._synthesis.stop()
        return self._synthesis.speak(text) is not None
