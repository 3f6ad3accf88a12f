"""
Context messages narrated by the guide.

Each location key maps to a greeting and a help message. One key has a
first-visit greeting variant; unknown keys fall back to defaults.
"""

from pydantic import BaseModel, ConfigDict, Field

from voice_companion.engine.schemas import GuideContext


class LocationMessages(BaseModel):
    """Greeting and help texts for one location."""

    model_config = ConfigDict(frozen=True)

    greeting: str = Field(..., min_length=1)
    help_text: str = Field(..., min_length=1)
    first_time_greeting: str | None = Field(
        default=None,
        description="Greeting used instead when the context marks a first visit",
    )


class GuideMessageCatalog(BaseModel):
    """Deterministic lookup from location key (and context) to message text."""

    model_config = ConfigDict(frozen=True)

    locations: dict[str, LocationMessages] = Field(default_factory=dict)
    default: LocationMessages

    def _entry(self, location_key: str | None) -> LocationMessages:
        if location_key is None:
            return self.default
        return self.locations.get(location_key, self.default)

    def greeting_for(self, location_key: str | None, context: GuideContext | None = None) -> str:
        """
        Get the greeting for a location.

        Args:
            location_key: Current navigation location.
            context: Optional navigation context.

        Returns:
            The greeting text.
        """
        entry = self._entry(location_key)
        if context is not None and context.is_first_time and entry.first_time_greeting:
            return entry.first_time_greeting
        return entry.greeting

    def help_for(self, location_key: str | None) -> str:
        """Get the "how do I use this" message for a location."""
        return self._entry(location_key).help_text


DEFAULT_GUIDE_MESSAGES = GuideMessageCatalog(
    locations={
        "/auth": LocationMessages(
            greeting=(
                "Welcome to Nirwaan, your mental wellness companion! I'm here to guide you "
                "through the platform. To get started, please sign in with your existing "
                "account or create a new one by clicking the Sign Up tab. If you're new here, "
                "I recommend choosing 'User' to access wellness resources and support."
            ),
            help_text=(
                "To sign in, enter your email and password, then click the Sign In button. If "
                "you don't have an account, click the Sign Up tab, fill in your details, choose "
                "your role as either User or Counselor, and provide emergency contact "
                "information if you're a user."
            ),
        ),
        "/app": LocationMessages(
            greeting=(
                "Welcome back to your Nirwaan dashboard! From here you can access your wellness "
                "tools, take assessments, view your progress, or chat with counselors. Let me "
                "know if you need help navigating any features."
            ),
            first_time_greeting=(
                "Great! You've successfully signed in. I'll now guide you through setting up "
                "your profile and permissions. This helps us provide personalized mental health "
                "support tailored to your needs."
            ),
            help_text=(
                "You're now in your main dashboard. Here you can take mental health assessments, "
                "track your mood, access wellness resources, book counselor sessions, and view "
                "your progress over time. Use the navigation menu to explore different sections."
            ),
        ),
    },
    default=LocationMessages(
        greeting=(
            "I'm here to help you navigate Nirwaan. Feel free to ask me about any features or "
            "if you need guidance on using the platform."
        ),
        help_text=(
            "I can help you navigate through Nirwaan. Each section has specific tools for your "
            "mental wellness journey."
        ),
    ),
)
