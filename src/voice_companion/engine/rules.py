"""
Keyword response rules.

Maps free-text user input to a supportive canned response. Rules are
evaluated in table order and the first rule with any keyword contained in
the lower-cased input wins, so callers can always predict which response
fires when keywords from several rules overlap.
"""

from collections.abc import Iterable, Sequence

from voice_companion.engine.schemas import RuleEntry

FALLBACK_RESPONSE = (
    "I hear you, and I want you to know that your feelings matter. Sometimes just talking "
    "about what's on your mind can be helpful. Can you tell me more about what you're "
    "experiencing? Remember, you don't have to go through this alone."
)


class ResponseRuleTable:
    """
    Ordered, immutable table of keyword rules.

    Matching is first-match-wins: a rule earlier in the table always beats a
    later one, even if the later rule matches more keywords.
    """

    def __init__(self, rules: Iterable[RuleEntry], fallback: str = FALLBACK_RESPONSE) -> None:
        """
        Initialize the rule table.

        Args:
            rules: Rules in priority order (highest first).
            fallback: Response returned when no rule matches.

        Raises:
            ValueError: If the fallback response is blank.
        """
        if not fallback.strip():
            raise ValueError("fallback response must not be blank")
        self._rules: tuple[RuleEntry, ...] = tuple(
            RuleEntry(
                trigger_keywords=tuple(k.lower() for k in rule.trigger_keywords),
                response_text=rule.response_text,
            )
            for rule in rules
        )
        self._fallback = fallback

    @property
    def rules(self) -> tuple[RuleEntry, ...]:
        """Get the rules in evaluation order."""
        return self._rules

    @property
    def fallback(self) -> str:
        """Get the fallback response."""
        return self._fallback

    def find_rule(self, text: str) -> RuleEntry | None:
        """
        Find the first rule triggered by the input.

        Args:
            text: Free-text user input.

        Returns:
            The winning rule, or None if no rule matches.
        """
        lowered = (text or "").lower()
        if not lowered:
            return None
        for rule in self._rules:
            if any(keyword and keyword in lowered for keyword in rule.trigger_keywords):
                return rule
        return None

    def match(self, text: str) -> str:
        """
        Get the response for the input. Never fails, never returns "".

        Args:
            text: Free-text user input.

        Returns:
            The winning rule's response, or the fallback response.
        """
        rule = self.find_rule(text)
        return rule.response_text if rule is not None else self._fallback

    def __len__(self) -> int:
        return len(self._rules)


def _rule(keywords: Sequence[str], response: str) -> RuleEntry:
    return RuleEntry(trigger_keywords=tuple(keywords), response_text=response)


# Predefined wellness-support rules, highest priority first
SUPPORT_RULES: tuple[RuleEntry, ...] = (
    _rule(
        ["anxious", "anxiety", "worried"],
        "I understand you're feeling anxious. Try taking slow, deep breaths. Breathe in for 4 "
        "counts, hold for 4, and exhale for 6. Remember, anxiety is temporary and you have the "
        "strength to get through this. Would you like to try a breathing exercise together?",
    ),
    _rule(
        ["sad", "depressed", "down"],
        "I'm sorry you're feeling this way. Your feelings are valid, and it's okay to have "
        "difficult days. Sometimes talking about what's bothering you can help. Have you been "
        "able to do any activities that usually bring you joy recently?",
    ),
    _rule(
        ["stress", "overwhelmed"],
        "Feeling stressed can be really challenging. Let's break things down into smaller, "
        "manageable pieces. What's the most pressing thing on your mind right now? Sometimes "
        "focusing on just one thing at a time can make everything feel more manageable.",
    ),
    _rule(
        ["sleep", "tired", "insomnia"],
        "Sleep is so important for mental health. Try establishing a bedtime routine: no "
        "screens 1 hour before bed, keep your room cool and dark, and try some gentle "
        "stretching or meditation. Good sleep hygiene can really improve how you feel during "
        "the day.",
    ),
    _rule(
        ["anger", "angry", "frustrated"],
        "It's natural to feel angry sometimes. When anger comes up, try the 5-4-3-2-1 "
        "grounding technique: name 5 things you can see, 4 you can touch, 3 you can hear, 2 "
        "you can smell, and 1 you can taste. This can help bring you back to the present "
        "moment.",
    ),
    _rule(
        ["help", "support"],
        "I'm here to support you. Remember that seeking help is a sign of strength, not "
        "weakness. If you're having thoughts of self-harm, please reach out to a crisis "
        "helpline immediately. For ongoing support, consider speaking with a counselor or "
        "therapist.",
    ),
    _rule(
        ["breathing", "breathe"],
        "Let's do a breathing exercise together. I'll guide you: Breathe in slowly for 4 "
        "counts... 1, 2, 3, 4. Hold for 4 counts... 1, 2, 3, 4. Now breathe out slowly for 6 "
        "counts... 1, 2, 3, 4, 5, 6. Great job! How do you feel?",
    ),
    _rule(
        ["meditation", "mindfulness"],
        "Mindfulness can be very helpful for mental wellness. Try this: Focus on your breath, "
        "and when your mind wanders, gently bring your attention back. Even 5 minutes a day "
        "can make a difference. There are also great apps like Headspace or Calm that can "
        "guide you.",
    ),
    _rule(
        ["hello", "hi", "hey"],
        "Hello! I'm your AI mental wellness companion. I'm here to provide support, coping "
        "strategies, and a listening ear. How are you feeling today? Remember, this is a safe "
        "space to share whatever is on your mind.",
    ),
    _rule(
        ["thank"],
        "You're very welcome. I'm glad I could help. Remember, taking care of your mental "
        "health is an ongoing journey, and every small step counts. Is there anything else "
        "you'd like to talk about?",
    ),
)


def default_rule_table() -> ResponseRuleTable:
    """Build the rule table with the predefined support rules."""
    return ResponseRuleTable(SUPPORT_RULES)
