"""
Engine module: response rules, voice selection and the orchestrators.

Only the leaf modules are re-exported here; the orchestrators depend on
`voice_companion.voice` and are imported from their own modules.
"""

from voice_companion.engine.rules import FALLBACK_RESPONSE, SUPPORT_RULES, ResponseRuleTable
from voice_companion.engine.schemas import (
    GuideContext,
    Message,
    Notification,
    RuleEntry,
    SessionState,
    Severity,
    UtteranceParams,
    VoiceOption,
)
from voice_companion.engine.voice_policy import VoicePreferencePolicy

__all__ = [
    "FALLBACK_RESPONSE",
    "GuideContext",
    "Message",
    "Notification",
    "ResponseRuleTable",
    "RuleEntry",
    "SUPPORT_RULES",
    "SessionState",
    "Severity",
    "UtteranceParams",
    "VoiceOption",
    "VoicePreferencePolicy",
]
