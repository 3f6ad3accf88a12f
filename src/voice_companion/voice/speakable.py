"""Normalise display text before it reaches a synthesis backend.

Backends never receive markup tags, runs of whitespace or empty strings.
"""

from __future__ import annotations

import re
from typing import NamedTuple

_TAG_RE = re.compile(r"</?\w+[^>]*>")
_WS_RE = re.compile(r"\s+")


class Speakable(NamedTuple):
    text: str | None
    skip_reason: str | None = None


def to_speakable(text: str | None) -> Speakable:
    """Clean text for speech.

    Markup is stripped and whitespace collapsed. `text` is None when nothing
    is left to say, with `skip_reason` naming why.
    """
    if not text or not text.strip():
        return Speakable(None, skip_reason="empty")

    cleaned = _WS_RE.sub(" ", _TAG_RE.sub("", text)).strip()
    if not cleaned:
        return Speakable(None, skip_reason="empty_after_strip")
    return Speakable(cleaned)
