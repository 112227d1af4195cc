"""Keyword intent classifier for short free-text messages."""
import random
import re
from enum import Enum
from typing import Optional

from .content import Content


class Intent(str, Enum):
    GREETING = "greeting"
    HELP = "help"
    ABOUT = "about"
    HOW_IT_WORKS = "how_it_works"
    UNKNOWN = "unknown"


# Checked in order; unanchored, so short keywords like "sa" and "hi" match inside words.
_PATTERNS = [
    (Intent.GREETING, re.compile(r"merhaba|selam|hey|sa|hello|hi|hola")),
    (Intent.HELP, re.compile(r"yardım|yardim|help|destek|nasıl|assist")),
    (Intent.ABOUT, re.compile(r"kimsin|nedir|nesin|adın|adin|ismin|hakkında|about|sen")),
    (Intent.HOW_IT_WORKS, re.compile(r"nasıl çalış|nasil calis|how|sistem|çalışma|calisma|işleyiş|isleyis")),
]


def classify(text: str) -> Intent:
    lowered = (text or "").lower()
    for intent, pattern in _PATTERNS:
        if pattern.search(lowered):
            return intent
    return Intent.UNKNOWN


def canned_reply(intent: Intent, content: Optional[Content] = None, rng: Optional[random.Random] = None) -> str:
    content = content or Content()
    options = content.replies_for(intent.value)
    return (rng or random).choice(options)


__all__ = ["Intent", "classify", "canned_reply"]
