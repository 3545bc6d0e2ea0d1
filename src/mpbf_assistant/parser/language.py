"""Language detection for user-facing replies."""

from __future__ import annotations

import re

from mpbf_assistant.models.action import Language

_ARABIC_RE = re.compile("[\u0600-\u06FF]")


def detect_language(text: str) -> Language:
    return "ar" if _ARABIC_RE.search(text or "") else "en"


def localize(language: str, ar: str, en: str) -> str:
    return ar if language == "ar" else en
