from __future__ import annotations

from enum import Enum
from typing import Optional


class LanguageCode(str, Enum):
    """Closed set of languages content can be served in."""

    EN = "en"
    ES = "es"
    FR = "fr"
    ZH = "zh"
    RU = "ru"


SOURCE_LANGUAGE = LanguageCode.EN

SUPPORTED_LANGUAGES: dict[str, str] = {
    LanguageCode.EN.value: "English",
    LanguageCode.ES.value: "Español",
    LanguageCode.FR.value: "Français",
    LanguageCode.ZH.value: "中文",
    LanguageCode.RU.value: "Русский",
}


def normalize_language_code(code: Optional[str]) -> Optional[str]:
    """Trim and lower-case a language tag; region or script subtags are kept."""
    if code is None:
        return None
    cleaned = str(code).replace("_", "-").strip().lower()
    return cleaned or None


def parse_language_code(code: Optional[str], default: LanguageCode = SOURCE_LANGUAGE) -> LanguageCode:
    """Resolve user input to a LanguageCode.

    Missing values resolve to ``default``; anything outside the supported set
    raises ValueError rather than silently falling back.
    """
    if isinstance(code, LanguageCode):
        return code
    normalized = normalize_language_code(code)
    if normalized is None:
        return default
    try:
        return LanguageCode(normalized)
    except ValueError:
        raise ValueError(f"Invalid language code: {code!r}") from None


def language_name(code: LanguageCode) -> str:
    return SUPPORTED_LANGUAGES[code.value]


__all__ = [
    "LanguageCode",
    "SOURCE_LANGUAGE",
    "SUPPORTED_LANGUAGES",
    "language_name",
    "normalize_language_code",
    "parse_language_code",
]
