"""Common language table shared by the adapters.

Codes follow the BCP 47 style used by the public API (``zh-CN``, ``zh-TW``, ``en``...). Adapters
translate them to their provider's own codes.
"""

from __future__ import annotations

from typing import Final

from polytrans.models.provider_models import Language
from polytrans.models.translation_models import AUTO_DETECT

__all__: list[str] = [
    "COMMON_LANGUAGES",
    "EUROPEAN_LANGUAGES",
    "get_language",
    "get_language_name",
    "get_native_language_name",
    "is_known_language",
    "languages_for",
]

COMMON_LANGUAGES: Final[tuple[Language, ...]] = (
    Language(AUTO_DETECT, "Auto Detect", "Auto Detect"),
    Language("zh-CN", "Chinese (Simplified)", "简体中文"),
    Language("zh-TW", "Chinese (Traditional)", "繁體中文"),
    Language("en", "English", "English"),
    Language("ja", "Japanese", "日本語"),
    Language("ko", "Korean", "한국어"),
    Language("fr", "French", "Français"),
    Language("de", "German", "Deutsch"),
    Language("es", "Spanish", "Español"),
    Language("ru", "Russian", "Русский"),
    Language("it", "Italian", "Italiano"),
    Language("pt", "Portuguese", "Português"),
    Language("ar", "Arabic", "العربية"),
    Language("hi", "Hindi", "हिन्दी"),
    Language("th", "Thai", "ไทย"),
    Language("vi", "Vietnamese", "Tiếng Việt"),
    Language("id", "Indonesian", "Bahasa Indonesia"),
    Language("ms", "Malay", "Bahasa Melayu"),
    Language("nl", "Dutch", "Nederlands"),
    Language("pl", "Polish", "Polski"),
    Language("tr", "Turkish", "Türkçe"),
)

EUROPEAN_LANGUAGES: Final[frozenset[str]] = frozenset({"en", "de", "fr", "es", "it", "pt", "nl", "pl", "ru"})

_BY_CODE: Final[dict[str, Language]] = {language.code: language for language in COMMON_LANGUAGES}


def get_language(code: str) -> Language | None:
    return _BY_CODE.get(code)


def get_language_name(code: str) -> str:
    """English name of a language code, or the code itself when unknown."""
    language: Language | None = _BY_CODE.get(code)
    return language.name if language else code


def get_native_language_name(code: str) -> str:
    language: Language | None = _BY_CODE.get(code)
    return language.native_name if language else code


def is_known_language(code: str) -> bool:
    return code in _BY_CODE


def languages_for(codes: list[str] | tuple[str, ...]) -> list[Language]:
    """Build a language list for a provider descriptor.

    Unknown codes are kept with the code as their name.

    Args:
        codes (list[str] | tuple[str, ...]): Language codes in display order.

    Returns:
        list[Language]: Language entries, ``auto`` excluded.
    """
    return [_BY_CODE.get(code, Language(code, code, code)) for code in codes if code != AUTO_DETECT]
