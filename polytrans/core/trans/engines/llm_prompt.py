"""Prompt construction shared by the LLM based adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from polytrans.core.trans.language_codes import get_language_name
from polytrans.models.translation_models import AUTO_DETECT, Domain, Formality

if TYPE_CHECKING:
    from polytrans.models.translation_models import TranslationOptions, TranslationRequest

__all__: list[str] = [
    "DETECTION_PROMPT",
    "build_system_prompt",
    "build_user_prompt",
    "parse_language_code",
]

SYSTEM_PROMPT: Final[str] = (
    "You are a professional translator. Translate the user's text from {srclang} into {tgtlang}. "
    "Keep the meaning, tone and style of the original. "
    "Output only the translation, without explanations or notes."
)

FORMALITY_HINTS: Final[dict[Formality, str]] = {
    Formality.FORMAL: "Use a formal, polite register.",
    Formality.INFORMAL: "Use a casual, conversational register.",
}

DOMAIN_HINTS: Final[dict[Domain, str]] = {
    Domain.MEDICAL: "The text is medical; use established medical terminology.",
    Domain.LEGAL: "The text is legal; use precise legal terminology.",
    Domain.TECHNICAL: "The text is technical; keep identifiers and code unchanged.",
    Domain.FINANCE: "The text is financial; use standard financial terminology.",
}

DETECTION_PROMPT: Final[str] = (
    "Detect the language of the following text and respond with ONLY its ISO 639-1 code "
    '(for example "en", "ja"; use "zh-CN" or "zh-TW" for Chinese). Text:\n\n{text}'
)


def build_system_prompt(request: TranslationRequest) -> str:
    """Render the system prompt from the request languages and options.

    Args:
        request (TranslationRequest): Request with options already merged with defaults.

    Returns:
        str: System prompt.
    """
    srclang: str = "the source language" if request.source_lang == AUTO_DETECT else get_language_name(request.source_lang)
    parts: list[str] = [SYSTEM_PROMPT.format(srclang=srclang, tgtlang=get_language_name(request.target_lang))]

    options: TranslationOptions = request.options
    if options.formality in FORMALITY_HINTS:
        parts.append(FORMALITY_HINTS[options.formality])
    if options.domain in DOMAIN_HINTS:
        parts.append(DOMAIN_HINTS[options.domain])
    if options.preserve_formatting:
        parts.append("Preserve the original formatting, including line breaks, markup and special characters.")
    if options.glossary:
        terms: str = "\n".join(f"- {source} -> {target}" for source, target in options.glossary.items())
        parts.append(f"Use these translations for specific terms:\n{terms}")
    if options.context:
        parts.append(f"Context of the text: {options.context}")
    return "\n".join(parts)


def build_user_prompt(request: TranslationRequest) -> str:
    return request.text


def parse_language_code(answer: str) -> str:
    """Normalize a model's answer to a language code, e.g. ``'"ZH-cn".'`` -> ``zh-CN``."""
    words: list[str] = answer.strip().strip("`'\".").split()
    if not words:
        return "unknown"
    code: str = words[0].strip("`'\".,")
    if "-" in code:
        base, region = code.split("-", 1)
        return f"{base.lower()}-{region.upper()}"
    code = code.lower()
    return "zh-CN" if code == "zh" else code
