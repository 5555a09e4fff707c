from __future__ import annotations

import pytest

from polytrans.core.trans.engines.llm_prompt import build_system_prompt, build_user_prompt, parse_language_code
from polytrans.models.translation_models import Domain, Formality, TranslationOptions, TranslationRequest


def test_system_prompt_names_languages() -> None:
    prompt: str = build_system_prompt(TranslationRequest(text="Hello", target_lang="ja", source_lang="en"))

    assert "from English into Japanese" in prompt
    assert "Output only the translation" in prompt


def test_system_prompt_for_auto_detect() -> None:
    prompt: str = build_system_prompt(TranslationRequest(text="Hello", target_lang="zh-TW"))

    assert "from the source language into Chinese (Traditional)" in prompt


def test_system_prompt_includes_option_hints() -> None:
    request = TranslationRequest(
        text="Hello",
        target_lang="de",
        options=TranslationOptions(
            formality=Formality.FORMAL,
            domain=Domain.LEGAL,
            preserve_formatting=True,
            glossary={"contract": "Vertrag"},
            context="terms of service",
        ),
    )

    prompt: str = build_system_prompt(request)

    assert "formal, polite register" in prompt
    assert "legal terminology" in prompt
    assert "Preserve the original formatting" in prompt
    assert "- contract -> Vertrag" in prompt
    assert "Context of the text: terms of service" in prompt


def test_system_prompt_without_options_has_no_hints() -> None:
    prompt: str = build_system_prompt(TranslationRequest(text="Hello", target_lang="fr", source_lang="en"))

    assert "register" not in prompt
    assert "Context" not in prompt


def test_user_prompt_is_the_text() -> None:
    assert build_user_prompt(TranslationRequest(text="Line 1\nLine 2", target_lang="ja")) == "Line 1\nLine 2"


@pytest.mark.parametrize(
    ("answer", "expected"),
    [
        ("en", "en"),
        ("  JA\n", "ja"),
        ('"ZH-cn".', "zh-CN"),
        ("zh", "zh-CN"),
        ("`fr` (French)", "fr"),
        ("", "unknown"),
    ],
)
def test_parse_language_code(answer: str, expected: str) -> None:
    assert parse_language_code(answer) == expected
