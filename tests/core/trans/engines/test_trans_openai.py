from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest

from polytrans.core.trans.engines.trans_openai import OpenAITranslation, estimate_openai_cost
from polytrans.core.trans.interface import TranslateExceptionError
from polytrans.models.config_models import AdapterConfig
from polytrans.models.translation_models import LanguageDetectionResult, TranslationRequest, TranslationResponse


@pytest.fixture
def engine(monkeypatch: pytest.MonkeyPatch) -> OpenAITranslation:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    return OpenAITranslation(AdapterConfig(api_key="sk-test"))


def mock_response(engine: OpenAITranslation, data: Any) -> AsyncMock:
    request_json = AsyncMock(return_value=data)
    engine._request_json = request_json  # type: ignore[method-assign]  # noqa: SLF001
    return request_json


def completion(content: str | None, model: str = "gpt-3.5-turbo-0125", total_tokens: int = 500) -> dict[str, Any]:
    return {
        "model": model,
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 400, "completion_tokens": 100, "total_tokens": total_tokens},
    }


@pytest.mark.parametrize(
    ("model", "tokens", "expected"),
    [
        ("gpt-3.5-turbo", 1000, 0.002),
        ("gpt-4", 1000, 0.03),
        ("gpt-4-turbo-preview", 2000, 0.02),
        ("unknown-model", 500, 0.001),
    ],
)
def test_estimate_openai_cost(model: str, tokens: int, expected: float) -> None:
    assert estimate_openai_cost(model, tokens) == pytest.approx(expected)


@pytest.mark.asyncio
async def test_translate_sends_chat_completion(engine: OpenAITranslation) -> None:
    request_json: AsyncMock = mock_response(engine, completion("  こんにちは\n"))

    response: TranslationResponse = await engine.translate(
        TranslationRequest(text="Hello", target_lang="ja", source_lang="en")
    )

    assert response.translated_text == "こんにちは"
    assert response.provider == "openai"
    assert response.model == "gpt-3.5-turbo-0125"
    assert response.usage is not None
    assert response.usage.tokens == 500
    assert response.usage.cost == pytest.approx(0.001)
    assert request_json.call_args.args == ("POST", "https://api.openai.com/v1/chat/completions")
    kwargs: dict[str, Any] = request_json.call_args.kwargs
    assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
    body: dict[str, Any] = kwargs["json_body"]
    assert body["model"] == "gpt-3.5-turbo"
    assert body["temperature"] == 0.3
    assert body["max_tokens"] == 2000
    assert body["messages"][0]["role"] == "system"
    assert "from English into Japanese" in body["messages"][0]["content"]
    assert body["messages"][1] == {"role": "user", "content": "Hello"}


@pytest.mark.asyncio
async def test_configured_model_and_sampling(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    engine = OpenAITranslation(
        AdapterConfig(api_key="k", endpoint="http://localhost:8000/v1/", model="gpt-4", temperature=0.0, max_tokens=64)
    )
    request_json: AsyncMock = mock_response(engine, completion("x", model="gpt-4"))

    await engine.translate(TranslationRequest(text="y", target_lang="en"))

    assert request_json.call_args.args[1] == "http://localhost:8000/v1/chat/completions"
    body: dict[str, Any] = request_json.call_args.kwargs["json_body"]
    assert (body["model"], body["temperature"], body["max_tokens"]) == ("gpt-4", 0.0, 64)


@pytest.mark.asyncio
async def test_answer_without_choices_is_an_error(engine: OpenAITranslation) -> None:
    mock_response(engine, {"choices": []})

    with pytest.raises(TranslateExceptionError, match="returned no text"):
        await engine.translate(TranslationRequest(text="Hello", target_lang="ja"))


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [None, "", "  \n "])
async def test_empty_answer_is_an_error(engine: OpenAITranslation, content: str | None) -> None:
    mock_response(engine, completion(content))

    with pytest.raises(TranslateExceptionError, match="returned no text"):
        await engine.translate(TranslationRequest(text="Hello", target_lang="ja"))


@pytest.mark.asyncio
async def test_detect_language_parses_answer(engine: OpenAITranslation) -> None:
    request_json: AsyncMock = mock_response(engine, completion('"de"'))

    result: LanguageDetectionResult = await engine.detect_language("Guten Morgen")

    assert result.language == "de"
    assert result.confidence == 0.95
    body: dict[str, Any] = request_json.call_args.kwargs["json_body"]
    assert body["temperature"] == 0.0
    assert "Guten Morgen" in body["messages"][1]["content"]
