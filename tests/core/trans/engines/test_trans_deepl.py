from __future__ import annotations

from types import SimpleNamespace
from typing import ClassVar

import pytest

from polytrans.core.trans.engines import trans_deepl as trans_deepl_module
from polytrans.core.trans.interface import (
    NotSupportedLanguagesError,
    TranslateExceptionError,
    TranslationAuthenticationError,
    TranslationQuotaExceededError,
    TranslationRateLimitError,
    TranslationTransientError,
)
from polytrans.models.config_models import AdapterConfig
from polytrans.models.translation_models import (
    Formality,
    LanguageDetectionResult,
    QuotaInfo,
    TranslationOptions,
    TranslationRequest,
    TranslationResponse,
)


class DummyTextResult:
    def __init__(self, text: str, detected_source_lang: str, billed_characters: int | None = None) -> None:
        self.text: str = text
        self.detected_source_lang: str = detected_source_lang
        self.billed_characters: int | None = billed_characters


class DummyClient:
    usage: ClassVar[SimpleNamespace] = SimpleNamespace(character=SimpleNamespace(count=1, limit=100))
    translate_result: ClassVar[DummyTextResult | list[DummyTextResult]] = DummyTextResult("ok", "EN")
    translate_error: ClassVar[Exception | None] = None
    instances: ClassVar[list[DummyClient]] = []

    def __init__(self, auth_key: str, server_url: str | None = None, proxy: str | None = None) -> None:
        self.auth_key: str = auth_key
        self.server_url: str | None = server_url
        self.proxy: str | None = proxy
        self.calls: list[tuple[str, dict]] = []
        type(self).instances.append(self)

    def translate_text(self, text: str, **kwargs) -> DummyTextResult | list[DummyTextResult]:
        self.calls.append((text, kwargs))
        err: Exception | None = type(self).translate_error
        if err is not None:
            raise err
        return type(self).translate_result

    def get_usage(self) -> SimpleNamespace:
        return type(self).usage


@pytest.fixture(autouse=True)
def setup_deepl_module(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_to_thread(func, *args, **kwargs):
        return func(*args, **kwargs)

    monkeypatch.setattr(trans_deepl_module, "DeepLClient", DummyClient)
    monkeypatch.setattr(trans_deepl_module.asyncio, "to_thread", fake_to_thread)
    monkeypatch.delenv("DEEPL_API_KEY", raising=False)
    DummyClient.usage = SimpleNamespace(character=SimpleNamespace(count=1, limit=100))
    DummyClient.translate_result = DummyTextResult("ok", "EN")
    DummyClient.translate_error = None
    DummyClient.instances = []


def make_engine(api_key: str = "key:fx") -> trans_deepl_module.DeeplTranslation:
    return trans_deepl_module.DeeplTranslation(AdapterConfig(api_key=api_key))


def last_call() -> tuple[str, dict]:
    return DummyClient.instances[-1].calls[-1]


def test_inst_property_raises_without_key() -> None:
    engine = trans_deepl_module.DeeplTranslation()

    with pytest.raises(TranslationAuthenticationError):
        _ = engine._inst  # noqa: SLF001


def test_client_is_built_from_configuration() -> None:
    engine = trans_deepl_module.DeeplTranslation(AdapterConfig(api_key="token", endpoint="https://example.test"))

    assert engine.provider_id == "deepl"
    assert engine.info.requires_api_key is True
    assert DummyClient.instances[-1].auth_key == "token"
    assert DummyClient.instances[-1].server_url == "https://example.test"


def test_key_is_taken_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEEPL_API_KEY", "env-token")

    trans_deepl_module.DeeplTranslation()

    assert DummyClient.instances[-1].auth_key == "env-token"


@pytest.mark.asyncio
async def test_translation_returns_response() -> None:
    DummyClient.translate_result = DummyTextResult("こんにちは", "EN", billed_characters=5)
    engine = make_engine()

    response: TranslationResponse = await engine.translate(
        TranslationRequest(text="Hello", target_lang="ja", source_lang="en")
    )

    assert response.translated_text == "こんにちは"
    assert response.provider == "deepl"
    assert response.detected_source_language == "en"
    assert response.usage is not None
    assert response.usage.characters == 5
    assert last_call() == ("Hello", {"source_lang": "EN", "target_lang": "JA"})


@pytest.mark.asyncio
async def test_translation_maps_regional_targets_and_options() -> None:
    DummyClient.translate_result = [DummyTextResult("你好", "EN")]
    engine = make_engine()
    request = TranslationRequest(
        text="Hello",
        target_lang="zh-CN",
        options=TranslationOptions(formality=Formality.FORMAL, preserve_formatting=True, context="greeting"),
    )

    response: TranslationResponse = await engine.translate(request)

    assert response.translated_text == "你好"
    assert response.usage is not None
    assert response.usage.characters == 5
    assert last_call() == (
        "Hello",
        {
            "source_lang": None,
            "target_lang": "ZH-HANS",
            "formality": "prefer_more",
            "preserve_formatting": True,
            "context": "greeting",
        },
    )


@pytest.mark.asyncio
async def test_translation_raises_for_unsupported_language() -> None:
    engine = make_engine()

    with pytest.raises(NotSupportedLanguagesError):
        await engine.translate(TranslationRequest(text="hello", target_lang="xx", source_lang="en"))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("sdk_error", "expected"),
    [
        (trans_deepl_module.QuotaExceededException("quota"), TranslationQuotaExceededError),
        (trans_deepl_module.AuthorizationException("denied"), TranslationAuthenticationError),
        (trans_deepl_module.TooManyRequestsException("busy"), TranslationRateLimitError),
        (trans_deepl_module.ConnectionException("reset"), TranslationTransientError),
        (trans_deepl_module.DeepLException("server", http_status_code=503), TranslationTransientError),
        (trans_deepl_module.DeepLException("odd", http_status_code=400), TranslateExceptionError),
    ],
)
async def test_translation_maps_sdk_errors(sdk_error: Exception, expected: type[Exception]) -> None:
    DummyClient.translate_error = sdk_error
    engine = make_engine()

    with pytest.raises(expected) as exc_info:
        await engine.translate(TranslationRequest(text="hello", target_lang="ja"))

    assert type(exc_info.value) is expected
    assert exc_info.value.provider_id == "deepl"


@pytest.mark.asyncio
async def test_empty_result_list_is_an_error() -> None:
    DummyClient.translate_result = []
    engine = make_engine()

    with pytest.raises(TranslateExceptionError, match="no translation"):
        await engine.translate(TranslationRequest(text="hello", target_lang="ja"))


@pytest.mark.asyncio
async def test_detect_language_uses_translation() -> None:
    DummyClient.translate_result = DummyTextResult("Good morning", "DE")
    engine = make_engine()

    result: LanguageDetectionResult = await engine.detect_language("Guten Morgen")

    assert result.language == "de"
    assert result.provider == "deepl"
    assert last_call()[1]["target_lang"] == "EN-US"


@pytest.mark.asyncio
async def test_get_quota_returns_character_usage() -> None:
    DummyClient.usage = SimpleNamespace(character=SimpleNamespace(count=12, limit=1000))
    engine = make_engine()

    quota: QuotaInfo = await engine.get_quota()

    assert quota.used == 12
    assert quota.limit == 1000
    assert quota.remaining == 988


@pytest.mark.asyncio
async def test_close_resets_instance() -> None:
    engine = make_engine()

    await engine.close()

    with pytest.raises(TranslationAuthenticationError):
        _ = engine._inst  # noqa: SLF001


@pytest.mark.parametrize(
    ("code", "expected"),
    [("EN-US", "en"), ("ZH", "zh-CN"), ("ZH-HANT", "zh-TW"), ("JA", "ja")],
)
def test_to_public_code(code: str, expected: str) -> None:
    assert trans_deepl_module.DeeplTranslation._to_public_code(code) == expected  # noqa: SLF001
