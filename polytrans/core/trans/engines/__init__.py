"""Translation provider adapters.

This package contains the concrete implementations of the TransInterface, one per provider, and
the HTTP plumbing they share. Importing it registers every adapter by provider id.

Modules:
- AsyncHttpClient: aiohttp wrapper used by the REST adapters.
- HttpTransEngine / LlmTransEngine: shared bases of the REST and the chat model adapters.
- BaiduTranslation, MicrosoftTranslation, TencentTranslation, YoudaoTranslation: REST adapters.
- DeeplTranslation, GoogleCloudTranslation: adapters built on the vendors' SDKs.
- ClaudeTranslation, GeminiTranslation, OpenAITranslation: chat model adapters.
"""

from polytrans.core.trans.engines.http_client import (
    AsyncHttpClient,
    HTTPConnectionError,
    HTTPError,
    HTTPException,
    HTTPTimeoutError,
    HTTPTooManyRequests,
    ResponseFormatError,
)
from polytrans.core.trans.engines.http_engine import HttpTransEngine
from polytrans.core.trans.engines.llm_engine import Completion, LlmTransEngine
from polytrans.core.trans.engines.trans_baidu import BaiduTranslation
from polytrans.core.trans.engines.trans_claude import ClaudeTranslation
from polytrans.core.trans.engines.trans_deepl import DeeplTranslation
from polytrans.core.trans.engines.trans_gemini import GeminiTranslation
from polytrans.core.trans.engines.trans_google import GoogleCloudTranslation
from polytrans.core.trans.engines.trans_microsoft import MicrosoftTranslation
from polytrans.core.trans.engines.trans_openai import OpenAITranslation
from polytrans.core.trans.engines.trans_tencent import TencentTranslation
from polytrans.core.trans.engines.trans_youdao import YoudaoTranslation

__all__: list[str] = [
    "AsyncHttpClient",
    "BaiduTranslation",
    "ClaudeTranslation",
    "Completion",
    "DeeplTranslation",
    "GeminiTranslation",
    "GoogleCloudTranslation",
    "HTTPConnectionError",
    "HTTPError",
    "HTTPException",
    "HTTPTimeoutError",
    "HTTPTooManyRequests",
    "HttpTransEngine",
    "LlmTransEngine",
    "MicrosoftTranslation",
    "OpenAITranslation",
    "ResponseFormatError",
    "TencentTranslation",
    "YoudaoTranslation",
]
