"""Small aiohttp wrapper shared by the REST based adapters.

It owns one lazily created ``aiohttp.ClientSession`` and turns transport failures and non-2xx
responses into a compact exception hierarchy that adapters map onto translation errors.
"""

from __future__ import annotations

import json
from json import JSONDecodeError
from typing import TYPE_CHECKING, Any, Final

import aiohttp

from polytrans.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Mapping

__all__: list[str] = [
    "AsyncHttpClient",
    "HTTPConnectionError",
    "HTTPError",
    "HTTPException",
    "HTTPRedirection",
    "HTTPTimeoutError",
    "HTTPTooManyRequests",
    "ResponseFormatError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

DEFAULT_TIMEOUT_SEC: Final[float] = 30.0
BODY_PREVIEW_LIMIT: Final[int] = 500


class HTTPException(Exception):  # noqa: N818
    pass


class HTTPConnectionError(HTTPException):
    pass


class HTTPTimeoutError(HTTPException):
    pass


class HTTPRedirection(HTTPException):
    """HTTP 3xx Redirection Exception"""


class HTTPError(HTTPException):
    """HTTP 4xx/5xx Error Exception

    Attributes:
        status (int): HTTP status code.
        body (str): Response body, possibly truncated.
    """

    def __init__(self, message: str, *, status: int, body: str = "") -> None:
        super().__init__(message)
        self.status: int = status
        self.body: str = body


class HTTPTooManyRequests(HTTPError):
    """HTTP 429 Too Many Requests Exception

    Attributes:
        retry_after (float | None): Seconds from the Retry-After header, if present and numeric.
    """

    def __init__(self, message: str, *, body: str = "", retry_after: float | None = None) -> None:
        super().__init__(message, status=429, body=body)
        self.retry_after: float | None = retry_after


class ResponseFormatError(HTTPException):
    """The response body could not be decoded."""


def _build_body_preview(body: str, limit: int = BODY_PREVIEW_LIMIT) -> str:
    body_preview: str = body.strip().replace("\n", "\\n")
    if len(body_preview) > limit:
        return f"{body_preview[:limit]}..."
    return body_preview


def _format_http_error(status: int, reason: str | None, url: str, *, body_preview: str | None = None) -> str:
    status_reason: str = f"{status} {reason}".strip() if reason else str(status)
    parts: list[str] = [f"HTTP {status_reason} from {url}"]
    if body_preview:
        parts.append(f"Body: {body_preview}")
    return ". ".join(parts)


def _parse_retry_after(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


class AsyncHttpClient:
    """Lazily created aiohttp session with uniform error mapping.

    Timeouts and proxies are given per request so one session can serve an adapter across
    configuration changes.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SEC) -> None:
        self.timeout: float = timeout
        self.__session: aiohttp.ClientSession | None = None

    @property
    def _session(self) -> aiohttp.ClientSession:
        """Current session. A new one is created when none exists or the previous one was closed."""
        if self.__session is None or self.__session.closed:
            self.__session = aiohttp.ClientSession()
        return self.__session

    async def close(self) -> None:
        logger.debug("'%s': 'termination process'", self.__class__.__name__)
        if self.__session is not None and not self.__session.closed:
            await self.__session.close()
        self.__session = None

    async def request_text(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        data: Mapping[str, str] | str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,  # noqa: ASYNC109
        proxy: str | None = None,
        proxy_auth: aiohttp.BasicAuth | None = None,
    ) -> str:
        """Send a request and return the body of a 2xx response.

        Raises:
            HTTPTooManyRequests: On status 429.
            HTTPError: On any other status >= 400.
            HTTPRedirection: On status 3xx.
            HTTPTimeoutError: If the request timed out.
            HTTPConnectionError: If the connection failed.
        """
        try:
            async with self._session.request(
                method,
                url,
                params=params,
                json=json_body,
                data=data,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=timeout or self.timeout),
                proxy=proxy,
                proxy_auth=proxy_auth,
            ) as response:
                body: str = await response.text()
                if response.status < 300:
                    return body

                msg: str = _format_http_error(
                    response.status, response.reason, url, body_preview=_build_body_preview(body)
                )
                if response.status == 429:
                    raise HTTPTooManyRequests(
                        msg, body=body, retry_after=_parse_retry_after(response.headers.get("Retry-After"))
                    )
                if response.status >= 400:
                    raise HTTPError(msg, status=response.status, body=body)
                raise HTTPRedirection(f"{msg}. Location: {response.headers.get('Location')}")
        except TimeoutError:
            msg = f"Timeout occurred for {method} {url}"
            raise HTTPTimeoutError(msg) from None
        except ConnectionResetError:
            msg = "connection to host has been disconnected"
            raise HTTPConnectionError(msg) from None
        except aiohttp.ClientConnectionError as err:
            raise HTTPConnectionError(str(err)) from err

    async def request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send a request and decode the JSON body of a 2xx response.

        Raises:
            ResponseFormatError: If the body is not valid JSON.
        """
        body: str = await self.request_text(method, url, **kwargs)
        try:
            return json.loads(body)
        except JSONDecodeError as err:
            msg: str = f"Invalid JSON from {url}: {_build_body_preview(body, 200)}"
            raise ResponseFormatError(msg) from err
