"""Adapter for the remote minification API (Toptal raw endpoints).

Responsibility:
- Pick the endpoint for the source kind and POST the text form-encoded.
- Enforce a hard timeout that really cancels the request.
- Classify every failure into the error taxonomy of `core.domain.errors`.

This module lives in adapters because it is pure I/O (HTTP).
"""

from __future__ import annotations

import asyncio
import time
from urllib.parse import quote

import httpx

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import (
    ApiError,
    InvalidContentType,
    InvalidMethod,
    InvalidResponseFormat,
    InvalidSyntax,
    MissingInput,
    NetworkError,
    PayloadTooLarge,
    RateLimited,
    RequestTimeout,
    UnencodableText,
    UnexpectedStatus,
)
from core.domain.source_kind import SourceKind
from core.logging_utils import get_logger

logger = get_logger("client")

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

_TEXTUAL_APPLICATION_TYPES = {
    "application/javascript",
    "application/x-javascript",
    "application/ecmascript",
    "application/json",
}


def encode_form_body(text: str) -> bytes:
    """Build ``input=<percent-encoded text>``.

    Generic form encoding turns spaces into ``+``, which the service cannot
    tell apart from a literal ``+`` (``:nth-child(2n+1)``, ``a+b``). Quoting
    with no safe characters sends spaces as ``%20`` and ``+`` as ``%2B``.
    """

    return ("input=" + quote(text, safe="")).encode("ascii")


def _error_detail(response: httpx.Response) -> str | None:
    """Extract ``errors[].detail`` from a JSON error body, if there is one."""

    try:
        payload = response.json()
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(payload, dict):
        return None
    errors = payload.get("errors")
    if not isinstance(errors, list):
        return None
    details: list[str] = []
    for item in errors:
        if not isinstance(item, dict):
            continue
        detail = item.get("detail")
        if isinstance(detail, str) and detail.strip():
            details.append(detail.strip())
    return "; ".join(details) or None


def error_for_status(
    status_code: int,
    status_text: str,
    kind: SourceKind,
    detail: str | None = None,
) -> ApiError:
    """Map a non-success status to the matching `ApiError` subclass."""

    if status_code == 400:
        return MissingInput(status_code, detail)
    if status_code == 405:
        return InvalidMethod(status_code, detail)
    if status_code == 406:
        return InvalidContentType(status_code, detail)
    if status_code == 413:
        return PayloadTooLarge(status_code, detail)
    if status_code == 422:
        return InvalidSyntax(status_code, kind.label(), detail)
    if status_code == 429:
        return RateLimited(status_code, detail)
    return UnexpectedStatus(status_code, status_text or "Unknown", detail)


def _is_textual(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    if not media_type:
        return True
    return media_type.startswith("text/") or media_type in _TEXTUAL_APPLICATION_TYPES


def _decode_body(response: httpx.Response) -> str:
    content_type = response.headers.get("content-type", "")
    if not _is_textual(content_type):
        raise InvalidResponseFormat(f"unexpected content type '{content_type}'")
    try:
        return response.content.decode(response.charset_encoding or "utf-8")
    except (UnicodeDecodeError, LookupError) as exc:
        raise InvalidResponseFormat("response body is not valid text") from exc


class MinificationClient:
    """Sends source text to the remote service and returns the minified text.

    Design rules:
    - `minify` is asynchronous and raises `MinifierError` subclasses; it never
      notifies the user itself.
    - Nothing is retried; a retry is a new user invocation.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._transport = transport

    @property
    def timeout_seconds(self) -> float:
        return self._settings.request_timeout_seconds

    async def minify(self, text: str, kind: SourceKind) -> str:
        endpoint = self._settings.endpoint_for(kind)
        service = f"{kind.label()} Minifier"
        try:
            body = encode_form_body(text)
        except UnicodeEncodeError as exc:
            raise UnencodableText(kind.value, exc.start) from exc

        started = time.perf_counter()
        logger.debug("POST %s (%d bytes form body)", endpoint, len(body))
        try:
            # wait_for cancels the request task when the timer wins, so the
            # socket is closed instead of finishing in the background.
            response = await asyncio.wait_for(
                self._post(endpoint, body),
                timeout=self.timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            logger.warning("%s timed out after %.1fs", service, self.timeout_seconds)
            raise RequestTimeout(service, self.timeout_seconds) from exc
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as exc:
            logger.warning("%s request failed: %s", service, exc)
            raise NetworkError(str(exc) or type(exc).__name__) from exc

        elapsed = time.perf_counter() - started
        logger.debug("%s answered HTTP %d in %.3fs", service, response.status_code, elapsed)

        if not response.is_success:
            raise error_for_status(
                response.status_code,
                response.reason_phrase,
                kind,
                _error_detail(response),
            )
        return _decode_body(response)

    async def _post(self, endpoint: str, body: bytes) -> httpx.Response:
        async with build_async_client(
            self._settings,
            extra_headers={"Content-Type": FORM_CONTENT_TYPE},
            transport=self._transport,
        ) as client:
            return await client.post(endpoint, content=body)
