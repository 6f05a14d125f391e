"""Error taxonomy of the minification pipeline.

Why exceptions instead of result objects:
- Adapters raise at the point of failure and the orchestrator owns the single
  boundary where every failure becomes one user-facing notification.
- Each class carries a stable ``kind`` tag so outcomes can be reported and
  tested without string matching.

Families:
- ``ValidationError``: detected before any network call.
- ``TransportError``: timeout or network failure around the request.
- ``ApiError``: the service answered with a non-success HTTP status.
- ``FormatError``: the service answered 200 with a body we cannot use.
- ``ConfigurationError``: the settings sources hold an invalid value.
"""

from __future__ import annotations

RATE_LIMIT_PER_MINUTE = 30


class MinifierError(Exception):
    """Base class for every failure the pipeline knows how to report."""

    kind: str = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# --- Validation -------------------------------------------------------------


class ValidationError(MinifierError):
    kind = "validation"


class UnsupportedKind(ValidationError):
    kind = "unsupported_kind"

    def __init__(self, declared_kind: str) -> None:
        self.declared_kind = declared_kind
        super().__init__(
            f"File type '{declared_kind}' is not supported. "
            "Only CSS and JavaScript files can be minified."
        )


class EmptyContent(ValidationError):
    kind = "empty_content"

    def __init__(self, declared_kind: str) -> None:
        self.declared_kind = declared_kind
        super().__init__(
            f"Cannot minify empty {declared_kind} file. Please add some content first."
        )


class UnencodableText(ValidationError):
    kind = "unencodable_text"

    def __init__(self, declared_kind: str, position: int) -> None:
        self.declared_kind = declared_kind
        self.position = position
        super().__init__(
            f"Cannot minify {declared_kind} file: it contains a character that is not valid "
            f"UTF-8 text (at offset {position})."
        )


class ContentTooLarge(ValidationError):
    kind = "content_too_large"

    def __init__(self, size_bytes: int, limit_bytes: int) -> None:
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        self.size_mb = round(size_bytes / (1024 * 1024), 2)
        limit_mb = round(limit_bytes / (1024 * 1024), 2)
        super().__init__(
            f"File is too large to minify ({self.size_mb:g} MB). "
            f"The maximum supported size is {limit_mb:g} MB."
        )


# --- Configuration ----------------------------------------------------------


class ConfigurationError(MinifierError):
    kind = "configuration"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Invalid minifier settings: {detail}")


# --- Transport --------------------------------------------------------------


class TransportError(MinifierError):
    kind = "transport"


class RequestTimeout(TransportError):
    kind = "timeout"

    def __init__(self, service: str, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Minification timeout: the {service} service did not answer within "
            f"{timeout_seconds:g} seconds. Please check your internet connection and try again."
        )


class NetworkError(TransportError):
    kind = "network"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(
            "Network error: unable to connect to the minification service "
            f"({detail}). Please check your internet connection and try again."
        )


# --- API (HTTP status) ------------------------------------------------------


class ApiError(MinifierError):
    kind = "api"
    default_message = "The minification service rejected the request."

    def __init__(self, status_code: int, detail: str | None = None) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(self._compose(detail))

    def _compose(self, detail: str | None) -> str:
        if detail:
            return f"{self.default_message} Service said: {detail}"
        return self.default_message


class MissingInput(ApiError):
    kind = "missing_input"
    default_message = "The minification service received no input to minify (HTTP 400)."


class InvalidMethod(ApiError):
    kind = "invalid_method"
    default_message = "The minification service rejected the HTTP method (HTTP 405)."


class InvalidContentType(ApiError):
    kind = "invalid_content_type"
    default_message = "The minification service rejected the request content type (HTTP 406)."


class PayloadTooLarge(ApiError):
    kind = "too_large"
    default_message = "The file is too large for the minification service (HTTP 413)."


class InvalidSyntax(ApiError):
    kind = "invalid_syntax"

    def __init__(self, status_code: int, source_label: str, detail: str | None = None) -> None:
        self.source_label = source_label
        self.default_message = (
            f"The {source_label} code contains syntax errors and could not be minified (HTTP 422). "
            "Fix the syntax and try again."
        )
        super().__init__(status_code, detail)


class RateLimited(ApiError):
    kind = "rate_limited"
    default_message = (
        f"Rate limit exceeded: the minification service allows {RATE_LIMIT_PER_MINUTE} "
        "requests per minute. Please wait a moment and try again."
    )


class UnexpectedStatus(ApiError):
    kind = "unexpected_status"

    def __init__(self, status_code: int, status_text: str, detail: str | None = None) -> None:
        self.status_text = status_text
        self.default_message = (
            f"Minification API request failed with status {status_code}: {status_text}."
        )
        super().__init__(status_code, detail)


# --- Format -----------------------------------------------------------------


class FormatError(MinifierError):
    kind = "format"


class InvalidResponseFormat(FormatError):
    kind = "invalid_response_format"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Invalid response format from minification API: {detail}.")


# --- Write-back -------------------------------------------------------------


class WriteError(MinifierError):
    kind = "write"

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        super().__init__(f"Could not write minified output to {path}: {detail}")
