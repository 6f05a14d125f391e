"""Pre-flight checks run before any network call."""

from __future__ import annotations

from dataclasses import dataclass

from core.config import MAX_CONTENT_BYTES
from core.domain.errors import (
    ContentTooLarge,
    EmptyContent,
    UnencodableText,
    UnsupportedKind,
    ValidationError,
)
from core.domain.source_kind import SourceKind
from core.interfaces.host import Notifier
from core.logging_utils import get_logger

logger = get_logger("validation")


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of `Validator.validate`; `kind` is set only when valid."""

    kind: SourceKind | None = None
    error: ValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Validator:
    """Rejects unsupported, empty, unencodable or oversized documents.

    On rejection the specific reason is sent to the notifier (when one is
    given); on success nothing is emitted.
    """

    def __init__(self, notifier: Notifier | None = None, *, max_bytes: int = MAX_CONTENT_BYTES) -> None:
        self._notifier = notifier
        self._max_bytes = max_bytes

    def validate(self, kind: str, text: str) -> ValidationResult:
        try:
            supported = self.check(kind, text)
        except ValidationError as exc:
            logger.debug("validation rejected %s input: %s", kind, exc.kind)
            if self._notifier is not None:
                self._notifier.error(exc.message)
            return ValidationResult(error=exc)
        return ValidationResult(kind=supported)

    def check(self, kind: str, text: str) -> SourceKind:
        """Raise the matching `ValidationError` or return the supported kind."""

        supported = SourceKind.parse(kind)
        if supported is None:
            raise UnsupportedKind(kind)
        if len(text) == 0:
            raise EmptyContent(kind)
        try:
            size = len(text.encode("utf-8"))
        except UnicodeEncodeError as exc:
            # Lone surrogates survive in str but have no UTF-8 form.
            raise UnencodableText(kind, exc.start) from exc
        if size > self._max_bytes:
            raise ContentTooLarge(size, self._max_bytes)
        return supported
