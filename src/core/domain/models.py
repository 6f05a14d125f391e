"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Strict validation and self-documenting fields (Field) without coupling the
  core to I/O libraries.
- Frozen models make per-invocation values (requests, statistics, targets)
  immutable once built.

Note:
- These models describe *what* flows through the pipeline, not *how* it is
  fetched or written.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from core.domain.source_kind import SourceKind


class SourceDocument(BaseModel):
    """A document owned by the host (editor or filesystem).

    The pipeline reads identity and content; it never changes the identity.
    """

    model_config = ConfigDict(frozen=True)

    uri: str = Field(
        ...,
        min_length=1,
        description="Stable identity of the document (URI or absolute path).",
    )
    path: Path = Field(
        ...,
        description="Filesystem location of the document.",
    )
    kind: str = Field(
        ...,
        description="Declared kind (language id) as reported by the host.",
    )
    text: str = Field(
        default="",
        description="Full text content at the time the invocation started.",
    )
    dirty: bool = Field(
        default=False,
        description="Whether the host holds unsaved changes for this document.",
    )

    @property
    def file_name(self) -> str:
        return self.path.name


class MinificationRequest(BaseModel):
    """Immutable request sent to the minification client."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., min_length=1)
    kind: SourceKind

    @classmethod
    def from_document(cls, document: SourceDocument, kind: SourceKind) -> "MinificationRequest":
        return cls(text=document.text, kind=kind)


class SizeStatistics(BaseModel):
    """Before/after sizes of one minification, in UTF-8 bytes."""

    model_config = ConfigDict(frozen=True)

    original_size: int = Field(..., ge=0)
    minified_size: int = Field(..., ge=0)
    reduction_percent: int = Field(
        ...,
        ge=0,
        le=100,
        description="Rounded share of bytes removed; clamped at 0 when output grew.",
    )
    original_size_display: str
    minified_size_display: str

    @property
    def grew(self) -> bool:
        return self.minified_size > self.original_size


class ReplaceDocument(BaseModel):
    """Write the result over the source document."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["replace"] = "replace"


class NewSiblingFile(BaseModel):
    """Write the result to a sibling file named with ``prefix`` before the extension."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["new_file"] = "new_file"
    prefix: str = Field(..., min_length=1)
    auto_open: bool = False


WriteTarget = Annotated[Union[ReplaceDocument, NewSiblingFile], Field(discriminator="mode")]


class MinificationOutcome(BaseModel):
    """Result of one pipeline invocation.

    Either a success (``minified_text`` + ``stats``) or a tagged failure
    (``error_kind`` + ``message``). Never persisted.
    """

    document_uri: str
    ok: bool
    minified_text: str | None = None
    stats: SizeStatistics | None = None
    output_path: Path | None = None
    error_kind: str | None = None
    message: str | None = None

    @classmethod
    def success(
        cls,
        *,
        document: SourceDocument,
        minified_text: str,
        stats: SizeStatistics,
        output_path: Path,
    ) -> "MinificationOutcome":
        return cls(
            document_uri=document.uri,
            ok=True,
            minified_text=minified_text,
            stats=stats,
            output_path=output_path,
        )

    @classmethod
    def failure(cls, *, document: SourceDocument, kind: str, message: str) -> "MinificationOutcome":
        return cls(document_uri=document.uri, ok=False, error_kind=kind, message=message)
