"""Contract of the remote minification backend."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.source_kind import SourceKind


@runtime_checkable
class Minifier(Protocol):
    """Turns source text into minified text or raises a `MinifierError`."""

    async def minify(self, text: str, kind: SourceKind) -> str:
        ...
