"""Source kinds supported by the minification pipeline.

Keeping the enumeration in the domain layer lets the validator, the HTTP
client and the filesystem host share a single source of truth without
creating circular imports with adapters.
"""

from __future__ import annotations

from enum import Enum


class SourceKind(str, Enum):
    """Kinds of source text the remote service knows how to minify."""

    CSS = "css"
    JAVASCRIPT = "javascript"

    @classmethod
    def parse(cls, value: str) -> "SourceKind | None":
        """Map a declared kind (editor language id) to a supported kind."""

        try:
            return cls(value.strip().lower())
        except ValueError:
            return None

    @property
    def extensions(self) -> tuple[str, ...]:
        """File extensions recognised for this kind, longest first."""

        if self is SourceKind.CSS:
            return (".css",)
        return (".mjs", ".cjs", ".js")

    def label(self) -> str:
        """Human readable label for messages and logging."""

        return "CSS" if self is SourceKind.CSS else "JavaScript"


def kind_for_filename(name: str) -> str:
    """Guess the declared kind of a file from its extension.

    Unknown extensions return the bare extension (or ``"plaintext"``) so the
    validator can report exactly what was rejected.
    """

    lowered = name.lower()
    for kind in SourceKind:
        if any(lowered.endswith(ext) for ext in kind.extensions):
            return kind.value
    _, dot, ext = lowered.rpartition(".")
    return ext if dot and ext else "plaintext"
