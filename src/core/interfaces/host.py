"""Contracts with the host environment (editor or filesystem).

Why Protocol:
- Structural contracts (duck typing) without rigid inheritance.
- The orchestrator can be driven by an editor integration, the CLI's
  filesystem host, or an in-memory fake in tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Awaitable, Callable, Protocol, runtime_checkable

from core.domain.models import SourceDocument

SaveListener = Callable[[SourceDocument], Awaitable[object]]
Unsubscribe = Callable[[], None]


@runtime_checkable
class Notifier(Protocol):
    """User-visible, single-line messages."""

    def info(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...


@runtime_checkable
class DocumentHost(Protocol):
    """Owner of documents and of the files next to them.

    Design rules:
    - Every method is asynchronous because it typically performs I/O.
    - `replace_content` applies one atomic edit over the whole document and
      persists it; persisting raises a save event for that document.
    """

    async def open_document(self, path: Path) -> SourceDocument:
        ...

    async def replace_content(self, document: SourceDocument, text: str) -> None:
        ...

    async def write_file(self, path: Path, data: bytes) -> None:
        ...

    async def show_document(self, path: Path) -> None:
        ...


@runtime_checkable
class SaveEventSource(Protocol):
    """Observer interface for "document was saved" notifications."""

    def on_did_save(self, listener: SaveListener) -> Unsubscribe:
        ...
