"""Filesystem-backed document host.

Plays the editor's role for the CLI:
- documents are files on disk, their kind is detected from the extension;
- replacing content is one atomic temp-file + rename, followed by a save
  event, exactly like an editor persisting an edit;
- `poll_changes` compares modification times so `watch` can raise save
  events for files changed by someone else.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Iterable

import typer

from core.domain.models import SourceDocument
from core.domain.source_kind import SourceKind, kind_for_filename
from core.interfaces.host import SaveListener, Unsubscribe
from core.logging_utils import get_logger

logger = get_logger("host")

_WATCHED_EXTENSIONS = tuple(ext for kind in SourceKind for ext in kind.extensions)


def _write_atomic(path: Path, data: bytes) -> None:
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        if path.exists():
            os.chmod(tmp_name, path.stat().st_mode & 0o777)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _mtime(path: Path) -> int | None:
    try:
        return path.stat().st_mtime_ns
    except FileNotFoundError:
        return None


class FileSystemHost:
    """`DocumentHost` + `SaveEventSource` on top of the local filesystem."""

    def __init__(self) -> None:
        self._listeners: list[SaveListener] = []
        self._snapshots: dict[Path, int] = {}

    # --- DocumentHost -------------------------------------------------------

    async def open_document(self, path: Path) -> SourceDocument:
        resolved = path.expanduser().resolve()
        text = await asyncio.to_thread(resolved.read_text, encoding="utf-8")
        return SourceDocument(
            uri=resolved.as_uri(),
            path=resolved,
            kind=kind_for_filename(resolved.name),
            text=text,
        )

    async def replace_content(self, document: SourceDocument, text: str) -> None:
        await asyncio.to_thread(_write_atomic, document.path, text.encode("utf-8"))
        self._remember(document.path)
        saved = document.model_copy(update={"text": text, "dirty": False})
        await self.emit_saved(saved)

    async def write_file(self, path: Path, data: bytes) -> None:
        await asyncio.to_thread(_write_atomic, path, data)
        self._remember(path)

    async def show_document(self, path: Path) -> None:
        typer.launch(str(path))

    # --- SaveEventSource ----------------------------------------------------

    def on_did_save(self, listener: SaveListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def emit_saved(self, document: SourceDocument) -> None:
        for listener in list(self._listeners):
            await listener(document)

    # --- Polling ------------------------------------------------------------

    def expand(self, paths: Iterable[Path]) -> list[Path]:
        """Resolve files and the supported files directly inside directories."""

        out: list[Path] = []
        for path in paths:
            resolved = path.expanduser().resolve()
            if resolved.is_dir():
                out.extend(
                    sorted(
                        child
                        for child in resolved.iterdir()
                        if child.is_file() and child.name.lower().endswith(_WATCHED_EXTENSIONS)
                    )
                )
            elif resolved.is_file():
                out.append(resolved)
        return out

    def poll_changes(self, paths: Iterable[Path], *, baseline: bool = False) -> list[Path]:
        """Return files whose mtime moved since the last poll or host write.

        With ``baseline=True`` every file is recorded and nothing is reported.
        """

        changed: list[Path] = []
        for path in self.expand(paths):
            current = _mtime(path)
            if current is None:
                self._snapshots.pop(path, None)
                continue
            previous = self._snapshots.get(path)
            self._snapshots[path] = current
            if not baseline and previous != current:
                changed.append(path)
        if changed:
            logger.debug("detected changes: %s", ", ".join(p.name for p in changed))
        return changed

    def _remember(self, path: Path) -> None:
        current = _mtime(path)
        if current is not None:
            self._snapshots[path.resolve()] = current
