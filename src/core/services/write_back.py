"""Applies a minified result to the host.

Two branches:
- replace the whole document in place (guarded against save recursion);
- create a sibling file whose name carries a prefix before the extension.
"""

from __future__ import annotations

from pathlib import Path

from core.domain.models import NewSiblingFile, SizeStatistics, SourceDocument, WriteTarget
from core.domain.source_kind import SourceKind
from core.interfaces.host import DocumentHost, Notifier
from core.logging_utils import get_logger
from core.services.messages import success_message
from core.services.recursion_guard import SaveRecursionGuard

logger = get_logger("write_back")

_SUPPORTED_EXTENSIONS: tuple[str, ...] = tuple(
    ext for kind in SourceKind for ext in kind.extensions
)


def create_minified_file_name(file_name: str, prefix: str) -> str:
    """Insert ``prefix`` right before the supported extension.

    ``style.css`` + ``.min`` gives ``style.min.css``. Names without a
    supported extension are returned unchanged.
    """

    lowered = file_name.lower()
    for ext in _SUPPORTED_EXTENSIONS:
        if lowered.endswith(ext):
            stem = file_name[: -len(ext)]
            return f"{stem}{prefix}{file_name[-len(ext):]}"
    return file_name


def minified_path_for(path: Path, prefix: str) -> Path:
    return path.with_name(create_minified_file_name(path.name, prefix))


class WriteBackCoordinator:
    def __init__(
        self,
        *,
        host: DocumentHost,
        notifier: Notifier,
        guard: SaveRecursionGuard,
        show_stats: bool = True,
    ) -> None:
        self._host = host
        self._notifier = notifier
        self._guard = guard
        self._show_stats = show_stats

    async def write_back(
        self,
        document: SourceDocument,
        minified_text: str,
        stats: SizeStatistics,
        target: WriteTarget,
    ) -> Path:
        """Write the result and notify the user; returns the written path."""

        if isinstance(target, NewSiblingFile):
            return await self._write_new_file(document, minified_text, stats, target)
        return await self._replace_in_place(document, minified_text, stats)

    async def _write_new_file(
        self,
        document: SourceDocument,
        minified_text: str,
        stats: SizeStatistics,
        target: NewSiblingFile,
    ) -> Path:
        new_path = minified_path_for(document.path, target.prefix)
        await self._host.write_file(new_path, minified_text.encode("utf-8"))
        logger.debug("wrote %d bytes to %s", stats.minified_size, new_path)

        if target.auto_open:
            await self._host.show_document(new_path)

        self._notifier.info(
            success_message(new_path.name, stats, new_file=True, show_stats=self._show_stats)
        )
        return new_path

    async def _replace_in_place(
        self,
        document: SourceDocument,
        minified_text: str,
        stats: SizeStatistics,
    ) -> Path:
        # Persisting raises a save event for this document; keep it marked
        # as processing until the host returns.
        with self._guard.hold(document.uri):
            await self._host.replace_content(document, minified_text)
        logger.debug("replaced %s in place (%d bytes)", document.uri, stats.minified_size)

        self._notifier.info(
            success_message(document.file_name, stats, new_file=False, show_stats=self._show_stats)
        )
        return document.path
