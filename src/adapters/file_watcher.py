"""Polling watcher that turns file modifications into save events.

Why polling:
- Works the same on every platform without native watcher dependencies.
- Host writes update the host's snapshots, so the watcher never reports the
  pipeline's own output as a new save.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Sequence

from adapters.filesystem_host import FileSystemHost
from core.logging_utils import get_logger

logger = get_logger("watcher")


async def dispatch_changes(host: FileSystemHost, changed: Sequence[Path]) -> None:
    """Open every changed file and raise its save event concurrently."""

    async def one(path: Path) -> None:
        try:
            document = await host.open_document(path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("cannot read %s: %s", path, exc)
            return
        await host.emit_saved(document)

    await asyncio.gather(*(one(path) for path in changed))


async def watch_files(
    host: FileSystemHost,
    paths: Sequence[Path],
    *,
    interval: float = 1.0,
    max_polls: int | None = None,
) -> int:
    """Poll ``paths`` until cancelled (or ``max_polls`` is reached).

    Returns the number of save events raised.
    """

    host.poll_changes(paths, baseline=True)
    raised = 0
    polls = 0
    while max_polls is None or polls < max_polls:
        await asyncio.sleep(interval)
        polls += 1
        changed = host.poll_changes(paths)
        if not changed:
            continue
        raised += len(changed)
        await dispatch_changes(host, changed)
    return raised
