"""Per-document guard against save-event feedback loops.

Persisting an in-place edit raises a save event for the very document being
minified. While a document is marked as processing, save-triggered
invocations for it must stop before doing any work.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from core.logging_utils import get_logger

logger = get_logger("guard")


class SaveRecursionGuard:
    """Map of document identity to in-flight depth.

    A document is `Processing` while its depth is above zero and `Idle`
    otherwise. `hold` nests, so the orchestrator and the in-place writer can
    both hold the same document during one invocation.
    """

    def __init__(self) -> None:
        self._in_flight: dict[str, int] = {}

    def is_processing(self, uri: str) -> bool:
        return self._in_flight.get(uri, 0) > 0

    @property
    def active(self) -> frozenset[str]:
        return frozenset(self._in_flight)

    @contextmanager
    def hold(self, uri: str) -> Iterator[None]:
        """Mark ``uri`` as processing for the duration of the block.

        Release happens on every exit path, including exceptions and task
        cancellation.
        """

        self._in_flight[uri] = self._in_flight.get(uri, 0) + 1
        logger.debug("guard acquired for %s (depth=%d)", uri, self._in_flight[uri])
        try:
            yield
        finally:
            depth = self._in_flight.get(uri, 1) - 1
            if depth <= 0:
                self._in_flight.pop(uri, None)
            else:
                self._in_flight[uri] = depth
            logger.debug("guard released for %s (depth=%d)", uri, max(depth, 0))
