"""Size statistics for a minification result."""

from __future__ import annotations

import math

from core.domain.models import SizeStatistics


def byte_size(text: str) -> int:
    return len(text.encode("utf-8"))


def format_size(size: int) -> str:
    """Render a byte count: ``"512 B"`` below 1 KiB, ``"1.00 KB"`` from there on."""

    if size < 1024:
        return f"{size} B"
    return f"{size / 1024:.2f} KB"


def reduction_percent(original_size: int, minified_size: int) -> int:
    if original_size <= 0:
        return 0
    ratio = (original_size - minified_size) * 100 / original_size
    # Half-up rounding, clamped to 0..100.
    return max(0, min(100, math.floor(ratio + 0.5)))


def compute_stats(original_text: str, minified_text: str) -> SizeStatistics:
    original_size = byte_size(original_text)
    minified_size = byte_size(minified_text)
    return SizeStatistics(
        original_size=original_size,
        minified_size=minified_size,
        reduction_percent=reduction_percent(original_size, minified_size),
        original_size_display=format_size(original_size),
        minified_size_display=format_size(minified_size),
    )
