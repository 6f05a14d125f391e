"""User-facing success messages.

Templates carry up to four slots: file name, percentage, original size and
minified size.
"""

from __future__ import annotations

from core.domain.models import SizeStatistics

_NEW_FILE_PLAIN = "File successfully minified and saved as: {file}"
_IN_PLACE_PLAIN = "{file} has been successfully minified."

_NEW_FILE_REDUCED = (
    "File successfully minified and saved as: {file}! "
    "Size reduced by {percent}% ({original} → {minified})"
)
_IN_PLACE_REDUCED = "{file} successfully minified! Size reduced by {percent}% ({original} → {minified})"

_NEW_FILE_UNCHANGED = (
    "File successfully minified and saved as: {file}! No size reduction ({original} → {minified})"
)
_IN_PLACE_UNCHANGED = "{file} successfully minified! No size reduction ({original} → {minified})"


def success_message(
    file_name: str,
    stats: SizeStatistics,
    *,
    new_file: bool,
    show_stats: bool,
) -> str:
    if not show_stats:
        template = _NEW_FILE_PLAIN if new_file else _IN_PLACE_PLAIN
    elif stats.minified_size >= stats.original_size:
        template = _NEW_FILE_UNCHANGED if new_file else _IN_PLACE_UNCHANGED
    else:
        template = _NEW_FILE_REDUCED if new_file else _IN_PLACE_REDUCED
    return template.format(
        file=file_name,
        percent=stats.reduction_percent,
        original=stats.original_size_display,
        minified=stats.minified_size_display,
    )
