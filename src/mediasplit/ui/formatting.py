"""Formatting helpers for sizes and names."""

from __future__ import annotations

_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_size(num_bytes: int | float | None) -> str:
    """Format a byte count for display.

    Example:
        >>> format_size(5_452_595)
        '5.20 MB'
        >>> format_size(512)
        '512 B'
    """
    if num_bytes is None:
        return "unknown"
    size = float(num_bytes)
    for unit in _UNITS:
        if abs(size) < 1024 or unit == _UNITS[-1]:
            if unit == "B":
                return f"{int(size)} B"
            return f"{size:.2f} {unit}"
        size /= 1024
    return f"{size:.2f} {_UNITS[-1]}"  # pragma: no cover


def truncate(text: str, width: int = 40) -> str:
    """Shorten ``text`` to ``width`` characters with an ellipsis."""
    if len(text) <= width:
        return text
    return text[: max(width - 3, 0)] + "..."
