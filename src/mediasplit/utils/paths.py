"""Filesystem helpers: filename safety and access checks."""

from __future__ import annotations

import os
from pathlib import Path

from pathvalidate import sanitize_filename as pv_sanitize_filename

from mediasplit.exceptions import OutputDirectoryError, UnreadableInputError

# Leaves room for an extension within common 255-byte filename limits
DEFAULT_MAX_STEM_LENGTH = 200


def safe_filename(raw: str, max_length: int = DEFAULT_MAX_STEM_LENGTH) -> str:
    """
    Build a cross-platform safe filename.

    Removes path separators, control characters and characters reserved on
    any platform, then trims surrounding whitespace. Brackets and dashes are
    kept, so ``-[Song - tag][name]`` survives untouched.

    Args:
        raw: Raw name, e.g. a track name from the template
        max_length: Maximum length of the returned name

    Returns:
        Sanitized name (may be empty if nothing usable remains)
    """
    cleaned = str(pv_sanitize_filename(raw, platform="universal", max_len=max_length))
    return cleaned.strip()


def check_readable_file(path: str | Path) -> Path:
    """
    Verify ``path`` is an existing, readable regular file.

    Raises:
        UnreadableInputError: If the file is missing or not readable
    """
    file_path = Path(path)
    if not file_path.is_file() or not os.access(file_path, os.R_OK):
        raise UnreadableInputError(f'Input file "{path}" is not readable', path=path)
    return file_path


def check_output_dir(path: str | Path) -> Path:
    """
    Verify ``path`` is an existing, writable directory.

    Raises:
        OutputDirectoryError: If the directory is missing, not a directory,
            or not writable
    """
    dir_path = Path(path)
    if not dir_path.exists():
        raise OutputDirectoryError(f'Output path "{path}" does not exist', path=path)
    if not dir_path.is_dir():
        raise OutputDirectoryError(f'Output path "{path}" is not a directory', path=path)
    if not os.access(dir_path, os.W_OK):
        raise OutputDirectoryError(f'Output path "{path}" is not writable', path=path)
    return dir_path
