"""Utility modules for mediasplit."""

from mediasplit.utils.paths import check_output_dir, check_readable_file, safe_filename

__all__ = [
    "check_output_dir",
    "check_readable_file",
    "safe_filename",
]
