"""mediasplit UI - Rich console output components.

Modules:
    core: Console instances and theme
    messages: Simple print helpers (success, error, warning, info)
    progress: Download/split progress bars driven by events
    errors: Exception and failure formatting
    formatting: Size and text helpers

Usage:
    from mediasplit.ui import console, print_success
    from mediasplit.ui.progress import SplitReporter
"""

from __future__ import annotations

from mediasplit.ui.core import MEDIASPLIT_THEME, console, err_console
from mediasplit.ui.errors import print_exception, print_failure_summary
from mediasplit.ui.formatting import format_size, truncate
from mediasplit.ui.messages import (
    fatal_error,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from mediasplit.ui.progress import SplitReporter, create_download_progress, create_split_progress

__all__ = [
    "MEDIASPLIT_THEME",
    "SplitReporter",
    "console",
    "create_download_progress",
    "create_split_progress",
    "err_console",
    "fatal_error",
    "format_size",
    "print_error",
    "print_exception",
    "print_failure_summary",
    "print_info",
    "print_success",
    "print_warning",
    "truncate",
]
