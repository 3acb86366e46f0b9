"""Core console configuration and theme for the mediasplit UI.

Provides the Rich console instances and theme the other UI modules use.
"""

from __future__ import annotations

from rich.console import Console
from rich.theme import Theme

# =============================================================================
# Theme Configuration
# =============================================================================

MEDIASPLIT_THEME = Theme(
    {
        # Status colors
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red bold",
        # Text styles
        "step": "bold cyan",
        "title": "bold white",
        "dim": "dim",
        "highlight": "bold magenta",
        # Domain styles
        "path": "cyan",
        "track": "magenta",
        "timestamp": "green",
        "size": "yellow",
        "command": "bold green",
        "hint": "dim italic",
    }
)

# =============================================================================
# Console Instances
# =============================================================================

# Primary console for normal output
console = Console(theme=MEDIASPLIT_THEME, stderr=False)

# Error console for stderr output
err_console = Console(theme=MEDIASPLIT_THEME, stderr=True)
