"""Shared Rich console for CLI output.

Style names map agent and dependency states onto colors: ``success`` for
active or resolved, ``warning`` for degraded or suggested, ``error`` for
failed or missing.
"""

from rich.console import Console
from rich.theme import Theme

STYLES = {
    "success": "green",
    "warning": "yellow",
    "error": "bold red",
    "info": "blue",
    "muted": "dim",
    "highlight": "bold cyan",
    "agent": "magenta",
}

console = Console(theme=Theme(STYLES), force_terminal=True)

__all__ = ["STYLES", "console"]
