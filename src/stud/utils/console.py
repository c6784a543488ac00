"""
Shared Rich console for stud command output.

Command output goes to stdout through one themed console; log records
go to stderr through the logger's own console. Notices carry a fixed
emoji prefix and theme style per kind.
"""

from __future__ import annotations

import os
from typing import Any, Iterable, Optional, TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel

from stud.cli.theme import stud_theme

if TYPE_CHECKING:
    from stud.config.models import AppSettings

# kind -> (emoji prefix, theme style)
NOTICE_STYLES = {
    "success": ("✅ ", "success.text"),
    "error": ("❌ ", "error.text"),
    "warning": ("⚠️  ", "warning.text"),
    "info": ("ℹ️  ", "info.text"),
}


class StudConsole:
    """
    Singleton console used by every stud command.

    Built from the environment on first use; ``configure`` rebuilds it
    once the CLI has resolved its settings.
    """

    _instance: Optional[StudConsole] = None

    def __new__(cls) -> StudConsole:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._console = cls._build(
                no_color=bool(os.getenv("NO_COLOR")),
                debug=bool(os.getenv("STUD_DEBUG")),
            )
        return cls._instance

    @staticmethod
    def _build(no_color: bool, debug: bool) -> Console:
        return Console(
            theme=stud_theme,
            force_terminal=True if debug else None,
            no_color=no_color or None,
        )

    def configure(self, settings: AppSettings) -> None:
        """Rebuild the console for the resolved application settings."""
        self._console = self._build(no_color=settings.no_color, debug=settings.debug)

    def print(self, *args: Any, **kwargs: Any) -> None:
        self._console.print(*args, **kwargs)

    def notice(self, kind: str, message: str, emoji: bool = True) -> None:
        """Print a one line notice styled for its kind (success, error, warning, info)."""
        prefix, style = NOTICE_STYLES[kind]
        self._console.print(f"{prefix if emoji else ''}{message}", style=style)

    def success(self, message: str, emoji: bool = True) -> None:
        self.notice("success", message, emoji)

    def error(self, message: str, emoji: bool = True) -> None:
        self.notice("error", message, emoji)

    def warning(self, message: str, emoji: bool = True) -> None:
        self.notice("warning", message, emoji)

    def info(self, message: str, emoji: bool = True) -> None:
        self.notice("info", message, emoji)

    def summary_panel(
        self,
        title: str,
        lines: Iterable[str],
        status: str = "info",
        emoji: str = "",
    ) -> None:
        """
        Show a titled panel with one line per entry.

        Args:
            title: Panel title
            lines: Rich markup lines, one per entry
            status: Notice kind used for the border; ``info`` uses the panel border
            emoji: Optional emoji before the title
        """
        border = "panel.border" if status == "info" else NOTICE_STYLES[status][1]
        self._console.print(
            Panel(
                "\n".join(lines),
                title=f"{emoji} {title}" if emoji else title,
                title_align="left",
                border_style=border,
                padding=(1, 2),
            )
        )


console = StudConsole()

__all__ = ["NOTICE_STYLES", "StudConsole", "console"]
