"""
Stud Exception Hierarchy.

Errors carry a message, an optional suggestion and debugging context,
and know how to display themselves with Rich formatting.
"""

from typing import Any, Iterable, Optional

from rich.panel import Panel
from rich.text import Text

from stud.utils.console import console


class StudError(Exception):
    """
    Base exception for all stud errors.

    Provides error formatting with Rich panels.
    """

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ):
        """
        Initialize stud exception.

        Args:
            message: The error message
            suggestion: Optional helpful suggestion for fixing the error
            context: Optional context data for debugging
        """
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion
        self.context = context or {}

    def display(self) -> None:
        """Display the error in the console."""
        error_text = Text(self.message, style="bold red")

        if self.suggestion:
            error_text.append("\n\n💡 ", style="yellow")
            error_text.append(self.suggestion, style="italic yellow")

        panel = Panel(
            error_text,
            title="❌ Error",
            title_align="left",
            border_style="red",
            padding=(1, 2)
        )
        console.print(panel)


class ConfigError(StudError):
    """Raised when a configuration file or value is unusable."""

    def __init__(self, message: str, suggestion: Optional[str] = None, path: Optional[str] = None):
        if not suggestion and "yaml" in message.lower():
            suggestion = "Fix the YAML syntax or remove the file and run 'stud config set' again"
        context = {"path": path} if path else {}
        super().__init__(message, suggestion, context)


class MigrationError(StudError):
    """
    Raised when a migration's forward transform fails.

    Migrations that ran before the failing one are already committed;
    ``config`` and ``ledger`` hold that partial state.
    """

    def __init__(
        self,
        migration_id: str,
        description: str,
        cause: Optional[BaseException] = None,
        config: Optional[dict[str, Any]] = None,
        ledger: Optional[Iterable[str]] = None,
        message: Optional[str] = None,
    ):
        if message is None:
            reason = f": {cause}" if cause is not None else ""
            message = f"Migration {migration_id} ({description}) failed{reason}"
        super().__init__(
            message,
            suggestion="Fix the configuration file by hand, then run 'stud config migrate' to resume",
            context={"migration_id": migration_id, "description": description},
        )
        self.migration_id = migration_id
        self.description = description
        self.cause = cause
        self.config = dict(config or {})
        self.ledger = set(ledger or ())


class DuplicateMigrationError(StudError):
    """Raised when two registered migrations share an id within one scope."""

    def __init__(self, migration_id: str, scope: str):
        super().__init__(
            f"Duplicate migration id {migration_id} in scope '{scope}'",
            suggestion="Give every migration a unique, timestamp-derived id",
            context={"migration_id": migration_id, "scope": scope},
        )
        self.migration_id = migration_id
        self.scope = scope


class MissingConfigError(StudError):
    """Raised when mandatory configuration keys are missing."""

    def __init__(self, missing_global_keys: list[str], missing_project_keys: list[str]):
        parts = []
        if missing_global_keys:
            parts.append(f"global: {', '.join(missing_global_keys)}")
        if missing_project_keys:
            parts.append(f"project: {', '.join(missing_project_keys)}")
        super().__init__(
            f"Missing mandatory configuration ({'; '.join(parts)})",
            suggestion="Run 'stud config set KEY VALUE' (add --project for project keys) to complete setup",
            context={
                "missing_global_keys": missing_global_keys,
                "missing_project_keys": missing_project_keys,
            },
        )
        self.missing_global_keys = list(missing_global_keys)
        self.missing_project_keys = list(missing_project_keys)


__all__ = [
    "StudError",
    "ConfigError",
    "MigrationError",
    "DuplicateMigrationError",
    "MissingConfigError",
]
