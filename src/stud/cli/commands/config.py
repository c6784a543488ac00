"""
Configuration commands for the stud CLI.

View, validate and edit the global and project configuration, and
inspect or drive the configuration migrations. Values are always passed
through the secret policy before they are displayed.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import typer
import yaml
from rich.panel import Panel
from rich.table import Table

from stud.config import (
    REDACTED_PLACEHOLDER,
    ConfigLoader,
    ConfigState,
    ConfigValidator,
    bootstrap_config,
    ensure_can_proceed,
    redact,
    update_setting,
    validate_state,
)
from stud.config.models import AppSettings
from stud.config.validator import is_present
from stud.exceptions import ConfigError, StudError
from stud.migrations.base import MigrationScope
from stud.migrations.runner import MigrationRunner
from stud.utils.console import console
from stud.utils.logger import get_logger

logger = get_logger(__name__)

app = typer.Typer(
    name="config",
    help="🔧 Configuration management for stud",
    rich_markup_mode="rich",
    no_args_is_help=True,
)

_FORMATS = ("table", "json", "yaml")


def _settings(ctx: typer.Context) -> AppSettings:
    obj = ctx.find_root().obj
    return obj if isinstance(obj, AppSettings) else AppSettings.from_env()


def _load(ctx: typer.Context) -> Tuple[ConfigLoader, ConfigState]:
    """Build the loader and run the startup migrations."""
    loader = ConfigLoader(_settings(ctx))
    return loader, bootstrap_config(loader)


def _fail(error: StudError) -> typer.Exit:
    logger.debug(f"Command failed: {error.message}", **error.context)
    error.display()
    return typer.Exit(1)


def _parse_value(value: str) -> Any:
    # Only booleans are typed; everything else is stored as given
    lowered = value.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    return value


def _display_data(state: ConfigState, include_secrets: bool) -> Dict[str, Dict[str, Any]]:
    data: Dict[str, Dict[str, Any]] = {}
    for document in state.documents():
        if not document.exists:
            continue
        values = dict(document.values)
        data[document.scope.value] = values if include_secrets else redact(values)
    return data


@app.command("show")
def show_config(
    ctx: typer.Context,
    format: str = typer.Option(
        "table",
        "--format",
        "-f",
        help="Output format: table, json, yaml"
    ),
    include_secrets: bool = typer.Option(
        False,
        "--include-secrets",
        help="Include API tokens (⚠️  use with caution)"
    ),
) -> None:
    """
    📋 Show the global and project configuration with secrets redacted.
    """
    output_format = format.lower()
    if output_format not in _FORMATS:
        console.error(f"Unknown format '{format}'. Use one of: {', '.join(_FORMATS)}")
        raise typer.Exit(2)

    try:
        loader, state = _load(ctx)
    except StudError as e:
        raise _fail(e)

    data = _display_data(state, include_secrets)
    if not data:
        console.warning("No configuration found")
        console.info(f"Create one with 'stud config set KEY VALUE' (global file: {loader.global_path})")
        raise typer.Exit(1)

    if output_format == "json":
        console.print(json.dumps(data, indent=2, default=str), markup=False, highlight=False, soft_wrap=True)
    elif output_format == "yaml":
        console.print(
            yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True),
            markup=False,
            highlight=False,
            soft_wrap=True,
        )
    else:
        _show_config_table(state, data)
        if not include_secrets:
            console.print("\n[dim]💡 Use --include-secrets to show API tokens[/dim]")


def _show_config_table(state: ConfigState, data: Dict[str, Dict[str, Any]]) -> None:
    for document in state.documents():
        values = data.get(document.scope.value)
        if values is None:
            continue

        table = Table(show_header=True, header_style="table.header", border_style="table.border")
        table.add_column("Key", style="info.text")
        table.add_column("Value", overflow="fold")
        for key, value in values.items():
            table.add_row(key, _format_value(value))
        if not values:
            table.add_row("[dim](empty)[/dim]", "")

        console.print()
        console.print(
            Panel(
                table,
                title=f"[bright]🔧 {document.scope.value.capitalize()} configuration[/bright]",
                subtitle=f"[dim]{document.path}[/dim]",
                title_align="left",
                border_style="panel.border",
                padding=(1, 2),
            )
        )


def _format_value(value: Any) -> str:
    if value == REDACTED_PLACEHOLDER:
        return f"[redacted]{REDACTED_PLACEHOLDER}[/redacted]"
    if isinstance(value, bool):
        return "[success]✓ true[/success]" if value else "[dim]✗ false[/dim]"
    if value is None or value == "":
        return "[dim]not set[/dim]"
    return str(value).replace("[", "\\[")


@app.command("validate")
def validate_config(
    ctx: typer.Context,
    command: Optional[str] = typer.Option(
        None,
        "--command",
        "-c",
        help="Check the keys a specific command needs (e.g. items:start, submit)"
    ),
) -> None:
    """
    ✅ Check that mandatory configuration keys are set.

    Exits with status 1 when stud cannot proceed.
    """
    validator = ConfigValidator()
    try:
        _, state = _load(ctx)
        result = validate_state(state, validator, command)
    except StudError as e:
        raise _fail(e)

    if command:
        requirements = validator.command_requirements.get(command, {})
        global_keys = requirements.get("global", ())
        project_keys = requirements.get("project", ())
    else:
        global_keys = validator.global_keys
        project_keys = validator.project_keys if state.project and state.project.exists else ()

    table = Table(show_header=True, header_style="table.header", border_style="table.border")
    table.add_column("Scope", style="primary")
    table.add_column("Key", style="info.text")
    table.add_column("Value", overflow="fold")
    table.add_column("Status")

    _add_requirement_rows(table, "global", global_keys, state.global_doc.values, result.missing_global_keys)
    if state.project is not None or command:
        project_config = state.project.values if state.project is not None else {}
        _add_requirement_rows(table, "project", project_keys, project_config, result.missing_project_keys)

    title = f"Configuration check for '{command}'" if command else "Configuration check"
    console.print(Panel(table, title=f"[bright]🔍 {title}[/bright]", title_align="left", border_style="panel.border"))

    if state.project is None and not command:
        console.info("Not inside a git repository, project configuration skipped")

    try:
        ensure_can_proceed(result)
    except StudError as e:
        raise _fail(e)

    if result.has_missing_keys:
        console.warning(f"Missing project keys: {', '.join(result.missing_project_keys)}")
    else:
        console.success("Configuration is complete")


def _add_requirement_rows(
    table: Table,
    scope: str,
    requirements: Iterable[Any],
    values: Mapping[str, Any],
    missing: Iterable[str],
) -> None:
    shown = redact(values)
    missing = set(missing)
    for requirement in requirements:
        keys = (requirement,) if isinstance(requirement, str) else tuple(requirement)
        label = "|".join(keys)
        if label in missing:
            table.add_row(scope, label, "[dim]not set[/dim]", "[status.failed]✗ missing[/status.failed]")
            continue
        key = next(k for k in keys if is_present(values, k))
        table.add_row(scope, key, _format_value(shown[key]), "[status.complete]✓ set[/status.complete]")


@app.command("migrations")
def list_migrations(ctx: typer.Context) -> None:
    """
    📜 List configuration migrations and their status per scope.

    Reads the files as stored, without applying anything.
    """
    loader = ConfigLoader(_settings(ctx))
    try:
        documents = {scope: loader.load(scope) for scope in MigrationScope}
    except StudError as e:
        raise _fail(e)

    table = Table(show_header=True, header_style="table.header", border_style="table.border")
    table.add_column("ID", style="accent")
    table.add_column("Scope", style="primary")
    table.add_column("Status")
    table.add_column("Description", overflow="fold")

    for scope in MigrationScope:
        document = documents[scope]
        for migration in loader.registry.all_for_scope(scope):
            if document is None:
                status = "[status.pending]no file[/status.pending]"
            elif migration.id in document.applied_migrations:
                status = "[status.complete]applied[/status.complete]"
            else:
                status = "[status.failed]pending[/status.failed]"
            description = migration.description
            if migration.is_prerequisite:
                description = f"{description} [dim](prerequisite)[/dim]"
            table.add_row(migration.id, scope.value, status, description)

    console.print(table)


@app.command("migrate")
def migrate_config(ctx: typer.Context) -> None:
    """
    🔄 Apply pending configuration migrations.

    Migrations also run automatically whenever stud starts; this command
    reports what was applied.
    """
    try:
        loader, state = _load(ctx)
    except StudError as e:
        raise _fail(e)

    if not state.applied:
        console.success("Configuration is up to date")
        return

    lines = []
    for scope, migration_id in state.applied:
        migration = loader.registry.get(scope, migration_id)
        description = migration.description if migration else ""
        lines.append(f"[success]✓[/success] [accent]{migration_id}[/accent] ({scope.value}) {description}")
    console.summary_panel(
        f"Applied {len(state.applied)} migration(s)",
        lines,
        status="success",
        emoji="🔄",
    )


@app.command("rollback")
def rollback_migration(
    ctx: typer.Context,
    migration_id: str = typer.Argument(..., help="Id of the applied migration to revert"),
    scope: str = typer.Option(
        "global",
        "--scope",
        "-s",
        help="Configuration scope: global or project"
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Do not ask for confirmation"
    ),
) -> None:
    """
    ⏪ Revert one applied migration and remove it from the ledger.

    Works on the file as stored. The migration is applied again the next
    time stud loads its configuration.
    """
    loader = ConfigLoader(_settings(ctx))
    try:
        parsed_scope = MigrationScope.parse(scope)
        document = loader.load(parsed_scope)
        if document is None:
            raise ConfigError(
                f"No {parsed_scope.value} configuration file to roll back",
                suggestion="Check the scope, project configuration lives inside a git repository",
            )

        if not yes and not typer.confirm(f"Revert migration {migration_id} in {document.path}?"):
            console.info("Rollback cancelled")
            raise typer.Exit(0)

        def commit(_scope: MigrationScope, config: Dict[str, Any], ledger: set) -> None:
            document.values = config
            document.applied_migrations = ledger
            loader.save(document, backup=True)

        MigrationRunner(loader.registry, commit=commit).rollback(
            parsed_scope, document.values, document.applied_migrations, migration_id
        )
    except StudError as e:
        raise _fail(e)

    console.success(f"Rolled back migration {migration_id} ({parsed_scope.value})")
    console.info(f"Previous file kept as {document.path}.backup", emoji=False)


@app.command("set")
def set_value(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Configuration key, e.g. JIRA_URL"),
    value: str = typer.Argument(..., help="Value to store ('true'/'false' become booleans)"),
    project: bool = typer.Option(
        False,
        "--project",
        "-p",
        help="Write to the project configuration of the current git repository"
    ),
) -> None:
    """
    ✏️  Set a configuration value.

    Keys are stored in upper snake case (projectKey becomes PROJECT_KEY).
    """
    scope = MigrationScope.PROJECT if project else MigrationScope.GLOBAL
    try:
        loader, state = _load(ctx)
        canonical = update_setting(state, loader, key, _parse_value(value), scope)
    except StudError as e:
        raise _fail(e)

    document = state.document(scope)
    console.success(f"Set {canonical} in {scope.value} configuration")
    if document is not None:
        console.print(f"[dim]{document.path}[/dim]")
