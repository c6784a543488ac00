"""
Stud configuration management.

One load at process start: both documents are read, brought to the
current schema by the migration runner (saving after every step), and
returned as an explicit ConfigState that commands receive as a
parameter. Writes go through ``update_setting``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Set, Tuple

from stud.exceptions import ConfigError
from stud.migrations.base import MigrationScope
from stud.migrations.global_migrations import canonical_key
from stud.migrations.runner import MigrationRunner
from stud.utils.logger import get_logger
from .loader import ConfigLoader
from .models import AppSettings, ConfigDocument, ConfigState, ValidationResult
from .secrets import REDACTED_PLACEHOLDER, is_secret_key, redact
from .validator import ConfigValidator, ensure_can_proceed

logger = get_logger(__name__)


def bootstrap_config(
    loader: Optional[ConfigLoader] = None,
    settings: Optional[AppSettings] = None,
) -> ConfigState:
    """
    Load both configuration documents and apply pending migrations.

    Prerequisite migrations of every scope run before any other
    migration. Documents that exist on disk are saved after each step
    (the first save of a run keeps a ``.backup`` copy). Documents that
    do not exist yet are created in the current schema and not written.

    Raises:
        ConfigError: If a configuration file cannot be parsed
        MigrationError: If a migration fails; earlier steps stay saved
    """
    loader = loader or ConfigLoader(settings)

    global_doc = loader.load_or_new(MigrationScope.GLOBAL)
    project_doc = loader.load_or_new(MigrationScope.PROJECT)
    state = ConfigState(settings=loader.settings, global_doc=global_doc, project=project_doc)

    documents: Dict[MigrationScope, ConfigDocument] = {doc.scope: doc for doc in state.documents()}
    applied: List[Tuple[MigrationScope, str]] = []
    backed_up: Set[MigrationScope] = set()

    def commit(scope: MigrationScope, config: Dict[str, Any], ledger: Set[str]) -> None:
        document = documents[scope]
        applied.extend((scope, migration_id) for migration_id in sorted(ledger - document.applied_migrations))
        document.values = config
        document.applied_migrations = ledger
        if document.exists:
            loader.save(document, backup=scope not in backed_up)
            backed_up.add(scope)

    runner = MigrationRunner(loader.registry, commit=commit)

    for document in documents.values():
        runner.migrate_prerequisites(document.scope, document.values, document.applied_migrations)
    for document in documents.values():
        runner.migrate(document.scope, document.values, document.applied_migrations)

    state.applied = applied

    if applied:
        logger.info(f"Applied {len(applied)} configuration migration(s)")
    return state


def update_setting(
    state: ConfigState,
    loader: ConfigLoader,
    key: str,
    value: Any,
    scope: MigrationScope = MigrationScope.GLOBAL,
) -> str:
    """
    Set one configuration value and save the document.

    The key is stored in canonical upper snake case.

    Returns:
        The canonical key that was written

    Raises:
        ConfigError: If the key is empty or there is no project document
    """
    scope = MigrationScope.parse(scope)
    canonical = canonical_key(key)
    if not canonical:
        raise ConfigError(f"Invalid configuration key: {key!r}")

    document = state.document(scope)
    if document is None:
        raise ConfigError(
            "Not inside a git repository, there is no project configuration",
            suggestion="Run the command from inside a git workspace or drop --project",
        )

    values = dict(document.values)
    values[canonical] = value
    document.values = values
    loader.save(document)

    shown = REDACTED_PLACEHOLDER if is_secret_key(canonical) else value
    logger.info(f"Set {canonical} = {shown}", scope=scope.value)
    return canonical


def project_values(state: ConfigState) -> Optional[Dict[str, Any]]:
    """Project values for validation; None unless a project file exists."""
    if state.project is None or not state.project.exists:
        return None
    return state.project.values


def validate_state(
    state: ConfigState,
    validator: Optional[ConfigValidator] = None,
    command: Optional[str] = None,
) -> ValidationResult:
    """Run the validator over a loaded configuration."""
    validator = validator or ConfigValidator()
    if command:
        return validator.validate_command(command, state.global_doc.values, project_values(state))
    return validator.validate(state.global_doc.values, project_values(state))


__all__ = [
    "AppSettings",
    "ConfigDocument",
    "ConfigLoader",
    "ConfigState",
    "ConfigValidator",
    "REDACTED_PLACEHOLDER",
    "ValidationResult",
    "bootstrap_config",
    "ensure_can_proceed",
    "is_secret_key",
    "project_values",
    "redact",
    "update_setting",
    "validate_state",
]
