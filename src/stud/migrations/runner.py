"""
Migration runner: applies pending migrations to one configuration document.

Pending migrations run prerequisites first, each group in ascending id
order. Every successful step is committed immediately through the
``commit`` callback, so a failure part way leaves the ledger matching
exactly the migrations that ran and the next run resumes at the failed
one.
"""

from __future__ import annotations

from typing import AbstractSet, Any, Callable, Dict, List, Mapping, Optional, Set, Tuple

from stud.exceptions import MigrationError
from stud.migrations.base import Migration, MigrationScope
from stud.migrations.registry import MigrationRegistry, default_registry
from stud.utils.logger import get_logger

logger = get_logger(__name__)

Commit = Callable[[MigrationScope, Dict[str, Any], Set[str]], None]
MigrationOutcome = Tuple[Dict[str, Any], Set[str]]


class MigrationRunner:
    """
    Brings a configuration document up to the current schema.

    Args:
        registry: Source of known migrations (defaults to the built-in list)
        commit: Called with (scope, config, ledger) after every step, before
            the next migration starts. Typically persists the document.
    """

    def __init__(
        self,
        registry: Optional[MigrationRegistry] = None,
        commit: Optional[Commit] = None,
    ) -> None:
        self.registry = registry or default_registry()
        self.commit = commit

    def pending(self, scope: MigrationScope, ledger: AbstractSet[str]) -> List[Migration]:
        """Unapplied migrations of a scope: prerequisites first, then the rest, each by id."""
        unapplied = [m for m in self.registry.all_for_scope(scope) if m.id not in ledger]
        prerequisites = sorted((m for m in unapplied if m.is_prerequisite), key=lambda m: m.id)
        normal = sorted((m for m in unapplied if not m.is_prerequisite), key=lambda m: m.id)
        return prerequisites + normal

    def migrate(
        self,
        scope: MigrationScope,
        config: Mapping[str, Any],
        ledger: AbstractSet[str],
    ) -> MigrationOutcome:
        """
        Apply every pending migration of ``scope``.

        Returns:
            The migrated config and the updated ledger

        Raises:
            MigrationError: When a migration's ``up`` fails; carries the
                partial config and ledger already committed
        """
        scope = MigrationScope.parse(scope)
        return self._run(scope, self.pending(scope, ledger), config, ledger)

    def migrate_prerequisites(
        self,
        scope: MigrationScope,
        config: Mapping[str, Any],
        ledger: AbstractSet[str],
    ) -> MigrationOutcome:
        """Apply only the pending prerequisite migrations of ``scope``."""
        scope = MigrationScope.parse(scope)
        pending = [m for m in self.pending(scope, ledger) if m.is_prerequisite]
        return self._run(scope, pending, config, ledger)

    def rollback(
        self,
        scope: MigrationScope,
        config: Mapping[str, Any],
        ledger: AbstractSet[str],
        migration_id: str,
    ) -> MigrationOutcome:
        """
        Revert one applied migration with its ``down`` and drop it from the ledger.

        Raises:
            MigrationError: If the id is unknown, not applied, or ``down`` fails
        """
        scope = MigrationScope.parse(scope)
        migration = self.registry.get(scope, migration_id)
        if migration is None:
            raise MigrationError(
                migration_id, "unknown migration",
                config=dict(config), ledger=ledger,
                message=f"No {scope.value} migration with id {migration_id}",
            )
        if migration_id not in ledger:
            raise MigrationError(
                migration_id, migration.description,
                config=dict(config), ledger=ledger,
                message=f"Migration {migration_id} has not been applied to the {scope.value} configuration",
            )

        try:
            reverted = migration.revert(config)
        except Exception as e:
            logger.error(f"Rollback of migration {migration_id} failed: {e}", scope=scope.value)
            raise MigrationError(
                migration.id, migration.description, cause=e,
                config=dict(config), ledger=ledger,
            ) from e

        new_ledger = set(ledger) - {migration_id}
        self._commit(scope, reverted, new_ledger)
        logger.info(f"Rolled back migration {migration_id}", scope=scope.value)
        return reverted, new_ledger

    def _run(
        self,
        scope: MigrationScope,
        pending: List[Migration],
        config: Mapping[str, Any],
        ledger: AbstractSet[str],
    ) -> MigrationOutcome:
        current = dict(config)
        applied = set(ledger)

        if not pending:
            logger.debug("No pending migrations", scope=scope.value)
            return current, applied

        logger.info(f"Applying {len(pending)} migration(s)", scope=scope.value)

        for migration in pending:
            try:
                current = migration.execute(current)
            except Exception as e:
                logger.error(
                    f"Migration {migration.id} failed: {e}",
                    scope=scope.value,
                    applied=len(applied) - len(ledger),
                )
                raise MigrationError(
                    migration.id, migration.description, cause=e,
                    config=current, ledger=applied,
                ) from e

            applied.add(migration.id)
            self._commit(scope, current, applied)
            logger.debug(f"Applied migration {migration.id}", scope=scope.value)

        return current, applied

    def _commit(self, scope: MigrationScope, config: Dict[str, Any], ledger: Set[str]) -> None:
        if self.commit is not None:
            self.commit(scope, dict(config), set(ledger))


__all__ = ["Commit", "MigrationOutcome", "MigrationRunner"]
