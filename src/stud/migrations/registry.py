"""
Registry of every known configuration migration.

The list is explicit and built once per process. Adding a migration
means writing its transforms and appending one record to MIGRATIONS
with a new timestamp-derived id (YYYYMMDDHHMMSS plus a 3 digit counter).
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from stud.exceptions import DuplicateMigrationError
from stud.migrations import global_migrations, project_migrations
from stud.migrations.base import Migration, MigrationScope
from stud.utils.logger import get_logger

logger = get_logger(__name__)


def log_before_up(migration: Migration, config: Mapping) -> None:
    logger.debug(
        f"Running migration {migration.id}: {migration.description}",
        scope=migration.scope.value,
        keys=len(config),
    )


def log_after_up(migration: Migration, config: Mapping) -> None:
    logger.debug(f"Migration {migration.id} produced {len(config)} keys", scope=migration.scope.value)


MIGRATIONS: Tuple[Migration, ...] = (
    Migration(
        id="202501100000001",
        description="Normalize global configuration keys to upper snake case",
        scope=MigrationScope.GLOBAL,
        is_prerequisite=True,
        up=global_migrations.canonical_casing_up,
        down=global_migrations.canonical_casing_down,
        before_up=log_before_up,
        after_up=log_after_up,
    ),
    Migration(
        id="202501150000001",
        description=(
            "Migrate Git token configuration from GIT_TOKEN/GIT_PROVIDER "
            "to GITHUB_TOKEN/GITLAB_TOKEN format"
        ),
        scope=MigrationScope.GLOBAL,
        up=global_migrations.git_token_format_up,
        down=global_migrations.git_token_format_down,
        before_up=log_before_up,
        after_up=log_after_up,
    ),
    Migration(
        id="202502010000001",
        description="Rename projectKey/transitionId/baseBranch to upper snake case",
        scope=MigrationScope.PROJECT,
        up=project_migrations.project_key_casing_up,
        down=project_migrations.project_key_casing_down,
        before_up=log_before_up,
        after_up=log_after_up,
    ),
)


class MigrationRegistry:
    """
    Fixed set of migrations, split by scope and sorted by id.

    Raises DuplicateMigrationError on construction when two migrations of
    the same scope share an id.
    """

    def __init__(self, migrations: Iterable[Migration] = MIGRATIONS) -> None:
        self._by_scope: Dict[MigrationScope, List[Migration]] = {scope: [] for scope in MigrationScope}
        seen: Dict[MigrationScope, set] = {scope: set() for scope in MigrationScope}

        for migration in migrations:
            if migration.id in seen[migration.scope]:
                raise DuplicateMigrationError(migration.id, migration.scope.value)
            seen[migration.scope].add(migration.id)
            self._by_scope[migration.scope].append(migration)

        for scope_migrations in self._by_scope.values():
            # Ids are zero padded digit strings, plain string order is chronological
            scope_migrations.sort(key=lambda m: m.id)

    def all_for_scope(self, scope: MigrationScope) -> Sequence[Migration]:
        """All migrations of a scope in ascending id order."""
        return tuple(self._by_scope[MigrationScope.parse(scope)])

    def prerequisites_for_scope(self, scope: MigrationScope) -> Sequence[Migration]:
        """Prerequisite migrations of a scope in ascending id order."""
        return tuple(m for m in self.all_for_scope(scope) if m.is_prerequisite)

    def get(self, scope: MigrationScope, migration_id: str) -> Optional[Migration]:
        for migration in self.all_for_scope(scope):
            if migration.id == migration_id:
                return migration
        return None

    def latest_id(self, scope: MigrationScope) -> Optional[str]:
        migrations = self.all_for_scope(scope)
        return migrations[-1].id if migrations else None

    def ids_up_to(self, scope: MigrationScope, version: str) -> set:
        """Ids of a scope that are <= version (legacy high-water mark import)."""
        return {m.id for m in self.all_for_scope(scope) if m.id <= version}


# Built at import so a duplicate id fails the process at startup
_default_registry = MigrationRegistry(MIGRATIONS)


def default_registry() -> MigrationRegistry:
    return _default_registry


__all__ = [
    "MIGRATIONS",
    "MigrationRegistry",
    "default_registry",
    "log_before_up",
    "log_after_up",
]
