"""
Configuration schema migrations.

- base: the Migration record and MigrationScope
- registry: the explicit list of known migrations
- runner: pending computation, ordering, per-step commit and rollback
"""

from stud.migrations.base import Migration, MigrationScope
from stud.migrations.registry import MIGRATIONS, MigrationRegistry, default_registry
from stud.migrations.runner import MigrationRunner

__all__ = [
    "MIGRATIONS",
    "Migration",
    "MigrationRegistry",
    "MigrationRunner",
    "MigrationScope",
    "default_registry",
]
