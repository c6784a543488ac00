"""Migration record and scope for configuration schema evolution.

A migration is plain data: an id, a description, the scope it targets,
and two pure transforms. Optional observers run around ``up`` without
being able to change the configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from stud.exceptions import ConfigError

Config = Dict[str, Any]
Transform = Callable[[Config], Config]
Observer = Callable[["Migration", Mapping[str, Any]], None]


class MigrationScope(str, Enum):
    """Which configuration document a migration targets."""

    GLOBAL = "global"
    PROJECT = "project"

    @classmethod
    def parse(cls, value: Any) -> MigrationScope:
        """Parse a scope name, rejecting anything but 'global' and 'project'.

        Raises:
            ConfigError: If the value is not a known scope
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for scope in cls:
                if scope.value == normalized:
                    return scope
        raise ConfigError(
            f"Unknown configuration scope: {value!r}",
            suggestion="Use 'global' or 'project'",
        )

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Migration:
    """A single change to the configuration format.

    ``up`` must be idempotent: running it on a document already in the
    target shape returns that document unchanged. ``down`` is a best
    effort inverse and may lose information.
    """

    id: str
    description: str
    scope: MigrationScope
    up: Transform
    down: Transform
    is_prerequisite: bool = False
    before_up: Optional[Observer] = None
    after_up: Optional[Observer] = None

    def __post_init__(self) -> None:
        if not self.id or not self.id.isdigit():
            raise ValueError(f"Migration id must be a non-empty digit string, got {self.id!r}")
        if not isinstance(self.scope, MigrationScope):
            raise TypeError(f"Migration {self.id} scope must be a MigrationScope")

    def execute(self, config: Mapping[str, Any]) -> Config:
        """Run ``up`` on a copy of ``config`` with the observers around it.

        Raises:
            TypeError: If ``up`` does not return a mapping
        """
        if self.before_up is not None:
            self.before_up(self, MappingProxyType(dict(config)))

        result = self.up(dict(config))
        if not isinstance(result, Mapping):
            raise TypeError(
                f"Migration {self.id} up() returned {type(result).__name__}, expected a mapping"
            )
        migrated = dict(result)

        if self.after_up is not None:
            self.after_up(self, MappingProxyType(dict(migrated)))

        return migrated

    def revert(self, config: Mapping[str, Any]) -> Config:
        """Run ``down`` on a copy of ``config``."""
        return self.down(dict(config))


__all__ = ["Config", "Migration", "MigrationScope", "Observer", "Transform"]
