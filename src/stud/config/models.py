"""
Pydantic models for stud configuration.

Covers the settings of the tool itself (read from the environment), the
per-scope configuration documents with their applied-migrations ledger,
and the derived validation result.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from stud.exceptions import ConfigError
from stud.migrations.base import MigrationScope

# Reserved lowercase keys; configuration values themselves are upper snake case
LEDGER_KEY = "applied_migrations"
LEGACY_VERSION_KEY = "migration_version"

_TRUTHY = ('1', 'true', 'yes', 'on')


def default_config_dir() -> Path:
    """Directory holding the global configuration (~/.config/stud)."""
    return Path.home() / ".config" / "stud"


class AppSettings(BaseModel):
    """Settings of the stud process itself, mostly driven by environment variables."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    config_dir: Path = Field(default_factory=default_config_dir, description="Global config directory")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "WARNING",
        description="Console logging level"
    )
    no_color: bool = Field(False, description="Disable colored output")
    log_to_file: bool = Field(True, description="Write the JSON log file under config_dir/logs")

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        """Accept lowercase level names."""
        return v.upper() if isinstance(v, str) else v

    @field_validator('config_dir')
    @classmethod
    def expand_config_dir(cls, v: Path) -> Path:
        """Expand ~ in the configured directory."""
        return v.expanduser()

    @classmethod
    def from_env(cls) -> AppSettings:
        """
        Build settings from STUD_* environment variables.

        Recognised variables: STUD_CONFIG_DIR, STUD_DEBUG, STUD_LOG_LEVEL,
        STUD_LOG_FILE and the standard NO_COLOR.
        """
        data: Dict[str, Any] = {}

        config_dir = os.getenv('STUD_CONFIG_DIR')
        if config_dir:
            data['config_dir'] = Path(config_dir)

        debug = os.getenv('STUD_DEBUG')
        if debug:
            data['debug'] = debug.lower() in _TRUTHY

        level = os.getenv('STUD_LOG_LEVEL')
        if level and level.upper() in ('DEBUG', 'INFO', 'WARNING', 'ERROR'):
            data['log_level'] = level

        log_file = os.getenv('STUD_LOG_FILE')
        if log_file:
            data['log_to_file'] = log_file.lower() in _TRUTHY

        # Respect standard NO_COLOR environment variable
        if os.getenv('NO_COLOR'):
            data['no_color'] = True

        return cls(**data)

    @property
    def global_config_path(self) -> Path:
        return self.config_dir / "config.yml"


class ConfigDocument(BaseModel):
    """
    One configuration document (global or project) and its ledger.

    ``values`` maps configuration keys to scalars; ``applied_migrations``
    is the set of migration ids whose effects are already reflected in
    ``values``.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    scope: MigrationScope
    values: Dict[str, Any] = Field(default_factory=dict)
    applied_migrations: Set[str] = Field(default_factory=set)
    path: Optional[Path] = None

    @field_validator('scope', mode='before')
    @classmethod
    def parse_scope(cls, v: Any) -> Any:
        """Reject anything that is not one of the two known scopes."""
        if isinstance(v, MigrationScope):
            return v
        try:
            return MigrationScope.parse(v)
        except ConfigError as e:
            raise ValueError(e.message) from e

    @field_validator('values')
    @classmethod
    def check_keys(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        """Configuration keys must be strings."""
        for key in v:
            if not isinstance(key, str):
                raise ValueError(f"Configuration keys must be strings, got {key!r}")
        return v

    @property
    def exists(self) -> bool:
        """Whether the document has been written to disk."""
        return self.path is not None and self.path.exists()

    def to_file_data(self) -> Dict[str, Any]:
        """Mapping written to disk: the values plus the sorted ledger."""
        data = dict(self.values)
        data[LEDGER_KEY] = sorted(self.applied_migrations)
        return data


class ValidationResult(BaseModel):
    """Missing mandatory keys per scope and whether the caller may proceed."""

    model_config = ConfigDict(frozen=True)

    missing_global_keys: List[str] = Field(default_factory=list)
    missing_project_keys: List[str] = Field(default_factory=list)
    can_proceed: bool = True

    @computed_field  # type: ignore[misc]
    @property
    def has_missing_keys(self) -> bool:
        return bool(self.missing_global_keys or self.missing_project_keys)


class ConfigState(BaseModel):
    """
    The loaded, migrated configuration handed to every command.

    ``project`` is None outside a git workspace. ``applied`` lists the
    (scope, id) pairs migrated during this load, in execution order.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    settings: AppSettings
    global_doc: ConfigDocument
    project: Optional[ConfigDocument] = None
    applied: List[Tuple[MigrationScope, str]] = Field(default_factory=list)

    def documents(self) -> List[ConfigDocument]:
        docs = [self.global_doc]
        if self.project is not None:
            docs.append(self.project)
        return docs

    def document(self, scope: MigrationScope) -> Optional[ConfigDocument]:
        return self.global_doc if scope is MigrationScope.GLOBAL else self.project


__all__ = [
    "AppSettings",
    "ConfigDocument",
    "ConfigState",
    "ValidationResult",
    "LEDGER_KEY",
    "LEGACY_VERSION_KEY",
    "default_config_dir",
]
