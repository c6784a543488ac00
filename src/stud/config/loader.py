"""
Configuration loader for stud.

Reads and writes the two YAML configuration documents:

- global: <config dir>/config.yml (default ~/.config/stud/config.yml)
- project: <git dir>/stud.config, only inside a git workspace

Each file holds the configuration keys plus the applied-migrations
ledger under the reserved ``applied_migrations`` key.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from stud.exceptions import ConfigError
from stud.migrations.base import MigrationScope
from stud.migrations.registry import MigrationRegistry, default_registry
from stud.utils.logger import get_logger
from stud.utils.paths import find_git_dir, safe_write
from .models import LEDGER_KEY, LEGACY_VERSION_KEY, AppSettings, ConfigDocument

logger = get_logger(__name__)

PROJECT_CONFIG_NAME = "stud.config"

# Files hold API tokens
CONFIG_FILE_MODE = 0o600


class ConfigLoader:
    """
    Locates, parses and persists configuration documents.

    Args:
        settings: Application settings (global config directory)
        cwd: Directory used to find the git workspace (defaults to cwd)
        registry: Migration registry, used to import legacy ledgers
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        cwd: Optional[Path] = None,
        registry: Optional[MigrationRegistry] = None,
    ) -> None:
        self.settings = settings or AppSettings.from_env()
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()
        self.registry = registry or default_registry()

    @property
    def global_path(self) -> Path:
        return self.settings.global_config_path

    @property
    def project_path(self) -> Optional[Path]:
        """Project config path, or None outside a git workspace."""
        git_dir = find_git_dir(self.cwd)
        return git_dir / PROJECT_CONFIG_NAME if git_dir else None

    def path_for(self, scope: MigrationScope) -> Optional[Path]:
        scope = MigrationScope.parse(scope)
        return self.global_path if scope is MigrationScope.GLOBAL else self.project_path

    def load(self, scope: MigrationScope) -> Optional[ConfigDocument]:
        """
        Load the document of a scope.

        Returns:
            The parsed document, or None if the file does not exist (or,
            for the project scope, when not inside a git workspace)

        Raises:
            ConfigError: If the file is unreadable or not a YAML mapping
        """
        scope = MigrationScope.parse(scope)
        path = self.path_for(scope)
        if path is None or not path.exists():
            return None

        data = self._load_yaml(path)
        document = self._to_document(scope, data, path)
        logger.debug(
            f"Loaded {scope.value} config from {path}",
            keys=len(document.values),
            applied=len(document.applied_migrations),
        )
        return document

    def new_document(self, scope: MigrationScope) -> Optional[ConfigDocument]:
        """
        A fresh, unsaved document for a scope.

        New documents are written in the current schema, so every known
        migration of the scope is recorded as applied from the start.
        Returns None for the project scope outside a git workspace.
        """
        scope = MigrationScope.parse(scope)
        path = self.path_for(scope)
        if path is None:
            return None
        return ConfigDocument(
            scope=scope,
            path=path,
            applied_migrations={m.id for m in self.registry.all_for_scope(scope)},
        )

    def load_or_new(self, scope: MigrationScope) -> Optional[ConfigDocument]:
        return self.load(scope) or self.new_document(scope)

    def save(self, document: ConfigDocument, backup: bool = False) -> Path:
        """
        Write a document atomically.

        Args:
            document: Document to persist
            backup: Keep a copy of the previous file as ``<name>.backup``

        Returns:
            Path written to
        """
        path = document.path or self.path_for(document.scope)
        if path is None:
            raise ConfigError(
                "Cannot save project configuration outside a git repository",
                suggestion="Run the command from inside a git workspace",
            )

        content = yaml.safe_dump(
            document.to_file_data(),
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
        safe_write(path, content, backup=backup, mode=CONFIG_FILE_MODE)
        if document.path != path:
            document.path = path

        logger.debug(f"Saved {document.scope.value} config to {path}")
        return path

    def _load_yaml(self, path: Path) -> Dict[str, Any]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}", path=str(path)) from e
        except OSError as e:
            raise ConfigError(f"Failed to read {path}: {e}", path=str(path)) from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ConfigError(
                f"Configuration file {path} must contain a YAML mapping, got {type(content).__name__}",
                suggestion="Each line should look like 'KEY: value'",
                path=str(path),
            )
        return content

    def _to_document(self, scope: MigrationScope, data: Dict[str, Any], path: Path) -> ConfigDocument:
        values = dict(data)
        ledger = values.pop(LEDGER_KEY, None)
        legacy_version = values.pop(LEGACY_VERSION_KEY, None)

        if ledger is None:
            applied = set()
            if legacy_version not in (None, "", "0", 0):
                # Older releases stored only the id of the last applied migration
                applied = self.registry.ids_up_to(scope, str(legacy_version))
                logger.info(
                    f"Imported legacy migration version {legacy_version}",
                    scope=scope.value,
                    applied=len(applied),
                )
        elif isinstance(ledger, list) and all(isinstance(i, (str, int)) for i in ledger):
            applied = {str(i) for i in ledger}
        else:
            raise ConfigError(
                f"'{LEDGER_KEY}' in {path} must be a list of migration ids",
                path=str(path),
            )

        try:
            return ConfigDocument(scope=scope, values=values, applied_migrations=applied, path=path)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {path}: {e}", path=str(path)) from e


__all__ = ["ConfigLoader", "PROJECT_CONFIG_NAME", "CONFIG_FILE_MODE"]
