"""
Tests for reading and writing configuration documents.
"""

from __future__ import annotations

import stat
from pathlib import Path

import pytest
import yaml

from stud.config.loader import PROJECT_CONFIG_NAME, ConfigLoader
from stud.config.models import AppSettings, ConfigDocument
from stud.exceptions import ConfigError
from stud.migrations.base import MigrationScope
from stud.migrations.registry import MIGRATIONS

GLOBAL = MigrationScope.GLOBAL
PROJECT = MigrationScope.PROJECT


class TestPaths:
    """Test where configuration files live."""

    def test_global_path_follows_settings(self, loader, config_home):
        """Test that the global file sits in the configured directory."""
        assert loader.global_path == config_home / "config.yml"

    def test_project_path_inside_git_dir(self, loader, workspace):
        """Test that the project file lives in the git metadata directory."""
        assert loader.project_path == (workspace / ".git" / PROJECT_CONFIG_NAME).resolve()

    def test_project_path_from_subdirectory(self, settings, workspace):
        """Test that the workspace is found from a nested directory."""
        nested = workspace / "src" / "pkg"
        nested.mkdir(parents=True)
        loader = ConfigLoader(settings, cwd=nested)
        assert loader.project_path == (workspace / ".git" / PROJECT_CONFIG_NAME).resolve()

    def test_no_project_path_outside_git(self, settings, plain_dir):
        """Test that there is no project file outside a workspace."""
        loader = ConfigLoader(settings, cwd=plain_dir)
        assert loader.project_path is None
        assert loader.load(PROJECT) is None
        assert loader.new_document(PROJECT) is None


class TestLoad:
    """Test parsing configuration files."""

    def test_missing_file_returns_none(self, loader):
        """Test that an absent file is not an error."""
        assert loader.load(GLOBAL) is None

    def test_loads_values_and_ledger(self, loader, write_global):
        """Test that the ledger is separated from the values."""
        write_global({
            "JIRA_URL": "https://acme.atlassian.net",
            "applied_migrations": ["202501100000001", 202501150000001],
        })

        document = loader.load(GLOBAL)

        assert document.values == {"JIRA_URL": "https://acme.atlassian.net"}
        assert document.applied_migrations == {"202501100000001", "202501150000001"}
        assert document.exists

    def test_empty_file_is_empty_document(self, loader, config_home):
        """Test that an empty file loads as an empty mapping."""
        config_home.mkdir(parents=True)
        (config_home / "config.yml").write_text("", encoding="utf-8")

        document = loader.load(GLOBAL)
        assert document.values == {}
        assert document.applied_migrations == set()

    def test_legacy_version_is_imported(self, loader, write_global):
        """Test that migration_version marks every id up to it as applied."""
        write_global({"jiraUrl": "u", "migration_version": "202501100000001"})

        document = loader.load(GLOBAL)

        assert document.applied_migrations == {"202501100000001"}
        assert "migration_version" not in document.values

    def test_legacy_zero_version_means_nothing_applied(self, loader, write_global):
        """Test that a zero high-water mark imports no ids."""
        write_global({"JIRA_URL": "u", "migration_version": "0"})
        assert loader.load(GLOBAL).applied_migrations == set()

    def test_ledger_takes_precedence_over_legacy_version(self, loader, write_global):
        """Test that an explicit ledger wins over migration_version."""
        write_global({
            "migration_version": "202501150000001",
            "applied_migrations": ["202501100000001"],
        })
        assert loader.load(GLOBAL).applied_migrations == {"202501100000001"}

    def test_invalid_yaml(self, loader, config_home):
        """Test that broken YAML raises ConfigError with a suggestion."""
        config_home.mkdir(parents=True)
        (config_home / "config.yml").write_text("JIRA_URL: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            loader.load(GLOBAL)
        assert "Invalid YAML" in exc_info.value.message
        assert exc_info.value.suggestion

    def test_non_mapping_yaml(self, loader, config_home):
        """Test that a list at the top level is rejected."""
        config_home.mkdir(parents=True)
        (config_home / "config.yml").write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            loader.load(GLOBAL)
        assert "mapping" in exc_info.value.message

    def test_malformed_ledger(self, loader, write_global):
        """Test that a ledger which is not a list of ids is rejected."""
        write_global({"applied_migrations": "202501100000001"})
        with pytest.raises(ConfigError):
            loader.load(GLOBAL)

    def test_non_string_keys(self, loader, config_home):
        """Test that non-string keys are rejected."""
        config_home.mkdir(parents=True)
        (config_home / "config.yml").write_text("1: one\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            loader.load(GLOBAL)


class TestNewDocument:
    """Test fresh documents."""

    def test_new_document_is_current(self, loader):
        """Test that a new document starts with every migration applied."""
        document = loader.new_document(GLOBAL)
        expected = {m.id for m in MIGRATIONS if m.scope is GLOBAL}

        assert document.applied_migrations == expected
        assert document.values == {}
        assert not document.exists

    def test_load_or_new_prefers_file(self, loader, write_project):
        """Test that an existing file is loaded rather than replaced."""
        write_project({"PROJECT_KEY": "ABC"})
        assert loader.load_or_new(PROJECT).values == {"PROJECT_KEY": "ABC"}


class TestSave:
    """Test persisting documents."""

    def test_round_trip(self, loader, read_yaml):
        """Test that saved values and ledger load back identically."""
        document = ConfigDocument(
            scope=GLOBAL,
            values={"JIRA_URL": "u", "JIRA_TRANSITION_ENABLED": False},
            applied_migrations={"202501150000001", "202501100000001"},
        )

        path = loader.save(document)
        reloaded = loader.load(GLOBAL)

        assert path == loader.global_path
        assert reloaded.values == document.values
        assert reloaded.applied_migrations == document.applied_migrations
        assert read_yaml(path)["applied_migrations"] == ["202501100000001", "202501150000001"]

    def test_file_is_private(self, loader):
        """Test that configuration files are only readable by the owner."""
        path = loader.save(ConfigDocument(scope=GLOBAL, values={"GITHUB_TOKEN": "t"}))
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_backup_keeps_previous_content(self, loader, write_global):
        """Test that backup=True copies the old file first."""
        path = write_global({"jiraUrl": "old"})
        document = loader.load(GLOBAL)
        document.values = {"JIRA_URL": "new"}

        loader.save(document, backup=True)

        backup = path.with_name("config.yml.backup")
        assert yaml.safe_load(backup.read_text(encoding="utf-8")) == {"jiraUrl": "old"}

    def test_save_project_document(self, loader, workspace):
        """Test that project documents are written into the git dir."""
        document = loader.new_document(PROJECT)
        document.values = {"PROJECT_KEY": "ABC"}

        path = loader.save(document)

        assert path.parent == (workspace / ".git").resolve()
        assert loader.load(PROJECT).values == {"PROJECT_KEY": "ABC"}

    def test_save_project_outside_git_fails(self, settings, plain_dir):
        """Test that a project document without a location cannot be saved."""
        loader = ConfigLoader(settings, cwd=plain_dir)
        with pytest.raises(ConfigError):
            loader.save(ConfigDocument(scope=PROJECT))


class TestAppSettings:
    """Test settings read from the environment."""

    def test_from_env(self, monkeypatch, tmp_path: Path):
        """Test that STUD_* variables are honoured."""
        monkeypatch.setenv("STUD_CONFIG_DIR", str(tmp_path / "cfg"))
        monkeypatch.setenv("STUD_DEBUG", "true")
        monkeypatch.setenv("STUD_LOG_LEVEL", "info")
        monkeypatch.setenv("NO_COLOR", "1")

        settings = AppSettings.from_env()

        assert settings.config_dir == tmp_path / "cfg"
        assert settings.debug is True
        assert settings.log_level == "INFO"
        assert settings.no_color is True
        assert settings.global_config_path == tmp_path / "cfg" / "config.yml"

    def test_unknown_log_level_is_ignored(self, monkeypatch):
        """Test that a bad STUD_LOG_LEVEL falls back to the default."""
        monkeypatch.setenv("STUD_LOG_LEVEL", "chatty")
        assert AppSettings.from_env().log_level == "WARNING"

    def test_rejects_unknown_fields(self):
        """Test that settings are strict about their fields."""
        with pytest.raises(ValueError):
            AppSettings(colour=True)
