"""
Pytest configuration and fixtures for stud testing.

This module provides fixtures for:
- An isolated global configuration directory per test (STUD_CONFIG_DIR)
- Temporary git workspaces for project configuration
- Helpers that write configuration files the way older releases did
- CLI test runners for Typer commands
- Rich console output capturing
"""

from __future__ import annotations

from io import StringIO
from pathlib import Path
from typing import Any, Callable, Dict, Generator, Optional

import pytest
import yaml
from faker import Faker
from rich.console import Console
from typer.testing import CliRunner

from stud.config.loader import ConfigLoader
from stud.config.models import AppSettings
from stud.migrations.base import Migration, MigrationScope
from stud.utils.console import StudConsole

fake = Faker()


@pytest.fixture(autouse=True)
def config_home(tmp_path: Path, monkeypatch) -> Path:
    """
    Point the global configuration at a per-test directory.

    Every test gets its own STUD_CONFIG_DIR so nothing ever touches the
    real ~/.config/stud. File logging is disabled to keep the directory
    limited to configuration files.

    Returns:
        Path: The global configuration directory (not created)
    """
    home = tmp_path / "stud-home"
    monkeypatch.setenv("STUD_CONFIG_DIR", str(home))
    monkeypatch.setenv("STUD_LOG_FILE", "0")
    monkeypatch.delenv("STUD_DEBUG", raising=False)
    monkeypatch.delenv("STUD_LOG_LEVEL", raising=False)
    return home


@pytest.fixture
def settings(config_home: Path) -> AppSettings:
    """Application settings bound to the per-test configuration directory."""
    return AppSettings.from_env()


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch) -> Path:
    """
    Create a git workspace and make it the current directory.

    Only the ``.git`` directory is created; no git binary is needed.

    Returns:
        Path: The workspace root
    """
    root = tmp_path / "repo"
    (root / ".git").mkdir(parents=True)
    monkeypatch.chdir(root)
    return root


@pytest.fixture
def plain_dir(tmp_path: Path, monkeypatch) -> Path:
    """A directory outside any git workspace, made the current directory."""
    directory = tmp_path / "not-a-repo"
    directory.mkdir()
    monkeypatch.chdir(directory)
    return directory


@pytest.fixture
def loader(settings: AppSettings, workspace: Path) -> ConfigLoader:
    """Loader for the per-test global config and the workspace project config."""
    return ConfigLoader(settings, cwd=workspace)


@pytest.fixture
def write_global(config_home: Path) -> Callable[[Dict[str, Any]], Path]:
    """
    Write a raw global configuration file.

    Example:
        def test_legacy(write_global):
            write_global({"jiraUrl": "https://example.atlassian.net"})
    """
    def _write(data: Dict[str, Any]) -> Path:
        config_home.mkdir(parents=True, exist_ok=True)
        path = config_home / "config.yml"
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_project(workspace: Path) -> Callable[[Dict[str, Any]], Path]:
    """Write a raw project configuration file into the workspace git dir."""
    def _write(data: Dict[str, Any]) -> Path:
        path = workspace / ".git" / "stud.config"
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def read_yaml() -> Callable[[Path], Dict[str, Any]]:
    """Read a YAML file back as a dict."""
    def _read(path: Path) -> Dict[str, Any]:
        return yaml.safe_load(path.read_text(encoding="utf-8")) or {}

    return _read


@pytest.fixture
def make_migration() -> Callable[..., Migration]:
    """
    Build a migration with identity transforms unless overridden.

    Example:
        def test_runner(make_migration):
            m = make_migration("001", up=lambda c: {**c, "A": 1})
    """
    def _make(
        migration_id: str,
        scope: MigrationScope = MigrationScope.GLOBAL,
        up: Optional[Callable] = None,
        down: Optional[Callable] = None,
        is_prerequisite: bool = False,
        **kwargs: Any,
    ) -> Migration:
        return Migration(
            id=migration_id,
            description=kwargs.pop("description", f"test migration {migration_id}"),
            scope=scope,
            up=up or (lambda config: config),
            down=down or (lambda config: config),
            is_prerequisite=is_prerequisite,
            **kwargs,
        )

    return _make


@pytest.fixture
def complete_global_config() -> Dict[str, Any]:
    """A global configuration with every mandatory key set."""
    return {
        "JIRA_URL": f"https://{fake.domain_word()}.atlassian.net",
        "JIRA_EMAIL": fake.email(),
        "JIRA_API_TOKEN": f"jira-{fake.sha1()[:24]}",
        "GITHUB_TOKEN": f"ghp_{fake.sha1()[:30]}",
    }


@pytest.fixture
def cli_runner() -> CliRunner:
    """
    Create a Typer CLI test runner.

    Example:
        def test_cli_command(cli_runner):
            result = cli_runner.invoke(app, ["config", "show"])
            assert result.exit_code == 0
    """
    return CliRunner()


@pytest.fixture
def mock_console() -> Generator[tuple[Any, StringIO], None, None]:
    """
    Capture output printed through the stud console.

    Patches the print method of the shared console used by the
    exceptions module and yields a Rich console writing to a buffer.

    Yields:
        tuple[Console, StringIO]: Test console and output buffer
    """
    from stud.cli.theme import stud_theme
    import stud.exceptions

    output_buffer = StringIO()
    test_console = Console(
        file=output_buffer,
        force_terminal=False,
        width=120,
        theme=stud_theme,
    )

    original_print = stud.exceptions.console.print
    stud.exceptions.console.print = test_console.print
    try:
        yield test_console, output_buffer
    finally:
        stud.exceptions.console.print = original_print


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset singleton instances between tests."""
    StudConsole._instance = None
    yield
    StudConsole._instance = None
