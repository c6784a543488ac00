"""
Tests for mandatory configuration validation.
"""

from __future__ import annotations

import pytest

from stud.config.validator import (
    ConfigValidator,
    ensure_can_proceed,
    find_missing_keys,
    is_present,
)
from stud.exceptions import MissingConfigError

COMPLETE_GLOBAL = {
    "JIRA_URL": "https://acme.atlassian.net",
    "JIRA_EMAIL": "dev@acme.test",
    "JIRA_API_TOKEN": "secret",
}
COMPLETE_PROJECT = {"PROJECT_KEY": "ABC", "BASE_BRANCH": "main"}


class TestPresence:
    """Test what counts as a present value."""

    @pytest.mark.parametrize("value", ["x", 0, False, ["a"]])
    def test_present_values(self, value):
        """Test that real values, including False and 0, are present."""
        assert is_present({"K": value}, "K") is True

    @pytest.mark.parametrize("config", [{}, {"K": None}, {"K": ""}, {"K": "   "}])
    def test_missing_values(self, config):
        """Test that absent, None and blank values are missing."""
        assert is_present(config, "K") is False

    def test_alternatives_are_reported_joined(self):
        """Test that an unsatisfied alternatives group is reported as A|B."""
        assert find_missing_keys([("A", "B"), "C"], {"C": 1}) == ["A|B"]
        assert find_missing_keys([("A", "B")], {"B": 1}) == []


class TestValidate:
    """Test general validation."""

    def test_complete_configuration(self):
        """Test that a complete configuration has nothing missing."""
        result = ConfigValidator().validate(COMPLETE_GLOBAL, COMPLETE_PROJECT)
        assert result.can_proceed is True
        assert result.has_missing_keys is False

    def test_missing_global_keys_block(self):
        """Test that missing global keys stop execution, in declaration order."""
        result = ConfigValidator().validate({"JIRA_EMAIL": "dev@acme.test"}, None)
        assert result.missing_global_keys == ["JIRA_URL", "JIRA_API_TOKEN"]
        assert result.can_proceed is False

    def test_missing_project_keys_do_not_block(self):
        """Test that project keys are reported but do not stop execution."""
        result = ConfigValidator().validate(COMPLETE_GLOBAL, {"PROJECT_KEY": "ABC"})
        assert result.missing_project_keys == ["BASE_BRANCH"]
        assert result.can_proceed is True
        assert result.has_missing_keys is True

    def test_absent_project_config_is_skipped(self):
        """Test that no project config means no project findings."""
        result = ConfigValidator().validate(COMPLETE_GLOBAL, None)
        assert result.missing_project_keys == []

    def test_empty_project_config_is_checked(self):
        """Test that an existing but empty project config reports all keys."""
        result = ConfigValidator().validate(COMPLETE_GLOBAL, {})
        assert result.missing_project_keys == ["PROJECT_KEY", "BASE_BRANCH"]

    def test_custom_key_sets(self):
        """Test that the mandatory sets can be replaced."""
        validator = ConfigValidator(global_keys=["LANGUAGE"], project_keys=[])
        assert validator.validate({}, {}).missing_global_keys == ["LANGUAGE"]


class TestValidateCommand:
    """Test per-command requirements."""

    def test_submit_accepts_either_git_token(self):
        """Test that GitHub or GitLab token satisfies submit."""
        validator = ConfigValidator()
        result = validator.validate_command("submit", {"GITLAB_TOKEN": "t"}, {"BASE_BRANCH": "main"})
        assert result.can_proceed is True

    def test_submit_without_tokens(self):
        """Test that submit reports the missing token alternatives."""
        result = ConfigValidator().validate_command("submit", {}, {"BASE_BRANCH": "main"})
        assert result.missing_global_keys == ["GITHUB_TOKEN|GITLAB_TOKEN"]
        assert result.can_proceed is False

    def test_missing_project_keys_block_commands(self):
        """Test that command project requirements are mandatory."""
        result = ConfigValidator().validate_command("items:start", COMPLETE_GLOBAL, None)
        assert result.missing_project_keys == ["BASE_BRANCH"]
        assert result.can_proceed is False

    def test_items_list_needs_only_jira(self):
        """Test that listing items works outside a project."""
        result = ConfigValidator().validate_command("items:list", COMPLETE_GLOBAL, None)
        assert result.can_proceed is True

    def test_unknown_command_needs_nothing(self):
        """Test that commands without requirements always pass."""
        result = ConfigValidator().validate_command("help", {}, None)
        assert result.can_proceed is True
        assert result.has_missing_keys is False


class TestEnsureCanProceed:
    """Test the fail-fast helper."""

    def test_raises_when_blocked(self):
        """Test that a blocking result becomes MissingConfigError."""
        result = ConfigValidator().validate({}, {})
        with pytest.raises(MissingConfigError) as exc_info:
            ensure_can_proceed(result)
        assert exc_info.value.missing_global_keys == ["JIRA_URL", "JIRA_EMAIL", "JIRA_API_TOKEN"]
        assert exc_info.value.missing_project_keys == ["PROJECT_KEY", "BASE_BRANCH"]

    def test_returns_result_when_allowed(self):
        """Test that a passing result is returned unchanged."""
        result = ConfigValidator().validate(COMPLETE_GLOBAL, None)
        assert ensure_can_proceed(result) is result
