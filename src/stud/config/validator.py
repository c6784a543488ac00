"""
Mandatory configuration checks.

The validator only reports facts; callers decide whether missing
project keys are fatal for what they are about to do.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from stud.config.models import ValidationResult
from stud.exceptions import MissingConfigError

# A requirement is a key, or a tuple of keys of which any one will do
Requirement = Union[str, Tuple[str, ...]]

MANDATORY_GLOBAL_KEYS: Tuple[str, ...] = ("JIRA_URL", "JIRA_EMAIL", "JIRA_API_TOKEN")
MANDATORY_PROJECT_KEYS: Tuple[str, ...] = ("PROJECT_KEY", "BASE_BRANCH")

GIT_TOKEN_KEYS: Tuple[str, ...] = ("GITHUB_TOKEN", "GITLAB_TOKEN")

COMMAND_REQUIREMENTS: Dict[str, Dict[str, Sequence[Requirement]]] = {
    "items:list": {
        "global": ("JIRA_URL", "JIRA_EMAIL", "JIRA_API_TOKEN"),
        "project": (),
    },
    "items:start": {
        "global": ("JIRA_URL", "JIRA_EMAIL", "JIRA_API_TOKEN"),
        "project": ("BASE_BRANCH",),
    },
    "submit": {
        "global": (GIT_TOKEN_KEYS,),
        "project": ("BASE_BRANCH",),
    },
}


def is_present(config: Mapping[str, Any], key: str) -> bool:
    """A key counts as present when it exists and is not None or blank."""
    if key not in config:
        return False
    value = config[key]
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def find_missing_keys(requirements: Sequence[Requirement], config: Mapping[str, Any]) -> List[str]:
    """
    Requirements not satisfied by ``config``, in declaration order.

    An alternatives group is reported as 'A|B'.
    """
    missing = []
    for requirement in requirements:
        keys = (requirement,) if isinstance(requirement, str) else tuple(requirement)
        if not any(is_present(config, key) for key in keys):
            missing.append("|".join(keys))
    return missing


class ConfigValidator:
    """Checks configuration documents against the mandatory key sets."""

    def __init__(
        self,
        global_keys: Sequence[Requirement] = MANDATORY_GLOBAL_KEYS,
        project_keys: Sequence[Requirement] = MANDATORY_PROJECT_KEYS,
        command_requirements: Optional[Dict[str, Dict[str, Sequence[Requirement]]]] = None,
    ) -> None:
        self.global_keys = tuple(global_keys)
        self.project_keys = tuple(project_keys)
        self.command_requirements = (
            COMMAND_REQUIREMENTS if command_requirements is None else command_requirements
        )

    def validate(
        self,
        global_config: Mapping[str, Any],
        project_config: Optional[Mapping[str, Any]],
    ) -> ValidationResult:
        """
        Report missing mandatory keys.

        Project validation is skipped (not failed) when there is no project
        config. ``can_proceed`` depends on global keys only.
        """
        missing_global = find_missing_keys(self.global_keys, global_config)
        missing_project = (
            find_missing_keys(self.project_keys, project_config)
            if project_config is not None
            else []
        )
        return ValidationResult(
            missing_global_keys=missing_global,
            missing_project_keys=missing_project,
            can_proceed=not missing_global,
        )

    def validate_command(
        self,
        command: str,
        global_config: Mapping[str, Any],
        project_config: Optional[Mapping[str, Any]],
    ) -> ValidationResult:
        """
        Check the keys one command needs. Unknown commands need nothing.

        Here a missing project config counts as empty, and ``can_proceed``
        needs both scopes satisfied.
        """
        requirements = self.command_requirements.get(command, {})
        missing_global = find_missing_keys(requirements.get("global", ()), global_config)
        missing_project = find_missing_keys(requirements.get("project", ()), project_config or {})
        return ValidationResult(
            missing_global_keys=missing_global,
            missing_project_keys=missing_project,
            can_proceed=not missing_global and not missing_project,
        )


def ensure_can_proceed(result: ValidationResult) -> ValidationResult:
    """
    Raise MissingConfigError when the result blocks execution.

    Returns the result unchanged otherwise, for chaining.
    """
    if not result.can_proceed:
        raise MissingConfigError(result.missing_global_keys, result.missing_project_keys)
    return result


__all__ = [
    "COMMAND_REQUIREMENTS",
    "ConfigValidator",
    "GIT_TOKEN_KEYS",
    "MANDATORY_GLOBAL_KEYS",
    "MANDATORY_PROJECT_KEYS",
    "Requirement",
    "ensure_can_proceed",
    "find_missing_keys",
    "is_present",
]
