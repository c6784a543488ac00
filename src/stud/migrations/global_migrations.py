"""Transforms for the global configuration (~/.config/stud/config.yml)."""

from __future__ import annotations

import re
from typing import Any

from stud.migrations.base import Config

GIT_PROVIDER_TOKEN_KEYS = {
    "github": "GITHUB_TOKEN",
    "gitlab": "GITLAB_TOKEN",
}

# A digit only ends a word before a capitalised word, so S3BUCKET stays whole
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z])(?=[A-Z])|(?<=[0-9])(?=[A-Z][a-z])")
_SEPARATORS = re.compile(r"[^A-Za-z0-9]+")


def canonical_key(key: str) -> str:
    """Upper snake case form of a key: 'jiraUrl' and 'jira-url' become 'JIRA_URL'."""
    key = _CAMEL_BOUNDARY.sub("_", key.strip())
    return _SEPARATORS.sub("_", key).strip("_").upper()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# 202501100000001: canonical key casing (prerequisite)

def canonical_casing_up(config: Config) -> Config:
    """Rename every key to upper snake case.

    Later migrations look keys up by their canonical name, so this runs
    first. When two spellings of one key exist, the one already in
    canonical form wins; otherwise the first non-blank value is kept.
    Lowercase reserved keys (the ledger) are left to the loader.
    """
    result: Config = {}
    for key, value in config.items():
        canonical = canonical_key(key) or key
        if canonical == key:
            result[canonical] = value
    for key, value in config.items():
        canonical = canonical_key(key) or key
        if canonical == key:
            continue
        if canonical not in result or _is_blank(result[canonical]):
            result[canonical] = value
    return result


def canonical_casing_down(config: Config) -> Config:
    # Original spellings are not recorded, nothing to restore
    return dict(config)


# 202501150000001: GIT_TOKEN/GIT_PROVIDER -> GITHUB_TOKEN/GITLAB_TOKEN

def git_token_format_up(config: Config) -> Config:
    """Move the legacy single git token to a provider specific key.

    Without a token there is nothing to migrate. Without a recognised
    provider the token is kept as is so the user can fix it by hand.
    """
    token = config.get("GIT_TOKEN")
    if not isinstance(token, str) or not token.strip():
        return config

    provider = config.get("GIT_PROVIDER")
    new_key = GIT_PROVIDER_TOKEN_KEYS.get(provider) if isinstance(provider, str) else None
    if new_key is None:
        return config

    if _is_blank(config.get(new_key)):
        config[new_key] = token.strip()

    config.pop("GIT_PROVIDER", None)
    config.pop("GIT_TOKEN", None)
    return config


def git_token_format_down(config: Config) -> Config:
    """Rebuild GIT_TOKEN/GIT_PROVIDER from whichever provider token exists.

    Lossy: with both tokens present only the GitHub one is moved back.
    """
    if "GIT_TOKEN" in config:
        return config

    for provider, key in GIT_PROVIDER_TOKEN_KEYS.items():
        if key in config:
            config["GIT_TOKEN"] = config.pop(key)
            config["GIT_PROVIDER"] = provider
            break
    return config


__all__ = [
    "GIT_PROVIDER_TOKEN_KEYS",
    "canonical_key",
    "canonical_casing_up",
    "canonical_casing_down",
    "git_token_format_up",
    "git_token_format_down",
]
