"""Transforms for the per-repository configuration (<git dir>/stud.config)."""

from __future__ import annotations

from stud.migrations.base import Config

# Legacy camelCase keys written by older releases
PROJECT_KEY_RENAMES = {
    "projectKey": "PROJECT_KEY",
    "transitionId": "TRANSITION_ID",
    "baseBranch": "BASE_BRANCH",
}


# 202502010000001: camelCase project keys -> upper snake case

def project_key_casing_up(config: Config) -> Config:
    """Rename the legacy project keys; an existing new key is never overwritten."""
    for old, new in PROJECT_KEY_RENAMES.items():
        if old not in config:
            continue
        value = config.pop(old)
        config.setdefault(new, value)
    return config


def project_key_casing_down(config: Config) -> Config:
    for old, new in PROJECT_KEY_RENAMES.items():
        if new in config and old not in config:
            config[old] = config.pop(new)
    return config


__all__ = [
    "PROJECT_KEY_RENAMES",
    "project_key_casing_up",
    "project_key_casing_down",
]
