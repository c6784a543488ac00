"""
Secret key policy: decides which configuration values must never be shown.

Used by every display path (config show, config validate) before
rendering. Redaction works on a copy and keeps the document's shape;
only secret values are replaced.
"""

from __future__ import annotations

import re
from typing import Any, Mapping
from urllib.parse import urlsplit

from stud.utils.logger import get_logger

logger = get_logger(__name__)

REDACTED_PLACEHOLDER = "<REDACTED>"

# Keys known to hold credentials
KNOWN_SECRET_KEYS = frozenset({
    "JIRA_API_TOKEN",
    "GITHUB_TOKEN",
    "GITLAB_TOKEN",
    "GIT_TOKEN",
})

# Keys known to be safe even though they match a secret pattern (e.g. *_KEY)
KNOWN_PUBLIC_KEYS = frozenset({
    "GIT_PROVIDER",
    "JIRA_URL",
    "JIRA_EMAIL",
    "LANGUAGE",
    "PROJECT_KEY",
    "JIRA_PROJECT_KEY",
    "TRANSITION_ID",
    "BASE_BRANCH",
    "JIRA_TRANSITION_ENABLED",
})

# Fallback for unknown or future secret keys, matched case-insensitively
SECRET_KEY_PATTERNS = ("TOKEN", "SECRET", "PASSWORD", "KEY")

_NON_ALNUM = re.compile(r"[^A-Z0-9]")


def _normalize(key: str) -> str:
    # 'projectKey', 'project-key' and 'PROJECT_KEY' all compare equal
    return _NON_ALNUM.sub("", key.upper())


_SECRET_LOOKUP = frozenset(_normalize(k) for k in KNOWN_SECRET_KEYS)
_PUBLIC_LOOKUP = frozenset(_normalize(k) for k in KNOWN_PUBLIC_KEYS)


def is_secret_key(key: str) -> bool:
    """
    Whether a configuration key holds a secret.

    Known secrets win, then known public keys, then the substring
    patterns (TOKEN, SECRET, PASSWORD, KEY) in any case.
    """
    normalized = _normalize(key)
    if normalized in _SECRET_LOOKUP:
        return True
    if normalized in _PUBLIC_LOOKUP:
        return False

    key_upper = key.upper()
    return any(pattern in key_upper for pattern in SECRET_KEY_PATTERNS)


def is_credential_url(value: Any) -> bool:
    """True for a URL string with a query string, which may embed a credential."""
    if not isinstance(value, str) or "?" not in value:
        return False
    try:
        parts = urlsplit(value.strip())
    except ValueError:
        return False
    return bool(parts.scheme and parts.netloc and parts.query)


def is_url_key(key: str) -> bool:
    """True for keys that name a URL (JIRA_URL, webhookUrl, ...)."""
    return "URL" in key.upper()


def _should_redact_value(key: str, value: Any) -> bool:
    # Any "?" under a URL key counts, with or without a scheme
    if is_url_key(key) and isinstance(value, str) and "?" in value:
        return True
    return is_credential_url(value)


def redact(config: Mapping[str, Any]) -> dict[str, Any]:
    """
    Copy of ``config`` safe for display.

    Secret keys get REDACTED_PLACEHOLDER whatever their value. Any URL
    value with a query string is redacted too, regardless of its key, and
    so is any value containing "?" under a URL key.
    Nested mappings are redacted recursively. Values of other shapes
    under non-secret keys are passed through and logged as a warning.
    """
    result: dict[str, Any] = {}

    for key, value in config.items():
        if is_secret_key(str(key)):
            result[key] = REDACTED_PLACEHOLDER
        elif _should_redact_value(str(key), value):
            result[key] = REDACTED_PLACEHOLDER
        elif isinstance(value, Mapping):
            result[key] = redact(value)
        elif value is None or isinstance(value, (str, bool, int, float)):
            result[key] = value
        else:
            logger.warning(
                f"Value of {key} is a {type(value).__name__} and was not inspected for secrets",
            )
            result[key] = value

    return result


__all__ = [
    "REDACTED_PLACEHOLDER",
    "KNOWN_SECRET_KEYS",
    "KNOWN_PUBLIC_KEYS",
    "SECRET_KEY_PATTERNS",
    "is_secret_key",
    "is_credential_url",
    "is_url_key",
    "redact",
]
