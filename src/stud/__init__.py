"""
stud - a developer workflow CLI over Jira, git and pull requests.

This package holds the configuration lifecycle: versioned migrations of
the global and project configuration files, secret redaction for
display, and validation of mandatory keys before a command runs.
"""

__version__ = "0.1.0"
__description__ = "Developer workflow CLI: branch from issues, commit conventionally, submit pull requests"

# Package metadata
__all__ = [
    "__version__",
    "__description__",
]
