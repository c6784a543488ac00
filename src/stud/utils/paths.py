"""
Path utilities for stud.

Locating the git metadata directory of the current workspace and
writing configuration files atomically.
"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from stud.exceptions import StudError


class PathOperationError(StudError):
    """Raised when a path operation fails."""

    def __init__(self, message: str, path: Optional[Path] = None):
        suggestion = "Check file permissions and disk space"
        context = {"path": str(path)} if path else {}
        super().__init__(message, suggestion, context)


def find_git_dir(start_path: Optional[Path] = None) -> Optional[Path]:
    """
    Find the git metadata directory by walking up the directory tree.

    Handles both a regular ``.git`` directory and the ``.git`` file that
    worktrees and submodules use (``gitdir: <path>``).

    Args:
        start_path: Starting directory (defaults to current directory)

    Returns:
        Path to the git directory, or None outside a git workspace

    Example:
        >>> git_dir = find_git_dir()
        >>> if git_dir:
        ...     print(git_dir / "stud.config")
    """
    current = Path(start_path or Path.cwd()).resolve()

    for directory in [current] + list(current.parents):
        candidate = directory / ".git"

        if candidate.is_dir():
            return candidate

        if candidate.is_file():
            try:
                content = candidate.read_text(encoding="utf-8").strip()
            except OSError:
                return None
            if content.startswith("gitdir:"):
                git_dir = Path(content[len("gitdir:"):].strip())
                if not git_dir.is_absolute():
                    git_dir = (directory / git_dir).resolve()
                return git_dir if git_dir.is_dir() else None
            return None

    return None


def safe_write(
    file_path: Path,
    content: str,
    backup: bool = False,
    encoding: str = "utf-8",
    mode: Optional[int] = None,
) -> Optional[Path]:
    """
    Atomic file write with optional backup of the previous content.

    Uses a temporary file in the same directory plus an atomic rename, so
    the file is either completely written or not modified at all.

    Args:
        file_path: Path to file to write
        content: Text to write
        backup: Copy the existing file to ``<name>.backup`` first
        encoding: Text encoding
        mode: Unix permissions for the file

    Returns:
        Path to backup file if created, None otherwise

    Raises:
        PathOperationError: If the write fails
    """
    file_path = Path(file_path)

    try:
        file_path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
    except OSError as e:
        raise PathOperationError(
            f"Failed to create directory: {file_path.parent} - {e}",
            file_path.parent
        ) from e

    backup_path = None
    if backup and file_path.exists():
        backup_path = file_path.with_name(file_path.name + ".backup")
        try:
            shutil.copy2(file_path, backup_path)
        except OSError as e:
            raise PathOperationError(
                f"Failed to create backup: {backup_path} - {e}",
                backup_path
            ) from e

    temp_path = None
    try:
        temp_fd, temp_name = tempfile.mkstemp(
            dir=file_path.parent,
            prefix=f".{file_path.name}.",
            suffix=".tmp"
        )
        temp_path = Path(temp_name)

        with os.fdopen(temp_fd, "w", encoding=encoding) as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        if mode is not None:
            os.chmod(temp_path, mode)

        temp_path.replace(file_path)
        return backup_path

    except OSError as e:
        if temp_path is not None and temp_path.exists():
            temp_path.unlink(missing_ok=True)
        raise PathOperationError(
            f"Failed to write file: {file_path} - {e}",
            file_path
        ) from e


__all__ = ["PathOperationError", "find_git_dir", "safe_write"]
