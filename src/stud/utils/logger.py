"""
Stud logging infrastructure using loguru with Rich integration.

Console output goes to stderr through a Rich console so it never mixes
with command output; a JSON log file with rotation keeps the full
history. Sensitive values are scrubbed from every message.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional, TYPE_CHECKING

from loguru import logger
from rich.console import Console
from rich.markup import escape

if TYPE_CHECKING:
    from stud.config.models import AppSettings


def _get_log_level_colors() -> Dict[str, str]:
    """Get log level colors with lazy import to avoid circular dependency."""
    from stud.cli.theme import SUCCESS, WARNING, ERROR, INFO, MUTED

    return {
        "TRACE": MUTED,
        "DEBUG": MUTED,
        "INFO": INFO,
        "SUCCESS": SUCCESS,
        "WARNING": WARNING,
        "ERROR": ERROR,
        "CRITICAL": ERROR,
    }


# Sensitive data patterns to filter from logs
SENSITIVE_PATTERNS = [
    re.compile(r'token[\'"\s]*[:=][\'"\s]*([^\s\'",}]+)', re.IGNORECASE),
    re.compile(r'password[\'"\s]*[:=][\'"\s]*([^\s\'",}]+)', re.IGNORECASE),
    re.compile(r'secret[\'"\s]*[:=][\'"\s]*([^\s\'",}]+)', re.IGNORECASE),
    re.compile(r'bearer\s+([^\s\'",}]+)', re.IGNORECASE),
    re.compile(r'authorization[\'"\s]*[:=][\'"\s]*([^\s\'",}]+)', re.IGNORECASE),
    re.compile(r'https?://[^\s?]+\?([^\s\'",}]+)', re.IGNORECASE),
]


def filter_sensitive_data(message: str) -> str:
    """
    Filter sensitive data from log messages.

    Args:
        message: Log message to filter

    Returns:
        Filtered message with sensitive data replaced
    """
    filtered = message

    for pattern in SENSITIVE_PATTERNS:
        filtered = pattern.sub(lambda m: m.group(0).replace(m.group(1), '[REDACTED]'), filtered)

    return filtered


def scrub_record(record: Dict[str, Any]) -> None:
    """Patcher that scrubs the message before any sink sees it."""
    record["message"] = filter_sensitive_data(record["message"])


def console_formatter(record: Dict[str, Any]) -> str:
    """
    Format log records for Rich console output.

    Args:
        record: Log record dictionary

    Returns:
        Formatted string for console display
    """
    from stud.cli.theme import INFO
    level_color = _get_log_level_colors().get(record['level'].name, INFO)

    time_str = record['time'].strftime('%H:%M:%S')
    level_str = f"{record['level'].name:<8}"

    logger_name = record['extra'].get('name', record['name'])
    if logger_name.startswith('stud.'):
        logger_name = logger_name[5:]

    message = escape(filter_sensitive_data(record["message"]))

    parts = [
        f"[dim]{time_str}[/dim]",
        f"[bold {level_color}]{level_str}[/bold {level_color}]",
        f"[dim]{logger_name:<20}[/dim]",
        message,
    ]

    context_parts = [
        f"{key}={escape(filter_sensitive_data(str(value)))}"
        for key, value in record['extra'].items()
        if key != 'name'
    ]
    if context_parts:
        parts.append(f"[dim]({', '.join(context_parts)})[/dim]")

    # loguru treats the returned string as a format template
    return " | ".join(parts).replace('{', '{{').replace('}', '}}') + "\n"


def setup_logging(settings: Optional[AppSettings] = None) -> None:
    """
    Setup loguru with Rich console output and JSON file logging.

    Args:
        settings: Application settings. If None, they are read from the environment
    """
    from stud.config.models import AppSettings

    settings = settings or AppSettings.from_env()

    logger.remove()
    logger.configure(patcher=scrub_record)

    log_level = 'DEBUG' if settings.debug else settings.log_level

    console = Console(
        stderr=True,
        no_color=settings.no_color or None,
        width=None,
    )

    def console_sink(message: str) -> None:
        """Rich console sink function."""
        console.print(message.rstrip("\n"), highlight=False, markup=True)

    logger.add(
        console_sink,
        format=console_formatter,
        level=log_level,
        colorize=False,  # Colors are handled in the formatter
        backtrace=settings.debug,
        diagnose=settings.debug,
    )

    if settings.log_to_file:
        log_dir = settings.config_dir / 'logs'
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / 'stud.log'

        logger.add(
            log_file,
            format="{message}",
            serialize=True,
            level='DEBUG',  # Always log everything to file
            rotation='10 MB',
            retention='7 days',
            compression='gz',
            backtrace=True,
            diagnose=False,  # Variable values may hold tokens
        )

    logger.debug(
        "Stud logging initialized",
        console_level=log_level,
        debug_mode=settings.debug,
    )


def get_logger(name: str) -> "LoggerAdapter":
    """
    Get a logger instance for the given module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        LoggerAdapter instance with context support
    """
    return LoggerAdapter(logger.bind(name=name), name)


class LoggerAdapter:
    """
    Adapter that provides context binding on top of the loguru logger.
    """

    def __init__(self, logger_instance: Any, name: str):
        self._logger = logger_instance
        self.name = name

    def bind(self, **kwargs: Any) -> "LoggerAdapter":
        """Bind additional context to the logger."""
        return LoggerAdapter(self._logger.bind(**kwargs), self.name)

    def _log(self, level: str, message: str, context: Dict[str, Any]) -> None:
        # Context is bound, not passed as format kwargs: messages may contain braces
        target = self._logger.bind(**context) if context else self._logger
        target.opt(depth=2).log(level, message)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log("DEBUG", message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log("INFO", message, kwargs)

    def success(self, message: str, **kwargs: Any) -> None:
        self._log("SUCCESS", message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log("WARNING", message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log("ERROR", message, kwargs)


__all__ = [
    'setup_logging',
    'get_logger',
    'LoggerAdapter',
    'filter_sensitive_data',
    'scrub_record',
]
