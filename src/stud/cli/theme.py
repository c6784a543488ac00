"""
Rich theme configuration for the stud CLI.

Defines the color palette and the semantic styles used by the console,
tables and log output.
"""

from rich.theme import Theme

# Stud color palette
PRIMARY = "#00A6FB"    # Bright blue for primary actions
SUCCESS = "#52C41A"    # Green for successful operations
WARNING = "#FAAD14"    # Orange for warnings
ERROR = "#FF4D4F"      # Red for errors
INFO = "#1890FF"       # Light blue for information
MUTED = "#8C8C8C"      # Gray for secondary text
ACCENT = "#722ED1"     # Purple for highlights

stud_theme = Theme({
    # Core semantic colors
    "primary": PRIMARY,
    "success": SUCCESS,
    "warning": WARNING,
    "error": ERROR,
    "info": INFO,
    "muted": MUTED,
    "accent": ACCENT,

    # Status indicators
    "success.text": f"bold {SUCCESS}",
    "warning.text": f"bold {WARNING}",
    "error.text": f"bold {ERROR}",
    "info.text": f"bold {INFO}",

    # UI Components
    "panel.title": f"bold {PRIMARY}",
    "panel.border": PRIMARY,
    "table.header": f"bold {PRIMARY}",
    "table.border": MUTED,

    # Special emphasis
    "highlight": f"bold {ACCENT}",
    "dim": MUTED,
    "bright": f"bold {PRIMARY}",
    "redacted": f"italic {WARNING}",

    # Migration status
    "status.complete": f"bold {SUCCESS}",
    "status.failed": f"bold {ERROR}",
    "status.pending": f"bold {WARNING}",
})

__all__ = ["stud_theme", "PRIMARY", "SUCCESS", "WARNING", "ERROR", "INFO", "MUTED", "ACCENT"]
