"""
debug_logger.py
---------------
Diagnostic console logger with category filtering and formatted output.

Lines can carry the current frame id (see DebugLogger.bind_frames), which
makes it easy to follow a load spread over several ticks.
"""

import sys
from datetime import datetime
from typing import Any, Callable, Dict, Optional


# ===========================================================
# Logger Configuration
# ===========================================================

class LoggerConfig:
    """Controls which components emit log messages and at what verbosity."""

    ENABLE_LOGGING = True
    LOG_LEVEL = "INFO"  # NONE, ERROR, WARN, INFO, VERBOSE

    CATEGORIES = {
        # Core
        "system": True,
        "loading": False,
        "scene": True,
        "timing": False,

        # Level Loop
        "loop": True,
        "stage": True,
        "lifecycle": True,
        "overlay": True,
        "level": False,

        # Events
        "event": True,
        "event_manager": False,
    }

    SHOW_TIMESTAMP = True
    SHOW_FRAME = True

    @classmethod
    def configure(cls, settings: Optional[Dict[str, Any]]) -> None:
        """
        Apply a "logging" config section.

        Example:
            logging:
              level: VERBOSE
              categories: {loading: true, stage: false}
        """
        if not settings:
            return

        cls.ENABLE_LOGGING = bool(settings.get("enabled", cls.ENABLE_LOGGING))

        level = str(settings.get("level", cls.LOG_LEVEL)).upper()
        if level in DebugLogger.LEVEL_VALUES:
            cls.LOG_LEVEL = level

        for name, enabled in (settings.get("categories") or {}).items():
            cls.CATEGORIES[name] = bool(enabled)

        cls.SHOW_TIMESTAMP = bool(settings.get("show_timestamp", cls.SHOW_TIMESTAMP))
        cls.SHOW_FRAME = bool(settings.get("show_frame", cls.SHOW_FRAME))


# ===========================================================
# ANSI Colors
# ===========================================================

class Colors:
    """ANSI escape codes for terminal colors."""
    RESET = "\033[0m"
    WHITE = "\033[97m"
    GREEN = "\033[92m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    BLUE = "\033[94m"
    YELLOW = "\033[93m"
    RED = "\033[91m"


# ===========================================================
# Debug Logger
# ===========================================================

class DebugLogger:
    """Static logger with category filtering and colored output."""

    LINE_LENGTH = 59

    # tag -> (color, level)
    TAGS = {
        "INIT": (Colors.WHITE, "INFO"),
        "SYSTEM": (Colors.MAGENTA, "INFO"),
        "STATE": (Colors.CYAN, "INFO"),
        "ACTION": (Colors.GREEN, "INFO"),
        "TRACE": (Colors.BLUE, "VERBOSE"),
        "WARN": (Colors.YELLOW, "WARN"),
        "FAIL": (Colors.RED, "ERROR"),
    }

    LEVEL_VALUES = {
        "NONE": 0,
        "ERROR": 1,
        "WARN": 2,
        "INFO": 3,
        "VERBOSE": 4
    }

    _frame_source: Optional[Callable[[], int]] = None

    @classmethod
    def bind_frames(cls, ticker) -> None:
        """Prefix log lines with the frame id of `ticker` (None to unbind)."""
        cls._frame_source = (lambda: ticker.frame_id) if ticker is not None else None

    # ===========================================================
    # Core Logging
    # ===========================================================

    @staticmethod
    def _should_log(category: str, level: str) -> bool:
        """Check if message should be logged based on config."""
        if not LoggerConfig.ENABLE_LOGGING:
            return False
        if not LoggerConfig.CATEGORIES.get(category, False):
            return False
        wanted = DebugLogger.LEVEL_VALUES.get(LoggerConfig.LOG_LEVEL, 3)
        return DebugLogger.LEVEL_VALUES[level] <= wanted

    @classmethod
    def _log(cls, tag: str, message: str, category: str):
        color, level = cls.TAGS[tag]
        if not cls._should_log(category, level):
            return
        print(f"{color}{cls._prefix(tag, category)}{message}{Colors.RESET}")

    @classmethod
    def _prefix(cls, tag: str, category: str) -> str:
        parts = []
        if LoggerConfig.SHOW_TIMESTAMP:
            parts.append(f"[{datetime.now().strftime('%H:%M:%S')}]")
        if LoggerConfig.SHOW_FRAME and cls._frame_source is not None:
            parts.append(f"[f{cls._frame_source():05d}]")
        parts.append(f"[{cls._caller()}][{tag}]")
        return " ".join(parts) + " "

    @staticmethod
    def _caller() -> str:
        """Name of the class (or module) that called the public log method."""
        try:
            frame = sys._getframe(4)
        except ValueError:
            return "Unknown"

        owner = frame.f_locals.get("self", frame.f_locals.get("cls"))
        if owner is not None:
            return owner.__name__ if isinstance(owner, type) else type(owner).__name__

        module = frame.f_globals.get("__name__", "unknown").rsplit(".", 1)[-1]
        return "".join(part.capitalize() for part in module.split("_"))

    # ===========================================================
    # Public Log Methods
    # ===========================================================

    @staticmethod
    def init(msg: str = "", category: str = "system"):
        """Initialization log. Empty message prints blank line."""
        if not msg.strip():
            if LoggerConfig.ENABLE_LOGGING:
                print()
            return
        DebugLogger._log("INIT", msg, category)

    @staticmethod
    def system(msg: str, category: str = "system"):
        DebugLogger._log("SYSTEM", msg, category)

    @staticmethod
    def state(msg: str, category: str = "system"):
        DebugLogger._log("STATE", msg, category)

    @staticmethod
    def action(msg: str, category: str = "system"):
        DebugLogger._log("ACTION", msg, category)

    @staticmethod
    def trace(msg: str, category: str = "stage"):
        """Verbose trace log (shown at VERBOSE only)."""
        DebugLogger._log("TRACE", msg, category)

    @staticmethod
    def warn(msg: str, category: str = "system"):
        DebugLogger._log("WARN", msg, category)

    @staticmethod
    def fail(msg: str, category: str = "system"):
        DebugLogger._log("FAIL", msg, category)

    # ===========================================================
    # Section Formatting
    # ===========================================================

    @staticmethod
    def section(title: str):
        """Print a section header."""
        if not LoggerConfig.ENABLE_LOGGING:
            return
        line = "─" * DebugLogger.LINE_LENGTH
        title_line = f"[{title}]".center(DebugLogger.LINE_LENGTH)
        print(f"\n{Colors.WHITE}{line}\n{title_line}{Colors.RESET}\n")

    @staticmethod
    def init_entry(module: str, status: str = "OK"):
        """Print a dotted diagnostic entry: '> Module ........ [OK]'."""
        if not LoggerConfig.ENABLE_LOGGING:
            return
        status_color = {
            "OK": Colors.GREEN,
            "LOADING": Colors.CYAN,
            "FAIL": Colors.RED,
        }.get(status.upper(), Colors.WHITE)

        prefix = f"> {module}"
        status_str = f"[{status}]"
        pad = max(30 - len(prefix), 1)
        dots = max(DebugLogger.LINE_LENGTH - len(prefix) - pad - 1 - len(status_str), 1)

        print(f"{Colors.WHITE}{prefix}{' ' * pad}{'.' * dots} "
              f"{status_color}{status_str}{Colors.RESET}")

    @staticmethod
    def init_sub(detail: str, level: int = 1):
        """Print indented sub-detail."""
        if not LoggerConfig.ENABLE_LOGGING:
            return
        print(f"{' ' * (level * 4)}• {Colors.WHITE}{detail}{Colors.RESET}")
