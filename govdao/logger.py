"""
GovDAO Logging System
=====================

Process-wide logging for the ledger, the governor and the timelock, built on
the standard `logging` package with a `rich` console handler.

Governance logs carry text that any token holder controls (proposal
descriptions, vote reasons), so every message passes through
``SafeMessageFormatter`` before it reaches a terminal or a log file.

Usage:
    >>> from govdao.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Governor deployed")
"""

import logging
import logging.handlers
import re
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    LOG_LEVEL,
    LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOG_MAX_FILE_SIZE,
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_FILE_OUTPUT,
)
from .exceptions import ConfigurationError


PROJECT_ROOT = Path(__file__).parent.parent
LOG_FILE_PATH = PROJECT_ROOT / "logs" / "govdao.log"


# ══════════════════════════════════════════════════════════════════════
#  FORMAT CHECKS
# ══════════════════════════════════════════════════════════════════════

def check_log_format(log_format: str) -> str:
    """
    Require a %-style record format that renders and includes the message.

    Raises:
        ConfigurationError: if *log_format* cannot format a record
    """
    if "%(message)s" not in log_format:
        raise ConfigurationError(f"Log format must include %(message)s: {log_format!r}")
    record = logging.LogRecord(
        name="govdao", level=logging.INFO, pathname="", lineno=0,
        msg="check", args=(), exc_info=None,
    )
    try:
        logging.Formatter(fmt=log_format).format(record)
    except (ValueError, KeyError, TypeError) as e:
        raise ConfigurationError(f"Invalid log format {log_format!r}: {e}") from e
    return log_format


def check_date_format(date_format: str) -> str:
    """
    Require a strftime format with at least one directive.

    Raises:
        ConfigurationError: if *date_format* has no directive or is rejected by strftime
    """
    if not re.search(r"%[A-Za-z]", date_format):
        raise ConfigurationError(f"Date format has no strftime directive: {date_format!r}")
    try:
        time.strftime(date_format, time.gmtime(0))
    except ValueError as e:
        raise ConfigurationError(f"Invalid date format {date_format!r}: {e}") from e
    return date_format


# ══════════════════════════════════════════════════════════════════════
#  FORMATTER & HIGHLIGHTER
# ══════════════════════════════════════════════════════════════════════

class SafeMessageFormatter(logging.Formatter):
    """
    Formatter that neutralises the message part of each record.

    ANSI sequences and control characters are dropped, and line breaks in
    the message are escaped, so a description cannot recolour the terminal
    or forge extra log lines. Tracebacks are left multi-line.
    """

    _ansi_re = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b[@-Z\\-_]")
    _control_re = re.compile(r"[\x00-\x08\x0B-\x1F\x7F]")

    @classmethod
    def sanitize(cls, text: str) -> str:
        if not text:
            return text
        text = cls._ansi_re.sub("", text)
        text = text.replace("\r\n", "\n").replace("\n", "\\n")
        return cls._control_re.sub("", text)

    def formatMessage(self, record: logging.LogRecord) -> str:
        record.message = self.sanitize(record.message)
        return super().formatMessage(record)


class GovDAOLogHighlighter(RegexHighlighter):
    """
    Rich highlighter for governance logs: addresses, fingerprints,
    proposal states and log levels.
    """

    base_style = "govdao."
    highlights = [
        r"(?P<arrow>(\-\->)|(<--)|(→))",
        r"(?P<fingerprint>\b0x[0-9a-fA-F]{64}\b)",
        r"(?P<address>\b0x[0-9a-fA-F]{40}\b)",
        r"(?P<level_critical>\bCRITICAL\b)",
        r"(?P<level_debug>\bDEBUG\b)",
        r"(?P<level_error>\bERROR\b)",
        r"(?P<level_info>\bINFO\b)",
        r"\-\s+\w+\s+-\s+(?P<logger_name>[\w.]+)(?=\s-\s)",
        r"(?P<level_warning>\bWARNING\b)",
        r"(?P<state_good>\b(SUCCEEDED|EXECUTED|DONE)\b)",
        r"(?P<state_bad>\b(DEFEATED|CANCELED|EXPIRED)\b)",
        r"(?P<state_pending>\b(PENDING|ACTIVE|QUEUED|WAITING|READY)\b)",
        r"(?P<timestamp>^(.*?)UTC)",
    ]


GOVDAO_THEME = Theme(
    {
        "govdao.arrow":          "bold yellow",
        "govdao.address":        "cyan",
        "govdao.fingerprint":    "bold cyan",
        "govdao.level_critical": "bold red reverse",
        "govdao.level_debug":    "bold dim",
        "govdao.level_error":    "bold red",
        "govdao.level_info":     "bold green",
        "govdao.level_warning":  "bold yellow",
        "govdao.logger_name":    "magenta",
        "govdao.state_good":     "bold green",
        "govdao.state_bad":      "bold red",
        "govdao.state_pending":  "bold yellow",
        "govdao.timestamp":      "bold cyan",
    }
)


# ══════════════════════════════════════════════════════════════════════
#  LOG MANAGER
# ══════════════════════════════════════════════════════════════════════

class LogManager:
    """
    Singleton owner of the root logger's handlers.

    Configured once on import from the ``.env`` defaults; the ``[logging]``
    config section reconfigures it with ``force=True``.
    """

    _instance: Optional["LogManager"] = None
    _lock: threading.Lock = threading.Lock()

    def __new__(cls) -> "LogManager":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._configured = False
        return cls._instance

    @staticmethod
    def _resolve_formats(
        log_format: Optional[str],
        date_format: Optional[str],
    ) -> Tuple[str, str, List[str]]:
        """Checked formats, falling back to the built-in defaults with a note per fallback."""
        problems = []
        try:
            log_format = check_log_format(log_format or str(LOG_FORMAT))
        except ConfigurationError as e:
            problems.append(str(e))
            log_format = str(LOG_FORMAT.default())
        try:
            date_format = check_date_format(date_format or str(LOG_DATE_FORMAT))
        except ConfigurationError as e:
            problems.append(str(e))
            date_format = str(LOG_DATE_FORMAT.default())
        return log_format, date_format, problems

    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        file_output: Optional[bool] = None,
        log_format: Optional[str] = None,
        date_format: Optional[str] = None,
        force: bool = False,
    ) -> None:
        """
        Install console and file handlers on the root logger.

        Args:
            log_level: Level name; defaults to ``LOG_LEVEL`` from the environment.
            log_file: Rotating log file path; defaults to ``logs/govdao.log``.
            console_output: Attach the console handler.
            file_output: Attach the file handler; defaults to ``LOG_FILE_OUTPUT``.
            log_format: %-style record format; defaults to ``LOG_FORMAT``.
            date_format: strftime format, rendered in UTC; defaults to ``LOG_DATE_FORMAT``.
            force: Replace an existing configuration instead of keeping it.
        """
        with self._lock:
            if self._configured and not force:
                return

            numeric_level = getattr(logging, str(log_level or LOG_LEVEL).upper(), logging.INFO)
            log_format, date_format, problems = self._resolve_formats(log_format, date_format)

            formatter = SafeMessageFormatter(fmt=log_format, datefmt=date_format + " UTC")
            formatter.converter = time.gmtime

            root_logger = logging.getLogger()
            root_logger.setLevel(numeric_level)
            root_logger.handlers.clear()

            if console_output:
                if LOG_CONSOLE_HIGHLIGHTING:
                    handler = RichHandler(
                        console=Console(theme=GOVDAO_THEME, highlight=False),
                        highlighter=GovDAOLogHighlighter(),
                        keywords=[],
                        rich_tracebacks=True,
                        show_path=False,
                        show_time=False,
                        show_level=False,
                        markup=False,
                    )
                else:
                    handler = logging.StreamHandler(sys.stdout)
                handler.setLevel(numeric_level)
                handler.setFormatter(formatter)
                root_logger.addHandler(handler)

            if file_output is None:
                file_output = bool(LOG_FILE_OUTPUT)
            if file_output:
                path = log_file or LOG_FILE_PATH
                path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.handlers.RotatingFileHandler(
                    filename=str(path),
                    maxBytes=LOG_MAX_FILE_SIZE,
                    backupCount=LOG_BACKUP_COUNT,
                    encoding="utf-8",
                )
                file_handler.setLevel(numeric_level)
                file_handler.setFormatter(formatter)
                root_logger.addHandler(file_handler)

            self._configured = True

        for problem in problems:
            logging.getLogger(__name__).warning(f"{problem}; using default")

    def get_logger(self, name: str) -> logging.Logger:
        if not self._configured:
            self.configure()
        return logging.getLogger(name)

    @property
    def is_configured(self) -> bool:
        return self._configured


_manager = LogManager()


def get_logger(name: str) -> logging.Logger:
    """Module logger, configuring the logging system on first use."""
    return _manager.get_logger(name)


_manager.configure()
