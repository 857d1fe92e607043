"""
Logging for BetterBet.

Every module asks for a child of the "betterbet" logger through get_logger().
Records about a specific round can carry `game` and `round_id` through
`extra=`; the console and file formatters print them as a short tag and the
JSON formatter emits them as fields.
"""

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "betterbet"
DEFAULT_LOG_FILE = Path(__file__).parent.parent.parent / "data" / "betterbet.log"

# Fields shown in the round tag, in this order
ROUND_FIELDS = ("game", "round_id", "error_code")

# Attributes every LogRecord carries; anything else came in through `extra=`
_RESERVED_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class Colors:
    RESET = "\033[0m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


class _TaggedFormatter(logging.Formatter):
    time_format = "%Y-%m-%d %H:%M:%S"

    def round_tag(self, record) -> str:
        parts = [
            f"{field}={getattr(record, field)}"
            for field in ROUND_FIELDS
            if getattr(record, field, None) is not None
        ]
        return f" [{' '.join(parts)}]" if parts else ""

    def body(self, record) -> str:
        text = record.getMessage() + self.round_tag(record)
        if record.exc_info:
            text += "\n" + self.formatException(record.exc_info)
        return text


class ColoredFormatter(_TaggedFormatter):
    """Console lines colored by level."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.GRAY,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.MAGENTA,
    }

    def format(self, record):
        color = self.LEVEL_COLORS.get(record.levelno, Colors.RESET)
        when = self.formatTime(record, self.time_format)
        return (
            f"{Colors.GRAY}{when}{Colors.RESET} | "
            f"{color}{record.levelname:<8}{Colors.RESET} | "
            f"{Colors.CYAN}{record.name}{Colors.RESET} | {self.body(record)}"
        )


class PlainFormatter(_TaggedFormatter):
    """Same layout as the console, without colors. Used for the log file."""

    def format(self, record):
        when = self.formatTime(record, self.time_format)
        return f"{when} | {record.levelname:<8} | {record.name} | {self.body(record)}"


class JsonFormatter(logging.Formatter):
    """One JSON object per record, `extra=` fields included."""

    def format(self, record):
        payload = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value) for key, value in vars(record).items() if key not in _RESERVED_ATTRS
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _file_handler(path: Path, max_bytes: int, backups: int) -> Optional[logging.Handler]:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backups)
    except OSError as e:
        sys.stderr.write(f"WARNING: file logging disabled ({path}): {e}\n")
        return None
    handler.setFormatter(PlainFormatter())
    return handler


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: str = "INFO",
    log_to_file: bool = False,
    log_file_path: Optional[Path] = None,
    max_file_size: int = 5 * 1024 * 1024,  # 5MB
    backup_count: int = 3,
    formatter: str = "color",
) -> logging.Logger:
    """
    Configure `name` with a console handler and, optionally, a rotating file.
    Calling it again replaces the handlers instead of stacking new ones.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_file_path: defaults to data/betterbet.log under the project root
        formatter: "color" or "json" for the console
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(JsonFormatter() if formatter == "json" else ColoredFormatter())
    logger.addHandler(console)

    if log_to_file:
        handler = _file_handler(log_file_path or DEFAULT_LOG_FILE, max_file_size, backup_count)
        if handler is not None:
            logger.addHandler(handler)

    logger.propagate = False
    return logger


_app_logger: Optional[logging.Logger] = None


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """The application logger, or its child `name` ("ledger", "api", ...)."""
    global _app_logger

    if _app_logger is None:
        _app_logger = setup_logger()
    return _app_logger.getChild(name) if name else _app_logger


def init_logging(
    level: str = "INFO",
    log_to_file: bool = False,
    formatter: str = "color",
    log_file_path: Optional[Path] = None,
):
    """Configure logging from settings. Called once by the application factory."""
    global _app_logger
    _app_logger = setup_logger(
        level=level,
        log_to_file=log_to_file,
        log_file_path=log_file_path,
        formatter=formatter,
    )
    _app_logger.debug(f"Logging initialized at {level} level")
    return _app_logger
