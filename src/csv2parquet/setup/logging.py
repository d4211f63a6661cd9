import logging
import sys
import threading
from datetime import datetime
from dotenv import load_dotenv
from os import getenv, makedirs, path
from typing import Optional, Union
from pythonjsonlogger import jsonlogger

from ..utils.misc import clear_latest_items

# Constants
LOG_FILES_HORIZON = 5
ROOT_LOGGER_NAME = "csv2parquet"
FIELDS = [
    "name",
    "process",
    "processName",
    "threadName",
    "thread",
    "asctime",
    "created",
    "relativeCreated",
    "msecs",
    "pathname",
    "module",
    "filename",
    "funcName",
    "levelno",
    "levelname",
    "message",
]
CONSOLE_ENVIRONMENTS = ("development", "testing")

# Load environment variables
load_dotenv()


def parse_log_level(level: Union[str, int, None]) -> int:
    """Map a level name ("debug", "warn", ...) to a logging level, defaulting to INFO."""
    if isinstance(level, int):
        return level
    if not level:
        return logging.INFO

    name = level.strip().upper()
    if name == "WARN":
        name = "WARNING"
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


class LoggingConfigurator:
    """
    Encapsulated logging configuration with environment-specific setups,
    thread-safe configuration, and flexible handler management.

    The console handler is attached in development and testing environments;
    JSON file handlers are attached whenever a log directory is given.
    """

    def __init__(
        self,
        environment: Optional[str] = None,
        level: Union[str, int, None] = None,
        log_dir: Optional[str] = "logs",
    ):
        self.environment = environment or getenv("ENVIRONMENT", "development")
        self.level = parse_log_level(level)
        self.log_dir = log_dir
        self.root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        self._configured = False
        self._lock = threading.Lock()

    def configure(self):
        """Configure logging once globally (thread-safe)."""
        with self._lock:
            if self._configured:
                return

            self.root_logger.handlers.clear()
            self.root_logger.setLevel(self.level)

            if self.environment in CONSOLE_ENVIRONMENTS:
                console_handler = self._create_console_handler(self._create_console_formatter())
                self.root_logger.addHandler(console_handler)

            if self.log_dir:
                error_handler, info_handler = self._create_file_handlers(self._create_json_formatter())
                self.root_logger.addHandler(error_handler)
                self.root_logger.addHandler(info_handler)

            self._configured = True

    def _create_json_formatter(self) -> jsonlogger.JsonFormatter:
        """Create JSON formatter for structured logging."""
        json_format = " ".join(map(lambda field_name: f"%({field_name})s", FIELDS))
        return jsonlogger.JsonFormatter(json_format)

    def _create_console_formatter(self) -> logging.Formatter:
        """Create console formatter with full timestamps."""
        return logging.Formatter('%(asctime)s %(levelname)s:%(name)s:%(message)s')

    def _create_console_handler(self, formatter: logging.Formatter) -> logging.Handler:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        handler.setLevel(self.level)
        return handler

    def _create_file_handlers(self, formatter: jsonlogger.JsonFormatter) -> tuple:
        """Create error and info file handlers under <log_dir>/<date>/<HH_MM>/."""
        now = datetime.now()
        log_root_path = path.join(self.log_dir, now.strftime("%Y-%m-%d"))

        if path.exists(log_root_path):
            clear_latest_items(log_root_path, LOG_FILES_HORIZON)

        base_path = path.join(log_root_path, now.strftime("%H_%M"))
        makedirs(base_path, exist_ok=True)

        error_handler = logging.FileHandler(path.join(base_path, "error_log.log"), mode="a")
        error_handler.setFormatter(formatter)
        error_handler.setLevel(logging.ERROR)

        info_handler = logging.FileHandler(path.join(base_path, "info_log.log"), mode="a")
        info_handler.setFormatter(formatter)
        info_handler.setLevel(min(self.level, logging.INFO))

        return error_handler, info_handler

    def reconfigure(
        self,
        environment: Optional[str] = None,
        level: Union[str, int, None] = None,
        log_dir: Optional[str] = None,
    ):
        """Reconfigure logging (useful for testing or runtime changes)."""
        if environment:
            self.environment = environment
        if level is not None:
            self.level = parse_log_level(level)
        if log_dir is not None:
            self.log_dir = log_dir or None
        for handler in list(self.root_logger.handlers):
            handler.close()
        self._configured = False
        self.configure()


_configurator = LoggingConfigurator()


def configure_logging(
    environment: Optional[str] = None,
    level: Union[str, int, None] = None,
    log_dir: Optional[str] = None,
) -> logging.Logger:
    """Configure the package logger from application settings. Called by the CLI."""
    _configurator.reconfigure(environment=environment, level=level, log_dir=log_dir)
    return _configurator.root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the package namespace.

    Handlers are only attached by `configure_logging`, so importing the
    library never touches the console or the file system.
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


logger = get_logger(ROOT_LOGGER_NAME)
