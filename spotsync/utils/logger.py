"""
Logging configuration and utilities for spotsync
Provides colored console output and file logging with separation between user and technical messages
"""

import functools
import logging
import logging.handlers
import re
import sys
import time
from pathlib import Path
from typing import Optional

import colorama
from colorama import Fore, Style
from tqdm import tqdm

from ..config.settings import get_settings


# Initialize colorama for Windows compatibility
colorama.init()

FILE_FORMAT = '%(asctime)s | %(name)-30s | %(levelname)-8s | %(funcName)-20s | %(message)s'

EXTERNAL_LIBS = [
    'spotipy', 'urllib3', 'requests', 'yt_dlp', 'ytmusicapi', 'lyricsgenius',
    'syncedlyrics', 'httpx', 'httpcore', 'pydub', 'PIL', 'mutagen',
    'urllib3.connectionpool'
]


class ConsoleMessageFilter(logging.Filter):
    """Filter to allow only user-facing messages to console"""

    def __init__(self, verbose: bool = False):
        super().__init__()
        self.verbose = verbose

    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True

        if getattr(record, 'console_output', False):
            return True

        if record.name.endswith('.console'):
            return True

        # Debug mode mirrors technical messages on the console
        return self.verbose


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colored output for console"""

    MESSAGE_COLORS = {
        'WARNING': Fore.YELLOW,
        'ERROR': Fore.RED,
        'CRITICAL': Fore.RED + Style.BRIGHT,
    }

    def __init__(self, fmt: Optional[str] = None, use_colors: bool = True):
        """
        Initialize colored formatter

        Args:
            fmt: Log format string
            use_colors: Whether to use colored output
        """
        super().__init__(fmt or '%(message)s')
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """Format log record, coloring warnings and errors"""
        message = super().format(record)
        color = self.MESSAGE_COLORS.get(record.levelname)
        if self.use_colors and color:
            return f"{color}{message}{Style.RESET_ALL}"
        return message


class ProgressHandler(logging.Handler):
    """Handler that writes through tqdm so progress bars are not torn apart"""

    def __init__(self, stream=None):
        super().__init__()
        self.stream = stream or sys.stderr

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    console_output: bool = True,
    colored_output: bool = True,
    max_size: str = "10MB",
    backup_count: int = 3
) -> None:
    """
    Setup application logging configuration with separated console/file output

    Args:
        level: Logging level for the file handler (DEBUG shows technical messages on console too)
        log_file: Path to log file (None to disable file logging)
        console_output: Enable console logging
        colored_output: Enable colored console output
        max_size: Maximum log file size before rotation
        backup_count: Number of backup log files to keep
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Filter at handler level

    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    if console_output:
        console_handler = ProgressHandler(sys.stdout)
        console_handler.setLevel(logging.DEBUG)
        console_handler.addFilter(ConsoleMessageFilter(verbose=numeric_level <= logging.DEBUG))
        console_handler.setFormatter(ColoredFormatter(fmt='%(message)s', use_colors=colored_output))
        root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=parse_size(max_size),
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        root_logger.addHandler(file_handler)

    for lib in EXTERNAL_LIBS:
        lib_logger = logging.getLogger(lib)
        lib_logger.setLevel(logging.CRITICAL)
        lib_logger.propagate = False

    logging.getLogger('spotsync').debug(
        f"Logging initialized - Level: {level}, Console: {console_output}, File: {log_file}"
    )


def get_current_log_file() -> Optional[Path]:
    """
    Get the current log file path from active file handlers

    Returns:
        Path to current log file or None if no file logging
    """
    for handler in logging.getLogger().handlers:
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            return Path(handler.baseFilename)
    return None


def parse_size(size_str: str) -> int:
    """
    Parse size string to bytes

    Args:
        size_str: Size string like "10MB", "1GB", "500KB"

    Returns:
        Size in bytes
    """
    size_str = size_str.upper().strip()

    multipliers = {
        'B': 1,
        'KB': 1024,
        'MB': 1024 ** 2,
        'GB': 1024 ** 3,
        'TB': 1024 ** 4,
    }

    match = re.match(r'^(\d+(?:\.\d+)?)\s*([KMGT]?B)$', size_str)
    if not match:
        raise ValueError(f"Invalid size format: {size_str}")

    number, unit = match.groups()
    return int(float(number) * multipliers[unit])


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance for a module

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance with console_info, console_warning and progress_update
    """
    logger = logging.getLogger(name)

    def console_info(message: str):
        """Log message that should appear on console for user"""
        logger.info(message, extra={'console_output': True})

    def console_warning(message: str):
        logger.warning(message)

    def progress_update(message: str):
        """Log progress update for console"""
        logger.info(message, extra={'console_output': True})

    logger.console_info = console_info
    logger.console_warning = console_warning
    logger.progress_update = progress_update

    return logger


def configure_from_settings(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure logging from application settings

    Args:
        level: Override for the configured level (e.g. DEBUG from --debug)
        log_file: Override for the configured log file (e.g. from --log)
    """
    settings = get_settings()

    log_file_path = log_file or settings.logging.file or None
    if log_file_path and not Path(log_file_path).expanduser().is_absolute():
        log_file_path = settings.get_config_directory() / log_file_path

    setup_logging(
        level=level or settings.logging.level,
        log_file=str(log_file_path) if log_file_path else None,
        console_output=settings.logging.console_output,
        colored_output=settings.logging.colored_output,
        max_size=settings.logging.max_size,
        backup_count=settings.logging.backup_count
    )


class OperationLogger:
    """Logger for tracking long-running operations with a progress bar"""

    def __init__(self, logger: logging.Logger, operation_name: str):
        """
        Initialize operation logger

        Args:
            logger: Base logger instance (from get_logger)
            operation_name: Name of the operation
        """
        self.logger = logger
        self.operation_name = operation_name
        self.start_time = None
        self.progress_bar = None

    def start(self, message: Optional[str] = None) -> None:
        """Start tracking operation - show to user"""
        self.start_time = time.time()
        self.logger.console_info(message or f"🚀 Starting {self.operation_name}")
        self.logger.debug(f"Operation started: {self.operation_name}")

    def progress(self, message: str, current: Optional[int] = None, total: Optional[int] = None) -> None:
        """Log progress update, drawing a progress bar when counts are known"""
        if current is not None and total:
            self.logger.debug(f"{self.operation_name}: {message} ({current}/{total})")

            if self.progress_bar is None:
                self.progress_bar = tqdm(
                    total=total,
                    desc=f"⚡ {self.operation_name}",
                    bar_format="{desc} {n}/{total} {bar} {percentage:3.0f}%",
                    ncols=100,
                    colour='cyan',
                    leave=False
                )
            self.progress_bar.n = current
            self.progress_bar.refresh()
        else:
            self.logger.debug(f"{self.operation_name}: {message}")
            if not self.progress_bar:
                self.logger.progress_update(f"⏳ {message}")

    def complete(self, message: Optional[str] = None) -> None:
        """Mark operation as complete - close progress bar"""
        self._close_bar()
        self.logger.console_info(message or f"✅ {self.operation_name} completed")
        if self.start_time:
            duration = time.time() - self.start_time
            self.logger.debug(f"Operation completed: {self.operation_name} in {duration:.2f}s")

    def _close_bar(self) -> None:
        if self.progress_bar:
            self.progress_bar.close()
            self.progress_bar = None


def create_operation_logger(name: str, operation: str) -> OperationLogger:
    """
    Create operation logger for tracking long-running tasks

    Args:
        name: Logger name
        operation: Operation description

    Returns:
        OperationLogger instance
    """
    return OperationLogger(get_logger(name), operation)


def log_performance(func):
    """Decorator to log function duration at DEBUG level"""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        start_time = time.time()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.debug(f"💥 {func.__qualname__} failed after {time.time() - start_time:.3f}s: {e}")
            raise
        logger.debug(f"⚡ {func.__qualname__} completed in {time.time() - start_time:.3f}s")
        return result

    return wrapper


# Initialize logging when module is imported
try:
    configure_from_settings()
except (OSError, ValueError):
    setup_logging(level="INFO", console_output=True)
