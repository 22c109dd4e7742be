"""
GalleryTranslator Logging Configuration

Centralized loguru logging for the viewer overlay. Console output is colour coded and
tagged with the component that emitted the record (viewport geometry, OCR pipeline,
AI providers, configuration), while rotating files under the app directory keep the
full debug trail.
"""

import os
import sys
import time
from pathlib import Path
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from loguru import Logger

from loguru import logger as _logger

# Remove default handler
_logger.remove()

APP_DIRECTORY_NAME = 'GalleryTranslator'


class LoggerManager:
    """
    Owns the loguru handlers (console, rotating file, error file) for the process.
    """

    # Source path fragments used to tag each record with its component
    COMPONENT_PATTERNS = {
        "VIEWPORT": ["viewport/"],
        "OCR": ["ocr/"],
        "AI": ["ai/"],
        "CONFIG": ["configuration.py"],
        "CLI": ["cli.py"],
    }

    def __init__(self):
        self._initialized = False
        self._log_dir: Optional[Path] = None
        self._handlers = {}
        self._logger_name: Optional[str] = None
        self._settings = None

    def _get_app_directory(self) -> Path:
        if sys.platform == 'win32':
            appdata_dir = os.getenv('APPDATA')
        else:
            appdata_dir = os.path.expanduser('~/.config')

        app_dir = Path(appdata_dir) / APP_DIRECTORY_NAME
        app_dir.mkdir(parents=True, exist_ok=True)
        return app_dir

    def _get_log_directory(self) -> Path:
        if self._log_dir is None:
            self._log_dir = self._get_app_directory() / 'logs'
            self._log_dir.mkdir(parents=True, exist_ok=True)
        return self._log_dir

    def _detect_component_tag(self, record) -> str:
        """Fixed-width component tag derived from the record's source file."""
        file_name = getattr(record.get("file"), "path", "") or ""
        file_name = file_name.replace("\\", "/")
        for component, patterns in self.COMPONENT_PATTERNS.items():
            if any(pattern in file_name for pattern in patterns):
                return component.ljust(10)
        return "MAIN".ljust(10)

    def _tag_record(self, record) -> bool:
        record["extra"]["component_tag"] = self._detect_component_tag(record)
        return True

    def _add_console_handler(self, level: str = "INFO"):
        self._handlers["console"] = _logger.add(
            sys.stdout,
            format="<green>{time:HH:mm:ss}</green> | <dim>{extra[component_tag]}</dim> | <level>{message}</level>",
            level=level,
            colorize=True,
            backtrace=False,
            diagnose=False,
            filter=self._tag_record,
        )

    def _add_file_sink(self, key: str, file_name: str, level: str, retention: str, log_format: str):
        self._handlers[key] = _logger.add(
            str(self._get_log_directory() / file_name),
            format=log_format,
            level=level,
            rotation="5 MB",
            retention=retention,
            compression="zip",
            encoding="utf-8",
            backtrace=True,
            diagnose=True,
            enqueue=True,
            filter=self._tag_record,
        )

    def initialize(self, logger_name: Optional[str] = None, console_level: str = "INFO", file_level: str = "DEBUG"):
        """
        Install the console, rotating file and error file handlers.

        Calling it again with different levels replaces the handlers, so the CLI can
        switch to debug output after the module-level logger was created.

        Args:
            logger_name: Log file stem (defaults to "gallery_translator")
            console_level: Minimum level for console output
            file_level: Minimum level for the rotating log file
        """
        logger_name = logger_name or self._logger_name or "gallery_translator"
        wanted = (logger_name, console_level, file_level)
        if self._initialized and wanted == self._settings:
            return
        self._remove_handlers()

        self._add_console_handler(level=console_level)
        self._add_file_sink(
            "file", f"{logger_name}.log", file_level, "7 days",
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[component_tag]}{name}:{function}:{line} | {message}",
        )
        self._add_file_sink(
            "error", "error.log", "ERROR", "14 days",
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[component_tag]}{name}:{function}:{line} - {message}\n{exception}",
        )
        _logger.configure(extra={"component_tag": "MAIN".ljust(10)})

        self._logger_name = logger_name
        self._settings = wanted
        self._initialized = True
        _logger.debug(f"Logging initialized for {logger_name}, log directory: {self._get_log_directory()}")

    def _remove_handlers(self):
        for handler_id in self._handlers.values():
            _logger.remove(handler_id)
        self._handlers.clear()
        self._initialized = False

    def cleanup_old_logs(self, days: int = 7):
        """Delete log files older than ``days``."""
        log_dir = self._get_log_directory()
        cutoff = time.time() - days * 86400
        removed = 0
        for log_file in log_dir.glob("*"):
            try:
                if log_file.is_file() and log_file.stat().st_mtime < cutoff:
                    log_file.unlink()
                    removed += 1
            except OSError as e:
                _logger.warning(f"Could not delete old log file {log_file}: {e}")
        if removed:
            _logger.info(f"Removed {removed} old log files")

    def get_logger(self) -> "Logger":
        if not self._initialized:
            self.initialize()
        return _logger

    def set_level(self, level: str):
        """Use ``level`` for both the console and the rotating file."""
        self.initialize(console_level=level, file_level=level)


_manager = LoggerManager()


def get_logger(name: Optional[str] = None) -> "Logger":
    if not _manager._initialized:
        _manager.initialize(logger_name=name)
    return _manager.get_logger()


def initialize_logging(logger_name: Optional[str] = None, console_level: str = "INFO", file_level: str = "DEBUG"):
    _manager.initialize(logger_name=logger_name, console_level=console_level, file_level=file_level)


def cleanup_old_logs(days: int = 7):
    _manager.cleanup_old_logs(days=days)


logger = get_logger()

__all__ = [
    'logger',
    'get_logger',
    'initialize_logging',
    'cleanup_old_logs',
    'LoggerManager',
]
