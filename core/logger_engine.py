#!/usr/bin/env python3
"""
core/logger_engine.py
SMC Engine - Central logging system
Yazar: SuperBot Team
Versiyon: 1.1.0

Features:
- Hybrid format (console: rich/readable, file: JSON)
- Custom log levels (VERBOSE, STRUCTURE)
- Rotating file handlers (main, structure, errors, performance)
- Performance monitoring (timing decorator, sync + async)

Usage:
    from core.logger_engine import get_logger, log_execution_time

    logger = get_logger("modules.smc.engine")

    logger.info("Engine ready")
    logger.verbose("Pivot confirmed", price=101.5)
    logger.structure("BOS bullish", timescale="swing", level=101.5)

    @log_execution_time("performance.smc")
    def calculate(...):
        ...

Dependencies:
    - rich
"""

import asyncio
import json
import logging
import threading
import time
from datetime import datetime, timezone
from functools import wraps
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme


# Custom log levels
VERBOSE_LEVEL = 15     # DEBUG < VERBOSE < INFO
STRUCTURE_LEVEL = 25   # Market structure events (between INFO and WARNING)

logging.addLevelName(VERBOSE_LEVEL, "VERBOSE")
logging.addLevelName(STRUCTURE_LEVEL, "STRUCTURE")


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter

    Used for file logs - machine-readable format
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
            "file": record.filename,
            "line": record.lineno,
            "function": record.funcName
        }

        # Structured payload (logger.structure(..., level=...))
        if hasattr(record, 'extra_data'):
            log_data['data'] = record.extra_data

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class CustomLogger(logging.Logger):
    """
    Logger with the engine's custom levels:
    - verbose(): detail logs, only visible in --verbose mode
    - structure(): BOS / CHoCH and other structure events
    """

    def verbose(self, message: str, **kwargs):
        """
        Verbose log (level 15)

        Hidden at the default INFO level, visible once set_verbose_mode(True).
        """
        if self.isEnabledFor(VERBOSE_LEVEL):
            if kwargs:
                self._log(VERBOSE_LEVEL, message, (), extra={'extra_data': kwargs})
            else:
                self._log(VERBOSE_LEVEL, message, ())

    def structure(self, message: str, **kwargs):
        """Market structure event log"""
        if self.isEnabledFor(STRUCTURE_LEVEL):
            self._log(STRUCTURE_LEVEL, message, (), extra={'extra_data': kwargs})


logging.setLoggerClass(CustomLogger)


class LoggerEngine:
    """
    Central logging system

    - Singleton (whole process shares one instance)
    - Thread-safe construction
    - Config-driven (level, log_dir, file, rotation)
    """

    _instance = None
    _lock = threading.Lock()
    _initialized = False

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Args:
            config: Logging config dict
                - level: Console level (default: INFO)
                - log_dir: Folder for file logs (default: data/logs)
                - file: Enable JSON file handlers (default: False)
                - rotation.max_bytes / rotation.backup_count
        """
        if self._initialized:
            return

        self.config = config or {}
        self.log_dir = Path(self.config.get('log_dir', 'data/logs'))

        log_level = self.config.get('level', 'INFO').upper()
        self.log_level = getattr(logging, log_level, logging.INFO)

        self.console = Console(
            stderr=True,
            theme=Theme({
                "logging.level.verbose": "dim cyan",
                "logging.level.structure": "bold magenta",
            })
        )

        self.root_logger = logging.getLogger()
        self.root_logger.setLevel(logging.DEBUG)

        self._file_handlers_added = False
        self._setup_handlers()

        self._initialized = True

    def _setup_handlers(self):
        """Console and file handlers"""
        console_handler = RichHandler(
            console=self.console,
            rich_tracebacks=True,
            show_time=False,
            show_level=True,
            show_path=False,
            markup=False
        )
        console_handler.setLevel(self.log_level)
        self.root_logger.addHandler(console_handler)

        # File handlers (JSON) - only when enabled in config
        if self.config.get('file', False):
            self._setup_file_handlers()

    def _setup_file_handlers(self):
        """JSON rotating file handlers (added once)"""
        if self._file_handlers_added:
            return
        self._file_handlers_added = True

        self.log_dir.mkdir(parents=True, exist_ok=True)

        rotation_config = self.config.get('rotation', {})
        max_bytes = rotation_config.get('max_bytes', 52428800)  # 50MB
        backup_count = rotation_config.get('backup_count', 5)

        # 1. Main log - everything
        self._add_file_handler("main.log", logging.DEBUG, max_bytes, backup_count)

        # 2. Structure log - BOS/CHoCH only
        self._add_file_handler(
            "structure.log", STRUCTURE_LEVEL, max_bytes, backup_count,
            filter_levels=[STRUCTURE_LEVEL]
        )

        # 3. Error log
        self._add_file_handler("errors.log", logging.ERROR, max_bytes, backup_count)

        # 4. Performance log - log_execution_time output
        self._add_file_handler(
            "performance.log", logging.DEBUG, max_bytes, backup_count,
            filter_name="performance"
        )

    def _add_file_handler(
        self, filename: str, level: int, max_bytes: int, backup_count: int,
        filter_levels: Optional[list] = None, filter_name: Optional[str] = None
    ):
        handler = RotatingFileHandler(
            self.log_dir / filename, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
        )
        handler.setLevel(level)
        handler.setFormatter(JSONFormatter())

        if filter_levels:
            handler.addFilter(lambda record: record.levelno in filter_levels)

        if filter_name:
            handler.addFilter(lambda record: filter_name.lower() in record.name.lower())

        self.root_logger.addHandler(handler)

    def configure(self, config: Dict[str, Any]):
        """
        Apply a logging config after construction
        (level, log_dir, file, rotation).
        """
        self.config.update(config)
        if 'log_dir' in config:
            self.log_dir = Path(config['log_dir'])
        if 'level' in config:
            self.set_log_level(config['level'])
        if config.get('file', False):
            self._setup_file_handlers()

    def get_logger(self, name: str) -> CustomLogger:
        """Module-specific logger"""
        return logging.getLogger(name)

    def set_log_level(self, level: str):
        """Change the console level globally"""
        level_map = {
            "DEBUG": logging.DEBUG,
            "VERBOSE": VERBOSE_LEVEL,
            "INFO": logging.INFO,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
            "CRITICAL": logging.CRITICAL
        }
        log_level = level_map.get(level.upper(), logging.INFO)
        self.log_level = log_level

        for handler in self.root_logger.handlers:
            if isinstance(handler, RichHandler):
                handler.setLevel(log_level)

        self.get_logger("LoggerEngine").debug(f"Log level changed: {level}")

    def set_verbose_mode(self, enabled: bool = True):
        """VERBOSE level when enabled, INFO otherwise"""
        self.set_log_level("VERBOSE" if enabled else "INFO")


def log_execution_time(logger_name: str = "performance"):
    """Log the execution time of a function"""
    def decorator(func: Callable):
        logger = logging.getLogger(logger_name)

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.error(f"{func.__name__} failed",
                    extra={'extra_data': {
                        'execution_time': f"{time.perf_counter() - start_time:.3f}s",
                        'error': str(e)
                    }})
                raise
            logger.debug(f"⏱️  {func.__name__} completed",
                extra={'extra_data': {'execution_time': f"{time.perf_counter() - start_time:.3f}s"}})
            return result

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(f"{func.__name__} failed",
                    extra={'extra_data': {
                        'execution_time': f"{time.perf_counter() - start_time:.3f}s",
                        'error': str(e)
                    }})
                raise
            logger.debug(f"⏱️  {func.__name__} completed",
                extra={'extra_data': {'execution_time': f"{time.perf_counter() - start_time:.3f}s"}})
            return result

        return async_wrapper if asyncio.iscoroutinefunction(func) else sync_wrapper

    return decorator


# ============================================================================
# SINGLETON & HELPER FUNCTIONS
# ============================================================================

def get_logger_engine() -> LoggerEngine:
    """LoggerEngine singleton instance"""
    return LoggerEngine()


def get_logger(module_name: str) -> CustomLogger:
    """Module logger (shortcut for LoggerEngine().get_logger)"""
    return get_logger_engine().get_logger(module_name)


def set_verbose_mode(enabled: bool = True):
    """
    Global verbose mode

    Usage:
        from core.logger_engine import set_verbose_mode
        set_verbose_mode(True)  # --verbose flag
    """
    get_logger_engine().set_verbose_mode(enabled)
