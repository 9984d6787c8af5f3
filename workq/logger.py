"""
Structured logging for the work engine.

EngineLogger wraps the standard logging module and attaches keyword
context (sequence_id, worker, pending, ...) to every record:

    logger = create_logger("engine", log_dir=Path("logs"))
    logger.info("Run started", pending=10, max_workers=4)

With a log_dir, records are appended to {log_dir}/{component}.jsonl.
Without any output configured, records propagate to the standard
"workq.<component>" logger so the embedding application decides where
they go.
"""

import json
import logging
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional


CONTEXT_FIELDS = (
    'run_id',
    'component',
    'sequence_id',
    'worker',
    'pending',
    'in_flight',
    'duration_seconds',
    'error',
    'error_type',
    'traceback',
)


class FlushingFileHandler(logging.FileHandler):
    """FileHandler that flushes after every emit for real-time log visibility."""
    def emit(self, record):
        super().emit(record)
        self.flush()


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now().astimezone().isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        return json.dumps(log_data, default=str)


class EngineLogger:
    """Logger that writes to a single append-only JSONL file per component.

    Handlers are created lazily on first log message to avoid creating
    empty log files when nothing is logged.
    """
    def __init__(
        self,
        component: str,
        log_dir: Optional[Path] = None,
        console_output: bool = False,
        level: str = "INFO",
        filename: Optional[str] = None
    ):
        self.component = component
        self.log_dir = Path(log_dir) if log_dir is not None else None
        self.console_output = console_output
        self.level = level
        self.filename = filename or f"{component}.jsonl"
        self.context = {}
        self._context_lock = threading.Lock()
        self._init_lock = threading.Lock()

        self._logger = None
        self._initialized = False
        self.log_file = None

    def _ensure_initialized(self):
        if self._initialized:
            return

        with self._init_lock:
            if self._initialized:
                return

            self._logger = logging.getLogger(f"workq.{self.component}.{id(self)}")
            self._logger.setLevel(getattr(logging, self.level.upper()))

            if self.console_output:
                console_handler = logging.StreamHandler(sys.stdout)
                console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
                self._logger.addHandler(console_handler)

            if self.log_dir is not None:
                self.log_dir.mkdir(parents=True, exist_ok=True)
                json_file = self.log_dir / self.filename
                json_handler = FlushingFileHandler(json_file, mode='a')
                json_handler.setFormatter(JSONFormatter())
                self._logger.addHandler(json_handler)
                self.log_file = json_file

            # Own handlers: don't duplicate into the parent hierarchy
            self._logger.propagate = not self._logger.handlers

            self._initialized = True

    @property
    def logger(self) -> logging.Logger:
        self._ensure_initialized()
        return self._logger

    def set_context(self, **context):
        """Add context to all future records (thread-safe)."""
        with self._context_lock:
            self.context.update(context)

    def clear_context(self):
        with self._context_lock:
            self.context = {}

    def _log(self, level: str, message: str, **kwargs):
        reserved_params = {}
        for param in ['exc_info', 'stack_info', 'stacklevel']:
            if param in kwargs:
                reserved_params[param] = kwargs.pop(param)

        with self._context_lock:
            extra = {
                'component': self.component,
                **self.context,
                **kwargs
            }

        self.logger.log(
            getattr(logging, level.upper()),
            message,
            extra=extra,
            **reserved_params
        )

    def debug(self, message: str, **kwargs):
        self._log('DEBUG', message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log('INFO', message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log('WARNING', message, **kwargs)

    def error(self, message: str, **kwargs):
        self._log('ERROR', message, **kwargs)

    def close(self):
        with self._init_lock:
            if self._initialized and self._logger:
                for handler in self._logger.handlers[:]:
                    handler.close()
                    self._logger.removeHandler(handler)
                self._initialized = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def create_logger(component: str, **kwargs) -> EngineLogger:
    return EngineLogger(component, **kwargs)
