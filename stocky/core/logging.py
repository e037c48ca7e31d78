# stocky/core/logging.py
"""
Logging for stocky.

Every module logs under the ``stocky.`` namespace. Call sites attach
request context (user, reward, idempotency key, ...) as record attributes
through ``log_with_context``; the structured formatter writes each record
as one JSON object so those fields survive into log search. Console output
goes to stderr, leaving stdout to the CLI's JSON results.
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import msgspec

DEBUG = logging.DEBUG
INFO = logging.INFO
WARNING = logging.WARNING
ERROR = logging.ERROR

# Attributes every LogRecord has; anything else was attached as context
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

_encoder = msgspec.json.Encoder(enc_hook=str)


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}


class StockyFormatter(logging.Formatter):
    """
    Text or JSON lines with UTC millisecond timestamps.

    Text mode appends context as ``key=value`` pairs after a ``|``.
    """

    def __init__(self, structured: bool = False):
        self.structured = structured
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec='milliseconds')
        context = record_context(record)

        if self.structured:
            entry = {
                "ts": timestamp,
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
                **context,
            }
            if record.exc_info:
                entry["traceback"] = self.formatException(record.exc_info)
            return _encoder.encode(entry).decode()

        line = f"{timestamp} - {record.name} - {record.levelname} - {record.getMessage()}"
        if context:
            line += " | " + " ".join(f"{k}={v}" for k, v in context.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class StockyLogger:
    """Process-wide logging setup; configure() runs once until reset()"""

    _configured = False

    @classmethod
    def configure(cls,
                  log_dir: Optional[Path] = None,
                  log_level: str = "INFO",
                  console_enabled: bool = True,
                  file_enabled: bool = True,
                  structured_format: bool = True) -> None:

        if cls._configured:
            return

        level = logging.getLevelName(log_level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {log_level!r}")

        stocky_logger = logging.getLogger('stocky')
        stocky_logger.setLevel(level)
        stocky_logger.handlers.clear()

        if console_enabled:
            console = logging.StreamHandler(sys.stderr)
            console.setFormatter(StockyFormatter(structured=structured_format))
            stocky_logger.addHandler(console)

        if file_enabled and log_dir:
            log_dir.mkdir(parents=True, exist_ok=True)
            json_lines = StockyFormatter(structured=True)

            ledger_log = logging.FileHandler(log_dir / 'stocky.log')
            ledger_log.setFormatter(json_lines)
            stocky_logger.addHandler(ledger_log)

            # Storage and publish failures need a separate place to be found fast
            error_log = logging.FileHandler(log_dir / 'stocky_errors.log')
            error_log.setLevel(logging.ERROR)
            error_log.setFormatter(json_lines)
            stocky_logger.addHandler(error_log)

        cls._configured = True

    @classmethod
    def reset(cls) -> None:
        stocky_logger = logging.getLogger('stocky')
        for handler in stocky_logger.handlers:
            handler.close()
        stocky_logger.handlers.clear()
        cls._configured = False

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        if not cls._configured:
            cls.configure(file_enabled=False, structured_format=False)

        if not name.startswith('stocky'):
            name = f'stocky.{name}'

        return logging.getLogger(name)


def get_class_logger(cls_instance) -> logging.Logger:
    module = cls_instance.__class__.__module__
    if module.startswith('stocky.'):
        module = module[len('stocky.'):]
    return StockyLogger.get_logger(f"{module}.{cls_instance.__class__.__name__}")


def log_with_context(logger: logging.Logger, level: int, message: str, **context) -> None:
    if logger.isEnabledFor(level):
        record = logger.makeRecord(logger.name, level, "", 0, message, (), None)
        for key, value in context.items():
            setattr(record, key, value)
        logger.handle(record)


class LoggingMixin:
    """Per-class logger plus ``log_*(message, **context)`` shortcuts"""

    @property
    def logger(self) -> logging.Logger:
        if not hasattr(self, '_logger'):
            self._logger = get_class_logger(self)
        return self._logger

    def log_debug(self, message: str, **context) -> None:
        log_with_context(self.logger, DEBUG, message, **context)

    def log_info(self, message: str, **context) -> None:
        log_with_context(self.logger, INFO, message, **context)

    def log_warning(self, message: str, **context) -> None:
        log_with_context(self.logger, WARNING, message, **context)

    def log_error(self, message: str, **context) -> None:
        log_with_context(self.logger, ERROR, message, **context)
