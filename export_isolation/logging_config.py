import logging
import sys
import json
from typing import Any, Dict, Optional
from contextvars import ContextVar


# Node id of the test currently wrapped by the isolation hooks
test_id_var: ContextVar[Optional[str]] = ContextVar("test_id", default=None)

LOGGER_PREFIX = "export-isolation"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "name": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
        }
        test_id = test_id_var.get()
        if test_id:
            log_record["test_id"] = test_id

        if hasattr(record, "extra_kwargs"):
            log_record.update(record.extra_kwargs)
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str)


class ContextLogger:
    """Thin wrapper around a stdlib logger that accepts structured kwargs.

    ``logger.info("Purged queue", queue=name)`` renders as
    ``Purged queue - queue=<name>`` with the plain formatter and as extra
    keys with the JSON formatter.
    """

    def __init__(self, base: logging.Logger):
        self._base = base

    @property
    def name(self) -> str:
        return self._base.name

    def setLevel(self, level: int) -> None:
        self._base.setLevel(level)

    def _prepare(self, msg: str, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        std_kwargs: Dict[str, Any] = {}
        for key in ("exc_info", "stack_info", "stacklevel"):
            if key in kwargs:
                std_kwargs[key] = kwargs.pop(key)

        if kwargs:
            extra_parts = [f"{key}={value}" for key, value in kwargs.items()]
            msg = f"{msg} - {' - '.join(extra_parts)}"
            std_kwargs["extra"] = {"extra_kwargs": kwargs}
        return {"msg": msg, "std": std_kwargs}

    def debug(self, msg: str, **kwargs: Any) -> None:
        prepared = self._prepare(msg, kwargs)
        self._base.debug(prepared["msg"], **prepared["std"])

    def info(self, msg: str, **kwargs: Any) -> None:
        prepared = self._prepare(msg, kwargs)
        self._base.info(prepared["msg"], **prepared["std"])

    def warning(self, msg: str, **kwargs: Any) -> None:
        prepared = self._prepare(msg, kwargs)
        self._base.warning(prepared["msg"], **prepared["std"])

    def error(self, msg: str, **kwargs: Any) -> None:
        prepared = self._prepare(msg, kwargs)
        self._base.error(prepared["msg"], **prepared["std"])

    def exception(self, msg: str, **kwargs: Any) -> None:
        kwargs.setdefault("exc_info", True)
        prepared = self._prepare(msg, kwargs)
        self._base.error(prepared["msg"], **prepared["std"])


def _standardize_logger_name(name: str) -> str:
    """Prefix bare module names so every logger reads ``export-isolation:<module>``."""
    if ":" in name:
        return name
    return f"{LOGGER_PREFIX}:{name.rsplit('.', 1)[-1]}"


def configure_logging(
    name: str,
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
) -> ContextLogger:
    """Configure a named logger and return a ContextLogger for it.

    Level and format default to the ``LOG_LEVEL`` and ``LOG_FORMAT`` settings.

    Usage:
        logger = configure_logging("export-isolation:orchestrator")
        logger.info("Truncated feed", feed=feed, rows=rows)
    """
    from .config import config

    name = _standardize_logger_name(name)
    log_level = log_level or config.LOG_LEVEL
    log_format = log_format or config.LOG_FORMAT

    if log_format == "json":
        formatter: logging.Formatter = JsonFormatter()
    elif log_format in ("", "text"):
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    else:
        formatter = logging.Formatter(log_format)

    base = logging.getLogger(name)
    # Drop handlers from a previous configure call to avoid duplicate lines
    for handler in base.handlers[:]:
        base.removeHandler(handler)
        handler.close()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    base.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    base.addHandler(handler)
    base.propagate = False

    return ContextLogger(base)


def set_test_id(test_id: Optional[str]) -> None:
    """Sets the test id reported on JSON log records for the current context."""
    test_id_var.set(test_id)


def set_log_level(level: str) -> None:
    """Apply a level to every ``export-isolation:*`` logger, configured or not."""
    from .config import config

    config.LOG_LEVEL = level
    numeric = getattr(logging, level.upper(), logging.INFO)
    for name, existing in list(logging.root.manager.loggerDict.items()):
        if name.startswith(f"{LOGGER_PREFIX}:") and isinstance(existing, logging.Logger):
            existing.setLevel(numeric)
