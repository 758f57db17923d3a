"""Core logging configuration for fhevm-client.

Library modules log through ``logging.getLogger(__name__)``. This module
only decides how records under the ``fhevm_client`` logger are rendered
and which ambient context (contract, account, chain) is attached to them.
"""

import logging
import sys
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, TextIO

from ..errors import ConfigurationError
from .formatters import JSONFormatter, TextFormatter

ROOT_LOGGER_NAME = "fhevm_client"


class LogLevel(Enum):
    """Log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    def to_stdlib(self) -> int:
        return getattr(logging, self.name)


@dataclass
class LogContext:
    """Ambient fields attached to every record."""

    component: Optional[str] = None
    operation: Optional[str] = None
    contract_address: Optional[str] = None
    account: Optional[str] = None
    chain_id: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Non-empty context fields as a dictionary."""
        data = {
            "component": self.component,
            "operation": self.operation,
            "contract_address": self.contract_address,
            "account": self.account,
            "chain_id": self.chain_id,
        }
        data = {k: v for k, v in data.items() if v is not None}
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data


@dataclass
class LogConfig:
    """Log configuration."""

    name: str = ROOT_LOGGER_NAME
    level: LogLevel = LogLevel.INFO
    format_type: str = "text"  # "text" or "json"
    stream: Optional[TextIO] = None
    propagate: bool = False
    context: LogContext = field(default_factory=LogContext)


class ContextFilter(logging.Filter):
    """Attaches a ``LogContext`` to records as ``record.context``."""

    def __init__(self, context: Optional[LogContext] = None):
        super().__init__()
        self._lock = threading.Lock()
        self.context = context or LogContext()

    def set_context(self, context: LogContext) -> None:
        with self._lock:
            self.context = context

    def filter(self, record: logging.LogRecord) -> bool:
        context = self.context.to_dict()
        extra = getattr(record, "context", None)
        if isinstance(extra, dict):
            context.update(extra)
        record.context = context
        return True


_installed: Dict[str, logging.Handler] = {}
_install_lock = threading.Lock()


def _build_formatter(format_type: str) -> logging.Formatter:
    if format_type == "json":
        return JSONFormatter()
    if format_type == "text":
        return TextFormatter()
    raise ConfigurationError(
        f"Unknown log format: {format_type!r}",
        config_key="format_type",
        config_value=format_type,
    )


def setup_logging(config: Optional[LogConfig] = None) -> logging.Logger:
    """Install one console handler on the configured logger.

    Calling it again replaces the handler installed by the previous call.
    """
    config = config or LogConfig()
    logger = logging.getLogger(config.name)

    handler = logging.StreamHandler(config.stream or sys.stderr)
    handler.setFormatter(_build_formatter(config.format_type))
    handler.addFilter(ContextFilter(config.context))

    with _install_lock:
        previous = _installed.pop(config.name, None)
        if previous is not None:
            logger.removeHandler(previous)
            previous.close()
        logger.addHandler(handler)
        _installed[config.name] = handler

    logger.setLevel(config.level.to_stdlib())
    logger.propagate = config.propagate
    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Logger under the ``fhevm_client`` hierarchy."""
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def shutdown_logging() -> None:
    """Remove and close every handler installed by ``setup_logging``."""
    with _install_lock:
        for name, handler in list(_installed.items()):
            logging.getLogger(name).removeHandler(handler)
            handler.close()
        _installed.clear()
