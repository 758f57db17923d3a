"""fhevm-client logging.

Structured (JSON) or text output for the ``fhevm_client`` logger tree,
with ambient contract/account/chain context attached to each record.
"""

from .core import (
    ContextFilter,
    LogConfig,
    LogContext,
    LogLevel,
    get_logger,
    setup_logging,
    shutdown_logging,
)
from .formatters import JSONFormatter, TextFormatter

__all__ = [
    "LogLevel",
    "LogConfig",
    "LogContext",
    "ContextFilter",
    "JSONFormatter",
    "TextFormatter",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
]
