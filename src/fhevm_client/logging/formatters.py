"""Log formatters for fhevm-client."""

import json
import logging
import time
from typing import Optional


def _format_timestamp(timestamp: float, timestamp_format: str) -> str:
    if timestamp_format == "iso":
        return (
            time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(timestamp))
            + f".{int((timestamp % 1) * 1000000):06d}Z"
        )
    if timestamp_format == "unix":
        return str(timestamp)
    return time.strftime(timestamp_format, time.gmtime(timestamp))


class JSONFormatter(logging.Formatter):
    """JSON log formatter."""

    def __init__(
        self,
        include_context: bool = True,
        include_exception: bool = True,
        include_thread: bool = False,
        timestamp_format: str = "iso",
        indent: Optional[int] = None,
    ):
        super().__init__()
        self.include_context = include_context
        self.include_exception = include_exception
        self.include_thread = include_thread
        self.timestamp_format = timestamp_format
        self.indent = indent

    def format(self, record: logging.LogRecord) -> str:
        """Format a record as one JSON object."""
        data = {
            "timestamp": _format_timestamp(record.created, self.timestamp_format),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if self.include_context and context:
            data["context"] = context

        if self.include_exception and record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            data["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }
            to_dict = getattr(exc_value, "to_dict", None)
            if callable(to_dict):
                data["exception"]["details"] = to_dict()

        if self.include_thread:
            data["thread_id"] = record.thread
            data["process_id"] = record.process

        return json.dumps(data, indent=self.indent, default=str)


class TextFormatter(logging.Formatter):
    """Text log formatter."""

    def __init__(
        self,
        include_timestamp: bool = True,
        include_logger: bool = True,
        include_context: bool = True,
        timestamp_format: str = "%Y-%m-%d %H:%M:%S",
    ):
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_logger = include_logger
        self.include_context = include_context
        self.timestamp_format = timestamp_format

    def format(self, record: logging.LogRecord) -> str:
        """Format a record as a single text line."""
        parts = []
        if self.include_timestamp:
            parts.append(_format_timestamp(record.created, self.timestamp_format))
        parts.append(f"[{record.levelname}]")
        if self.include_logger:
            parts.append(f"{record.name}:")
        parts.append(record.getMessage())

        context = getattr(record, "context", None)
        if self.include_context and context:
            parts.append(
                "| " + " ".join(f"{k}={v}" for k, v in context.items() if k != "metadata")
            )

        text = " ".join(parts)
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text
