"""Core components for log storage and error types."""

from filelog.core import errors, log

__all__ = ["errors", "log"]
