"""
Core log storage implementation.

This package provides a single append-only log file with:
- Newline-delimited JSON order records
- Whole-batch appends in one write
- Sequential reads from a byte offset
- Recovery scan on startup
"""

from filelog.core.log.format import Item, Order, deserialize, serialize
from filelog.core.log.log import Log, RecoveryInfo
from filelog.core.log.reader import LogReader, ReadResult
from filelog.core.log.writer import LogWriter

__all__ = [
    "Item",
    "Order",
    "serialize",
    "deserialize",
    "Log",
    "RecoveryInfo",
    "LogReader",
    "ReadResult",
    "LogWriter",
]
