"""
Log facade pairing a writer and a reader behind one lock.

The lock is a plain (non-reentrant) threading.Lock shared by every producer
and consumer cycle. An append holds it for open+write+close; a consumer
cycle holds it across read-all and offset persistence via ``locked()``.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Sequence

from filelog.core.log.format import Order
from filelog.core.log.reader import LogReader, ReadResult
from filelog.core.log.writer import LogWriter
from filelog.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RecoveryInfo:
    """
    Summary of a full scan of the log.

    Attributes:
        records: Number of complete records
        valid_bytes: Bytes covered by complete lines
        last_id: Identifier of the last record, None if the log is empty
        torn_bytes: Bytes of an unterminated fragment at end of file
    """
    records: int = 0
    valid_bytes: int = 0
    last_id: Optional[str] = None
    torn_bytes: int = 0


class Log:
    """
    A single append-only order log on local disk.

    Example:
        log = Log(Path("data/orders.jsonl"))
        log.append_batch(generator.generate(3))
        result = log.read_from(0)

    Attributes:
        path: Path to the log file
        reader: Reader bound to the log file
        writer: Writer bound to the log file
    """

    def __init__(
        self,
        path: Path,
        fsync_on_append: bool = False,
        lock: Optional[threading.Lock] = None,
    ):
        """
        Initialize a log.

        Args:
            path: Path to the log file (created on first append)
            fsync_on_append: Whether to fsync after each batch
            lock: Lock to share with other components (a new one by default)
        """
        self.path = Path(path)
        self.writer = LogWriter(self.path, fsync_on_append=fsync_on_append)
        self.reader = LogReader(self.path)
        self._lock = lock if lock is not None else threading.Lock()

        logger.info(
            "Initialized log",
            path=str(self.path),
            size=self.reader.size(),
            fsync_on_append=fsync_on_append,
        )

    @property
    def lock(self) -> threading.Lock:
        return self._lock

    @contextmanager
    def locked(self) -> Iterator["Log"]:
        """
        Hold the log lock for a multi-step critical section.

        Inside the block use ``reader``/``writer`` directly; calling
        ``append_batch`` or ``read_from`` would try to take the lock again.
        """
        with self._lock:
            yield self

    def append_batch(self, orders: Sequence[Order]) -> int:
        """
        Append a batch of orders under the log lock.

        Args:
            orders: Orders to append

        Returns:
            Number of bytes appended

        Raises:
            RecordEncodeError: If an order cannot be serialized
            LogWriteError: If the append fails
        """
        with self._lock:
            return self.writer.append_batch(orders)

    def read_from(self, offset: int, max_records: Optional[int] = None) -> ReadResult:
        """
        Read records from an offset under the log lock.

        Args:
            offset: Byte offset to start from
            max_records: Maximum records to return (None = all)

        Returns:
            ReadResult with records and the offset to resume from
        """
        with self._lock:
            return self.reader.read_from(offset, max_records=max_records)

    def size(self) -> int:
        """Current log length in bytes."""
        return self.reader.size()

    def recover(self) -> RecoveryInfo:
        """
        Scan the whole log and summarize what is on disk.

        The file is never modified. A torn tail is reported so the operator
        can inspect it; the reader will not consume it.

        Returns:
            RecoveryInfo for the current contents

        Raises:
            RecordDecodeError: If a complete line cannot be decoded
            LogReadError: If the file cannot be read
        """
        with self._lock:
            result = self.reader.read_from(0)

        info = RecoveryInfo(
            records=len(result.records),
            valid_bytes=result.next_offset,
            last_id=result.records[-1].id if result.records else None,
            torn_bytes=result.trailing_bytes,
        )

        if info.torn_bytes:
            logger.warning(
                "Log has an unterminated tail",
                path=str(self.path),
                valid_bytes=info.valid_bytes,
                torn_bytes=info.torn_bytes,
            )

        logger.info(
            "Recovery complete",
            path=str(self.path),
            records=info.records,
            bytes=info.valid_bytes,
            last_id=info.last_id,
        )

        return info

    def __repr__(self) -> str:
        return f"Log(path={str(self.path)!r}, size={self.size()})"
