"""
Append-only writer for the order log.

A batch is serialized into one buffer and handed to the OS in a single
O_APPEND write, so readers holding the log lock never see a record split
across two write operations.
"""

import os
from pathlib import Path
from typing import Sequence

from filelog.core.errors import LogWriteError, UnterminatedLogError
from filelog.core.log.format import RECORD_DELIMITER, Order, serialize_batch
from filelog.utils.logging import get_logger

logger = get_logger(__name__)


class LogWriter:
    """
    Appends serialized batches to the log file.

    The writer opens, writes and closes the file on every batch; it keeps no
    file descriptor between calls. Locking is the caller's job (see Log).
    A log whose last byte is not a delimiter (a torn or short write) is
    never appended to.

    Attributes:
        path: Path to the log file
        fsync_on_append: Whether to fsync after each batch
    """

    FILE_MODE = 0o644

    def __init__(self, path: Path, fsync_on_append: bool = False):
        """
        Initialize a log writer.

        Args:
            path: Path to the log file (created on first append)
            fsync_on_append: Whether to fsync after each append
        """
        self.path = Path(path)
        self.fsync_on_append = fsync_on_append

    def append_batch(self, orders: Sequence[Order]) -> int:
        """
        Append a batch of orders as one write.

        Args:
            orders: Orders to append, in order

        Returns:
            Number of bytes appended

        Raises:
            RecordEncodeError: If an order cannot be serialized
            LogWriteError: If the file cannot be opened or written, or if it ends in
                an unterminated record
        """
        if not orders:
            return 0

        data = serialize_batch(orders)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_RDWR | os.O_CREAT | os.O_APPEND, self.FILE_MODE)
        except OSError as e:
            raise LogWriteError(f"Cannot open log {self.path} for append: {e}") from e

        try:
            self._check_terminated(fd)
            bytes_written = os.write(fd, data)

            if bytes_written != len(data):
                raise LogWriteError(
                    f"Partial write: expected {len(data)} bytes, wrote {bytes_written} bytes"
                )

            if self.fsync_on_append:
                os.fsync(fd)
        except OSError as e:
            raise LogWriteError(f"Cannot append to log {self.path}: {e}") from e
        finally:
            os.close(fd)

        logger.debug(
            "Appended batch",
            path=str(self.path),
            records=len(orders),
            bytes=bytes_written,
            first_id=orders[0].id,
            last_id=orders[-1].id,
        )

        return bytes_written

    def _check_terminated(self, fd: int) -> None:
        """Raise if the log is non-empty and its last byte is not the delimiter."""
        size = os.fstat(fd).st_size
        if size and os.pread(fd, 1, size - 1) != RECORD_DELIMITER:
            raise UnterminatedLogError(self.path, size)
