"""
Sequential reader for the order log.

Reads newline-delimited records from a byte offset to end of file. End of
file is the normal stop condition. A trailing fragment without its
delimiter is a write that has not completed (or was torn by a crash); it is
left unconsumed so the offset never points into the middle of a record.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from filelog.core.errors import LogReadError, OffsetOutOfRangeError
from filelog.core.log.format import RECORD_DELIMITER, Order, deserialize
from filelog.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ReadResult:
    """
    Outcome of a read from an offset.

    Attributes:
        records: Decoded orders in file order
        offset: Byte offset the read started at
        next_offset: Position after the last fully decoded record
        trailing_bytes: Bytes of an unterminated fragment left at end of file
    """
    records: List[Order] = field(default_factory=list)
    offset: int = 0
    next_offset: int = 0
    trailing_bytes: int = 0

    @property
    def bytes_read(self) -> int:
        return self.next_offset - self.offset

    def __len__(self) -> int:
        return len(self.records)


class LogReader:
    """
    Reads records from the log file starting at a byte offset.

    Locking is the caller's job (see Log). The reader opens the file
    read-only for each call and never writes to it.

    Attributes:
        path: Path to the log file
    """

    def __init__(self, path: Path):
        """
        Initialize a log reader.

        Args:
            path: Path to the log file (may not exist yet)
        """
        self.path = Path(path)

    def size(self) -> int:
        """
        Get the current log length.

        Returns:
            Size in bytes, 0 if the log does not exist yet
        """
        try:
            return os.path.getsize(self.path)
        except FileNotFoundError:
            return 0
        except OSError as e:
            raise LogReadError(f"Cannot stat log {self.path}: {e}") from e

    def _lines(self, offset: int, tail: List[int]) -> Iterator[Tuple[int, bytes]]:
        """
        Yield complete lines from an offset.

        Args:
            offset: Byte offset to start from
            tail: Receives the length of an unterminated fragment, if any

        Yields:
            (start position, line including delimiter)
        """
        if offset < 0:
            raise ValueError(f"Offset must be non-negative, got {offset}")

        try:
            f = open(self.path, "rb")
        except FileNotFoundError:
            if offset > 0:
                raise OffsetOutOfRangeError(offset, 0)
            return
        except OSError as e:
            raise LogReadError(f"Cannot open log {self.path}: {e}") from e

        with f:
            try:
                log_size = os.fstat(f.fileno()).st_size
                if offset > log_size:
                    raise OffsetOutOfRangeError(offset, log_size)
                f.seek(offset)
            except OSError as e:
                raise LogReadError(f"Cannot seek log {self.path} to {offset}: {e}") from e

            position = offset
            while True:
                try:
                    line = f.readline()
                except OSError as e:
                    raise LogReadError(f"Cannot read log {self.path} at {position}: {e}") from e

                if not line:
                    return

                if not line.endswith(RECORD_DELIMITER):
                    logger.warning(
                        "Unterminated record at end of log",
                        path=str(self.path),
                        position=position,
                        bytes=len(line),
                    )
                    tail.append(len(line))
                    return

                yield position, line
                position += len(line)

    def read_from(self, offset: int, max_records: Optional[int] = None) -> ReadResult:
        """
        Read all complete records from an offset to end of file.

        Blank lines are skipped and counted as consumed.

        Args:
            offset: Byte offset to start from
            max_records: Stop after this many records (None = no limit)

        Returns:
            ReadResult with the records and the offset to resume from

        Raises:
            ValueError: If offset is negative or max_records is not positive
            OffsetOutOfRangeError: If offset is past end of file
            RecordDecodeError: If a complete line cannot be decoded
            LogReadError: If the file cannot be read
        """
        if max_records is not None and max_records <= 0:
            raise ValueError(f"max_records must be positive, got {max_records}")

        result = ReadResult(offset=offset, next_offset=offset)
        tail: List[int] = []

        for start, line in self._lines(offset, tail):
            if line.strip():
                if max_records is not None and len(result.records) >= max_records:
                    break
                result.records.append(deserialize(line, start))
            result.next_offset = start + len(line)

        if tail:
            result.trailing_bytes = tail[0]

        logger.debug(
            "Read records",
            path=str(self.path),
            offset=offset,
            next_offset=result.next_offset,
            records=len(result.records),
        )

        return result
