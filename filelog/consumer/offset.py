"""
Durable consumer offset and offset reset policy.

The offset is a byte position into the log, stored as a bare decimal
integer in a sidecar file. Writes go to a temporary file in the same
directory which is fsynced and renamed over the sidecar, so a crash leaves
either the old or the new offset on disk, never an empty file.
"""

import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Optional

from filelog.core.errors import OffsetOutOfRangeError, OffsetStoreError
from filelog.utils.logging import get_logger

logger = get_logger(__name__)


class OffsetStore:
    """
    Persists the last consumed byte offset.

    The stored value only moves forward through ``write``; ``reset`` is the
    one explicit way to move it elsewhere. The store takes no lock of its
    own: the consumer calls it while holding the log lock.

    Attributes:
        path: Path to the offset sidecar file
    """

    def __init__(self, path: Path, fsync: bool = True):
        """
        Initialize offset store.

        Args:
            path: Path to the sidecar file (created on first write)
            fsync: Whether to fsync the temporary file before renaming
        """
        self.path = Path(path)
        self.fsync = fsync

        logger.info("Initialized offset store", path=str(self.path))

    def read(self) -> int:
        """
        Read the persisted offset.

        Returns:
            Stored offset, or 0 if the file is absent or empty

        Raises:
            OffsetStoreError: If the file cannot be read or does not hold
                a non-negative integer
        """
        try:
            raw = self.path.read_text(encoding="ascii")
        except FileNotFoundError:
            return 0
        except (OSError, UnicodeDecodeError) as e:
            raise OffsetStoreError(f"Cannot read offset file {self.path}: {e}") from e

        raw = raw.strip()
        if not raw:
            return 0

        try:
            offset = int(raw)
        except ValueError as e:
            raise OffsetStoreError(
                f"Offset file {self.path} does not contain an integer: {raw!r}"
            ) from e

        if offset < 0:
            raise OffsetStoreError(f"Offset file {self.path} holds negative offset {offset}")

        return offset

    def write(self, offset: int) -> None:
        """
        Persist a new offset.

        Args:
            offset: Bytes of the log consumed so far

        Raises:
            ValueError: If offset is negative or lower than the stored offset
            OffsetStoreError: If the file cannot be written
        """
        if offset < 0:
            raise ValueError(f"Offset must be non-negative, got {offset}")

        current = self.read()
        if offset < current:
            raise ValueError(
                f"Offset cannot move backwards: stored {current}, got {offset}"
            )
        if offset == current and self.path.exists():
            return

        self._replace(offset)

        logger.debug("Persisted offset", path=str(self.path), offset=offset)

    def reset(self, offset: int) -> None:
        """
        Overwrite the stored offset unconditionally.

        Args:
            offset: New offset

        Raises:
            ValueError: If offset is negative
            OffsetStoreError: If the file cannot be written
        """
        if offset < 0:
            raise ValueError(f"Offset must be non-negative, got {offset}")

        previous = self.read()
        self._replace(offset)

        logger.warning(
            "Reset offset",
            path=str(self.path),
            previous=previous,
            offset=offset,
        )

    def _replace(self, offset: int) -> None:
        """Atomically replace the sidecar with a new value."""
        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(
                dir=directory,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
            )
        except OSError as e:
            raise OffsetStoreError(f"Cannot create temporary offset file in {directory}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="ascii") as f:
                f.write(str(offset))
                f.flush()
                if self.fsync:
                    os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except OSError as e:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass
            raise OffsetStoreError(f"Cannot write offset file {self.path}: {e}") from e


class OffsetResetStrategy(str, Enum):
    """Where to resume when the stored offset is past the end of the log."""
    EARLIEST = "earliest"
    LATEST = "latest"
    NONE = "none"


class OffsetResetHandler:
    """
    Applies the configured reset strategy to an out-of-range offset.

    A stored offset larger than the log means the log it was taken from is
    gone (replaced or truncated outside this process).
    """

    def __init__(self, strategy: str = OffsetResetStrategy.EARLIEST):
        """
        Initialize offset reset handler.

        Args:
            strategy: Reset strategy (earliest, latest, none)

        Raises:
            ValueError: If strategy is unknown
        """
        self.strategy = OffsetResetStrategy(strategy)

    def reset_offset(self, offset: int, log_size: int) -> int:
        """
        Get the offset to resume from.

        Args:
            offset: Stored offset that is out of range
            log_size: Current log length in bytes

        Returns:
            Offset to resume from

        Raises:
            OffsetOutOfRangeError: If strategy is NONE
        """
        if self.strategy == OffsetResetStrategy.EARLIEST:
            new_offset = 0
        elif self.strategy == OffsetResetStrategy.LATEST:
            new_offset = log_size
        else:
            raise OffsetOutOfRangeError(offset, log_size)

        logger.warning(
            "Offset out of range, resetting",
            strategy=self.strategy.value,
            offset=offset,
            log_size=log_size,
            new_offset=new_offset,
        )

        return new_offset

    def needs_reset(self, offset: int, log_size: int) -> bool:
        return offset > log_size


def check_offset(offset: int, log_size: int, store: Optional[OffsetStore] = None) -> None:
    """
    Validate that an offset lies within the log.

    Args:
        offset: Offset to check
        log_size: Current log length
        store: Store the offset came from, for the error message

    Raises:
        OffsetOutOfRangeError: If offset exceeds log_size
    """
    if offset > log_size:
        if store is not None:
            logger.error(
                "Stored offset beyond end of log",
                path=str(store.path),
                offset=offset,
                log_size=log_size,
            )
        raise OffsetOutOfRangeError(offset, log_size)
