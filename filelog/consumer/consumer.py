"""
Consumer that reads new orders from the log and persists its position.

One consume cycle runs entirely under the log lock:
read offset -> read records to end of log -> hand each to the handler ->
persist the new offset. The offset is stored only after the handler has
seen every record, so a failure mid-cycle redelivers the whole batch on the
next cycle (at-least-once).
"""

from dataclasses import dataclass
from typing import Callable, Optional

from filelog.consumer.offset import OffsetResetHandler, OffsetResetStrategy, OffsetStore, check_offset
from filelog.core.log.format import Order
from filelog.core.log.log import Log
from filelog.core.log.reader import ReadResult
from filelog.utils.logging import get_logger

logger = get_logger(__name__)

RecordHandler = Callable[[Order], None]


@dataclass
class ConsumerConfig:
    """
    Configuration for consumer.

    Attributes:
        interval_ms: Pause between cycles
        max_records: Max records per cycle (None = read to end of log)
        auto_offset_reset: Strategy when the stored offset is past end of log
    """
    interval_ms: int = 2000
    max_records: Optional[int] = None
    auto_offset_reset: str = OffsetResetStrategy.EARLIEST

    def __post_init__(self) -> None:
        if self.interval_ms < 0:
            raise ValueError(f"interval_ms must be non-negative, got {self.interval_ms}")
        if self.max_records is not None and self.max_records <= 0:
            raise ValueError(f"max_records must be positive, got {self.max_records}")


def log_record(order: Order) -> None:
    """Default handler: emit each consumed order as a log entry."""
    logger.info(
        "Consumed order",
        id=order.id,
        owner_id=order.owner_id,
        items=len(order.items),
        total=round(order.total, 2),
    )


class Consumer:
    """
    Single-cursor consumer over a log.

    Example:
        consumer = Consumer(log, OffsetStore(Path("data/offset.txt")))
        result = consumer.poll()
        for order in result.records:
            ...
    """

    def __init__(
        self,
        log: Log,
        offsets: OffsetStore,
        config: Optional[ConsumerConfig] = None,
        handler: Optional[RecordHandler] = None,
    ):
        """
        Initialize consumer.

        Args:
            log: Log to read from
            offsets: Store holding this consumer's position
            config: Consumer configuration
            handler: Called once per consumed order (default: log it)
        """
        self.log = log
        self.offsets = offsets
        self.config = config or ConsumerConfig()
        self.handler = handler or log_record

        self._reset_handler = OffsetResetHandler(self.config.auto_offset_reset)

        self.records_consumed = 0
        self.cycles = 0

        logger.info(
            "Consumer initialized",
            path=str(log.path),
            offset_path=str(offsets.path),
            interval_ms=self.config.interval_ms,
            auto_offset_reset=self._reset_handler.strategy.value,
        )

    def position(self) -> int:
        """Stored offset."""
        return self.offsets.read()

    def lag(self) -> int:
        """Bytes appended to the log but not yet consumed."""
        with self.log.locked():
            return max(self.log.reader.size() - self.offsets.read(), 0)

    def _resolve_offset(self, log_size: int) -> int:
        offset = self.offsets.read()
        if self._reset_handler.needs_reset(offset, log_size):
            offset = self._reset_handler.reset_offset(offset, log_size)
            self.offsets.reset(offset)
        return offset

    def poll(self) -> ReadResult:
        """
        Run one consume cycle.

        Returns:
            ReadResult for the records handled in this cycle

        Raises:
            OffsetStoreError: If the offset cannot be read or persisted
            OffsetOutOfRangeError: If the stored offset is past end of log
                and the reset strategy is "none"
            RecordDecodeError: If a record cannot be decoded
            LogReadError: If the log cannot be read
        """
        with self.log.locked():
            offset = self._resolve_offset(self.log.reader.size())

            result = self.log.reader.read_from(offset, max_records=self.config.max_records)

            for order in result.records:
                self.handler(order)

            if result.next_offset > offset:
                self.offsets.write(result.next_offset)

        self.cycles += 1
        self.records_consumed += len(result.records)

        if result.records:
            logger.info(
                "Consumed batch",
                records=len(result.records),
                offset=offset,
                next_offset=result.next_offset,
            )
        else:
            logger.debug("No new records", offset=offset)

        return result

    def commit(self, offset: int) -> None:
        """
        Persist an offset explicitly.

        Args:
            offset: Byte offset to store

        Raises:
            ValueError: If offset is negative or moves backwards
            OffsetOutOfRangeError: If offset is past end of log
            OffsetStoreError: If the offset cannot be written
        """
        with self.log.locked():
            check_offset(offset, self.log.reader.size(), self.offsets)
            self.offsets.write(offset)

        logger.info("Committed offset", offset=offset)

    def run_once(self) -> ReadResult:
        return self.poll()

    def metrics(self) -> dict:
        return {
            "cycles": self.cycles,
            "records_consumed": self.records_consumed,
        }
