"""
Producer that appends generated order batches to the log.

One produce cycle generates a batch outside the lock and appends it in a
single locked write. The polling loop itself lives in filelog.scheduler.
"""

from dataclasses import dataclass
from typing import List, Optional

from filelog.core.log.format import Order
from filelog.core.log.log import Log
from filelog.producer.generator import OrderGenerator
from filelog.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ProducerConfig:
    """
    Configuration for producer.

    Attributes:
        batch_size: Orders generated per cycle
        interval_ms: Pause between cycles
        seed: Generator seed (None = nondeterministic)
        id_width: Zero-padding width for order ids
    """
    batch_size: int = 10
    interval_ms: int = 2000
    seed: Optional[int] = None
    id_width: int = 4

    def __post_init__(self) -> None:
        if self.batch_size < 0:
            raise ValueError(f"batch_size must be non-negative, got {self.batch_size}")
        if self.interval_ms < 0:
            raise ValueError(f"interval_ms must be non-negative, got {self.interval_ms}")


class Producer:
    """
    Generates order batches and appends them to a log.

    Example:
        producer = Producer(log, config=ProducerConfig(batch_size=3))
        producer.run_once()
    """

    def __init__(
        self,
        log: Log,
        config: Optional[ProducerConfig] = None,
        generator: Optional[OrderGenerator] = None,
    ):
        """
        Initialize producer.

        Args:
            log: Log to append to
            config: Producer configuration
            generator: Order generator (built from config if omitted)
        """
        self.log = log
        self.config = config or ProducerConfig()
        self.generator = generator or OrderGenerator(
            seed=self.config.seed,
            id_width=self.config.id_width,
        )

        self.batches_sent = 0
        self.records_sent = 0
        self.bytes_sent = 0

        logger.info(
            "Producer initialized",
            path=str(log.path),
            batch_size=self.config.batch_size,
            interval_ms=self.config.interval_ms,
        )

    def send(self, orders: List[Order]) -> int:
        """
        Append a batch of orders to the log.

        Args:
            orders: Orders to append

        Returns:
            Bytes appended

        Raises:
            LogWriteError: If the append fails
            RecordEncodeError: If an order cannot be serialized
        """
        bytes_written = self.log.append_batch(orders)

        if orders:
            self.batches_sent += 1
            self.records_sent += len(orders)
            self.bytes_sent += bytes_written

        return bytes_written

    def run_once(self) -> List[Order]:
        """
        Run one produce cycle: generate a batch and append it.

        Returns:
            Orders appended in this cycle

        Raises:
            LogWriteError: If the append fails
        """
        orders = self.generator.generate(self.config.batch_size)
        bytes_written = self.send(orders)

        if orders:
            logger.info(
                "Produced batch",
                records=len(orders),
                bytes=bytes_written,
                first_id=orders[0].id,
                last_id=orders[-1].id,
            )

        return orders

    def metrics(self) -> dict:
        return {
            "batches_sent": self.batches_sent,
            "records_sent": self.records_sent,
            "bytes_sent": self.bytes_sent,
            "last_id": self.generator.last_id,
        }
