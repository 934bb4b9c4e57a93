"""
FileLog - a publish/subscribe log emulated with local files.

A producer appends batches of order records to an append-only file while a
consumer tracks how far it has read through a separately persisted byte
offset:
- Newline-delimited JSON records, one order per line
- Whole-batch appends under a shared lock
- Crash-atomic offset persistence
- Producer and consumer polling loops with cooperative shutdown
"""

__version__ = "0.1.0"

from filelog.core.log import Item, Log, Order
from filelog.consumer import Consumer, ConsumerConfig, OffsetStore
from filelog.producer import OrderGenerator, Producer, ProducerConfig

__all__ = [
    "Item",
    "Log",
    "Order",
    "Consumer",
    "ConsumerConfig",
    "OffsetStore",
    "OrderGenerator",
    "Producer",
    "ProducerConfig",
]
