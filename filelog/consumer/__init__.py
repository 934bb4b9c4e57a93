"""Consumer side: offset persistence and the consume cycle."""

from filelog.consumer.consumer import Consumer, ConsumerConfig, log_record
from filelog.consumer.offset import OffsetResetHandler, OffsetResetStrategy, OffsetStore

__all__ = [
    "Consumer",
    "ConsumerConfig",
    "log_record",
    "OffsetStore",
    "OffsetResetHandler",
    "OffsetResetStrategy",
]
