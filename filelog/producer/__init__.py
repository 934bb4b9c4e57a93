"""Producer side: order generation and batch appends."""

from filelog.producer.generator import OrderGenerator, parse_order_id
from filelog.producer.producer import Producer, ProducerConfig

__all__ = [
    "OrderGenerator",
    "parse_order_id",
    "Producer",
    "ProducerConfig",
]
