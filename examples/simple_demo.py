#!/usr/bin/env python3
"""
Simple demo of the FileLog producer and consumer.

Produces two batches, consumes them, then shows that a second consume with
nothing new appended is a no-op and that the offset survives a restart.
"""

import tempfile
from pathlib import Path

from filelog.consumer.consumer import Consumer
from filelog.consumer.offset import OffsetStore
from filelog.core.log.log import Log
from filelog.producer.producer import Producer, ProducerConfig
from filelog.utils.logging import configure_logging


def main():
    configure_logging(log_level="WARNING", log_format="console")

    print("=" * 60)
    print("FileLog - Simple Producer/Consumer Demo")
    print("=" * 60)

    with tempfile.TemporaryDirectory() as tmpdir:
        data_dir = Path(tmpdir)
        log = Log(data_dir / "orders.jsonl")

        print("\n[1] Producing two batches of 3 orders...")
        producer = Producer(log, config=ProducerConfig(batch_size=3, seed=42))
        for _ in range(2):
            orders = producer.run_once()
            print(f"  Sent {[o.id for o in orders]}")
        print(f"  Log size: {log.size()} bytes")

        print("\n[2] Consuming...")
        consumer = Consumer(log, OffsetStore(data_dir / "offset.txt"), handler=lambda o: None)
        result = consumer.poll()
        for order in result.records:
            print(f"  {order.id} owner={order.owner_id} items={len(order.items)} total={order.total:.2f}")
        print(f"  Offset now {consumer.position()}")

        print("\n[3] Consuming again with nothing new...")
        result = consumer.poll()
        print(f"  Records: {len(result.records)}, offset still {consumer.position()}")

        print("\n[4] Restarting consumer after one more batch...")
        producer.run_once()
        restarted = Consumer(
            Log(data_dir / "orders.jsonl"),
            OffsetStore(data_dir / "offset.txt"),
            handler=lambda o: None,
        )
        result = restarted.poll()
        print(f"  Resumed with {[o.id for o in result.records]}")

    print("\n" + "=" * 60)
    print("Demo completed successfully!")
    print("=" * 60)


if __name__ == "__main__":
    main()
