"""
Synthetic order generator.

Identifiers continue across calls for the lifetime of the generator, so
consecutive batches form one gap-free sequence. Payload fields come from a
private random.Random seeded once at construction; nothing touches the
module-level random state.
"""

import random
from typing import List, Optional

from filelog.core.log.format import Item, Order
from filelog.utils.logging import get_logger

logger = get_logger(__name__)

MAX_OWNER_ID = 99999
MAX_PRODUCT_ID = 999
MAX_ITEMS = 5
MAX_QUANTITY = 10
MAX_PRICE = 999


class OrderGenerator:
    """
    Produces orders with monotonically increasing ids.

    Example:
        generator = OrderGenerator(seed=42)
        generator.generate(3)   # ids 0001, 0002, 0003
        generator.generate(2)   # ids 0004, 0005

    Attributes:
        id_width: Zero-padding width for identifiers
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        start_id: int = 0,
        id_width: int = 4,
    ):
        """
        Initialize the generator.

        Args:
            seed: Seed for reproducible output (None = OS entropy)
            start_id: Last id already issued; the next order gets start_id + 1
            id_width: Zero-padding width for identifiers
        """
        if start_id < 0:
            raise ValueError(f"start_id must be non-negative, got {start_id}")
        if id_width < 1:
            raise ValueError(f"id_width must be positive, got {id_width}")

        self.id_width = id_width
        self._rng = random.Random(seed)
        self._last_id = start_id

        logger.info(
            "Initialized order generator",
            seed=seed,
            start_id=start_id,
            id_width=id_width,
        )

    @property
    def last_id(self) -> int:
        """Numeric id of the most recently generated order (0 if none)."""
        return self._last_id

    def format_id(self, number: int) -> str:
        return f"{number:0{self.id_width}d}"

    def _build_items(self) -> List[Item]:
        rng = self._rng
        items = []
        for _ in range(rng.randint(1, MAX_ITEMS)):
            items.append(
                Item(
                    product_id=f"{rng.randint(0, MAX_PRODUCT_ID):03d}",
                    quantity=rng.randint(1, MAX_QUANTITY),
                    unit_price=rng.randint(0, MAX_PRICE) + rng.random(),
                )
            )
        return items

    def next_order(self) -> Order:
        """Generate a single order."""
        self._last_id += 1
        return Order.create(
            id=self.format_id(self._last_id),
            owner_id=f"{self._rng.randint(0, MAX_OWNER_ID):05d}",
            items=self._build_items(),
        )

    def generate(self, n: int) -> List[Order]:
        """
        Generate the next n orders.

        Args:
            n: Number of orders (0 returns an empty list)

        Returns:
            Orders with consecutive ids following the previous call

        Raises:
            ValueError: If n is negative
        """
        if n < 0:
            raise ValueError(f"Batch size must be non-negative, got {n}")

        return [self.next_order() for _ in range(n)]


def parse_order_id(order_id: Optional[str]) -> int:
    """
    Convert a stored order id back to its sequence number.

    Args:
        order_id: Identifier read from the log, or None for an empty log

    Returns:
        Sequence number, 0 for None

    Raises:
        ValueError: If the id is not a decimal number
    """
    if order_id is None:
        return 0
    if not order_id.isdigit():
        raise ValueError(f"Order id is not numeric: {order_id!r}")
    return int(order_id)
