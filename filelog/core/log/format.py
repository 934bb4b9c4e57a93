"""
Record format for the order log.

Each record is one UTF-8 JSON object terminated by a newline, so any line
of the log decodes independently of its neighbours:

    {"id":"0001","owner_id":"04821","items":[{"product_id":"535",
     "quantity":2,"unit_price":300.25}],"total":600.5}
"""

import json
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence, Tuple

from filelog.core.errors import RecordDecodeError, RecordEncodeError

RECORD_DELIMITER = b"\n"
TOTAL_TOLERANCE = 1e-9


@dataclass(frozen=True)
class Item:
    """
    A single order line.

    Attributes:
        product_id: Product identifier
        quantity: Number of units (at least 1)
        unit_price: Price per unit
    """

    product_id: str
    quantity: int
    unit_price: float

    def __post_init__(self) -> None:
        """Validate item fields."""
        if not isinstance(self.product_id, str):
            raise TypeError(f"product_id must be str, got {type(self.product_id)}")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise TypeError(f"quantity must be int, got {type(self.quantity)}")
        if self.quantity < 1:
            raise ValueError(f"Quantity must be positive, got {self.quantity}")
        if not math.isfinite(self.unit_price) or self.unit_price < 0:
            raise ValueError(f"Unit price must be a non-negative number, got {self.unit_price}")

    def subtotal(self) -> float:
        return self.unit_price * self.quantity


def compute_total(items: Iterable[Item]) -> float:
    """
    Sum unit_price * quantity over items.

    Args:
        items: Order items

    Returns:
        Order total
    """
    total = 0.0
    for item in items:
        total += item.subtotal()
    return total


@dataclass(frozen=True)
class Order:
    """
    An immutable order record.

    Attributes:
        id: Zero-padded, monotonically increasing identifier
        owner_id: Identifier of the ordering user
        items: Ordered order lines
        total: Sum of unit_price * quantity over items
    """

    id: str
    owner_id: str
    items: Tuple[Item, ...] = field(default_factory=tuple)
    total: float = 0.0

    def __post_init__(self) -> None:
        """Validate the record and its derived total."""
        if not isinstance(self.id, str) or not self.id:
            raise ValueError(f"Order id must be a non-empty string, got {self.id!r}")
        if not isinstance(self.owner_id, str):
            raise TypeError(f"owner_id must be str, got {type(self.owner_id)}")
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))

        expected = compute_total(self.items)
        if not math.isclose(self.total, expected, rel_tol=TOTAL_TOLERANCE, abs_tol=TOTAL_TOLERANCE):
            raise ValueError(
                f"Order {self.id} total {self.total} does not match items sum {expected}"
            )

    @classmethod
    def create(cls, id: str, owner_id: str, items: Sequence[Item]) -> "Order":
        """Build an order whose total is derived from its items."""
        items = tuple(items)
        return cls(id=id, owner_id=owner_id, items=items, total=compute_total(items))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "items": [
                {
                    "product_id": item.product_id,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                }
                for item in self.items
            ],
            "total": self.total,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Order":
        """
        Create an order from its decoded JSON form.

        Raises:
            KeyError, TypeError, ValueError: If fields are missing or invalid
        """
        if not isinstance(data, dict):
            raise TypeError(f"Record must be a JSON object, got {type(data).__name__}")

        raw_items = data["items"]
        if not isinstance(raw_items, list):
            raise TypeError("items must be a list")

        items = tuple(
            Item(
                product_id=raw["product_id"],
                quantity=raw["quantity"],
                unit_price=_as_float(raw["unit_price"], "unit_price"),
            )
            for raw in raw_items
        )

        return cls(
            id=data["id"],
            owner_id=data["owner_id"],
            items=items,
            total=_as_float(data["total"], "total"),
        )


def _as_float(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be a number, got {type(value).__name__}")
    return float(value)


def serialize(order: Order) -> bytes:
    """
    Serialize an order to one newline-terminated line.

    Args:
        order: Order to serialize

    Returns:
        UTF-8 encoded line including the trailing delimiter

    Raises:
        RecordEncodeError: If the order cannot be represented as JSON
    """
    try:
        line = json.dumps(
            order.to_dict(),
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise RecordEncodeError(f"Cannot serialize order {order.id}: {e}") from e

    return line.encode("utf-8") + RECORD_DELIMITER


def serialize_batch(orders: Iterable[Order]) -> bytes:
    """Serialize orders into a single contiguous buffer."""
    return b"".join(serialize(order) for order in orders)


def deserialize(line: bytes, position: int = -1) -> Order:
    """
    Decode one log line into an order.

    Args:
        line: Encoded record, with or without the trailing delimiter
        position: Byte position of the line in the log, for error reporting

    Returns:
        Decoded order

    Raises:
        RecordDecodeError: If the line is not a valid record
    """
    try:
        data = json.loads(line.decode("utf-8"))
        return Order.from_dict(data)
    except UnicodeDecodeError as e:
        raise RecordDecodeError(f"Invalid UTF-8 at position {position}: {e}", position) from e
    except json.JSONDecodeError as e:
        raise RecordDecodeError(f"Invalid JSON at position {position}: {e}", position) from e
    except KeyError as e:
        raise RecordDecodeError(f"Missing field {e} at position {position}", position) from e
    except (TypeError, ValueError) as e:
        raise RecordDecodeError(f"Invalid record at position {position}: {e}", position) from e
