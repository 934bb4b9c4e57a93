"""Tests for order record serialization and deserialization."""

import json

import pytest

from filelog.core.errors import RecordDecodeError, RecordEncodeError
from filelog.core.log.format import (
    Item,
    Order,
    compute_total,
    deserialize,
    serialize,
    serialize_batch,
)


def make_order(order_id="0001"):
    return Order.create(
        id=order_id,
        owner_id="04821",
        items=[
            Item(product_id="535", quantity=1, unit_price=300.0),
            Item(product_id="125", quantity=2, unit_price=100.25),
        ],
    )


class TestItem:
    """Test Item dataclass."""

    def test_create_item(self):
        """Test creating an item."""
        item = Item(product_id="007", quantity=3, unit_price=1.5)

        assert item.product_id == "007"
        assert item.quantity == 3
        assert item.subtotal() == 4.5

    def test_zero_quantity_raises_error(self):
        """Test that zero quantity raises ValueError."""
        with pytest.raises(ValueError, match="Quantity must be positive"):
            Item(product_id="001", quantity=0, unit_price=1.0)

    def test_negative_price_raises_error(self):
        """Test that negative price raises ValueError."""
        with pytest.raises(ValueError, match="Unit price"):
            Item(product_id="001", quantity=1, unit_price=-0.01)

    def test_non_int_quantity_raises_error(self):
        """Test that a float quantity is rejected."""
        with pytest.raises(TypeError):
            Item(product_id="001", quantity=1.5, unit_price=1.0)

    def test_item_is_immutable(self):
        """Test that items cannot be modified."""
        item = Item(product_id="001", quantity=1, unit_price=1.0)

        with pytest.raises(AttributeError):
            item.quantity = 2


class TestOrder:
    """Test Order dataclass."""

    def test_create_derives_total(self):
        """Test that create() computes the total from items."""
        order = make_order()

        assert order.total == pytest.approx(300.0 + 2 * 100.25, abs=1e-9)
        assert isinstance(order.items, tuple)

    def test_mismatched_total_raises_error(self):
        """Test that a wrong total is rejected."""
        with pytest.raises(ValueError, match="does not match"):
            Order(
                id="0001",
                owner_id="00001",
                items=(Item(product_id="001", quantity=2, unit_price=10.0),),
                total=10.0,
            )

    def test_empty_id_raises_error(self):
        """Test that an empty id is rejected."""
        with pytest.raises(ValueError, match="non-empty"):
            Order.create(id="", owner_id="00001", items=[])

    def test_order_without_items_has_zero_total(self):
        """Test an order with no items."""
        order = Order.create(id="0001", owner_id="00001", items=[])

        assert order.total == 0.0
        assert order.items == ()

    def test_list_items_are_frozen_to_tuple(self):
        """Test that a list of items is stored as a tuple."""
        items = [Item(product_id="001", quantity=1, unit_price=2.0)]
        order = Order(id="0001", owner_id="00001", items=items, total=2.0)

        assert order.items == tuple(items)

    def test_order_is_immutable(self):
        """Test that orders cannot be modified."""
        order = make_order()

        with pytest.raises(AttributeError):
            order.total = 0.0

    def test_compute_total(self):
        """Test total over several items."""
        items = [
            Item(product_id="001", quantity=3, unit_price=0.1),
            Item(product_id="002", quantity=7, unit_price=999.99),
        ]

        assert compute_total(items) == pytest.approx(0.3 + 7 * 999.99, abs=1e-9)


class TestSerialization:
    """Test line serialization."""

    def test_serialize_is_one_line(self):
        """Test that a record serializes to exactly one terminated line."""
        data = serialize(make_order())

        assert data.endswith(b"\n")
        assert data.count(b"\n") == 1

    def test_serialize_field_names(self):
        """Test the on-disk field names."""
        data = json.loads(serialize(make_order()))

        assert set(data) == {"id", "owner_id", "items", "total"}
        assert set(data["items"][0]) == {"product_id", "quantity", "unit_price"}
        assert data["id"] == "0001"
        assert data["items"][1]["quantity"] == 2

    def test_round_trip(self):
        """Test that deserialize(serialize(order)) returns an equal order."""
        order = make_order()

        recovered = deserialize(serialize(order))

        assert recovered == order
        assert recovered.items[1].unit_price == 100.25

    def test_deserialize_without_delimiter(self):
        """Test decoding a line without its trailing newline."""
        data = serialize(make_order()).rstrip(b"\n")

        assert deserialize(data).id == "0001"

    def test_deserialize_integer_price(self):
        """Test that integral JSON prices decode as floats."""
        line = (
            b'{"id":"0001","owner_id":"1","items":'
            b'[{"product_id":"1","quantity":2,"unit_price":300}],"total":600}'
        )

        order = deserialize(line)

        assert isinstance(order.items[0].unit_price, float)
        assert order.total == 600.0

    def test_serialize_batch_concatenates(self):
        """Test that a batch is the concatenation of its records."""
        orders = [make_order("0001"), make_order("0002")]

        data = serialize_batch(orders)

        assert data == serialize(orders[0]) + serialize(orders[1])
        assert data.count(b"\n") == 2

    def test_serialize_non_finite_price_raises_error(self):
        """Test that an unrepresentable order raises RecordEncodeError."""
        order = make_order()
        object.__setattr__(order, "total", float("nan"))

        with pytest.raises(RecordEncodeError):
            serialize(order)


class TestDeserializationErrors:
    """Test decode failures."""

    def test_invalid_json(self):
        """Test that garbage raises RecordDecodeError."""
        with pytest.raises(RecordDecodeError, match="Invalid JSON") as exc_info:
            deserialize(b"{not json}\n", position=42)

        assert exc_info.value.position == 42

    def test_missing_field(self):
        """Test that a missing field raises RecordDecodeError."""
        with pytest.raises(RecordDecodeError, match="Missing field"):
            deserialize(b'{"id":"0001","owner_id":"1","items":[]}\n')

    def test_wrong_total(self):
        """Test that an inconsistent total raises RecordDecodeError."""
        line = (
            b'{"id":"0001","owner_id":"1","items":'
            b'[{"product_id":"1","quantity":1,"unit_price":5.0}],"total":6.0}\n'
        )

        with pytest.raises(RecordDecodeError, match="does not match"):
            deserialize(line)

    def test_not_an_object(self):
        """Test that a JSON array raises RecordDecodeError."""
        with pytest.raises(RecordDecodeError):
            deserialize(b"[1, 2, 3]\n")

    def test_invalid_utf8(self):
        """Test that invalid UTF-8 raises RecordDecodeError."""
        with pytest.raises(RecordDecodeError, match="UTF-8"):
            deserialize(b"\xff\xfe\n")
