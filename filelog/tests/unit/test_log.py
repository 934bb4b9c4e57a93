"""Tests for the Log facade and recovery scan."""

import tempfile
import threading
from pathlib import Path

import pytest

from filelog.core.log.format import serialize
from filelog.core.log.log import Log
from filelog.producer.generator import OrderGenerator


class TestLog:
    """Test Log class."""

    @pytest.fixture
    def temp_dir(self):
        """Create a temporary directory for tests."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    @pytest.fixture
    def log(self, temp_dir):
        return Log(temp_dir / "orders.jsonl")

    @pytest.fixture
    def generator(self):
        return OrderGenerator(seed=21)

    def test_create_log(self, log):
        """Test creating a log does not touch disk."""
        assert log.size() == 0
        assert not log.path.exists()

    def test_append_and_read(self, log, generator):
        """Test appending a batch and reading it back."""
        orders = generator.generate(3)

        written = log.append_batch(orders)
        result = log.read_from(0)

        assert result.records == orders
        assert result.next_offset == written == log.size()

    def test_shared_lock(self, temp_dir):
        """Test passing in an external lock."""
        lock = threading.Lock()
        log = Log(temp_dir / "orders.jsonl", lock=lock)

        assert log.lock is lock

    def test_locked_holds_lock(self, log):
        """Test that locked() holds the lock for its block."""
        with log.locked() as held:
            assert held is log
            assert log.lock.locked()

        assert not log.lock.locked()

    def test_recover_empty(self, log):
        """Test recovery of a log that does not exist."""
        info = log.recover()

        assert info.records == 0
        assert info.valid_bytes == 0
        assert info.last_id is None
        assert info.torn_bytes == 0

    def test_recover_reports_last_id(self, log, generator):
        """Test recovery after two batches."""
        log.append_batch(generator.generate(2))
        log.append_batch(generator.generate(4))

        info = log.recover()

        assert info.records == 6
        assert info.last_id == "0006"
        assert info.valid_bytes == log.size()

    def test_recover_reports_torn_tail(self, log, generator):
        """Test that recovery reports, but keeps, an unterminated tail."""
        log.append_batch(generator.generate(2))
        valid = log.size()
        with open(log.path, "ab") as f:
            f.write(serialize(generator.next_order())[:15])

        info = log.recover()

        assert info.records == 2
        assert info.valid_bytes == valid
        assert info.torn_bytes == 15
        assert log.size() == valid + 15
