"""Tests for the append-only log writer."""

import os
import tempfile
from pathlib import Path

import pytest

from filelog.core.errors import LogWriteError, UnterminatedLogError
from filelog.core.log.format import deserialize, serialize
from filelog.core.log.writer import LogWriter
from filelog.producer.generator import OrderGenerator


class TestLogWriter:
    """Test LogWriter appends."""

    @pytest.fixture
    def temp_dir(self):
        """Create a temporary directory for tests."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    @pytest.fixture
    def generator(self):
        return OrderGenerator(seed=7)

    def test_append_creates_file(self, temp_dir, generator):
        """Test that the first append creates the log file."""
        path = temp_dir / "orders.jsonl"
        writer = LogWriter(path)

        assert not path.exists()

        writer.append_batch(generator.generate(1))

        assert path.exists()

    def test_append_creates_parent_directory(self, temp_dir, generator):
        """Test that missing parent directories are created."""
        path = temp_dir / "nested" / "dir" / "orders.jsonl"

        LogWriter(path).append_batch(generator.generate(1))

        assert path.exists()

    def test_append_returns_bytes_written(self, temp_dir, generator):
        """Test the returned byte count matches the file size."""
        path = temp_dir / "orders.jsonl"
        orders = generator.generate(3)

        written = LogWriter(path).append_batch(orders)

        assert written == sum(len(serialize(o)) for o in orders)
        assert path.stat().st_size == written

    def test_append_one_line_per_record(self, temp_dir, generator):
        """Test that each record occupies one line in write order."""
        path = temp_dir / "orders.jsonl"
        orders = generator.generate(3)

        LogWriter(path).append_batch(orders)

        lines = path.read_bytes().splitlines()
        assert len(lines) == 3
        assert [deserialize(line) for line in lines] == orders

    def test_append_never_rewrites_existing_bytes(self, temp_dir, generator):
        """Test that a second batch leaves the first batch untouched."""
        path = temp_dir / "orders.jsonl"
        writer = LogWriter(path)

        writer.append_batch(generator.generate(2))
        first = path.read_bytes()

        writer.append_batch(generator.generate(4))
        content = path.read_bytes()

        assert content.startswith(first)
        assert len(content.splitlines()) == 6

    def test_empty_batch_writes_nothing(self, temp_dir):
        """Test that an empty batch does not create the file."""
        path = temp_dir / "orders.jsonl"

        written = LogWriter(path).append_batch([])

        assert written == 0
        assert not path.exists()

    def test_fsync_on_append(self, temp_dir, generator):
        """Test appending with fsync enabled."""
        path = temp_dir / "orders.jsonl"
        writer = LogWriter(path, fsync_on_append=True)

        writer.append_batch(generator.generate(2))

        assert len(path.read_bytes().splitlines()) == 2

    def test_open_failure_raises_log_write_error(self, temp_dir, generator):
        """Test that an unopenable path surfaces LogWriteError."""
        path = temp_dir / "is-a-directory"
        path.mkdir()

        with pytest.raises(LogWriteError, match="Cannot open log"):
            LogWriter(path).append_batch(generator.generate(1))

    def test_refuses_append_after_torn_tail(self, temp_dir, generator):
        """Test that a log ending mid-record is left untouched."""
        path = temp_dir / "orders.jsonl"
        writer = LogWriter(path)
        writer.append_batch(generator.generate(2))
        with open(path, "ab") as f:
            f.write(serialize(generator.next_order())[:-10])
        before = path.read_bytes()

        with pytest.raises(UnterminatedLogError) as exc_info:
            writer.append_batch(generator.generate(1))

        assert exc_info.value.log_size == len(before)
        assert path.read_bytes() == before

    def test_short_write_blocks_further_appends(self, temp_dir, generator, monkeypatch):
        """Test that bytes left by a short write are never glued to a later batch."""
        path = temp_dir / "orders.jsonl"
        writer = LogWriter(path)
        writer.append_batch(generator.generate(1))
        real_write = os.write

        monkeypatch.setattr(os, "write", lambda fd, data: real_write(fd, data[:-1]))
        with pytest.raises(LogWriteError, match="Partial write"):
            writer.append_batch(generator.generate(2))
        monkeypatch.undo()

        torn = path.read_bytes()
        with pytest.raises(UnterminatedLogError):
            writer.append_batch(generator.generate(1))

        assert path.read_bytes() == torn
