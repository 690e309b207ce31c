"""
Unit tests for the reader-writer lock.
"""

import threading
import time

import pytest

from paperhunter.ir.locks import ReadWriteLock

pytestmark = pytest.mark.unit


class TestReadWriteLock:
    """Test reader/writer exclusion"""

    def test_nested_reads(self):
        """Test a reader can re-enter the read side"""
        lock = ReadWriteLock()
        with lock.read_locked():
            with lock.read_locked():
                pass

    def test_writer_waits_for_reader(self):
        lock = ReadWriteLock()
        events = []

        def writer():
            with lock.write_locked():
                events.append("write")

        with lock.read_locked():
            thread = threading.Thread(target=writer)
            thread.start()
            time.sleep(0.05)
            events.append("read done")

        thread.join(timeout=2)
        assert events == ["read done", "write"]

    def test_reader_waits_for_writer(self):
        lock = ReadWriteLock()
        events = []

        def reader():
            with lock.read_locked():
                events.append("read")

        with lock.write_locked():
            thread = threading.Thread(target=reader)
            thread.start()
            time.sleep(0.05)
            events.append("write done")

        thread.join(timeout=2)
        assert events == ["write done", "read"]

    def test_released_on_error(self):
        lock = ReadWriteLock()
        with pytest.raises(RuntimeError):
            with lock.write_locked():
                raise RuntimeError("boom")

        with lock.write_locked():
            pass
