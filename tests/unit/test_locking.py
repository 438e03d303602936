"""Tests for the shared/exclusive lock."""

import threading
import time

from teststate.locking import ReadWriteLock


class TestReadWriteLock:
    """Tests for ReadWriteLock."""

    def test_readers_share(self) -> None:
        """Several readers hold the lock at once."""
        lock = ReadWriteLock()
        inside = threading.Barrier(3, timeout=5)

        def read() -> None:
            with lock.read_locked():
                inside.wait()

        threads = [threading.Thread(target=read) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert not any(t.is_alive() for t in threads)
        assert not inside.broken

    def test_writer_excludes_readers(self) -> None:
        """A reader waits until the writer releases."""
        lock = ReadWriteLock()
        events: list[str] = []

        lock.acquire_write()

        def read() -> None:
            with lock.read_locked():
                events.append("read")

        reader = threading.Thread(target=read)
        reader.start()
        time.sleep(0.05)
        events.append("write-done")
        lock.release_write()
        reader.join(timeout=5)

        assert events == ["write-done", "read"]

    def test_writer_waits_for_readers(self) -> None:
        """A writer waits until active readers release."""
        lock = ReadWriteLock()
        events: list[str] = []

        lock.acquire_read()

        def write() -> None:
            with lock.write_locked():
                events.append("write")

        writer = threading.Thread(target=write)
        writer.start()
        time.sleep(0.05)
        events.append("read-done")
        lock.release_read()
        writer.join(timeout=5)

        assert events == ["read-done", "write"]

    def test_waiting_writer_blocks_new_readers(self) -> None:
        """New readers queue behind a waiting writer."""
        lock = ReadWriteLock()
        events: list[str] = []

        lock.acquire_read()

        def write() -> None:
            with lock.write_locked():
                events.append("write")

        def read() -> None:
            with lock.read_locked():
                events.append("late-read")

        writer = threading.Thread(target=write)
        writer.start()
        time.sleep(0.05)
        reader = threading.Thread(target=read)
        reader.start()
        time.sleep(0.05)
        lock.release_read()
        writer.join(timeout=5)
        reader.join(timeout=5)

        assert events == ["write", "late-read"]

    def test_lock_released_on_exception(self) -> None:
        """Context managers release the lock when the block raises."""
        lock = ReadWriteLock()

        try:
            with lock.write_locked():
                raise RuntimeError("boom")
        except RuntimeError:
            pass

        acquired = threading.Event()

        def read() -> None:
            with lock.read_locked():
                acquired.set()

        reader = threading.Thread(target=read)
        reader.start()
        reader.join(timeout=5)
        assert acquired.is_set()
