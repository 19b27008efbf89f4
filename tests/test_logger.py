"""Tests for FileRotationLogger: serial write path, levels, and construction errors."""

import os
import shutil
import stat
import tempfile
import threading
import unittest
from datetime import datetime, timezone

from filerotation.config import Config, CreationStrategy, LogLevel, RotationConfig, SuffixScheme
from filerotation.delegate import RotationDelegate
from filerotation.errors import DeleteFailed, InvalidPermission, NotAFile
from filerotation.logger import FileRotationLogger, default_formatter


def plain(_timestamp, _level, _label, message):
    return message


class RecordingDelegate(RotationDelegate):
    def __init__(self):
        self.archived = []
        self.removed = []

    def on_archived(self, from_path, to_path):
        self.archived.append((from_path, to_path))

    def on_archive_removed(self, path):
        self.removed.append(path)


class CallbackDelegate(RotationDelegate):
    """Calls back into the logger from inside a rotation."""

    def __init__(self, callback):
        self.callback = callback
        self.file_logger = None

    def on_archived(self, from_path, to_path):
        self.callback(self.file_logger)


class LoggerTestCase(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.target = os.path.join(self.tmpdir, "logs", "app.log")
        self._loggers = []

    def tearDown(self):
        for lg in self._loggers:
            lg.close()
        shutil.rmtree(self.tmpdir)

    def _config(self, rotation=None, **overrides):
        defaults = dict(
            file_path=self.target,
            file_permission="640",
            label="test",
            rotation=rotation or RotationConfig(max_file_size_bytes=100, max_archived_files=5),
        )
        defaults.update(overrides)
        return Config(**defaults)

    def _logger(self, config=None, **kwargs):
        kwargs.setdefault("formatter", plain)
        lg = FileRotationLogger(config or self._config(), **kwargs)
        self._loggers.append(lg)
        return lg

    def _read(self, path):
        with open(path, "rb") as f:
            return f.read()


class TestConstruction(LoggerTestCase):
    def test_creates_directory_and_file_with_permission(self):
        self._logger()
        self.assertTrue(os.path.isfile(self.target))
        self.assertEqual(stat.S_IMODE(os.stat(self.target).st_mode), 0o640)

    def test_invalid_permission_fails(self):
        with self.assertRaises(InvalidPermission):
            FileRotationLogger(self._config(file_permission="999"))
        self.assertFalse(os.path.exists(self.target))

    def test_directory_target_fails(self):
        with self.assertRaises(NotAFile):
            FileRotationLogger(self._config(file_path=self.tmpdir))

    def test_create_new_file_resumes_latest_file(self):
        os.makedirs(os.path.dirname(self.target))
        latest = os.path.join(
            os.path.dirname(self.target),
            "app_20250115T120000_0f8fad5b-d9cb-469f-a165-70867728950e.log",
        )
        with open(latest, "wb") as f:
            f.write(b"previous run\n")
        rotation = RotationConfig(creation_strategy=CreationStrategy.CREATE_NEW_FILE,
                                  suffix_scheme=SuffixScheme.TIMESTAMP_UNIQUE)
        lg = self._logger(self._config(rotation=rotation))
        self.assertEqual(lg.current_path, latest)

        lg.info("resumed")
        lg.flush()
        self.assertEqual(self._read(latest), b"previous run\nresumed\n")


class TestWritePath(LoggerTestCase):
    def test_writes_lines(self):
        lg = self._logger()
        lg.info("one")
        lg.error("two")
        lg.flush()
        self.assertEqual(self._read(self.target), b"one\ntwo\n")

    def test_post_write_check_rotates_before_next_write(self):
        delegate = RecordingDelegate()
        lg = self._logger(delegate=delegate)
        first = "a" * 100  # 101 bytes with the newline

        lg.info(first)
        lg.flush()
        archived = os.path.join(os.path.dirname(self.target), "app.1.log")
        self.assertEqual(delegate.archived, [(self.target, archived)])
        self.assertEqual(os.path.getsize(self.target), 0)

        lg.info("second")
        lg.flush()
        self.assertEqual(self._read(archived), (first + "\n").encode())
        self.assertEqual(self._read(self.target), b"second\n")
        self.assertEqual(len(delegate.archived), 1)

    def test_retention_over_many_rotations(self):
        delegate = RecordingDelegate()
        rotation = RotationConfig(max_file_size_bytes=10, max_archived_files=2)
        lg = self._logger(self._config(rotation=rotation), delegate=delegate)
        for i in range(5):
            lg.info(f"message-{i:02d}")
        lg.flush()

        names = sorted(os.listdir(os.path.dirname(self.target)))
        self.assertEqual(names, ["app.1.log", "app.2.log", "app.log"])
        self.assertEqual(len(delegate.archived), 5)
        self.assertEqual(len(delegate.removed), 3)

    def test_create_new_file_numbering_keeps_generation_one(self):
        rotation = RotationConfig(max_file_size_bytes=10,
                                  creation_strategy=CreationStrategy.CREATE_NEW_FILE)
        lg = self._logger(self._config(rotation=rotation))
        gen1 = os.path.join(os.path.dirname(self.target), "app.1.log")

        lg.info("first message")
        lg.flush()
        self.assertEqual(lg.current_path, gen1)
        lg.info("second message")
        lg.flush()
        self.assertEqual(lg.current_path, gen1)
        self.assertEqual(self._read(gen1), b"second message\n")
        self.assertEqual(self._read(self.target), b"first message\n")

    def test_level_filtering(self):
        lg = self._logger(self._config(log_level=LogLevel.WARNING))
        lg.debug("hidden")
        lg.info("hidden")
        lg.warning("shown")
        lg.log("critical", "also shown")
        lg.flush()
        self.assertEqual(self._read(self.target), b"shown\nalso shown\n")

    def test_default_formatter(self):
        ts = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
        lg = self._logger(formatter=default_formatter, time_func=lambda: ts)
        lg.notice("hello")
        lg.flush()
        self.assertEqual(
            self._read(self.target),
            b"2025-01-15T12:00:00+00:00 [NOTICE] [test] hello\n",
        )

    def test_concurrent_callers_are_serialized(self):
        rotation = RotationConfig(max_file_size_bytes=1024 * 1024)
        lg = self._logger(self._config(rotation=rotation))

        def worker(n):
            for i in range(50):
                lg.info(f"thread-{n}-{i}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        lg.flush()

        lines = self._read(self.target).decode().splitlines()
        self.assertEqual(len(lines), 200)
        self.assertEqual(len(set(lines)), 200)


class TestCallbacksIntoLogger(LoggerTestCase):
    def _flush_with_timeout(self, lg, timeout=5):
        t = threading.Thread(target=lg.flush, daemon=True)
        t.start()
        t.join(timeout)
        return not t.is_alive()

    def test_flush_and_delete_from_delegate_do_not_hang(self):
        victim = os.path.join(self.tmpdir, "old.log")
        open(victim, "w").close()

        def callback(file_logger):
            file_logger.flush()
            file_logger.delete(victim)

        delegate = CallbackDelegate(callback)
        lg = self._logger(delegate=delegate)
        delegate.file_logger = lg

        lg.info("a" * 100)
        self.assertTrue(self._flush_with_timeout(lg), "worker thread is stuck")
        self.assertFalse(os.path.exists(victim))
        self.assertEqual(os.path.getsize(self.target), 0)

    def test_close_from_delegate_stops_worker(self):
        delegate = CallbackDelegate(lambda file_logger: file_logger.close())
        lg = self._logger(delegate=delegate)
        delegate.file_logger = lg

        lg.info("a" * 100)
        lg._thread.join(5)
        self.assertFalse(lg._thread.is_alive())
        lg.info("dropped")
        archived = os.path.join(os.path.dirname(self.target), "app.1.log")
        self.assertEqual(os.path.getsize(archived), 101)
        self.assertEqual(os.path.getsize(self.target), 0)


class TestLifecycle(LoggerTestCase):
    def test_close_drains_queue(self):
        lg = FileRotationLogger(self._config(), formatter=plain)
        for i in range(20):
            lg.info(str(i))
        lg.close()
        lines = self._read(self.target).decode().splitlines()
        self.assertEqual(lines, [str(i) for i in range(20)])

    def test_close_is_idempotent_and_drops_later_logs(self):
        lg = FileRotationLogger(self._config(), formatter=plain)
        lg.close()
        lg.close()
        lg.info("after close")
        self.assertEqual(self._read(self.target), b"")
        with self.assertRaises(RuntimeError):
            lg.flush()

    def test_nothing_is_left_queued_after_racing_close(self):
        rotation = RotationConfig(max_file_size_bytes=1024 * 1024)
        lg = FileRotationLogger(self._config(rotation=rotation), formatter=plain)
        start = threading.Event()

        def worker(n):
            start.wait()
            for i in range(200):
                lg.info(f"thread-{n}-{i}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        start.set()
        lg.close()
        for t in threads:
            t.join()

        self.assertEqual(lg._queue.qsize(), 0)
        written = self._read(self.target).decode().splitlines()
        self.assertEqual(len(written), len(set(written)))

    def test_context_manager(self):
        with FileRotationLogger(self._config(), formatter=plain) as lg:
            lg.info("inside")
        self.assertEqual(self._read(self.target), b"inside\n")

    def test_delete(self):
        lg = self._logger()
        victim = os.path.join(self.tmpdir, "old.log")
        open(victim, "w").close()
        lg.delete(victim)
        self.assertFalse(os.path.exists(victim))
        with self.assertRaises(DeleteFailed):
            lg.delete(victim)


if __name__ == "__main__":
    unittest.main()
