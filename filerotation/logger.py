"""FileRotationLogger: a file logger whose writes and rotations run on one worker thread."""

import logging
import queue
import threading
from datetime import datetime, timezone

from filerotation.config import Config, LogLevel
from filerotation.delegate import RotationDelegate
from filerotation.engine import RotationEngine
from filerotation.writer import FileWriter, validate_file_path, validate_permission

logger = logging.getLogger(__name__)

_STOP = object()


def default_formatter(timestamp: datetime, level: LogLevel, label: str, message: str) -> str:
    return f"{timestamp.isoformat()} [{level.name}] [{label}] {message}"


class _Call:
    """A function to run on the worker thread while the caller waits for its result."""

    def __init__(self, func, *args):
        self.func = func
        self.args = args
        self.done = threading.Event()
        self.result = None
        self.error: BaseException | None = None

    def run(self):
        try:
            self.result = self.func(*self.args)
        except Exception as e:
            self.error = e
        finally:
            self.done.set()


class FileRotationLogger:
    """Thread-safe size-rotating file logger.

    Every call is funneled through a single queue, so the size check, the
    write, and any rotation for one logger never interleave. Each message is
    handled as check -> append -> check: the second check lets the next
    message land in a fresh file without waiting for another write.
    """

    def __init__(self, config: Config, delegate: RotationDelegate | None = None,
                 formatter=None, time_func=None, uuid_func=None,
                 diagnostics: logging.Logger | None = None):
        # Validate before any file is touched
        validate_file_path(config.file_path)
        validate_permission(config.file_permission, config.file_path)

        self._config = config
        self._level = LogLevel.parse(config.log_level)
        self._formatter = formatter or default_formatter
        self._time_func = time_func or (lambda: datetime.now(timezone.utc))
        self._writer = FileWriter(config.file_permission, config.flush_mode)
        self._engine = RotationEngine(
            config.file_path, config.rotation, self._writer,
            delegate=delegate, diagnostics=diagnostics,
            time_func=time_func, uuid_func=uuid_func,
        )
        self._writer.open(self._engine.current_path)

        self._queue: queue.Queue = queue.Queue()
        self._closed = False
        self._close_lock = threading.Lock()
        self._thread = threading.Thread(
            target=self._run, name=f"filerotation-{config.label}", daemon=True
        )
        self._thread.start()
        logger.debug("Logger %s writing to %s", config.label, self._engine.current_path)

    @property
    def label(self) -> str:
        return self._config.label

    @property
    def current_path(self) -> str:
        return self._engine.current_path

    @property
    def engine(self) -> RotationEngine:
        return self._engine

    def _run(self):
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    self._writer.close()
                    return
                if isinstance(item, _Call):
                    item.run()
                else:
                    self._write(item)
            except Exception:
                logger.exception("Unexpected error in logger %s", self._config.label)
            finally:
                self._queue.task_done()

    def _write(self, data: bytes):
        self._engine.check_and_rotate()
        self._writer.append(data)
        self._engine.check_and_rotate()

    def _on_worker(self) -> bool:
        return threading.current_thread() is self._thread

    def _submit(self, func, *args):
        # Delegate callbacks already run on the worker; queueing would wait on ourselves
        if self._on_worker():
            return func(*args)
        call = _Call(func, *args)
        with self._close_lock:
            if self._closed:
                raise RuntimeError(f"Logger {self._config.label} is closed")
            self._queue.put(call)
        call.done.wait()
        if call.error is not None:
            raise call.error
        return call.result

    def log(self, level, message: str):
        level = LogLevel.parse(level)
        if level < self._level:
            return
        line = self._formatter(self._time_func(), level, self._config.label, message)
        with self._close_lock:
            # Nothing may be queued behind _STOP
            if self._closed:
                return
            self._queue.put((line + "\n").encode("utf-8"))

    def trace(self, message: str):
        self.log(LogLevel.TRACE, message)

    def debug(self, message: str):
        self.log(LogLevel.DEBUG, message)

    def info(self, message: str):
        self.log(LogLevel.INFO, message)

    def notice(self, message: str):
        self.log(LogLevel.NOTICE, message)

    def warning(self, message: str):
        self.log(LogLevel.WARNING, message)

    def error(self, message: str):
        self.log(LogLevel.ERROR, message)

    def critical(self, message: str):
        self.log(LogLevel.CRITICAL, message)

    def flush(self):
        """Block until every queued message is written, then flush the handle."""
        self._submit(self._writer.flush)

    def delete(self, path: str):
        """Delete *path* on the worker thread. Raises DeleteFailed."""
        self._submit(self._writer.delete, path)

    def close(self):
        """Write out queued messages, stop the worker, and close the file."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_STOP)
        if self._on_worker():
            # Called from a delegate callback: the worker closes the file on _STOP
            return
        self._thread.join()
        self._writer.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
