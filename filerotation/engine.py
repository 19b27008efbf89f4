"""Rotation engine: size-triggered rotation with archive-in-place or create-new-file."""

import logging
import os
import uuid
import weakref
from datetime import datetime, timezone

from filerotation.config import CreationStrategy, RotationConfig, SuffixScheme
from filerotation.delegate import RotationDelegate
from filerotation.errors import FileError
from filerotation.naming import new_file_name, numbered_name, timestamped_archive_name
from filerotation.probe import file_size
from filerotation.scanner import ascending_siblings
from filerotation.writer import FileWriter

logger = logging.getLogger(__name__)


class RotationEngine:
    """Decides when the current log file is too large and hands off to a new one.

    The engine never touches the writer's handle directly: on rotation it
    closes the writer, moves/deletes files, then asks the writer to open
    whatever path is now current. Failures after construction are reported
    on the diagnostics logger and never raised, so a broken rotation can
    not take down the code doing the logging.
    """

    def __init__(self, target: str, config: RotationConfig, writer: FileWriter,
                 delegate: RotationDelegate | None = None,
                 diagnostics: logging.Logger | None = None,
                 time_func=None, uuid_func=None):
        self._target = target
        self._config = config
        self._writer = writer
        self._delegate_ref = weakref.ref(delegate) if delegate is not None else None
        self._log = diagnostics or logger
        self._time_func = time_func or (lambda: datetime.now(timezone.utc))
        self._uuid_func = uuid_func or (lambda: str(uuid.uuid4()))
        self._current = self._initial_path()

    @property
    def target_path(self) -> str:
        return self._target

    @property
    def current_path(self) -> str:
        return self._current

    @property
    def config(self) -> RotationConfig:
        return self._config

    @property
    def delegate(self) -> RotationDelegate | None:
        return self._delegate_ref() if self._delegate_ref is not None else None

    def _initial_path(self) -> str:
        if self._config.creation_strategy is CreationStrategy.ARCHIVE_IN_PLACE:
            return self._target
        # Resume the most recently written file from a previous run
        siblings = ascending_siblings(self._target, self._log)
        return siblings[-1] if siblings else self._target

    def should_rotate(self, path: str | None = None) -> bool:
        size = file_size(path or self._current)
        return size is not None and size > self._config.max_file_size_bytes

    def check_and_rotate(self) -> bool:
        """Rotate if the current file is over the size limit. Returns True if it rotated."""
        if not self.should_rotate(self._current):
            return False

        self._writer.close()
        if self._config.creation_strategy is CreationStrategy.ARCHIVE_IN_PLACE:
            self._shift_archives()
            self._archive_target()
            self._enforce_retention()
        else:
            self._advance_current()

        try:
            self._writer.open(self._current)
        except FileError as e:
            self._log.error("Failed to reopen %s after rotation: %s", self._current, e)
        return True

    # -- archive-in-place -------------------------------------------------

    def _shift_archives(self):
        """Renumber existing archives so generation 1 is free.

        Oldest of n archives becomes n + 1, newest becomes 2. A destination
        that already exists is left alone, which can leave a stale
        duplicate generation behind.
        """
        if self._config.suffix_scheme is not SuffixScheme.NUMBERING:
            return

        archives = ascending_siblings(self._target, self._log)
        count = len(archives)
        for index, path in enumerate(archives):
            generation = count + 1 - index
            dest = numbered_name(self._target, generation)
            if dest == path:
                continue
            if os.path.exists(dest):
                self._log.warning("Skipping shift of %s: %s already exists", path, dest)
                continue
            try:
                os.rename(path, dest)
            except OSError as e:
                self._log.warning("Failed to shift %s -> %s: %s", path, dest, e)

    def _archive_target(self):
        if self._config.suffix_scheme is SuffixScheme.NUMBERING:
            dest = numbered_name(self._target, 1)
        else:
            dest = timestamped_archive_name(
                self._target, self._time_func(), self._uuid_func(), self._config.date_format
            )

        if os.path.exists(dest):
            self._log.error("Failed to archive %s: %s already exists", self._target, dest)
            return
        try:
            os.rename(self._target, dest)
        except OSError as e:
            self._log.error("Failed to archive %s -> %s: %s", self._target, dest, e)
            return

        self._log.debug("Archived %s -> %s", self._target, dest)
        delegate = self.delegate
        if delegate is not None:
            delegate.on_archived(self._target, dest)

    def _enforce_retention(self):
        archives = ascending_siblings(self._target, self._log)
        excess = len(archives) - self._config.max_archived_files
        if excess <= 0:
            return

        for path in archives[:excess]:
            try:
                os.remove(path)
            except OSError as e:
                self._log.warning("Failed to remove archive %s: %s", path, e)
                continue
            self._log.debug("Removed archive %s", path)
            delegate = self.delegate
            if delegate is not None:
                delegate.on_archive_removed(path)

    # -- create-new-file --------------------------------------------------

    def _advance_current(self):
        # Old generations are never pruned in this mode.
        if self._config.suffix_scheme is SuffixScheme.NUMBERING:
            # Always generation 1: repeated rotations reuse the same path.
            self._current = numbered_name(self._target, 1)
        else:
            self._current = new_file_name(
                self._target, self._time_func(), self._uuid_func(), self._config.date_format
            )
        self._log.debug("Current log file is now %s", self._current)
