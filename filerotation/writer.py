"""Append-only file writer: owns the single open handle of a rotating log."""

import logging
import os

from filerotation.config import FlushMode
from filerotation.errors import (
    CreateDirFailed,
    CreateFileFailed,
    DeleteFailed,
    InvalidPermission,
    NotAFile,
    OpenFailed,
)

logger = logging.getLogger(__name__)


def validate_permission(permission: str, path: str = "") -> int:
    """Parse an octal permission string such as "640". Raises InvalidPermission."""
    # Plain ASCII digits only: no sign, whitespace, "0o" prefix or underscores
    if not isinstance(permission, str) or not (permission.isascii() and permission.isdigit()):
        raise InvalidPermission(path, permission)
    try:
        mode = int(permission, 8)
    except ValueError:
        raise InvalidPermission(path, permission) from None
    if not 0o000 <= mode <= 0o777:
        raise InvalidPermission(path, permission)
    return mode


def validate_file_path(path: str):
    if not path or path.endswith(os.sep) or os.path.isdir(path):
        raise NotAFile(path)


class FileWriter:
    def __init__(self, permission: str = "640", flush_mode: FlushMode = FlushMode.ALWAYS):
        self._mode = validate_permission(permission)
        self._flush_mode = flush_mode
        self._file = None
        self._path: str | None = None

    @property
    def path(self) -> str | None:
        """Path of the open handle, or None when closed."""
        return self._path if self._file is not None else None

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def open(self, path: str):
        """Close any open handle, then create (if needed) and open *path* for appending."""
        self.close()
        validate_file_path(path)

        directory = os.path.dirname(path)
        if directory:
            try:
                os.makedirs(directory, exist_ok=True)
            except OSError as e:
                logger.debug("makedirs(%s) failed: %s", directory, e)
                raise CreateDirFailed(directory) from e

        if not os.path.exists(path):
            try:
                fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, self._mode)
                os.close(fd)
                # os.open is subject to the umask
                os.chmod(path, self._mode)
            except FileExistsError:
                pass
            except OSError as e:
                raise CreateFileFailed(path) from e

        try:
            self._file = open(path, "ab")
        except OSError as e:
            raise OpenFailed(path) from e
        self._path = path

    def close(self):
        """Flush and close the handle. Safe to call when nothing is open."""
        if self._file is None:
            return
        try:
            self._file.flush()
            self._file.close()
        except OSError as e:
            logger.warning("Error closing %s: %s", self._path, e)
        self._file = None

    def append(self, data: bytes):
        if self._file is None:
            return
        try:
            self._file.write(data)
            if self._flush_mode is FlushMode.ALWAYS:
                self._file.flush()
        except OSError as e:
            logger.warning("Failed to append to %s: %s", self._path, e)

    def flush(self):
        if self._file is None:
            return
        try:
            self._file.flush()
        except OSError as e:
            logger.warning("Failed to flush %s: %s", self._path, e)

    def delete(self, path: str):
        """Remove *path* from disk. Raises DeleteFailed."""
        try:
            os.remove(path)
        except OSError as e:
            raise DeleteFailed(path) from e
