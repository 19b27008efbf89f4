"""Size probe: the byte length of a file at call time."""

import os


def file_size(path: str) -> int | None:
    """Return the current size of *path*, or None if it cannot be stat'ed."""
    try:
        return os.stat(path).st_size
    except OSError:
        return None
