"""Archive scanner: prior generations of a log file, oldest first."""

import logging
import os

from filerotation.naming import generation_of, is_generation_of

logger = logging.getLogger(__name__)


def ascending_siblings(target: str, diagnostics: logging.Logger | None = None) -> list[str]:
    """List archives of *target* sorted by modification time, oldest first.

    Files with the same mtime (common when rotations happen within one clock
    tick) are ordered so a higher generation number counts as older, then by
    path. A directory that cannot be listed yields an empty list; the failure
    is reported on *diagnostics* and never raised.
    """
    log = diagnostics or logger
    directory, target_name = os.path.split(target)
    try:
        names = os.listdir(directory or ".")
    except OSError as e:
        log.warning("Failed to scan %s for archives of %s: %s", directory or ".", target_name, e)
        return []

    keyed = []
    for name in names:
        if not is_generation_of(name, target_name):
            continue
        path = os.path.join(directory, name)
        try:
            mtime = os.stat(path).st_mtime_ns
        except OSError:
            # Removed between listdir and stat
            continue
        generation = generation_of(name, target_name) or 0
        keyed.append(((mtime, -generation, path), path))

    keyed.sort()
    return [path for _, path in keyed]
