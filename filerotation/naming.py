"""Archive and new-file naming for the numbering and timestamp+uuid schemes.

Everything here is pure string manipulation; no function touches the filesystem.

    numbered_name("logs/app.log", 2)            -> logs/app.2.log
    timestamped_archive_name("logs/app.log")    -> logs/app.log.20240115T120000_<uuid>
    new_file_name("logs/app.log")               -> logs/app_20240115T120000_<uuid>.log
"""

import os
import re
from datetime import datetime
from functools import lru_cache

DEFAULT_DATE_FORMAT = "%Y%m%dT%H%M%S"

_UUID = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"


def _split(target: str) -> tuple[str, str, str]:
    """Return (directory, stem, extension) of *target*; extension keeps its dot."""
    directory, name = os.path.split(target)
    stem, ext = os.path.splitext(name)
    return directory, stem, ext


def numbered_name(target: str, generation: int) -> str:
    if generation < 1:
        raise ValueError(f"generation must be a positive integer, got {generation}")
    directory, stem, ext = _split(target)
    return os.path.join(directory, f"{stem}.{generation}{ext}")


def timestamped_archive_name(target: str, now: datetime, unique_id: str,
                             date_format: str = DEFAULT_DATE_FORMAT) -> str:
    return f"{target}.{now.strftime(date_format)}_{unique_id}"


def new_file_name(target: str, now: datetime, unique_id: str,
                  date_format: str = DEFAULT_DATE_FORMAT) -> str:
    directory, stem, ext = _split(target)
    return os.path.join(directory, f"{stem}_{now.strftime(date_format)}_{unique_id}{ext}")


@lru_cache(maxsize=64)
def _generation_patterns(target_name: str) -> tuple[re.Pattern, ...]:
    stem, ext = os.path.splitext(target_name)
    stem, ext, full = re.escape(stem), re.escape(ext), re.escape(target_name)
    return (
        re.compile(rf"{stem}\.\d+{ext}"),           # app.3.log
        re.compile(rf"{full}\..+_{_UUID}"),          # app.log.<ts>_<uuid>
        re.compile(rf"{stem}_.+_{_UUID}{ext}"),      # app_<ts>_<uuid>.log
    )


def is_generation_of(candidate_name: str, target_name: str) -> bool:
    """True if stripping one rotation marker from *candidate_name* yields *target_name*.

    Both arguments are bare file names. The check does not depend on which
    scheme is configured, so leftovers from an earlier run with a different
    scheme are still recognised.
    """
    if candidate_name == target_name:
        return False
    return any(p.fullmatch(candidate_name) for p in _generation_patterns(target_name))


def generation_of(candidate_name: str, target_name: str) -> int | None:
    """Generation number of a numbered archive name, or None for any other name."""
    stem, ext = os.path.splitext(target_name)
    m = re.fullmatch(rf"{re.escape(stem)}\.(\d+){re.escape(ext)}", candidate_name)
    return int(m.group(1)) if m else None
