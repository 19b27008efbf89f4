"""Configuration: frozen dataclasses loaded from env vars and an optional YAML file."""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum

import yaml

from filerotation.naming import DEFAULT_DATE_FORMAT

logger = logging.getLogger(__name__)


class LogLevel(IntEnum):
    TRACE = 1
    DEBUG = 2
    INFO = 3
    NOTICE = 4
    WARNING = 5
    ERROR = 6
    CRITICAL = 7

    @classmethod
    def parse(cls, value) -> "LogLevel":
        if isinstance(value, cls):
            return value
        name = str(value).strip().upper()
        if name == "WARN":
            name = "WARNING"
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Invalid log level {value!r}") from None


class SuffixScheme(Enum):
    NUMBERING = "numbering"
    TIMESTAMP_UNIQUE = "timestamp_unique"


class CreationStrategy(Enum):
    ARCHIVE_IN_PLACE = "archive_in_place"
    CREATE_NEW_FILE = "create_new_file"


class FlushMode(Enum):
    ALWAYS = "always"
    MANUAL = "manual"


@dataclass(frozen=True)
class RotationConfig:
    suffix_scheme: SuffixScheme = SuffixScheme.NUMBERING
    creation_strategy: CreationStrategy = CreationStrategy.ARCHIVE_IN_PLACE
    max_file_size_bytes: int = 10 * 1024 * 1024  # 10 MB
    max_archived_files: int = 5  # only used by ARCHIVE_IN_PLACE
    date_format: str = DEFAULT_DATE_FORMAT

    def __post_init__(self):
        if not isinstance(self.suffix_scheme, SuffixScheme):
            raise ValueError(f"Invalid suffix scheme: {self.suffix_scheme!r}")
        if not isinstance(self.creation_strategy, CreationStrategy):
            raise ValueError(f"Invalid creation strategy: {self.creation_strategy!r}")
        if self.max_file_size_bytes <= 0:
            raise ValueError(
                f"max_file_size_bytes must be positive, got {self.max_file_size_bytes}"
            )
        if self.max_archived_files < 0:
            raise ValueError(
                f"max_archived_files must be non-negative, got {self.max_archived_files}"
            )
        if not self.date_format:
            raise ValueError("date_format must not be empty")
        # Directives such as %D expand to slashes, so check the rendered text
        sample = datetime(2000, 12, 31, 23, 59, 59).strftime(self.date_format)
        if any(sep and sep in sample for sep in (os.sep, os.altsep)):
            raise ValueError(
                f"date_format {self.date_format!r} produces a path separator ({sample!r})"
            )


@dataclass(frozen=True)
class Config:
    file_path: str = "./logs/application.log"
    file_permission: str = "640"
    label: str = "app"
    log_level: LogLevel = LogLevel.TRACE
    flush_mode: FlushMode = FlushMode.ALWAYS
    rotation: RotationConfig = field(default_factory=RotationConfig)


def _parse_enum(enum_cls, value, name: str):
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"Invalid {name} {value!r} (expected one of: {valid})") from None


def _parse_permission(value) -> str:
    # YAML 1.1 reads an unquoted 0640 as the int 416, so only strings are trusted
    if not isinstance(value, str):
        raise ValueError(
            f"file_permission must be a quoted octal string such as \"640\", got {value!r}"
        )
    return value


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path or file missing."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info("Loaded YAML config from %s", path)
        return data
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}


def load_config(yaml_data: dict | None = None) -> Config:
    """Build Config from env vars, falling back to YAML data, then defaults.

    Expected YAML shape::

        file_path: logs/app.log
        file_permission: "640"
        rotation:
          suffix_scheme: numbering
          max_file_size_bytes: 1048576
    """
    yaml_data = yaml_data or {}
    rot = yaml_data.get("rotation") or {}
    env = os.environ

    # MAX_FILE_SIZE_BYTES takes precedence over MAX_FILE_SIZE_MB
    raw_bytes = env.get("MAX_FILE_SIZE_BYTES")
    raw_mb = env.get("MAX_FILE_SIZE_MB")
    if raw_bytes is not None:
        max_size = int(raw_bytes)
    elif raw_mb is not None:
        max_size = int(float(raw_mb) * 1024 * 1024)
    else:
        max_size = int(rot.get("max_file_size_bytes", RotationConfig.max_file_size_bytes))

    rotation = RotationConfig(
        suffix_scheme=_parse_enum(
            SuffixScheme,
            env.get("SUFFIX_SCHEME", rot.get("suffix_scheme", SuffixScheme.NUMBERING.value)),
            "suffix scheme",
        ),
        creation_strategy=_parse_enum(
            CreationStrategy,
            env.get("CREATION_STRATEGY",
                    rot.get("creation_strategy", CreationStrategy.ARCHIVE_IN_PLACE.value)),
            "creation strategy",
        ),
        max_file_size_bytes=max_size,
        max_archived_files=int(
            env.get("MAX_ARCHIVED_FILES", rot.get("max_archived_files", RotationConfig.max_archived_files))
        ),
        date_format=env.get("DATE_FORMAT", rot.get("date_format", RotationConfig.date_format)),
    )

    return Config(
        file_path=env.get("LOG_FILE", yaml_data.get("file_path", Config.file_path)),
        file_permission=_parse_permission(
            env.get("FILE_PERMISSION", yaml_data.get("file_permission", Config.file_permission))
        ),
        label=env.get("LOGGER_LABEL", yaml_data.get("label", Config.label)),
        log_level=LogLevel.parse(env.get("LOG_LEVEL", yaml_data.get("log_level", "TRACE"))),
        flush_mode=_parse_enum(
            FlushMode,
            env.get("FLUSH_MODE", yaml_data.get("flush_mode", FlushMode.ALWAYS.value)),
            "flush mode",
        ),
        rotation=rotation,
    )
