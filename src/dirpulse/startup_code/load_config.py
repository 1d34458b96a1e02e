from configparser import (
    ConfigParser,
    MissingSectionHeaderError,
    ParsingError,
    NoOptionError,
)
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dirpulse.file_functions.fs_mock import FS
from dirpulse.scanner.scan_policy import ConcurrencyMode, ScanPolicy, TimestampKind

_NS_PER_HOUR = 3600 * 1_000_000_000

DEFAULT_CHECK_HOURS = 3.0
DEFAULT_SCAN_INTERVAL_SECONDS = 60.0
DEFAULT_RECORDING_MESSAGE = "Recording"
DEFAULT_NOT_RECORDING_MESSAGE = "Not recording"


class ConfigError(Exception):
    """Raised when the configuration is invalid or missing."""

    pass


@dataclass(frozen=True)
class Config:
    """Holds the application configuration, matching the INI file structure."""

    # From [Monitor]
    root_path: Path
    check_hours: float = DEFAULT_CHECK_HOURS
    scan_interval_seconds: float = DEFAULT_SCAN_INTERVAL_SECONDS
    max_depth: Optional[int] = None
    follow_symlinks: bool = False
    timestamp_kind: TimestampKind = TimestampKind.MODIFIED
    parallel_mode: ConcurrencyMode = ConcurrencyMode.SEQUENTIAL
    max_parallel_tasks: Optional[int] = None
    latest_subdir_only: bool = False
    batch_mode: bool = False

    # From [Output]
    recording_message: str = DEFAULT_RECORDING_MESSAGE
    not_recording_message: str = DEFAULT_NOT_RECORDING_MESSAGE

    # From [Logging]
    logger_dir: Optional[Path] = None

    def __post_init__(self):
        if self.check_hours < 0:
            raise ConfigError("[Monitor] check_hours must be >= 0")
        if self.scan_interval_seconds < 1.0:
            raise ConfigError("[Monitor] scan_interval_seconds must be >= 1")
        if self.max_depth is not None and self.max_depth < 0:
            raise ConfigError("[Monitor] max_depth must be >= 0")
        if self.max_parallel_tasks is not None and self.max_parallel_tasks < 1:
            raise ConfigError("[Monitor] max_parallel_tasks must be >= 1")

    def build_policy(self, now_ns: int) -> ScanPolicy:
        """Builds this cycle's ScanPolicy, with the threshold `check_hours` before `now_ns`."""
        return ScanPolicy(
            threshold_ns=now_ns - int(self.check_hours * _NS_PER_HOUR),
            max_depth=self.max_depth,
            follow_symlinks=self.follow_symlinks,
            timestamp_kind=self.timestamp_kind,
            latest_subdir_only=self.latest_subdir_only,
            batch_mode=self.batch_mode,
        )


# Helper functions for parsing options
def _get_string_option(
    cp: ConfigParser, section: str, option: str, allow_empty: bool = False
) -> str:
    if not cp.has_option(section, option):
        raise ConfigError(f"[{section}] missing option '{option}'")
    value = cp.get(section, option)
    if not allow_empty and not value.strip():
        raise ConfigError(f"[{section}] '{option}' cannot be empty")
    return value


def _has_value(cp: ConfigParser, section: str, option: str) -> bool:
    return cp.has_option(section, option) and bool(cp.get(section, option).strip())


def _get_optional_int_option(
    cp: ConfigParser, section: str, option: str, min_value: int
) -> Optional[int]:
    """Absent or blank means None."""
    if not _has_value(cp, section, option):
        return None
    raw_value = cp.get(section, option)
    try:
        value = int(raw_value)
    except ValueError:
        raise ConfigError(f"[{section}] '{option}' ('{raw_value}') must be an integer")
    if value < min_value:
        raise ConfigError(f"[{section}] '{option}' ({value}) must be >= {min_value}")
    return value


def _get_float_option(
    cp: ConfigParser,
    section: str,
    option: str,
    min_value: Optional[float] = None,
) -> float:
    if not cp.has_option(section, option):
        raise ConfigError(f"[{section}] missing option '{option}'")
    raw_value = cp.get(section, option)
    try:
        value = float(raw_value)
    except ValueError:
        raise ConfigError(f"[{section}] '{option}' ('{raw_value}') must be a float")
    if min_value is not None and value < min_value:
        raise ConfigError(f"[{section}] '{option}' ({value}) must be >= {min_value}")
    return value


def _get_optional_boolean_option(
    cp: ConfigParser, section: str, option: str, default: bool
) -> bool:
    if not _has_value(cp, section, option):
        return default
    raw_value = cp.get(section, option)
    try:
        return cp.getboolean(section, option)
    except ValueError:
        raise ConfigError(
            f"[{section}] '{option}' ('{raw_value}') must be a boolean (e.g., true, false, yes, no, 1, 0)"
        )


def _parse_monitor_config(cp: ConfigParser) -> dict:
    section = "Monitor"
    root_str = _get_string_option(cp, section, "root_path")
    check_hours = _get_float_option(cp, section, "check_hours", min_value=0.0)
    scan_interval = _get_float_option(
        cp, section, "scan_interval_seconds", min_value=1.0
    )
    max_depth = _get_optional_int_option(cp, section, "max_depth", min_value=0)
    max_tasks = _get_optional_int_option(
        cp, section, "max_parallel_tasks", min_value=1
    )
    follow = _get_optional_boolean_option(cp, section, "follow_symlinks", False)
    latest_only = _get_optional_boolean_option(
        cp, section, "latest_subdir_only", False
    )
    # use_async_io is the old name of batch_mode
    legacy_batch = _get_optional_boolean_option(cp, section, "use_async_io", False)
    batch_mode = _get_optional_boolean_option(cp, section, "batch_mode", legacy_batch)

    kind = TimestampKind.MODIFIED
    if _has_value(cp, section, "timestamp_kind"):
        try:
            kind = TimestampKind.parse(cp.get(section, "timestamp_kind"))
        except ValueError as e:
            raise ConfigError(f"[{section}] {e}") from e

    mode = ConcurrencyMode.SEQUENTIAL
    if _has_value(cp, section, "parallel_mode"):
        try:
            mode = ConcurrencyMode.parse(cp.get(section, "parallel_mode"))
        except ValueError as e:
            raise ConfigError(f"[{section}] {e}") from e

    return {
        "root_path": Path(root_str.strip()).expanduser(),
        "check_hours": check_hours,
        "scan_interval_seconds": scan_interval,
        "max_depth": max_depth,
        "follow_symlinks": follow,
        "timestamp_kind": kind,
        "parallel_mode": mode,
        "max_parallel_tasks": max_tasks,
        "latest_subdir_only": latest_only,
        "batch_mode": batch_mode,
    }


def _parse_output_config(cp: ConfigParser) -> dict:
    return {
        "recording_message": _get_string_option(cp, "Output", "recording_message"),
        "not_recording_message": _get_string_option(
            cp, "Output", "not_recording_message"
        ),
    }


def _parse_logging_config(cp: ConfigParser, fs: FS) -> Optional[Path]:
    if not cp.has_section("Logging") or not _has_value(cp, "Logging", "logger_dir"):
        return None
    logger_dir = Path(cp.get("Logging", "logger_dir").strip()).expanduser()
    try:
        if fs.exists(logger_dir) and not fs.is_dir(logger_dir):
            raise ConfigError(
                f"[Logging] logger_dir '{logger_dir}' is not a directory."
            )
        return fs.resolve(logger_dir, strict=False)
    except OSError as e:
        raise ConfigError(f"Error processing logger_dir '{logger_dir}': {e}") from e


def load_config(path: Union[str, Path], fs: FS = FS()) -> Config:
    """Loads, parses, and validates configuration from an INI file."""
    config_path = Path(path)
    try:
        if not fs.is_file(config_path):
            if not fs.exists(config_path):
                raise ConfigError(f"Config file not found: {config_path}")
            else:
                raise ConfigError(f"Config path is not a file: {config_path}")
    except OSError as e:
        raise ConfigError(f"Error checking config path '{config_path}': {e}") from e

    cp = ConfigParser(interpolation=None, inline_comment_prefixes=(";",))
    try:
        with fs.open(str(config_path), "r", encoding="utf-8") as f:
            cp.read_file(f)
    except (OSError, UnicodeDecodeError, MissingSectionHeaderError, ParsingError) as e:
        raise ConfigError(
            f"[Config] error reading or parsing config file '{config_path}': {e}"
        ) from e

    for section in ("Monitor", "Output"):
        if not cp.has_section(section):
            raise ConfigError(f"Missing section [{section}] in '{config_path}'")

    try:
        monitor_values = _parse_monitor_config(cp)
        output_values = _parse_output_config(cp)
        logger_dir = _parse_logging_config(cp, fs)
    except ConfigError:
        raise
    except NoOptionError as e:
        raise ConfigError(f"Missing option in config file '{config_path}': {e}") from e

    return Config(**monitor_values, **output_values, logger_dir=logger_dir)
