import dataclasses
import logging
from pathlib import Path
from typing import Optional, Union

from dirpulse.file_functions.fs_mock import FS
from dirpulse.startup_code.load_config import Config, ConfigError

logger = logging.getLogger(__name__)


def _optional_line(option: str, value: Optional[object], example: str) -> str:
    if value is None:
        return f"# {option} = {example}"
    return f"{option} = {value}"


def _bool_text(value: bool) -> str:
    return "true" if value else "false"


def render_config_text(config: Config) -> str:
    """Renders `config` as a commented INI document that load_config accepts."""
    logging_line = _optional_line("logger_dir", config.logger_dir, "/var/log/dirpulse")
    return f"""# dirpulse configuration
[Monitor]
# Root directory whose immediate subdirectories are monitored
root_path = {config.root_path}
# A file counts as recent if its timestamp is within this many hours
check_hours = {config.check_hours:g}
# Seconds between check cycles
scan_interval_seconds = {config.scan_interval_seconds:g}
# Maximum scan depth below each subdirectory (omit for unlimited)
{_optional_line("max_depth", config.max_depth, "10")}
# Follow symbolic links while scanning
follow_symlinks = {_bool_text(config.follow_symlinks)}
# modified: last modification time (portable)
# created: creation time (not available on most Linux filesystems)
timestamp_kind = {config.timestamp_kind.value}
# sequential, concurrent or parallel
parallel_mode = {config.parallel_mode.value}
# Cap on simultaneous scans (omit to use the CPU count)
{_optional_line("max_parallel_tasks", config.max_parallel_tasks, "4")}
# Only search the most recently modified subdirectory (faster, less complete)
latest_subdir_only = {_bool_text(config.latest_subdir_only)}
# Collect file entries first, then check their metadata (same results)
batch_mode = {_bool_text(config.batch_mode)}

[Output]
# Shown for a subdirectory with recent files
recording_message = {config.recording_message}
# Shown for a subdirectory without recent files
not_recording_message = {config.not_recording_message}

[Logging]
# Directory for the rotating JSON log file (omit for console-only logging)
{logging_line}
"""


def _atomic_write_text(target: Path, content: str, fs: FS) -> None:
    """Writes `content` to a sibling .tmp file, verifies it, then renames it over `target`."""
    temp_path = target.with_name(target.name + ".tmp")
    try:
        with fs.open(temp_path, "w", encoding="utf-8") as f:
            f.write(content)
        with fs.open(temp_path, "r", encoding="utf-8") as f:
            written = f.read()
    except OSError as e:
        raise ConfigError(f"Cannot write temporary config file '{temp_path}': {e}") from e

    if written != content:
        try:
            fs.remove(temp_path)
        except OSError as e:
            logger.warning("Could not remove temporary file %s: %s", temp_path, e)
        raise ConfigError(f"Verification of temporary config file '{temp_path}' failed")

    try:
        fs.replace(temp_path, target)
    except OSError as e:
        raise ConfigError(f"Cannot move '{temp_path}' into place at '{target}': {e}") from e


def create_default_config(
    path: Union[str, Path], monitor_path: Union[str, Path], fs: FS = FS()
) -> Config:
    """
    Creates a new config file with default settings for `monitor_path`.

    Refuses to overwrite an existing file.

    Returns:
        The Config that was written.

    Raises:
        ConfigError: If the file exists or cannot be written and verified.
    """
    config_path = Path(path)
    if fs.exists(config_path):
        raise ConfigError(f"Config file already exists, refusing to overwrite: {config_path}")

    config = Config(root_path=Path(monitor_path))
    _atomic_write_text(config_path, render_config_text(config), fs)
    logger.info("Created default config file %s for %s", config_path, monitor_path)
    return config


def save_config(path: Union[str, Path], config: Config, fs: FS = FS()) -> Optional[Path]:
    """
    Replaces the config file at `path` with `config`.

    An existing file is first copied to `<path>.backup`.

    Returns:
        The backup path, or None when there was no previous file.

    Raises:
        ConfigError: If the backup, write, verification or rename fails.
    """
    config_path = Path(path)
    backup_path: Optional[Path] = None
    if fs.exists(config_path):
        backup_path = config_path.with_name(config_path.name + ".backup")
        try:
            fs.copy(config_path, backup_path)
        except OSError as e:
            raise ConfigError(f"Cannot create config backup '{backup_path}': {e}") from e

    _atomic_write_text(config_path, render_config_text(config), fs)
    logger.info("Saved config file %s (backup: %s)", config_path, backup_path)
    return backup_path


def with_root_path(config: Config, root_path: Union[str, Path]) -> Config:
    return dataclasses.replace(config, root_path=Path(root_path))
