import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Optional, Union

from dirpulse.file_functions.fs_mock import FS
from dirpulse.startup_code.config_writer import (
    create_default_config,
    save_config,
    with_root_path,
)
from dirpulse.startup_code.load_config import Config, ConfigError, load_config

logger = logging.getLogger(__name__)

InputFunc = Callable[[str], str]
OutputFunc = Callable[[str], None]


def _print_examples(output_func: OutputFunc) -> None:
    output_func("Example monitor directory paths:")
    if os.name == "nt":
        output_func("  Absolute path: D:\\Recordings\\Output")
        output_func("  Relative path: Output")
        output_func("  UNC network path: \\\\server\\share\\Output")
    else:
        output_func("  Absolute path: /home/user/recordings")
        output_func("  Relative path: recordings")
        output_func("  Network mount: /mnt/shared/recordings")


def prompt_for_monitor_path(
    fs: FS = FS(),
    input_func: InputFunc = input,
    output_func: OutputFunc = print,
) -> str:
    """
    Asks the operator for a monitor directory until an acceptable answer is given.

    Empty answers and answers containing NUL are rejected. Existing paths that
    are not directories are rejected. A path that does not exist yet is
    accepted only after an explicit 'y'/'yes' confirmation, since it may be
    a mount that appears later.
    """
    _print_examples(output_func)
    while True:
        answer = input_func("Directory to monitor: ").strip()
        if not answer:
            output_func("[error] The path cannot be empty.")
            continue
        if "\0" in answer:
            output_func("[error] The path contains invalid characters.")
            continue

        candidate = Path(answer).expanduser()
        if not fs.exists(candidate):
            output_func(f"[warning] '{answer}' does not exist.")
            confirm = input_func(
                "Use it anyway? It will be checked on every cycle (y/N): "
            )
            if confirm.strip().lower() not in ("y", "yes"):
                continue
        elif not fs.is_dir(candidate):
            output_func(f"[error] '{answer}' is not a directory.")
            continue
        else:
            output_func(f"[ok] Using directory: {answer}")
        return answer


def ensure_valid_monitor_path(
    current_path: Path,
    *,
    non_interactive: bool,
    cli_monitor_path: Optional[str],
    fs: FS = FS(),
    input_func: InputFunc = input,
    output_func: OutputFunc = print,
) -> Path:
    """
    Returns a monitor path to use, replacing `current_path` if it is not an
    existing directory.

    Non-interactive runs take `cli_monitor_path` when given; otherwise they
    keep the broken path and let every cycle report the unreadable root.
    Interactive runs prompt the operator.
    """
    if fs.is_dir(current_path):
        return current_path

    if non_interactive:
        logger.warning("Monitor directory does not exist: %s", current_path)
        if cli_monitor_path:
            logger.info("Using monitor path from command line: %s", cli_monitor_path)
            return Path(cli_monitor_path).expanduser()
        logger.error(
            "Non-interactive mode cannot repair the monitor path; keeping %s",
            current_path,
        )
        return current_path

    output_func(f"[error] Monitor directory does not exist or is invalid: {current_path}")
    return Path(prompt_for_monitor_path(fs, input_func, output_func)).expanduser()


def load_or_create_config(
    config_path: Union[str, Path],
    *,
    non_interactive: bool,
    cli_monitor_path: Optional[str],
    fs: FS = FS(),
    input_func: InputFunc = input,
    output_func: OutputFunc = print,
) -> Config:
    """
    Loads the config file, creating it first when missing, then makes sure the
    monitor path is usable and persists it if it had to change.

    Raises:
        ConfigError: If the file cannot be created, loaded or saved, or if a
                     non-interactive run has no --monitor-path to create it with.
    """
    config_file = Path(config_path)
    if not fs.exists(config_file):
        if non_interactive:
            if not cli_monitor_path:
                raise ConfigError(
                    f"Config file {config_file} does not exist; non-interactive mode "
                    "requires --monitor-path to create it"
                )
            monitor_path = cli_monitor_path
        else:
            output_func(f"[config] Config file not found, creating {config_file}")
            monitor_path = prompt_for_monitor_path(fs, input_func, output_func)
        create_default_config(config_file, monitor_path, fs)
        output_func(f"[config] Created config file: {config_file}")

    config = load_config(config_file, fs)

    resolved = ensure_valid_monitor_path(
        config.root_path,
        non_interactive=non_interactive,
        cli_monitor_path=cli_monitor_path,
        fs=fs,
        input_func=input_func,
        output_func=output_func,
    )
    if resolved != config.root_path:
        logger.info("Monitor path changed to %s; saving config", resolved)
        config = with_root_path(config, resolved)
        save_config(config_file, config, fs)
    return config
