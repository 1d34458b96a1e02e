import threading
from typing import Optional

from dirpulse.file_functions.fs_mock import FS as DefaultFSImplementation
from dirpulse.monitor.report import ConsoleStatusReporter
from dirpulse.protocols import StatusReporter
from dirpulse.startup_code.load_config import Config


class AppContext:
    def __init__(
        self, config: Config, fs: DefaultFSImplementation, reporter: StatusReporter
    ):
        self.shutdown_event = threading.Event()
        self.config: Config = config
        self.fs: DefaultFSImplementation = fs
        self.reporter: StatusReporter = reporter

    def __str__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"root={self.config.root_path}, "
            f"fs=<{self.fs.__class__.__name__} instance>, "
            f"reporter=<{self.reporter.__class__.__name__} instance>, "
            f"shutdown_event_set={self.shutdown_event.is_set()}"
            f")"
        )

    __repr__ = __str__


def build_context(
    config: Config,
    fs_override: Optional[DefaultFSImplementation] = None,
    reporter_override: Optional[StatusReporter] = None,
    clear_screen: bool = False,
) -> AppContext:
    """
    Factory function to create an AppContext instance.
    Allows overriding default dependencies for testing or alternative implementations.
    `clear_screen` applies to the default console reporter only.
    """
    fs_instance = fs_override if fs_override is not None else DefaultFSImplementation()

    reporter_instance: StatusReporter = (
        reporter_override
        if reporter_override is not None
        else ConsoleStatusReporter(
            recording_message=config.recording_message,
            not_recording_message=config.not_recording_message,
            clear_screen=clear_screen,
        )
    )

    return AppContext(config=config, fs=fs_instance, reporter=reporter_instance)
