import datetime
import os
import subprocess
import sys
from collections.abc import Callable, Mapping
from typing import Optional

REPORT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
RECORDING_ICON = "[REC]"
IDLE_ICON = "[---]"
# Erase display, cursor to top-left
CLEAR_SCREEN_SEQUENCE = "\x1b[2J\x1b[1;1H"


def clear_terminal() -> None:
    """Clears the console: `cls` on Windows, an ANSI sequence elsewhere."""
    if os.name == "nt":
        subprocess.run(["cmd", "/c", "cls"], check=False)
    else:
        sys.stdout.write(CLEAR_SCREEN_SEQUENCE)
        sys.stdout.flush()


def format_status_report(
    activity: Mapping[str, bool],
    *,
    recording_message: str,
    not_recording_message: str,
    now: datetime.datetime,
) -> list[str]:
    """Builds the report lines, one per subdirectory, sorted by name."""
    lines = [f"=== Folder activity report [{now.strftime(REPORT_TIME_FORMAT)}] ==="]
    if not activity:
        lines.append("[WARN] No subdirectories found")
        return lines

    for name in sorted(activity):
        if activity[name]:
            lines.append(f"{RECORDING_ICON} '{name}': {recording_message}")
        else:
            lines.append(f"{IDLE_ICON} '{name}': {not_recording_message}")
    lines.append("=" * 40)
    return lines


class ConsoleStatusReporter:
    """
    Implementation of the StatusReporter protocol that prints the report.

    With `clear_screen` set, the console is cleared before each report so a
    periodic run shows only the latest one.
    """

    def __init__(
        self,
        *,
        recording_message: str,
        not_recording_message: str,
        output_func: Callable[[str], None] = print,
        clock: Optional[Callable[[], datetime.datetime]] = None,
        clear_screen: bool = False,
        clear_func: Callable[[], None] = clear_terminal,
    ):
        self.recording_message = recording_message
        self.not_recording_message = not_recording_message
        self.output_func = output_func
        self.clock = clock if clock is not None else datetime.datetime.now
        self.clear_screen = clear_screen
        self.clear_func = clear_func

    def __call__(self, activity: Mapping[str, bool]) -> None:
        if self.clear_screen:
            self.clear_func()
        self.output_func("")
        for line in format_status_report(
            activity,
            recording_message=self.recording_message,
            not_recording_message=self.not_recording_message,
            now=self.clock(),
        ):
            self.output_func(line)
        self.output_func("")
