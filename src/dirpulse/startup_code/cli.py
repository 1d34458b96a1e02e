import argparse
from typing import Optional, Sequence


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments for the folder activity monitor.

    Returns:
        argparse.Namespace: An object holding the parsed command-line arguments
                            as attributes.
    """
    parser = argparse.ArgumentParser(
        prog="dirpulse",
        description="Reports which subdirectories of a folder have recently written files.",
    )
    parser.add_argument(
        "--config",
        "-c",
        default="config.ini",
        help="Path to the INI configuration file (created if missing)",
    )
    parser.add_argument(
        "--once", action="store_true", help="Run a single check cycle and exit"
    )
    parser.add_argument(
        "--non-interactive",
        action="store_true",
        help="Never prompt; use --monitor-path to create or repair the config",
    )
    parser.add_argument(
        "--monitor-path",
        default=None,
        help="Directory to monitor (used in non-interactive mode)",
    )
    parser.add_argument(
        "--dev", action="store_true", help="Enable debug logging to console"
    )
    return parser.parse_args(argv)
