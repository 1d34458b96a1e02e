import logging
import sys
from typing import Optional, Sequence

from dirpulse.startup_code.cli import parse_args
from dirpulse.startup_code.load_config import ConfigError
from dirpulse.startup_code.monitor_path import load_or_create_config
from dirpulse.startup_code.context import build_context
from dirpulse.startup_code.logger_setup import (
    LoggingConfigurationError,
    setup_logging,
)
from dirpulse.startup_code.signal import install_signal_handlers
from dirpulse.app import run, run_single_cycle, AppRunFailureError, AppSetupError

# For sysexits.h codes - for systemd
EX_OK = 0  # successful termination
EX_USAGE = 64  # command line usage error
EX_SOFTWARE = 70  # internal software error
EX_TEMPFAIL: int = 75  # temp failure; user is invited to retry
EX_CONFIG = 78  # configuration error


def _stdout_is_terminal() -> bool:
    return sys.stdout.isatty()


def main_entrypoint(argv: Optional[Sequence[str]] = None) -> None:
    """
    Main function to initialize and run the folder activity monitor.
    """
    # 1. Parse command-line arguments
    args = parse_args(argv)

    # 2. Load (or create) configuration and make sure the monitor path is usable
    try:
        cfg = load_or_create_config(
            args.config,
            non_interactive=args.non_interactive,
            cli_monitor_path=args.monitor_path,
        )
    except ConfigError as e:
        print(
            f"CRITICAL: Failed to load configuration from '{args.config}': {e}",
            file=sys.stderr,
        )
        sys.exit(EX_CONFIG)
    except (EOFError, KeyboardInterrupt):
        print("\nAborted while reading the monitor path.", file=sys.stderr)
        sys.exit(EX_USAGE)

    # 3. Configure logging
    try:
        setup_logging(
            log_file_dir=cfg.logger_dir,
            file_level=logging.DEBUG,
            console_level=logging.DEBUG if args.dev else logging.INFO,
        )
    except LoggingConfigurationError as e:
        print(f"CRITICAL: Failed to configure logging: {e}", file=sys.stderr)
        sys.exit(EX_CONFIG)

    logger = logging.getLogger("dirpulse.main")
    logger.info("Folder activity monitor starting...")
    logger.info("Monitor directory: %s", cfg.root_path)
    logger.info("Activity window: %s hours", cfg.check_hours)
    logger.debug("Dev mode: %s", args.dev)

    # 4. Build context; periodic runs on a terminal redraw the report in place
    context = build_context(
        cfg, clear_screen=not args.once and _stdout_is_terminal()
    )
    logger.debug("Context details: %s", context)

    # 5. Single cycle mode
    if args.once:
        try:
            run_single_cycle(context)
        except Exception as e:
            logger.critical("Check cycle failed: %s", e, exc_info=True)
            sys.exit(EX_SOFTWARE)
        sys.exit(EX_OK)

    # 6. Install signal handlers
    try:
        install_signal_handlers(context)
        logger.info("Signal handlers installed.")
    except Exception as e:
        logger.critical("Failed to install signal handlers: %s", e, exc_info=True)
        sys.exit(EX_SOFTWARE)

    # 7. Run the monitor loop
    logger.info("Scan interval: %s seconds. Press Ctrl+C to stop.", cfg.scan_interval_seconds)
    try:
        run(context)
        logger.info("Application run loop completed gracefully.")
        sys.exit(EX_OK)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received directly in main. Shutting down.")
        context.shutdown_event.set()
        sys.exit(EX_OK)
    except AppSetupError as e:
        logger.critical("Application setup failed: %s", e, exc_info=True)
        sys.exit(EX_CONFIG)
    except AppRunFailureError as e:
        logger.critical(
            "Application run failed: %s. Exiting to allow restart.", e, exc_info=True
        )
        sys.exit(EX_TEMPFAIL)
    except Exception as e:
        logger.critical(
            "Fatal unhandled exception in main application run loop: %s",
            e,
            exc_info=True,
        )
        context.shutdown_event.set()
        sys.exit(EX_SOFTWARE)


# Guard for execution
if __name__ == "__main__":
    main_entrypoint()
