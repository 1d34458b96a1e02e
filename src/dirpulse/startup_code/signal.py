import signal
import logging
from functools import partial

from dirpulse.startup_code.context import AppContext

logger = logging.getLogger(__name__)


def handle_signal(context: AppContext, signum: int, _frame) -> None:
    """Signal handler: set shutdown_event once."""
    try:
        name = signal.Signals(signum).name
    except ValueError:
        name = f"SIGNAL {signum}"

    if not context.shutdown_event.is_set():
        logger.warning("Got %s (%d); initiating shutdown", name, signum)
        context.shutdown_event.set()


def install_signal_handlers(context: AppContext) -> None:
    """Attach SIGINT and SIGTERM (where the platform has it) to handle_signal."""
    handler = partial(handle_signal, context)
    signals = [signal.SIGINT]
    if hasattr(signal, "SIGTERM"):
        signals.append(signal.SIGTERM)
    for sig in signals:
        old_handler = signal.signal(sig, handler)
        logger.debug(
            "Installed shutdown handler for %s: replaced %s",
            signal.Signals(sig).name,
            old_handler,
        )
