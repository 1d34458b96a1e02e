import logging
import signal
import threading
from unittest.mock import MagicMock

import pytest

from dirpulse.startup_code.context import AppContext
from dirpulse.startup_code.signal import handle_signal, install_signal_handlers

from tests.test_utils.logging_helpers import find_log_record

MODULE = "dirpulse.startup_code.signal"


def make_context(side_effects=None):
    """A mock AppContext whose shutdown_event is a spec'd MagicMock."""
    mock_event = MagicMock(name="mock_shutdown_event", spec=threading.Event)
    if side_effects is not None:
        mock_event.is_set.side_effect = side_effects
    else:
        mock_event.is_set.return_value = False

    context = MagicMock(spec=AppContext, name="mock_app_context")
    context.shutdown_event = mock_event
    return context, mock_event


@pytest.mark.parametrize("signum", [signal.SIGINT, signal.SIGTERM])
def test_handle_signal_sets_event_once(signum, caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.WARNING, logger=MODULE)
    context, mock_event = make_context(side_effects=[False, True])
    name = signal.Signals(signum).name

    handle_signal(context, signum, None)
    handle_signal(context, signum, None)

    mock_event.set.assert_called_once()
    record = find_log_record(caplog, logging.WARNING, [f"Got {name}", "initiating shutdown"])
    assert record is not None
    assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 1


def test_handle_signal_unknown_number(caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.WARNING, logger=MODULE)
    context, mock_event = make_context()

    handle_signal(context, 999, None)

    mock_event.set.assert_called_once()
    assert find_log_record(caplog, logging.WARNING, ["SIGNAL 999"])


def test_handle_signal_with_real_event():
    context = MagicMock(spec=AppContext)
    context.shutdown_event = threading.Event()

    handle_signal(context, signal.SIGINT, None)

    assert context.shutdown_event.is_set()


def test_install_signal_handlers_registers_partials(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
):
    mock_handle = MagicMock(name="handle_signal")
    monkeypatch.setattr(f"{MODULE}.handle_signal", mock_handle)
    registered = {}

    def fake_signal(sig_num, handler):
        registered[sig_num] = handler
        return f"old_{sig_num}"

    monkeypatch.setattr(signal, "signal", fake_signal)
    caplog.set_level(logging.DEBUG, logger=MODULE)
    context, _ = make_context()

    install_signal_handlers(context)

    expected = {signal.SIGINT}
    if hasattr(signal, "SIGTERM"):
        expected.add(signal.SIGTERM)
    assert set(registered) == expected

    registered[signal.SIGINT](signal.SIGINT, "frame")
    mock_handle.assert_called_once_with(context, signal.SIGINT, "frame")
    assert find_log_record(
        caplog,
        logging.DEBUG,
        [f"Installed shutdown handler for SIGINT: replaced old_{signal.SIGINT}"],
    )
