import logging
import threading
import time
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from dirpulse.monitor.monitor_cycle import MonitorCycle
from dirpulse.monitor.monitor_thread import MonitorThread

from tests.test_utils.logging_helpers import find_log_record

MODULE_LOGGER = "dirpulse.monitor.monitor_thread"
THREAD_NAME = "TestMonitor"
SCAN_INTERVAL = 10.0
ROOT = Path("/srv/recordings")


def setup_stop_event_for_cycles(stop_event_mock: MagicMock, num_cycles: int):
    """is_set is checked at the loop head and before waiting: twice per cycle."""
    stop_event_mock.is_set.side_effect = [False] * (num_cycles * 2) + [True]


@pytest.fixture
def mock_processor() -> MagicMock:
    proc = MagicMock(spec=MonitorCycle)
    proc.root_path = ROOT
    return proc


@pytest.fixture
def mock_monotonic() -> MagicMock:
    return MagicMock(name="monotonic")


@pytest.fixture
def monitor_thread(mock_processor, mock_stop_event, mock_monotonic) -> MonitorThread:
    return MonitorThread(
        processor=mock_processor,
        stop_event=mock_stop_event,
        scan_interval_seconds=SCAN_INTERVAL,
        monotonic_func=mock_monotonic,
        name=THREAD_NAME,
    )


def test_init(monitor_thread, mock_processor):
    assert monitor_thread.name == THREAD_NAME
    assert monitor_thread.daemon is True
    assert monitor_thread.log_root == ROOT
    assert monitor_thread.processor is mock_processor


def test_runs_cycles_and_waits_remaining_interval(
    monitor_thread, mock_processor, mock_stop_event, mock_monotonic
):
    setup_stop_event_for_cycles(mock_stop_event, 2)
    mock_monotonic.side_effect = [100.0, 102.5, 110.0, 111.0]

    monitor_thread.run()

    assert mock_processor.run_once.call_count == 2
    waits = [c.args[0] for c in mock_stop_event.wait.call_args_list]
    assert waits == [pytest.approx(7.5), pytest.approx(9.0)]


def test_cycle_exception_is_logged_and_loop_continues(
    monitor_thread, mock_processor, mock_stop_event, mock_monotonic, caplog
):
    caplog.set_level(logging.ERROR, logger=MODULE_LOGGER)
    setup_stop_event_for_cycles(mock_stop_event, 2)
    mock_monotonic.side_effect = [0.0, 1.0, 10.0, 11.0]
    mock_processor.run_once.side_effect = [RuntimeError("boom"), None]

    monitor_thread.run()

    assert mock_processor.run_once.call_count == 2
    record = find_log_record(caplog, logging.ERROR, ["Unexpected error during cycle 1"])
    assert record is not None
    assert record.exc_info is not None


def test_overrun_cycle_warns_and_skips_wait(
    monitor_thread, mock_processor, mock_stop_event, mock_monotonic, caplog
):
    caplog.set_level(logging.WARNING, logger=MODULE_LOGGER)
    setup_stop_event_for_cycles(mock_stop_event, 1)
    mock_monotonic.side_effect = [0.0, SCAN_INTERVAL + 2.0]

    monitor_thread.run()

    mock_stop_event.wait.assert_not_called()
    assert find_log_record(caplog, logging.WARNING, ["longer than the 10.0 sec interval"])


def test_stop_event_set_before_start_runs_no_cycle(
    monitor_thread, mock_processor, mock_stop_event
):
    mock_stop_event.is_set.return_value = True

    monitor_thread.run()

    mock_processor.run_once.assert_not_called()


def test_stop_sets_event_once(monitor_thread, mock_stop_event):
    mock_stop_event.is_set.return_value = False
    monitor_thread.stop()
    mock_stop_event.set.assert_called_once()

    mock_stop_event.is_set.return_value = True
    monitor_thread.stop()
    mock_stop_event.set.assert_called_once()


def test_real_thread_stops_promptly(mock_processor):
    stop_event = threading.Event()
    ran = threading.Event()
    mock_processor.run_once.side_effect = lambda: ran.set()
    thread = MonitorThread(
        processor=mock_processor,
        stop_event=stop_event,
        scan_interval_seconds=60.0,
        monotonic_func=time.monotonic,
        name=THREAD_NAME,
    )

    thread.start()
    assert ran.wait(timeout=5.0)
    thread.stop()
    thread.join(timeout=5.0)

    assert not thread.is_alive()
    assert mock_processor.run_once.call_count == 1
