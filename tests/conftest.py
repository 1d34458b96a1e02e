"""
Global pytest fixtures for the dirpulse test suite.

This file provides:
- Real and mocked filesystem abstractions.
- A monitored root under tmp_path and a frozen reference clock.
- Default configurations (real and mocked) and the matching ScanPolicy.
- Generic mocks for the stop event and the status reporter.
"""

import logging
import threading
from pathlib import Path
from unittest.mock import MagicMock, Mock

import pytest

from dirpulse.file_functions.fs_mock import FS
from dirpulse.protocols import StatusReporter
from dirpulse.scanner.scan_policy import ConcurrencyMode, ScanPolicy, TimestampKind
from dirpulse.startup_code.load_config import Config

from tests.test_utils.fs_helpers import NS_PER_HOUR, REFERENCE_NOW_NS

logger = logging.getLogger(__name__)

CHECK_HOURS = 3.0


# --- 1. Foundational Test Environment Fixtures ---


@pytest.fixture(scope="function")
def real_fs() -> FS:
    """
    Provides the real filesystem implementation.
    Used by integration tests that build trees under tmp_path.
    """
    return FS()


@pytest.fixture
def mock_fs() -> MagicMock:
    """
    Provides a MagicMock spec'd to FS so unit tests can script single calls.
    """
    return MagicMock(spec=FS, name="MockFS")


@pytest.fixture(scope="function")
def monitor_root(tmp_path: Path) -> Path:
    """An empty monitored root directory."""
    root = tmp_path / "monitor_root"
    root.mkdir()
    logger.debug("Created monitor root %s", root)
    return root


# --- 2. Clock and Policy Fixtures ---


@pytest.fixture
def now_ns() -> int:
    return REFERENCE_NOW_NS


@pytest.fixture
def threshold_ns(now_ns: int) -> int:
    return now_ns - int(CHECK_HOURS * NS_PER_HOUR)


@pytest.fixture
def recent_ns(threshold_ns: int) -> int:
    """A timestamp one hour after the threshold (qualifies)."""
    return threshold_ns + NS_PER_HOUR


@pytest.fixture
def old_ns(threshold_ns: int) -> int:
    """A timestamp one day before the threshold (does not qualify)."""
    return threshold_ns - 24 * NS_PER_HOUR


@pytest.fixture
def default_policy(threshold_ns: int) -> ScanPolicy:
    return ScanPolicy(threshold_ns=threshold_ns)


# --- 3. Configuration Fixtures ---


@pytest.fixture(scope="function")
def default_real_test_config(monitor_root: Path) -> Config:
    """
    A real Config pointing at `monitor_root`. Override fields in tests with
    dataclasses.replace().
    """
    return Config(
        root_path=monitor_root,
        check_hours=CHECK_HOURS,
        scan_interval_seconds=1.0,
        recording_message="Recording",
        not_recording_message="Not recording",
    )


@pytest.fixture
def mock_config(monitor_root: Path) -> MagicMock:
    """
    A MagicMock mimicking Config, for unit tests that only need attributes.
    """
    cfg = MagicMock(spec=Config)
    cfg.root_path = monitor_root
    cfg.check_hours = CHECK_HOURS
    cfg.scan_interval_seconds = 5.0
    cfg.max_depth = None
    cfg.follow_symlinks = False
    cfg.timestamp_kind = TimestampKind.MODIFIED
    cfg.parallel_mode = ConcurrencyMode.SEQUENTIAL
    cfg.max_parallel_tasks = None
    cfg.latest_subdir_only = False
    cfg.batch_mode = False
    cfg.recording_message = "Recording"
    cfg.not_recording_message = "Not recording"
    cfg.logger_dir = None
    return cfg


# --- 4. Generic Mocking Fixtures ---


@pytest.fixture
def mock_stop_event() -> MagicMock:
    """
    Provides a mock `threading.Event`.
    `is_set` defaults to False and `wait` to False (timed out, not set).
    """
    evt = MagicMock(spec=threading.Event, name="MockStopEvent")
    evt.is_set.return_value = False
    evt.wait = Mock(return_value=False, name="MockStopEventWait")
    return evt


@pytest.fixture
def mock_reporter() -> MagicMock:
    """A StatusReporter mock recording the activity maps it was given."""
    return MagicMock(spec=StatusReporter, name="MockReporter")
