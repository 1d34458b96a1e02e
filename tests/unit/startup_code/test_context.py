import threading
from unittest.mock import MagicMock

from dirpulse.file_functions.fs_mock import FS
from dirpulse.monitor.report import ConsoleStatusReporter
from dirpulse.startup_code.context import AppContext, build_context


def test_build_context_defaults(default_real_test_config):
    context = build_context(default_real_test_config)

    assert isinstance(context, AppContext)
    assert context.config is default_real_test_config
    assert isinstance(context.fs, FS)
    assert isinstance(context.reporter, ConsoleStatusReporter)
    assert context.reporter.recording_message == "Recording"
    assert context.reporter.not_recording_message == "Not recording"
    assert isinstance(context.shutdown_event, threading.Event)
    assert not context.shutdown_event.is_set()


def test_build_context_overrides(default_real_test_config, mock_fs, mock_reporter):
    context = build_context(
        default_real_test_config, fs_override=mock_fs, reporter_override=mock_reporter
    )

    assert context.fs is mock_fs
    assert context.reporter is mock_reporter


def test_context_str_is_informative(default_real_test_config):
    context = AppContext(
        config=default_real_test_config, fs=FS(), reporter=MagicMock(name="Reporter")
    )

    text = str(context)

    assert text.startswith("AppContext(")
    assert f"root={default_real_test_config.root_path}" in text
    assert "fs=<FS instance>" in text
    assert "shutdown_event_set=False" in text
    assert repr(context) == text


def test_build_context_clear_screen_defaults_off(default_real_test_config):
    assert build_context(default_real_test_config).reporter.clear_screen is False


def test_build_context_passes_clear_screen_to_console_reporter(default_real_test_config):
    context = build_context(default_real_test_config, clear_screen=True)

    assert context.reporter.clear_screen is True
