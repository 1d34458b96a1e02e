"""
End-to-end checks of check_all against real directory trees built under
tmp_path, across every dispatch mode and every traversal variant.
"""

import dataclasses
import itertools
import shutil
import threading

import pytest

from dirpulse.monitor.check_all import check_all
from dirpulse.monitor.thread_factory import create_monitor_thread
from dirpulse.scanner.scan_policy import ConcurrencyMode

from tests.test_utils.fs_helpers import (
    NS_PER_HOUR,
    make_depth_chain,
    make_dir,
    make_tree,
    stamp,
)

pytestmark = pytest.mark.integration

ALL_MODES = list(ConcurrencyMode)


@pytest.fixture
def populated_root(monitor_root, recent_ns, old_ns):
    """
    cam_active/    recent file two levels down
    cam_idle/      only old files
    cam_empty/     no files at all
    cam_deep/      recent file at depth 10
    notes.txt      plain file at the root (ignored)
    """
    make_tree(
        monitor_root,
        {
            "cam_active/2024/clip.mp4": recent_ns,
            "cam_active/old.mp4": old_ns,
            "cam_idle/a.mp4": old_ns,
            "cam_idle/sub/b.mp4": old_ns,
            "notes.txt": recent_ns,
        },
    )
    make_dir(monitor_root / "cam_empty")
    make_depth_chain(monitor_root / "cam_deep", 9, recent_ns)
    for name in ("cam_active", "cam_idle", "cam_empty", "cam_deep"):
        stamp(monitor_root / name, old_ns)
    return monitor_root


EXPECTED_FULL = {
    "cam_active": True,
    "cam_idle": False,
    "cam_empty": False,
    "cam_deep": True,
}


@pytest.mark.parametrize("mode", ALL_MODES)
@pytest.mark.parametrize("batch_mode", [False, True])
def test_all_modes_and_traversals_agree(
    populated_root, real_fs, default_policy, mode, batch_mode
):
    policy = dataclasses.replace(default_policy, batch_mode=batch_mode)

    result = check_all(populated_root, policy, mode, 2, fs=real_fs)

    assert result.ok
    assert result.activity == EXPECTED_FULL


@pytest.mark.parametrize("mode", ALL_MODES)
def test_depth_limit_applies_per_subdirectory(populated_root, real_fs, default_policy, mode):
    policy = dataclasses.replace(default_policy, max_depth=5)

    result = check_all(populated_root, policy, mode, fs=real_fs)

    assert result.activity == {**EXPECTED_FULL, "cam_deep": False}


@pytest.mark.parametrize("mode", ALL_MODES)
def test_latest_subdir_only_across_modes(
    populated_root, real_fs, default_policy, old_ns, recent_ns, mode
):
    # cam_split: the older child holds the recent file, the newer child does not.
    make_tree(
        populated_root,
        {
            "cam_split/older/recent.mp4": recent_ns,
            "cam_split/newer/old.mp4": old_ns,
        },
    )
    stamp(populated_root / "cam_split" / "older", old_ns)
    stamp(populated_root / "cam_split" / "newer", old_ns + NS_PER_HOUR)
    stamp(populated_root / "cam_split", old_ns)
    # cam_active's 2024 child is its latest child and holds the recent file.
    stamp(populated_root / "cam_active" / "2024", old_ns + NS_PER_HOUR)

    full = check_all(populated_root, default_policy, mode, fs=real_fs)
    latest_policy = dataclasses.replace(default_policy, latest_subdir_only=True)
    latest = check_all(populated_root, latest_policy, mode, fs=real_fs)

    assert full.activity["cam_split"] is True
    assert latest.activity["cam_split"] is False
    assert latest.activity["cam_active"] is True
    assert latest.activity["cam_idle"] is False
    assert latest.activity["cam_empty"] is False


def test_latest_subdir_fast_path_on_recent_directory(
    populated_root, real_fs, default_policy, recent_ns
):
    stamp(populated_root / "cam_empty", recent_ns)
    policy = dataclasses.replace(default_policy, latest_subdir_only=True)

    assert check_all(populated_root, policy, fs=real_fs).activity["cam_empty"] is True


@pytest.mark.parametrize("mode", ALL_MODES)
def test_subdirectory_removed_between_cycles(populated_root, real_fs, default_policy, mode):
    first = check_all(populated_root, default_policy, mode, fs=real_fs)
    shutil.rmtree(populated_root / "cam_idle")

    second = check_all(populated_root, default_policy, mode, fs=real_fs)

    assert "cam_idle" in first.activity
    assert "cam_idle" not in second.activity
    assert second.activity["cam_active"] is True


def test_root_appearing_later_recovers(tmp_path, real_fs, default_policy, recent_ns):
    root = tmp_path / "late_mount"

    before = check_all(root, default_policy, fs=real_fs)
    make_tree(root, {"cam/a.mp4": recent_ns})
    after = check_all(root, default_policy, fs=real_fs)

    assert before.activity == {} and before.error is not None
    assert after.ok and after.activity == {"cam": True}


def test_monitor_thread_reports_real_cycles(
    populated_root, real_fs, default_real_test_config, now_ns
):
    reports = []
    reported = threading.Event()

    def reporter(activity):
        reports.append(dict(activity))
        reported.set()

    stop_event = threading.Event()
    thread = create_monitor_thread(
        config=dataclasses.replace(
            default_real_test_config, parallel_mode=ConcurrencyMode.PARALLEL
        ),
        reporter=reporter,
        stop_event=stop_event,
        fs=real_fs,
        time_ns_func=lambda: now_ns,
    )

    thread.start()
    try:
        assert reported.wait(timeout=10.0)
    finally:
        thread.stop()
        thread.join(timeout=10.0)

    assert not thread.is_alive()
    assert reports[0] == EXPECTED_FULL


def test_frozen_clock_gives_identical_cycles(populated_root, real_fs, default_policy):
    results = [
        check_all(populated_root, default_policy, mode, fs=real_fs).activity
        for mode in itertools.islice(itertools.cycle(ALL_MODES), 6)
    ]
    assert all(r == EXPECTED_FULL for r in results)
