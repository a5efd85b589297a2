import importlib
import json
import os
import time

from progress import (
    format_elapsed, record_region, reset, set_done, set_region, set_regions_total, set_result_url,
    set_status, snapshot,
)


def test_set_done_no_args_defaults_to_solved():
    reset()
    set_done()
    snap = snapshot()
    assert snap["status"] == "Solved"
    assert snap["percent"] == 100.0
    assert snap["done"] is True
    assert snap["ok"] is True
    assert snap["result_url"] == ""


def test_set_done_failure_keeps_message():
    reset()
    set_status("Solving")
    set_done(False, message="boom")
    snap = snapshot()
    assert snap["status"] == "Error"
    assert snap["percent"] == 100.0
    assert snap["message"] == "boom"
    assert snap["done"] is True
    assert snap["ok"] is False


def test_set_result_url_tracks_navigation_target():
    reset()
    set_result_url("/foo")
    snap = snapshot()
    assert snap["result_url"] == "/foo"
    assert snap["done"] is False


def test_reset_increments_run_identifier():
    reset()
    first = snapshot()["run_id"]
    reset()
    second = snapshot()["run_id"]
    assert isinstance(first, int)
    assert isinstance(second, int)
    assert second == first + 1


def test_record_region_counts_outcomes():
    reset()
    set_regions_total(4)
    set_region("2x2 (#1)")
    record_region("solved", solvable=True)
    set_region("3x3 (#2)")
    record_region("unknown", unknown=True)
    snap = snapshot()
    assert snap["regions_done"] == 2
    assert snap["solvable"] == 1
    assert snap["unknown"] == 1
    assert snap["percent"] == 50.0
    assert snap["region"] == "3x3 (#2)"


def test_tolerant_setters():
    reset()
    set_regions_total("not a number")
    set_region(None)
    snap = snapshot()
    assert snap["regions_total"] == 0
    assert snap["region"] == ""


def test_snapshot_reads_state_written_by_other_process(tmp_path, monkeypatch):
    import progress as progress_module

    state_path = tmp_path / "state.json"
    monkeypatch.setenv("PROGRESS_STATE_FILE", str(state_path))
    progress = importlib.reload(progress_module)

    progress.reset()
    progress.set_region("4x4 (#1)")
    first = progress.snapshot()
    assert first["region"] == "4x4 (#1)"

    data = dict(first)
    data["region"] = "12x5 (#2)"
    data["regions_done"] = 1
    state_path.write_text(json.dumps(data))
    os.utime(state_path, None)

    with progress.PROGRESS_LOCK:
        progress.PROGRESS["region"] = ""
        progress.PROGRESS["regions_done"] = 0
        progress.STATE.mtime = 0.0

    time.sleep(0.01)
    updated = progress.snapshot()
    assert updated["region"] == "12x5 (#2)"
    assert updated["regions_done"] == 1

    monkeypatch.delenv("PROGRESS_STATE_FILE", raising=False)
    importlib.reload(progress_module)


def test_format_elapsed():
    assert format_elapsed(0.25) == "0.25s"
    assert format_elapsed(42.9) == "42s"
    assert format_elapsed(185) == "3m 5s"
    assert format_elapsed(3725) == "1h 2m 5s"
    assert format_elapsed("junk") == "0.00s"


def test_snapshot_formats_elapsed_time():
    reset()
    snap = snapshot()
    assert snap["elapsed_str"] == "0.00s"
    assert "elapsed_start" not in snap
