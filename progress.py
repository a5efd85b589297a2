"""Run progress shared between the solver and the web front end.

State lives in ``PROGRESS`` behind ``PROGRESS_LOCK`` and is mirrored to a JSON
file so that a front end running in another process sees the same numbers.
Run and region transitions go to the ``solver.attempt_log`` logger.
"""
from __future__ import annotations

import json
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional

_HERE = Path(__file__).resolve().parent

PROGRESS_LOCK = threading.Lock()


class _StateFile:
    """JSON mirror of ``PROGRESS``; written via a temp file and ``replace``."""

    def __init__(self, path: Path):
        self.path = path
        self.tmp = path.with_name(path.name + ".tmp")
        self.mtime = 0.0

    def save(self, state: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.tmp.open("w", encoding="utf-8") as fh:
                json.dump(state, fh, ensure_ascii=False, separators=(",", ":"))
            self.tmp.replace(self.path)
            self.mtime = self.path.stat().st_mtime
        except OSError:
            # progress updates never fail because of the mirror
            self.mtime = time.time()

    def load_into(self, state: Dict[str, Any], *, force: bool = False) -> bool:
        try:
            mtime = self.path.stat().st_mtime
        except OSError:
            return False
        if not force and mtime <= self.mtime:
            return False
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return False
        if not isinstance(data, dict):
            return False
        state.update({k: data[k] for k in state if k in data})
        self.mtime = mtime
        return True


STATE = _StateFile(Path(os.environ.get("PROGRESS_STATE_FILE") or _HERE / "logs" / "progress_state.json"))


def _attempt_logger() -> logging.Logger:
    logger = logging.getLogger("solver.attempt_log")
    if logger.handlers:
        return logger
    log_path = _HERE / "logs" / "solver_attempts.log"
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError:
        return logger
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", "%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


ATTEMPT_LOGGER = _attempt_logger()


def log_region_detail(event: str, **fields: Any) -> None:
    """Write ``event | key=value ...`` to the attempt log, skipping empty values."""
    if not ATTEMPT_LOGGER.handlers:
        return
    pairs = " ".join(f"{k}={v}" for k, v in fields.items() if v is not None and v != "")
    if pairs:
        ATTEMPT_LOGGER.info("%s | %s", event, pairs)
    else:
        ATTEMPT_LOGGER.info("%s", event)


def _blank(run_id: int = 0) -> Dict[str, Any]:
    return {
        "status": "Idle",          # Idle | Solving | Solved | Error
        "region": "",              # e.g. "12x5 (#3)"
        "regions_total": 0,
        "regions_done": 0,
        "solvable": 0,
        "unknown": 0,
        "percent": 0.0,
        "elapsed_start": None,     # wall clock at start_timer()
        "elapsed": 0.0,
        "message": "",
        "done": False,
        "ok": None,
        "result_url": "",
        "run_id": run_id,
    }


PROGRESS: Dict[str, Any] = _blank()

# timing for the attempt log only; never exposed to the UI
LOG_STATE: Dict[str, Any] = {"run_start": None, "region": "", "region_start": None}


def _count(v: Any) -> int:
    try:
        return max(0, int(v))
    except (TypeError, ValueError):
        return 0


def _secs(seconds: Optional[float]) -> Optional[str]:
    return None if seconds is None else f"{seconds:.2f}s"


def format_elapsed(seconds: Any) -> str:
    """``0.25s``, ``42s``, ``3m 5s`` or ``1h 2m 5s``."""
    try:
        seconds = max(0.0, float(seconds))
    except (TypeError, ValueError):
        seconds = 0.0
    if seconds < 1:
        return f"{seconds:.2f}s"
    m, s = divmod(int(seconds), 60)
    if not m:
        return f"{s}s"
    h, m = divmod(m, 60)
    return f"{m}m {s}s" if not h else f"{h}h {m}m {s}s"


def _close_region_locked(outcome: Optional[str]) -> None:
    region = LOG_STATE["region"]
    if not region:
        return
    start = LOG_STATE["region_start"]
    took = time.time() - start if isinstance(start, (int, float)) else None
    log_region_detail("Region finished", region=region, duration=_secs(took), outcome=outcome)
    LOG_STATE.update(region="", region_start=None)


def _tick_locked() -> None:
    t0 = PROGRESS.get("elapsed_start")
    if t0 is not None:
        PROGRESS["elapsed"] = time.time() - float(t0)


def _update(**fields: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS.update(fields)
        STATE.save(PROGRESS)


# ------------------------------
# Run lifecycle
# ------------------------------

def reset() -> None:
    """Start a fresh run: counters cleared, ``run_id`` bumped."""
    with PROGRESS_LOCK:
        _close_region_locked("reset")
        run_id = _count(PROGRESS.get("run_id")) + 1
        PROGRESS.clear()
        PROGRESS.update(_blank(run_id))
        LOG_STATE.update(run_start=None, region="", region_start=None)
        log_region_detail("Progress reset", run_id=run_id)
        STATE.save(PROGRESS)


def start_timer() -> None:
    with PROGRESS_LOCK:
        now = time.time()
        PROGRESS.update(elapsed_start=now, elapsed=0.0)
        LOG_STATE["run_start"] = now
        log_region_detail("Run timer started")
        STATE.save(PROGRESS)


def set_done(ok: Any = None, *, message: Any = None) -> None:
    """Mark the run complete.

    ``ok`` decides the final status when given (``Solved`` / ``Error``);
    otherwise an idle run is reported as ``Solved``.
    """
    with PROGRESS_LOCK:
        _tick_locked()
        if ok is not None:
            PROGRESS["status"] = "Solved" if ok else "Error"
            PROGRESS["ok"] = bool(ok)
        elif PROGRESS.get("status") in ("", "Idle", None):
            PROGRESS["status"] = "Solved"
            PROGRESS["ok"] = True
        if message is not None:
            PROGRESS["message"] = str(message)
        PROGRESS.update(percent=100.0, done=True)

        _close_region_locked("run_complete")
        run_start = LOG_STATE["run_start"]
        LOG_STATE["run_start"] = None
        log_region_detail(
            "Run finished",
            status=PROGRESS["status"],
            ok=PROGRESS["ok"],
            duration=_secs(time.time() - run_start) if isinstance(run_start, (int, float)) else None,
            regions=PROGRESS["regions_done"],
            solvable=PROGRESS["solvable"],
            unknown=PROGRESS["unknown"],
            message=PROGRESS["message"],
        )
        STATE.save(PROGRESS)


# ------------------------------
# Setters (tolerant of junk input)
# ------------------------------

def set_status(v: Any) -> None:
    _update(status=str(v))


def set_regions_total(n: Any) -> None:
    _update(regions_total=_count(n))


def set_region(label: Any) -> None:
    region = "" if label is None else str(label)
    with PROGRESS_LOCK:
        PROGRESS["region"] = region
        if region != LOG_STATE["region"]:
            _close_region_locked("switch")
            if region:
                LOG_STATE.update(region=region, region_start=time.time())
                log_region_detail("Region started", region=region)
        STATE.save(PROGRESS)


def record_region(outcome: Any, *, solvable: bool = False, unknown: bool = False) -> None:
    """Count one finished region and advance the percentage."""
    with PROGRESS_LOCK:
        _close_region_locked(None if outcome is None else str(outcome))
        done = _count(PROGRESS.get("regions_done")) + 1
        PROGRESS["regions_done"] = done
        PROGRESS["solvable"] = _count(PROGRESS.get("solvable")) + int(bool(solvable))
        PROGRESS["unknown"] = _count(PROGRESS.get("unknown")) + int(bool(unknown))
        total = _count(PROGRESS.get("regions_total"))
        if total:
            PROGRESS["percent"] = min(100.0, 100.0 * done / total)
        _tick_locked()
        STATE.save(PROGRESS)


def set_elapsed(seconds: Any) -> None:
    try:
        value = max(0.0, float(seconds))
    except (TypeError, ValueError):
        value = 0.0
    _update(elapsed=value)


def set_message(msg: Any) -> None:
    _update(message="" if msg is None else str(msg))


def set_result_url(url: Any) -> None:
    _update(result_url="" if url is None else str(url))


# ------------------------------
# Snapshots for the UI
# ------------------------------

def snapshot() -> Dict[str, Any]:
    with PROGRESS_LOCK:
        STATE.load_into(PROGRESS)
        _tick_locked()
        snap = {k: v for k, v in PROGRESS.items() if k != "elapsed_start"}
        snap["elapsed_str"] = format_elapsed(PROGRESS["elapsed"])
        return snap


as_json = snapshot  # used by /progress


with PROGRESS_LOCK:
    STATE.load_into(PROGRESS, force=True)
