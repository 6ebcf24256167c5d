"""Run progress shared between the solver and the ``/progress3`` poller.

State lives in one dict guarded by a lock and is mirrored to a JSON file so
a poller in another worker process sees the same run. Solver events go to
``logs/solver_attempts.log`` as ``event | key=value ...`` lines.
"""
from __future__ import annotations

import json
import logging
import os
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from config import CFG

PROGRESS_LOCK = threading.Lock()


def _log_dir() -> Path:
    configured = Path(CFG.LOG_DIR)
    if configured.is_absolute():
        return configured
    return Path(__file__).resolve().parent / configured


STATE_FILE = Path(os.environ.get("PROGRESS_STATE_FILE") or _log_dir() / "progress_state.json")
_LAST_STATE_MTIME = 0.0


def _init_logger() -> logging.Logger:
    logger = logging.getLogger("solver.attempt_log")
    if logger.handlers:
        return logger
    path = _log_dir() / "solver_attempts.log"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError:
        # read-only checkout: keep solving, just without the attempt log
        return logger
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", "%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


ATTEMPT_LOGGER = _init_logger()


def _emit_log(event: str, **fields: Any) -> None:
    extras = " ".join(f"{k}={v}" for k, v in fields.items() if v is not None and v != "")
    if extras:
        ATTEMPT_LOGGER.info("%s | %s", event, extras)
    else:
        ATTEMPT_LOGGER.info("%s", event)


def log_attempt_detail(event: str, **fields: Any) -> None:
    """Free-form solver event (engine choice, per-tile solve, merges)."""
    _emit_log(event, **fields)


def _secs(seconds: Optional[float]) -> Optional[str]:
    return None if seconds is None else f"{max(0.0, seconds):.2f}s"


@dataclass
class _Timeline:
    """Start times behind the phase/attempt log lines."""

    run_start: Optional[float] = None
    phase: str = ""
    phase_start: Optional[float] = None
    attempt: str = ""
    attempt_start: Optional[float] = None
    grid: str = ""

    def close_attempt(self, now: float, reason: str) -> None:
        if not self.attempt:
            return
        took = None if self.attempt_start is None else now - self.attempt_start
        _emit_log("Attempt finished", phase=self.phase, attempt=self.attempt, grid=self.grid,
                  duration=_secs(took), reason=reason)
        self.attempt, self.attempt_start = "", None

    def enter_attempt(self, attempt: str, now: float) -> None:
        if attempt == self.attempt:
            return
        self.close_attempt(now, "switch")
        if attempt:
            self.attempt, self.attempt_start = attempt, now
            _emit_log("Attempt started", phase=self.phase, attempt=attempt, grid=self.grid)

    def enter_phase(self, phase: str, now: float) -> None:
        if phase == self.phase:
            return
        self.close_attempt(now, "phase_change")
        if self.phase and self.phase_start is not None:
            _emit_log("Phase finished", phase=self.phase, duration=_secs(now - self.phase_start))
        self.phase, self.phase_start = phase, now
        if phase:
            _emit_log("Phase started", phase=phase)

    def enter_grid(self, grid: str) -> None:
        if grid and grid != self.grid:
            _emit_log("Board updated", phase=self.phase, grid=grid)
        self.grid = grid


_TIMELINE = _Timeline()

_DEFAULTS: Dict[str, Any] = {
    "status": "Idle",          # Idle | Solving | Solved | Error
    "phase": "",               # search | tiles | finish | cp_sat
    "phase_total": "",
    "attempt": "",             # e.g. "tile 3/12 6x5 at G-1"
    "grid": "",                # e.g. "8x8"
    "strategy": "",            # warnsdorff | divide_and_conquer | cp_sat
    "percent": 0.0,
    "tiles_done": 0,
    "tiles_total": 0,
    "squares": 0,              # live squares on the board
    "elapsed_start": None,
    "elapsed": 0.0,
    "message": "",
    "done": False,
    "ok": None,
    "result_url": "",
    "run_id": 0,
}

PROGRESS: Dict[str, Any] = dict(_DEFAULTS)


def _persist_locked() -> None:
    global _LAST_STATE_MTIME
    tmp = STATE_FILE.with_name(STATE_FILE.name + ".tmp")
    try:
        STATE_FILE.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(json.dumps(PROGRESS, ensure_ascii=False, separators=(",", ":")), encoding="utf-8")
        tmp.replace(STATE_FILE)
        _LAST_STATE_MTIME = STATE_FILE.stat().st_mtime
    except OSError as e:
        _emit_log("Progress not persisted", error=e)


def _load_persisted_locked() -> None:
    """Adopt the state file when another process wrote it after us."""
    global _LAST_STATE_MTIME
    try:
        mtime = STATE_FILE.stat().st_mtime
        if mtime <= _LAST_STATE_MTIME:
            return
        data = json.loads(STATE_FILE.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return
    if isinstance(data, dict):
        PROGRESS.update({k: v for k, v in data.items() if k in _DEFAULTS})
        _LAST_STATE_MTIME = mtime


def _touch_elapsed_locked() -> None:
    t0 = PROGRESS.get("elapsed_start")
    if t0 is not None:
        PROGRESS["elapsed"] = time.time() - float(t0)


def _update(**fields: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS.update(fields)
        _persist_locked()


def _text(v: Any) -> str:
    return "" if v is None else str(v)


def _count(v: Any) -> int:
    try:
        return max(0, int(v))
    except (TypeError, ValueError):
        return 0


def _fraction(v: Any, upper: Optional[float] = None) -> float:
    try:
        f = max(0.0, float(v))
    except (TypeError, ValueError):
        return 0.0
    return f if upper is None else min(upper, f)


def _fmt_elapsed(seconds: float) -> str:
    m, s = divmod(int(max(0.0, float(seconds))), 60)
    if m == 0:
        return f"{s}s"
    h, m = divmod(m, 60)
    return f"{m}m {s}s" if h == 0 else f"{h}h {m}m"


# ------------------------------
# Run lifecycle
# ------------------------------

def reset() -> None:
    """Blank slate for a new run; ``run_id`` keeps counting up."""
    global _TIMELINE
    with PROGRESS_LOCK:
        _TIMELINE.close_attempt(time.time(), "reset")
        _TIMELINE = _Timeline()
        run_id = _count(PROGRESS.get("run_id")) + 1
        PROGRESS.clear()
        PROGRESS.update(_DEFAULTS, run_id=run_id)
        _emit_log("Progress reset", run_id=run_id)
        _persist_locked()


def start_timer() -> None:
    with PROGRESS_LOCK:
        now = time.time()
        PROGRESS.update(elapsed_start=now, elapsed=0.0)
        _TIMELINE.run_start = now
        _emit_log("Run timer started")
        _persist_locked()


def set_done(ok: Any = None, *, reason: Any = None, message: Any = None) -> None:
    """Mark the run complete.

    ``ok`` picks the final status ("Solved" / "Error"); without it an idle
    run counts as solved. ``message`` wins over ``reason`` for the note.
    """
    note = message if message is not None else reason
    with PROGRESS_LOCK:
        now = time.time()
        _touch_elapsed_locked()
        if ok is not None:
            PROGRESS["ok"] = bool(ok)
            PROGRESS["status"] = "Solved" if ok else "Error"
        elif PROGRESS.get("status") in ("", "Idle", None):
            PROGRESS["ok"] = True
            PROGRESS["status"] = "Solved"
        if note is not None:
            PROGRESS["message"] = str(note)
        PROGRESS.update(percent=100.0, done=True)

        _TIMELINE.close_attempt(now, "run_complete")
        took = None if _TIMELINE.run_start is None else now - _TIMELINE.run_start
        _TIMELINE.run_start = _TIMELINE.phase_start = None
        _emit_log(
            "Run finished",
            status=PROGRESS["status"],
            ok=PROGRESS["ok"],
            duration=_secs(took),
            strategy=PROGRESS["strategy"],
            tiles=PROGRESS["tiles_total"] or None,
            squares=PROGRESS["squares"] or None,
            message=PROGRESS["message"],
        )
        _persist_locked()


# ------------------------------
# Setters (tolerant of junk input)
# ------------------------------

def set_status(v: Any) -> None:
    _update(status=str(v))


def set_phase(v: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["phase"] = _text(v)
        _TIMELINE.enter_phase(PROGRESS["phase"], time.time())
        _persist_locked()


def set_phase_total(v: Any) -> None:
    _update(phase_total=_text(v))


def set_attempt(v: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["attempt"] = _text(v)
        _TIMELINE.enter_attempt(PROGRESS["attempt"], time.time())
        _persist_locked()


def set_grid(v: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["grid"] = _text(v)
        _TIMELINE.enter_grid(PROGRESS["grid"])
        _persist_locked()


def set_strategy(v: Any) -> None:
    _update(strategy=_text(v))


def set_progress_pct(pct: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["percent"] = _fraction(pct, 100.0)
        _touch_elapsed_locked()
        _persist_locked()


def set_tiles(done: Any, total: Any = None) -> None:
    """Tiles solved so far; the percentage follows when a total is known."""
    with PROGRESS_LOCK:
        PROGRESS["tiles_done"] = _count(done)
        if total is not None:
            PROGRESS["tiles_total"] = _count(total)
        if PROGRESS["tiles_total"]:
            PROGRESS["percent"] = min(100.0, 100.0 * PROGRESS["tiles_done"] / PROGRESS["tiles_total"])
        _touch_elapsed_locked()
        _persist_locked()


def set_squares(n: Any) -> None:
    _update(squares=_count(n))


def set_elapsed(seconds: Any) -> None:
    _update(elapsed=_fraction(seconds))


def set_message(msg: Any) -> None:
    _update(message=_text(msg))


def set_result_url(url: Any) -> None:
    _update(result_url=_text(url))


# ------------------------------
# Snapshots for the UI
# ------------------------------

def snapshot() -> Dict[str, Any]:
    with PROGRESS_LOCK:
        _load_persisted_locked()
        _touch_elapsed_locked()
        out = {k: v for k, v in PROGRESS.items() if k != "elapsed_start"}
    out["elapsed_str"] = _fmt_elapsed(out["elapsed"])
    return out


def as_json() -> Dict[str, Any]:
    # /progress3 payload
    return snapshot()
