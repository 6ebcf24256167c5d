# solver/cp_isolate.py
import multiprocessing as mp
from typing import List, Optional, Tuple
import traceback

# Worker must be top-level (picklable on Windows spawn)
def _solve_worker(q, W: int, H: int, dead, start, end, closed: bool, max_seconds: float):
    try:
        from solver.cp_sat import try_tour_exact  # import inside child
        ok, order, reason = try_tour_exact(W, H, dead, start, end, closed, max_seconds)
        q.put(("ok", ok, order, reason))
    except MemoryError:
        q.put(("err", False, [], "Child ran out of memory"))
    except Exception as e:
        q.put(("exc", False, [], f"{e}\n{traceback.format_exc()}"))

def run_cp_sat_isolated(
    W: int,
    H: int,
    dead,
    start,
    end,
    closed: bool,
    max_seconds: float,
) -> Tuple[bool, List, Optional[str], Optional[str]]:
    """
    Returns (ok, order, reason, crash_note).
    crash_note is non-empty only if the child crashed/was killed/timed out.
    """
    ctx = mp.get_context("spawn")  # safest on Windows
    q: mp.Queue = ctx.Queue()
    dead = [tuple(p) for p in dead]
    start = tuple(start)
    end = None if end is None else tuple(end)
    p = ctx.Process(target=_solve_worker, args=(q, W, H, dead, start, end, bool(closed), float(max_seconds)))
    p.daemon = True
    p.start()

    # Allow a small buffer beyond model time for teardown
    timeout = float(max_seconds) + 5.0
    try:
        tag, ok, order, reason = q.get(timeout=timeout)
    except Exception:
        tag = None
    p.join(timeout=2.0)

    if tag is None:
        if p.is_alive():
            p.terminate()
            p.join(2.0)
            return False, [], "Stopped before solution (timebox)", "killed: timeout"
        if p.exitcode not in (0, None):
            return False, [], f"Stopped before solution (child exit {p.exitcode})", "child crashed"
        return False, [], "No result from child process", "no-result"

    if p.is_alive():
        p.terminate()
        p.join(2.0)

    if tag == "ok":
        return ok, order, reason, None
    return False, [], reason, None
