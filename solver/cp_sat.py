from typing import Dict, Iterable, List, Optional, Tuple

from ortools.sat.python import cp_model as _cp

from config import CFG
from models import BoardPos
from solver.knight import KNIGHT_OFFSETS

# ---------------- helpers ----------------

def _live_squares(W: int, H: int, dead: Iterable[Tuple[int, int]]) -> List[BoardPos]:
    dead_set = {BoardPos(int(c), int(r)) for c, r in dead}
    return [
        BoardPos(c, r)
        for r in range(H)
        for c in range(W)
        if BoardPos(c, r) not in dead_set
    ]


def _knight_arcs(live: List[BoardPos]) -> List[Tuple[int, int]]:
    index = {p: i for i, p in enumerate(live)}
    arcs: List[Tuple[int, int]] = []
    for i, p in enumerate(live):
        for dc, dr in KNIGHT_OFFSETS:
            j = index.get(BoardPos(p.col + dc, p.row + dr))
            if j is not None:
                arcs.append((i, j))
    return arcs


def _order_from_successors(succ: Dict[int, int], first: int, live: List[BoardPos], stop: int) -> List[BoardPos]:
    order = [live[first]]
    cur = succ.get(first)
    while cur is not None and cur != stop and cur != first:
        order.append(live[cur])
        cur = succ.get(cur)
    return order


# ---------------- model ----------------

def try_tour_exact(
    W: int,
    H: int,
    dead: Iterable[Tuple[int, int]] = (),
    start: Tuple[int, int] = (0, 0),
    end: Optional[Tuple[int, int]] = None,
    closed: bool = False,
    max_seconds: float = 30.0,
) -> Tuple[bool, List[Tuple[int, int]], Optional[str]]:
    """Knight's tour as a single Hamiltonian circuit (AddCircuit).

    Open tours add a dummy node whose only outgoing arc enters ``start``
    and whose incoming arcs leave every square (or only ``end`` when fixed).
    Returns ``(ok, order, reason)``; ``order`` is a list of ``(col, row)``
    pairs so the result survives pickling out of a child process.
    """
    live = _live_squares(W, H, dead)
    start_pos = BoardPos(int(start[0]), int(start[1]))
    if start_pos not in live:
        return False, [], "Bad input: start square is not on the board"
    n = len(live)
    if n > int(CFG.CP_SAT_MAX_SQUARES):
        return False, [], f"Model too large ({n} squares > {CFG.CP_SAT_MAX_SQUARES})"
    if n == 1:
        if closed:
            return False, [], "No tour exists"
        return True, [tuple(start_pos)], None
    if closed and n < 3:
        return False, [], "No tour exists"

    index = {p: i for i, p in enumerate(live)}
    s = index[start_pos]
    m = _cp.CpModel()
    arcs = []
    lits: Dict[Tuple[int, int], object] = {}
    for i, j in _knight_arcs(live):
        lit = m.NewBoolVar(f"a_{i}_{j}")
        lits[(i, j)] = lit
        arcs.append((i, j, lit))

    dummy = n
    if not closed:
        enter = m.NewBoolVar("enter")
        m.Add(enter == 1)
        arcs.append((dummy, s, enter))
        if end is not None:
            end_pos = BoardPos(int(end[0]), int(end[1]))
            if end_pos not in index:
                return False, [], "Bad input: end square is not on the board"
            leave = m.NewBoolVar("leave")
            m.Add(leave == 1)
            arcs.append((index[end_pos], dummy, leave))
        else:
            for v in range(n):
                if v != s:
                    arcs.append((v, dummy, m.NewBoolVar(f"leave_{v}")))

    m.AddCircuit(arcs)

    solver = _cp.CpSolver()
    solver.parameters.max_time_in_seconds = float(max_seconds)
    solver.parameters.num_search_workers = int(CFG.CP_SAT_WORKERS)
    solver.parameters.log_search_progress = False
    res = solver.Solve(m)

    if res in (_cp.OPTIMAL, _cp.FEASIBLE):
        succ = {i: j for (i, j), lit in lits.items() if solver.BooleanValue(lit)}
        order = _order_from_successors(succ, s, live, dummy)
        return True, [tuple(p) for p in order], None
    if res == _cp.INFEASIBLE:
        return False, [], "No tour exists"
    if res == _cp.MODEL_INVALID:
        return False, [], "Model invalid (configuration error)"
    return False, [], "Stopped before solution (timebox)"

