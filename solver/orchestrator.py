# Orchestrator: engine selection and the divide-and-conquer tiling driver
from __future__ import annotations

import time
import traceback
from typing import Any, Dict, Iterable, Optional, Set, Tuple

from config import CFG
from models import BoardPos, BoardSize, ORIGIN, Sector
from progress import (
    set_phase, set_phase_total, set_attempt, set_grid, set_progress_pct,
    set_strategy, set_status, set_message, set_tiles, set_squares,
    log_attempt_detail,
)
from solver.cache import DEFAULT_CACHE, StretchedCache
from solver.merge import merge
from solver.move_graph import AnyGraph, MoveGraph, live_squares
from solver.partitions import NARROW_HEADS, NARROW_SIDE, STRIP_LENGTH, partition_narrow, partition_size
from solver.warnsdorff import Basic, Closed, Freeform, Mode, Stretched, solve_internal

ENGINES = ("auto", "warnsdorff", "divide_and_conquer", "cp_sat")

OrchestratorResult = Tuple[bool, Optional[AnyGraph], float, str, Optional[str], Dict[str, Any]]


# ---------- helpers ----------

def _tile_mode(sector: Sector) -> Mode:
    if sector.is_origin and sector.size.short_side <= NARROW_SIDE:
        return Freeform(sector.direction)
    if sector.is_origin:
        both_odd = sector.size.width % 2 == 1 and sector.size.height % 2 == 1
        return Closed(skip_origin_corner=both_odd)
    return Stretched(sector.direction)


def _trivial_graph(size: BoardSize) -> MoveGraph:
    graph = MoveGraph.new(size.width, size.height)
    graph.mark_root(ORIGIN)
    return graph


def _tiles_narrow(size: BoardSize) -> bool:
    """Three-row boards longer than a tile are covered by an open band of
    strips. Four rows cannot be banded: every path over a 4-row block runs
    between its outer rows, so no strip can leave from the A-1/A-2 corner."""
    if size.short_side != 3 or size.long_side <= CFG.MAX_TILE_SIDE:
        return False
    return size.long_side >= NARROW_HEADS[size.long_side % STRIP_LENGTH]


def finish_open(graph: MoveGraph) -> None:
    """Turn the cycle over every square but A-1 into an open tour starting
    at A-1: break the cycle at C-2 and enter it from the origin instead."""
    entry = BoardPos(2, 1)
    graph.node_mut(ORIGIN).next = entry
    node = graph.node_mut(entry)
    old_prev = node.prev
    node.prev = ORIGIN
    if old_prev is not None:
        graph.node_mut(old_prev).next = None


def _solve_tile(
    index: int,
    total: int,
    sector: Sector,
    cache: StretchedCache,
) -> Optional[AnyGraph]:
    mode = _tile_mode(sector)
    stats: Dict[str, object] = {}
    set_attempt(f"tile {index + 1}/{total} {sector.size} at {sector.offset}")
    res = solve_internal(sector.size, mode, cache=cache, stats=stats)
    log_attempt_detail(
        "Tile solved" if res is not None else "Tile has no tour",
        tile=f"{index + 1}/{total}",
        offset=sector.offset,
        size=sector.size,
        mode=stats.get("mode"),
        cache=stats.get("cache"),
        orientation=stats.get("orientation"),
        iterations=stats.get("iterations") or None,
        elapsed=None if res is None else f"{res[1]:.4f}s",
        reason=stats.get("reason"),
    )
    return None if res is None else res[0]


def divide_and_conquer(
    size: BoardSize,
    cache: Optional[StretchedCache] = None,
) -> Optional[MoveGraph]:
    """Tile the board, solve each tile and splice the tiles together.

    Returns ``None`` when the board has no tour (short side two or less,
    or a narrow board whose free search is exhausted).
    """
    size = BoardSize(*size)
    cache = DEFAULT_CACHE if cache is None else cache

    if size.area() == 1:
        return _trivial_graph(size)
    if size.short_side <= 2:
        log_attempt_detail("No tour possible", board=size, reason="short side <= 2")
        return None
    narrow = size.short_side <= NARROW_SIDE
    if narrow and not _tiles_narrow(size):
        # No closed tour exists with three or four rows, so there is nothing
        # to tile around; search the whole board freely.
        log_attempt_detail("Searching whole board", board=size, reason="narrow board")
        set_phase("search")
        stats: Dict[str, object] = {}
        res = solve_internal(size, Freeform(), cache=cache, stats=stats)
        log_attempt_detail(
            "Search finished",
            board=size,
            orientation=stats.get("orientation"),
            iterations=stats.get("iterations"),
            reason=stats.get("reason"),
        )
        return None if res is None else res[0]  # type: ignore[return-value]

    sectors = partition_narrow(size) if narrow else partition_size(size)
    total = len(sectors)
    log_attempt_detail("Partitioned board", board=size, tiles=total, narrow=narrow or None)
    set_phase("tiles")
    set_phase_total(total)
    set_tiles(0, total)

    board = MoveGraph.new(size.width, size.height)
    for i, sector in enumerate(sectors):
        tile = _solve_tile(i, total, sector, cache)
        if tile is None:
            return None
        board.insert_section(tile, sector.offset)
        if i > 0:
            merge(board, sector.offset, sector.size, sector.direction)
        set_tiles(i + 1)

    if not narrow and size.width % 2 == 1 and size.height % 2 == 1:
        set_phase("finish")
        finish_open(board)

    log_attempt_detail(
        "Tiles merged",
        board=size,
        merges=total - 1,
        cache_hits=cache.hits,
        cache_misses=cache.misses,
        cache_flips=cache.flips,
    )
    return board


def solve_warnsdorff(
    size: BoardSize,
    dead: Iterable[BoardPos] = (),
    start: Optional[BoardPos] = None,
) -> Optional[MoveGraph]:
    set_phase("search")
    stats: Dict[str, object] = {}
    res = solve_internal(size, Basic(frozenset(dead), start or ORIGIN), stats=stats)
    log_attempt_detail(
        "Search finished",
        board=size,
        iterations=stats.get("iterations"),
        reason=stats.get("reason"),
    )
    return None if res is None else res[0]  # type: ignore[return-value]


def solve_cp_sat(
    size: BoardSize,
    dead: Iterable[BoardPos] = (),
    start: Optional[BoardPos] = None,
    *,
    closed: bool = False,
) -> Tuple[Optional[MoveGraph], Optional[str]]:
    set_phase("cp_sat")
    dead = list(dead)
    if live_squares(size, set(dead)) > int(CFG.CP_SAT_MAX_SQUARES):
        return None, f"Model too large for the exact engine (limit {CFG.CP_SAT_MAX_SQUARES} squares)"
    dead_list = [tuple(p) for p in dead]
    start_pos = tuple(start or ORIGIN)
    seconds = float(CFG.CP_SAT_MAX_SECONDS)
    if CFG.CP_SAT_ISOLATE:
        from solver.cp_isolate import run_cp_sat_isolated

        ok, order, reason, crash = run_cp_sat_isolated(
            size.width, size.height, dead_list, start_pos, None, closed, seconds
        )
        if crash:
            log_attempt_detail("CP-SAT child failed", board=size, note=crash, reason=reason)
    else:
        from solver.cp_sat import try_tour_exact

        ok, order, reason = try_tour_exact(
            size.width, size.height, dead_list, start_pos, None, closed, seconds
        )
    if not ok:
        return None, reason
    return MoveGraph.from_order(size.width, size.height, order, closed=closed), None


def choose_engine(size: BoardSize, dead: Set[BoardPos], start: Optional[BoardPos], requested: str) -> str:
    if requested != "auto":
        return requested
    if dead or (start is not None and start != ORIGIN):
        return "warnsdorff"
    return "divide_and_conquer"


# ---------- entry point ----------

def solve_orchestrator(
    size: Any,
    dead: Optional[Iterable[BoardPos]] = None,
    start: Optional[BoardPos] = None,
    *,
    engine: Optional[str] = None,
    closed: bool = False,
    cache: Optional[StretchedCache] = None,
) -> OrchestratorResult:
    """
    Returns: (ok, graph, elapsed_seconds, strategy, reason, meta)
    ``ok`` False with ``graph`` None means "no tour" (or bad input, with
    strategy "error"). ``closed`` only applies to the CP-SAT engine.
    """
    t0 = time.time()
    meta: Dict[str, Any] = {}
    try:
        board_size = BoardSize(int(size[0]), int(size[1]))
    except (TypeError, ValueError, IndexError):
        set_status("Error")
        return False, None, 0.0, "error", f"Bad board size: {size!r}", meta
    if board_size.width < 1 or board_size.height < 1:
        set_status("Error")
        return False, None, 0.0, "error", f"Bad board size: {board_size}", meta

    dead_set = {BoardPos(*p) for p in (dead or ()) if board_size.fits(BoardPos(*p))}
    start_pos = None if start is None else BoardPos(*start)
    requested = (engine or CFG.ENGINE or "auto").strip().lower()
    if requested not in ENGINES:
        set_status("Error")
        return False, None, 0.0, "error", f"Unknown engine: {requested}", meta
    if start_pos is not None and (not board_size.fits(start_pos) or start_pos in dead_set):
        set_status("Error")
        return False, None, 0.0, "error", f"Starting square {start_pos} is not on the board", meta

    strategy = choose_engine(board_size, dead_set, start_pos, requested)
    if strategy == "divide_and_conquer" and (dead_set or (start_pos not in (None, ORIGIN))):
        set_status("Error")
        return (False, None, 0.0, "error",
                "Divide and conquer needs a plain rectangle without dead squares or a custom start", meta)

    squares = board_size.area() - len(dead_set)
    meta.update(board=str(board_size), squares=squares, dead=len(dead_set), engine=strategy)
    log_attempt_detail(
        "Run setup",
        board=board_size,
        squares=squares,
        dead=len(dead_set),
        start=start_pos,
        engine=strategy,
    )

    set_status("Solving")
    set_grid(str(board_size))
    set_strategy(strategy)
    set_squares(squares)
    set_progress_pct(0.0)

    reason: Optional[str] = None
    try:
        if strategy == "divide_and_conquer":
            cache = DEFAULT_CACHE if cache is None else cache
            graph = divide_and_conquer(board_size, cache)
            meta.update(cache_hits=cache.hits, cache_misses=cache.misses, cache_flips=cache.flips)
        elif strategy == "cp_sat":
            graph, reason = solve_cp_sat(board_size, dead_set, start_pos, closed=closed)
        else:
            graph = solve_warnsdorff(board_size, dead_set, start_pos)
    except Exception as e:
        log_attempt_detail(
            "Solver exception",
            engine=strategy,
            error=f"{type(e).__name__}: {e}",
            trace=traceback.format_exc().strip().splitlines()[-1],
        )
        raise

    elapsed = time.time() - t0
    meta["elapsed"] = elapsed
    if graph is None:
        reason = reason or f"No knight's tour possible for this board configuration ({board_size})"
        set_message(reason)
        log_attempt_detail("No tour", board=board_size, engine=strategy, reason=reason)
        return False, None, elapsed, strategy, reason, meta

    set_progress_pct(100.0)
    log_attempt_detail("Tour found", board=board_size, engine=strategy, elapsed=f"{elapsed:.3f}s")
    return True, graph, elapsed, strategy, None, meta


__all__ = [
    "ENGINES",
    "choose_engine",
    "divide_and_conquer",
    "finish_open",
    "solve_cp_sat",
    "solve_orchestrator",
    "solve_warnsdorff",
]
