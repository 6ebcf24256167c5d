# solver/warnsdorff.py: backtracking knight's-tour search with Warnsdorff ordering
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple, Union

from config import CFG
from models import BoardPos, BoardSize, Direction, ORIGIN
from solver import bases
from solver.cache import DEFAULT_CACHE, StretchedCache
from solver.knight import get_possible_moves, parity_feasible
from solver.move_graph import AnyGraph, MoveGraph
from solver.partitions import NARROW_SIDE

Preconnected = Dict[BoardPos, Set[BoardPos]]


# ---------- modes ----------

@dataclass(frozen=True)
class Basic:
    """Arbitrary shape: explicit dead squares and start, free search."""
    dead: FrozenSet[BoardPos] = frozenset()
    start: BoardPos = ORIGIN

    def flip(self) -> "Basic":
        return Basic(frozenset(p.flip() for p in self.dead), self.start.flip())


@dataclass(frozen=True)
class Closed:
    """Closed tour; with ``skip_origin_corner`` the origin square is dead and
    the tour is rooted at B-1 instead."""
    skip_origin_corner: bool = False

    def flip(self) -> "Closed":
        return self


@dataclass(frozen=True)
class Stretched:
    """Open tour from A-1 to A-2 (horizontal) or B-1 (vertical)."""
    direction: Direction = Direction.HORIZONTAL

    def flip(self) -> "Stretched":
        return Stretched(self.direction.opposite())


@dataclass(frozen=True)
class Freeform:
    """Tiny tile without any structural constraint.

    With ``direction`` set the tile heads a narrow board and keeps the fixed
    edges of the corner the next strip is spliced onto.
    """
    direction: Optional[Direction] = None

    def flip(self) -> "Freeform":
        return Freeform(None if self.direction is None else self.direction.opposite())


Mode = Union[Basic, Closed, Stretched, Freeform]


def describe_mode(mode: Mode) -> str:
    if isinstance(mode, Closed):
        return "closed(skip)" if mode.skip_origin_corner else "closed"
    if isinstance(mode, Stretched):
        return f"stretched({mode.direction.value})"
    if isinstance(mode, Basic):
        return "basic"
    if mode.direction is not None:
        return f"freeform({mode.direction.value})"
    return "freeform"


@dataclass
class SolveParams:
    size: BoardSize
    dead: Set[BoardPos] = field(default_factory=set)
    start: BoardPos = ORIGIN
    end_point: Optional[BoardPos] = None
    cache: bool = False
    direction: Direction = Direction.HORIZONTAL


def parse_mode(mode: Mode, size: BoardSize) -> SolveParams:
    size = BoardSize(*size)
    if isinstance(mode, Basic):
        return SolveParams(size, dead={p for p in mode.dead if size.fits(p)}, start=mode.start)
    if isinstance(mode, Closed):
        if mode.skip_origin_corner:
            start = BoardPos(1, 0)
            return SolveParams(size, dead={ORIGIN}, start=start, end_point=start)
        return SolveParams(size, start=ORIGIN, end_point=ORIGIN)
    if isinstance(mode, Stretched):
        end = BoardPos(0, 1) if mode.direction.is_horizontal else BoardPos(1, 0)
        return SolveParams(size, start=ORIGIN, end_point=end, cache=True, direction=mode.direction)
    if isinstance(mode, Freeform):
        return SolveParams(size, start=ORIGIN)
    raise TypeError(f"Unknown search mode: {mode!r}")


# ---------- predetermined edges ----------

def _connect(res: Preconnected, a: BoardPos, b: BoardPos) -> None:
    res.setdefault(a, set()).add(b)
    res.setdefault(b, set()).add(a)


def _spliced_corners(size: BoardSize, direction: Direction) -> Tuple[int, ...]:
    # Strips of a narrow board form a single band: only the corner facing
    # the next strip is ever spliced.
    across = size.height if direction.is_horizontal else size.width
    if across <= NARROW_SIDE:
        return (1,) if direction.is_horizontal else (2,)
    return (1, 2)


def preconnect_corners(size: BoardSize, mode: Mode) -> Preconnected:
    """Knight edges fixed around the tile corners that get spliced onto
    their neighbours later: top-left (closed tiles only), top-right and
    bottom-left. The bottom-right corner is never spliced and stays free."""
    if isinstance(mode, Closed):
        # (constrain origin corner, link the origin square itself, end direction)
        top_left = (True, not mode.skip_origin_corner, None)
        corners: Tuple[int, ...] = (0, 1, 2)
    elif isinstance(mode, Stretched):
        top_left = (False, False, mode.direction)
        corners = _spliced_corners(size, mode.direction)
    elif isinstance(mode, Freeform) and mode.direction is not None:
        top_left = (False, False, None)
        corners = (1,) if mode.direction.is_horizontal else (2,)
    else:
        return {}

    res: Preconnected = {}
    mul_w = (1, -1, 1)
    mul_h = (1, 1, -1)
    for i in corners:
        if i == 0 and not top_left[0]:
            continue
        w, h = mul_w[i], mul_h[i]
        corner = BoardPos(0 if w == 1 else size.width - 1, 0 if h == 1 else size.height - 1)

        for first, second in (((2 * w, 0), (0, h)), ((w, 0), (0, 2 * h))):
            nxt = corner.try_translate(*first)
            cur = corner.try_translate(*second)
            if nxt is None or cur is None or not (size.fits(nxt) and size.fits(cur)):
                continue
            _connect(res, cur, nxt)

        if i == 0 and not top_left[1]:
            continue
        for off in ((2 * w, h), (w, 2 * h)):
            prev = corner.try_translate(*off)
            if prev is not None and size.fits(prev):
                _connect(res, prev, corner)

    if top_left[2] is not None:
        preconnect_end_point(res, top_left[2], size)
    return res


def preconnect_end_point(res: Preconnected, direction: Direction, size: BoardSize) -> None:
    """Diagonal chain of fixed edges leading away from the end point, so
    large stretched tiles do not strand it early in the search."""
    half = min(size.long_side // 2, size.width, size.height)
    if half < 5:
        return

    if direction.is_horizontal:
        prev, step = BoardPos(0, 1), (2, 1)
    else:
        prev, step = BoardPos(1, 0), (1, 2)

    while True:
        nxt = prev.try_translate(*step)
        if nxt is None or not size.fits(nxt):
            break
        _connect(res, prev, nxt)
        prev = nxt
        if prev.col >= half and prev.row >= half:
            break


# ---------- reachability ----------

@dataclass
class ReachabilityChecker:
    graph: MoveGraph
    dead: Set[BoardPos]
    start: BoardPos
    end_point: Optional[BoardPos]
    predetermined: Preconnected
    target: Optional[BoardPos] = None
    move_to_end_allowed: bool = False

    def occupied(self, pos: BoardPos) -> bool:
        return self.graph.node_mut(pos).prev is not None

    def __call__(self, frm: BoardPos, pos: BoardPos) -> bool:
        if self.target is not None:
            return pos == self.target

        if self.end_point is not None and pos == self.end_point:
            return False
        if frm == pos or pos == self.start:
            return False
        if pos in self.dead or not self.graph.size.fits(pos):
            return False
        if self.occupied(pos):
            return False

        partners = self.predetermined.get(pos)
        if partners is not None:
            open_partners = {
                p for p in partners
                if not self.occupied(p) or p == frm or p == self.end_point
            }
            if frm in open_partners:
                return True
            if len(open_partners) > 1:
                # would land in the middle of a fixed two-edge chain
                return False
            if (
                self.end_point is not None
                and not self.move_to_end_allowed
                and self.end_point in open_partners
            ):
                return False

        own = self.predetermined.get(frm)
        if own is not None:
            # leaving a fixed square is only free once its fixed edges are used
            return all(self.occupied(p) for p in own)
        return True


# ---------- search ----------

class SearchExhausted(Exception):
    """Backtracking ran out of candidates at the root."""


class SearchState:
    """Explicit skip-count stack driving the depth-first search.

    ``moves[i]`` counts the candidates already rejected at depth ``i``.
    """

    def __init__(self, params: SolveParams, mode: Mode):
        self.params = params
        self.graph = MoveGraph.new(params.size.width, params.size.height)
        self.graph.mark_root(params.start)
        self.pos = params.start
        live = params.size.area() - len(params.dead)
        closes = params.end_point is not None and params.end_point == params.start
        self.expected = live - (0 if closes else 1)
        self.moves: List[int] = [0]
        self.iterations = 0
        self.checker = ReachabilityChecker(
            graph=self.graph,
            dead=params.dead,
            start=params.start,
            end_point=params.end_point,
            predetermined=preconnect_corners(params.size, mode),
        )

    @property
    def done(self) -> bool:
        return len(self.moves) > self.expected

    def candidates(self) -> List[BoardPos]:
        depth = len(self.moves)
        self.checker.target = self.params.end_point if depth == self.expected else None
        self.checker.move_to_end_allowed = self.expected - depth < CFG.MOVE_TO_END_WINDOW
        return get_possible_moves(self.pos, self.checker)

    def advance(self, nxt: BoardPos) -> None:
        self.moves.append(0)
        self.graph.node_mut(self.pos).next = nxt
        self.graph.node_mut(nxt).prev = self.pos
        self.pos = nxt

    def retreat(self) -> None:
        self.moves.pop()
        self.moves[-1] += 1
        node = self.graph.node_mut(self.pos)
        prev = node.prev
        if prev is None:
            raise RuntimeError(f"No previous move found for {self.pos}\n{self.graph.describe()}")
        node.prev = None
        self.graph.node_mut(prev).next = None
        self.pos = prev

    def step(self) -> str:
        """One transition: ``"advance"``, ``"retreat"`` or raises SearchExhausted."""
        self.iterations += 1
        skip = self.moves[-1]
        options = self.candidates()
        if skip < len(options):
            self.advance(options[skip])
            return "advance"
        if len(self.moves) > 1:
            self.retreat()
            return "retreat"
        raise SearchExhausted(f"no tour from {self.params.start} on {self.params.size}")


def _search(params: SolveParams, mode: Mode, stats: Dict[str, object]) -> MoveGraph:
    """Search the tile and, unless it is square, its transpose in lock-step,
    ``CFG.SEARCH_SLICE`` steps at a time.

    Move ordering is not symmetric under transposition, so one orientation
    often finishes long before the other. Both pose the same problem:
    whichever finishes first decides, and exhausting either proves there is
    no tour (``SearchExhausted`` propagates).
    """
    states = [SearchState(params, mode)]
    if CFG.TRANSPOSED_SEARCH and params.size.width != params.size.height:
        flipped = mode.flip()
        states.append(SearchState(parse_mode(flipped, params.size.flip()), flipped))
    quantum = max(1, int(CFG.SEARCH_SLICE))
    try:
        while True:
            for state in states:
                for _ in range(quantum):
                    if state.done:
                        if state is states[0]:
                            stats["orientation"] = "direct"
                            return state.graph
                        stats["orientation"] = "transposed"
                        return state.graph.flip()
                    state.step()
    finally:
        stats["iterations"] = sum(s.iterations for s in states)


def _parity_ok(params: SolveParams) -> bool:
    if not CFG.PARITY_CHECK:
        return True
    closed = params.end_point is not None and params.end_point == params.start
    return parity_feasible(
        params.size,
        params.dead,
        params.start,
        None if closed else params.end_point,
        closed=closed,
    )


def solve_internal(
    size: BoardSize,
    mode: Mode,
    cache: Optional[StretchedCache] = None,
    stats: Optional[Dict[str, object]] = None,
) -> Optional[Tuple[AnyGraph, float]]:
    """Search one board or tile under ``mode``.

    Returns ``(graph, elapsed_seconds)`` or ``None`` when no tour exists.
    Stretched results come from (and go into) ``cache``; a cached result is
    returned as a read-only view. Closed tiles with a hand-built base skip
    the search.
    """
    params = parse_mode(mode, size)
    cache = DEFAULT_CACHE if cache is None else cache
    if stats is None:
        stats = {}
    stats.update(mode=describe_mode(mode), size=str(params.size), cache="", iterations=0)

    if isinstance(mode, Closed):
        t0 = time.perf_counter()
        closed_base = bases.closed(params.size, mode.skip_origin_corner)
        if closed_base is not None:
            stats["cache"] = "base"
            return closed_base, time.perf_counter() - t0

    if params.cache:
        t0 = time.perf_counter()
        base = bases.get(cache, params.size, params.direction)
        if base is not None:
            stats["cache"] = "base"
            return base, time.perf_counter() - t0
        hit, how = cache.get_or_flip(params.size, params.direction)
        stats["cache"] = how
        if hit is not None:
            return hit, time.perf_counter() - t0

    if not params.size.fits(params.start) or params.start in params.dead:
        raise ValueError(f"Starting square {params.start} is not a live square of {params.size}")

    if not _parity_ok(params):
        stats["reason"] = "parity"
        return None

    t0 = time.perf_counter()
    try:
        graph = _search(params, mode, stats)
    except SearchExhausted:
        stats["reason"] = "exhausted"
        return None
    elapsed = time.perf_counter() - t0

    if params.cache:
        return cache.insert(params.size, params.direction, graph), elapsed
    return graph, elapsed


def solve_basic(
    size: BoardSize,
    dead: Iterable[BoardPos] = (),
    start: Optional[BoardPos] = None,
    stats: Optional[Dict[str, object]] = None,
) -> Optional[Tuple[MoveGraph, float]]:
    """Whole-board search over an arbitrary shape."""
    mode = Basic(frozenset(dead), start if start is not None else ORIGIN)
    return solve_internal(size, mode, stats=stats)  # type: ignore[return-value]
