# solver/knight.py: knight move generation and Warnsdorff ranking
from __future__ import annotations

import math
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from config import CFG
from models import BoardPos, BoardSize

Reachable = Callable[[BoardPos, BoardPos], bool]

# Fixed generation order; ties in the Warnsdorff ranking keep this order.
KNIGHT_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (2, 1), (2, -1), (-2, 1), (-2, -1),
    (1, 2), (1, -2), (-1, 2), (-1, -2),
)


def is_knight_move(a: BoardPos, b: BoardPos) -> bool:
    return a.is_knight_move(b)


def knight_edges(pos: BoardPos, size: BoardSize) -> Tuple[BoardPos, ...]:
    """In-bounds knight neighbours of ``pos``."""
    out = []
    for dc, dr in KNIGHT_OFFSETS:
        nxt = pos.try_translate(dc, dr)
        if nxt is not None and size.fits(nxt):
            out.append(nxt)
    return tuple(out)


def candidate_moves(pos: BoardPos, reachable: Reachable) -> Iterator[BoardPos]:
    for dc, dr in KNIGHT_OFFSETS:
        nxt = pos.try_translate(dc, dr)
        if nxt is not None and reachable(pos, nxt):
            yield nxt


def possible_moves_count(pos: BoardPos, reachable: Reachable, moves_ahead: int) -> int:
    if moves_ahead <= 0:
        return 0
    if moves_ahead == 1:
        return sum(1 for _ in candidate_moves(pos, reachable))
    return sum(
        possible_moves_count(nxt, reachable, moves_ahead - 1)
        for nxt in candidate_moves(pos, reachable)
    )


def get_possible_moves(
    pos: BoardPos,
    reachable: Reachable,
    lookahead: Optional[int] = None,
) -> List[BoardPos]:
    """Reachable knight moves from ``pos``, fewest onward options first.

    A candidate with no onward moves is ranked last rather than first: it is
    a dead end unless it happens to be the final square.
    """
    depth = CFG.LOOKAHEAD if lookahead is None else int(lookahead)
    depth = max(1, depth)

    def _rank(nxt: BoardPos) -> float:
        n = possible_moves_count(nxt, reachable, depth)
        return math.inf if n < depth else n

    # sorted() is stable, so equal ranks keep generation order
    return sorted(candidate_moves(pos, reachable), key=_rank)


# ---------- colour parity ----------

def square_colour(pos: BoardPos) -> int:
    return (pos.col + pos.row) & 1


def colour_counts(size: BoardSize, dead: Iterable[BoardPos] = ()) -> Tuple[int, int]:
    """Live squares of colour 0 (same as the origin) and colour 1."""
    area = size.area()
    zeros = (area + 1) // 2
    ones = area // 2
    for p in set(dead):
        if not size.fits(p):
            continue
        if square_colour(p) == 0:
            zeros -= 1
        else:
            ones -= 1
    return zeros, ones


def parity_feasible(
    size: BoardSize,
    dead: Iterable[BoardPos],
    start: BoardPos,
    end: Optional[BoardPos] = None,
    *,
    closed: bool = False,
) -> bool:
    """Necessary colour-count condition for a tour to exist.

    Every knight move changes square colour, so a path over L squares
    alternates colours; a cycle needs an even, balanced count.
    """
    zeros, ones = colour_counts(size, dead)
    live = zeros + ones
    if live <= 1:
        return not closed or live == 1
    if closed:
        return zeros == ones
    if live % 2 == 0:
        if zeros != ones:
            return False
        return end is None or square_colour(start) != square_colour(end)
    majority = 0 if zeros > ones else 1
    if abs(zeros - ones) != 1 or square_colour(start) != majority:
        return False
    return end is None or square_colour(end) == majority
