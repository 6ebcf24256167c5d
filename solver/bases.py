# solver/bases.py
from __future__ import annotations

from typing import Dict, Optional, Tuple

from models import BoardPos, BoardSize, Direction, ORIGIN
from solver.cache import StretchedCache
from solver.move_graph import GraphView, MoveGraph

Tour = Tuple[Tuple[int, int], ...]

# Open tour of a 4x10 board from A-1 to A-2, the horizontal stretched form.
_FOUR_BY_TEN = (
    (2, 1), (3, 3), (1, 2), (3, 1), (1, 0), (0, 2), (2, 3), (0, 4), (2, 5), (3, 7),
    (2, 9), (0, 8), (1, 6), (3, 5), (1, 4), (0, 6), (1, 8), (3, 9), (2, 7), (1, 5),
    (3, 6), (2, 8), (0, 9), (1, 7), (3, 8), (1, 9), (0, 7), (2, 6), (3, 4), (2, 2),
    (3, 0), (1, 1), (0, 3), (2, 4), (0, 5), (1, 3), (3, 2), (2, 0), (0, 1),
)

# Same for 4x6.
_FOUR_BY_SIX = (
    (2, 1), (0, 2), (1, 0), (3, 1), (1, 2), (3, 3), (1, 4), (3, 5), (2, 3), (0, 4),
    (2, 5), (1, 3), (0, 5), (2, 4), (0, 3), (1, 5), (3, 4), (2, 2), (3, 0), (1, 1),
    (3, 2), (2, 0), (0, 1),
)

H_4x10 = (BoardSize(4, 10), Direction.HORIZONTAL)
V_10x4 = (BoardSize(10, 4), Direction.VERTICAL)
H_4x6 = (BoardSize(4, 6), Direction.HORIZONTAL)
V_6x4 = (BoardSize(6, 4), Direction.VERTICAL)

_STRETCHED: Dict[Tuple[BoardSize, Direction], Tour] = {
    H_4x10: _FOUR_BY_TEN,
    H_4x6: _FOUR_BY_SIX,
}

# Closed origin tiles, keyed (size, origin square skipped), listed from their
# root square. Each keeps the fixed corner edges of its closed form.
_CLOSED: Dict[Tuple[BoardSize, bool], Tour] = {
    (BoardSize(5, 6), False): (
        (0, 0), (1, 2), (0, 4), (2, 5), (4, 4), (2, 3), (3, 5), (4, 3), (3, 1), (1, 0),
        (0, 2), (1, 4), (3, 3), (4, 5), (2, 4), (0, 5), (1, 3), (0, 1), (2, 0), (4, 1),
        (2, 2), (0, 3), (1, 5), (3, 4), (4, 2), (3, 0), (1, 1), (3, 2), (4, 0), (2, 1),
    ),
    (BoardSize(5, 7), True): (
        (1, 0), (0, 2), (2, 1), (4, 0), (3, 2), (1, 1), (3, 0), (4, 2), (2, 3), (4, 4),
        (3, 6), (1, 5), (0, 3), (2, 4), (4, 5), (2, 6), (0, 5), (1, 3), (3, 4), (4, 6),
        (2, 5), (0, 6), (1, 4), (3, 5), (1, 6), (0, 4), (1, 2), (3, 3), (4, 1), (2, 0),
        (0, 1), (2, 2), (4, 3), (3, 1),
    ),
    (BoardSize(5, 8), False): (
        (0, 0), (1, 2), (3, 1), (1, 0), (0, 2), (1, 4), (0, 6), (2, 7), (4, 6), (3, 4),
        (4, 2), (3, 0), (1, 1), (0, 3), (2, 2), (4, 3), (3, 5), (4, 7), (2, 6), (0, 7),
        (1, 5), (2, 3), (0, 4), (1, 6), (3, 7), (4, 5), (2, 4), (0, 5), (1, 7), (3, 6),
        (4, 4), (2, 5), (3, 3), (4, 1), (2, 0), (0, 1), (1, 3), (3, 2), (4, 0), (2, 1),
    ),
    (BoardSize(7, 7), True): (
        (1, 0), (0, 2), (2, 1), (4, 0), (6, 1), (5, 3), (6, 5), (4, 6), (2, 5), (0, 6),
        (1, 4), (2, 6), (0, 5), (1, 3), (0, 1), (2, 0), (4, 1), (6, 0), (5, 2), (3, 3),
        (1, 2), (0, 4), (1, 6), (3, 5), (5, 6), (6, 4), (4, 5), (6, 6), (5, 4), (6, 2),
        (5, 0), (3, 1), (4, 3), (2, 4), (0, 3), (1, 5), (3, 6), (5, 5), (3, 4), (4, 2),
        (6, 3), (4, 4), (2, 3), (1, 1), (3, 2), (5, 1), (3, 0), (2, 2),
    ),
}


def _open_tour(size: BoardSize, tour: Tour) -> MoveGraph:
    return MoveGraph.from_order(size.width, size.height, (ORIGIN,) + tuple(BoardPos(*p) for p in tour))


def four_by_ten() -> MoveGraph:
    return _open_tour(H_4x10[0], _FOUR_BY_TEN)


def get(cache: StretchedCache, size: BoardSize, direction: Direction) -> Optional[GraphView]:
    """Base tile for ``(size, direction)`` if one exists, seeding the cache
    with both orientations on first use."""
    key = (BoardSize(*size), direction)
    if key in _STRETCHED:
        base = key
    else:
        base = (key[0].flip(), direction.opposite())
        if base not in _STRETCHED:
            return None
    if not cache.peek(*key):
        graph = _open_tour(base[0], _STRETCHED[base])
        cache.insert(*base, graph)
        cache.insert(base[0].flip(), base[1].opposite(), graph.flip())
    return cache.get(*key)


def closed(size: BoardSize, skip_origin_corner: bool = False) -> Optional[MoveGraph]:
    """Hand-built closed tour for a tile shape the search is slow on."""
    size = BoardSize(*size)
    for shape, flip in ((size, False), (size.flip(), True)):
        tour = _CLOSED.get((shape, skip_origin_corner))
        if tour is not None:
            graph = MoveGraph.from_order(shape.width, shape.height, tour, closed=True)
            return graph.flip() if flip else graph
    return None
