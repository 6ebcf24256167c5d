from models import BoardPos, BoardSize, Direction, ORIGIN
from solver import bases
from solver.cache import StretchedCache
from solver.move_graph import GraphView, MoveGraph, ReadOnlyGraphError

import pytest

H, V = Direction.HORIZONTAL, Direction.VERTICAL


def test_get_counts_hits_and_misses():
    cache = StretchedCache()
    assert cache.get(BoardSize(6, 6), H) is None
    cache.insert(BoardSize(6, 6), H, MoveGraph.new(6, 6))
    assert isinstance(cache.get(BoardSize(6, 6), H), GraphView)
    assert (cache.hits, cache.misses) == (1, 1)
    assert (BoardSize(6, 6), H) in cache
    assert (BoardSize(6, 6), V) not in cache


def test_cached_graphs_are_read_only():
    cache = StretchedCache()
    view = cache.insert(BoardSize(3, 3), H, MoveGraph.new(3, 3))
    with pytest.raises(ReadOnlyGraphError):
        view.node_mut(ORIGIN)


def test_get_or_flip_derives_the_transposed_entry():
    cache = StretchedCache()
    graph = MoveGraph.from_order(4, 3, [(0, 0), (2, 1)])
    cache.insert(BoardSize(4, 3), H, graph)

    view, how = cache.get_or_flip(BoardSize(3, 4), V)
    assert how == "flip"
    assert view.size == BoardSize(3, 4)
    assert view.node(ORIGIN).next == BoardPos(1, 2)
    assert cache.flips == 1

    _, how = cache.get_or_flip(BoardSize(3, 4), V)
    assert how == "hit"
    assert cache.get_or_flip(BoardSize(5, 5), V) == (None, "miss")


def test_clear_resets_counters():
    cache = StretchedCache()
    cache.insert(BoardSize(2, 2), H, MoveGraph.new(2, 2))
    cache.get(BoardSize(2, 2), H)
    cache.clear()
    assert len(cache) == 0
    assert (cache.hits, cache.misses, cache.flips) == (0, 0, 0)


def test_base_tile_is_an_open_tour_between_the_stretched_ends():
    graph = bases.four_by_ten()
    board = graph.to_board()
    order = board.order()
    assert len(order) == 40
    assert (order[0], order[-1]) == (ORIGIN, BoardPos(0, 1))
    assert all(a.is_knight_move(b) for a, b in zip(order, order[1:]))


def test_base_tiles_seed_both_orientations():
    cache = StretchedCache()
    assert bases.get(cache, BoardSize(6, 10), H) is None
    horizontal = bases.get(cache, *bases.H_4x10)
    assert len(cache) == 2
    vertical = cache.get(*bases.V_10x4)
    assert vertical.link_table() == horizontal.flip().link_table()
    assert bases.get(cache, BoardSize(4, 10), V) is None


def test_get_or_flip_counts_one_miss_per_lookup():
    cache = StretchedCache()
    assert cache.get_or_flip(BoardSize(5, 6), H) == (None, "miss")
    assert (cache.hits, cache.misses, cache.flips) == (0, 1, 0)

    cache.insert(BoardSize(6, 5), V, MoveGraph.new(6, 5))
    cache.get_or_flip(BoardSize(5, 6), H)
    cache.get_or_flip(BoardSize(5, 6), H)
    assert (cache.hits, cache.misses, cache.flips) == (1, 1, 1)


def test_four_by_six_base_is_a_stretched_tour():
    cache = StretchedCache()
    graph = bases.get(cache, *bases.H_4x6)
    order = graph.to_board().order()
    assert len(order) == 24
    assert (order[0], order[-1]) == (ORIGIN, BoardPos(0, 1))
    assert all(a.is_knight_move(b) for a, b in zip(order, order[1:]))
    assert cache.get(*bases.V_6x4).link_table() == graph.flip().link_table()


def _cycle(graph, start):
    seen = [start]
    pos = graph.node(start).next
    while pos != start:
        assert graph.node(pos).prev == seen[-1]
        seen.append(pos)
        pos = graph.node(pos).next
    return seen


@pytest.mark.parametrize(
    "size, skip",
    [
        (BoardSize(5, 6), False),
        (BoardSize(6, 5), False),
        (BoardSize(5, 7), True),
        (BoardSize(7, 5), True),
        (BoardSize(5, 8), False),
        (BoardSize(8, 5), False),
        (BoardSize(7, 7), True),
    ],
)
def test_closed_bases_keep_the_fixed_corner_edges(size, skip):
    from solver.warnsdorff import Closed, preconnect_corners

    graph = bases.closed(size, skip)
    start = BoardPos(1, 0) if skip else ORIGIN
    cycle = _cycle(graph, start)
    assert len(cycle) == size.area() - (1 if skip else 0)
    assert len(set(cycle)) == len(cycle)
    assert all(a.is_knight_move(b) for a, b in zip(cycle, cycle[1:] + cycle[:1]))
    if skip:
        assert graph.node(ORIGIN).is_unlinked

    for pos, partners in preconnect_corners(size, Closed(skip)).items():
        node = graph.node(pos)
        for other in partners:
            assert other in (node.next, node.prev)


def test_closed_bases_only_cover_listed_shapes():
    assert bases.closed(BoardSize(6, 6)) is None
    assert bases.closed(BoardSize(5, 6), True) is None
