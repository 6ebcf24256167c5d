from models import BoardPos, BoardSize, ORIGIN
from solver.knight import (
    KNIGHT_OFFSETS, candidate_moves, colour_counts, get_possible_moves, knight_edges,
    parity_feasible, possible_moves_count,
)

P = BoardPos


def _on_board(size, taken=()):
    taken = set(taken)

    def reachable(frm, pos):
        return size.fits(pos) and pos not in taken

    return reachable


def test_offsets_cover_every_knight_move_once():
    assert len(set(KNIGHT_OFFSETS)) == 8
    assert all(sorted(map(abs, o)) == [1, 2] for o in KNIGHT_OFFSETS)


def test_knight_edges_clip_to_board():
    size = BoardSize(8, 8)
    assert knight_edges(ORIGIN, size) == (P(2, 1), P(1, 2))
    assert len(knight_edges(P(4, 4), size)) == 8
    assert knight_edges(ORIGIN, BoardSize(2, 2)) == ()


def test_candidate_moves_keep_generation_order():
    moves = list(candidate_moves(P(4, 4), _on_board(BoardSize(8, 8))))
    assert moves == [P(4 + dc, 4 + dr) for dc, dr in KNIGHT_OFFSETS]


def test_possible_moves_count_looks_ahead():
    size = BoardSize(8, 8)
    reach = _on_board(size)
    assert possible_moves_count(ORIGIN, reach, 0) == 0
    assert possible_moves_count(ORIGIN, reach, 1) == 2
    two_ahead = sum(len(knight_edges(p, size)) for p in knight_edges(ORIGIN, size))
    assert possible_moves_count(ORIGIN, reach, 2) == two_ahead


def test_get_possible_moves_prefers_fewest_onward_moves():
    size = BoardSize(8, 8)
    moves = get_possible_moves(P(2, 2), _on_board(size), lookahead=1)
    ranks = [possible_moves_count(m, _on_board(size), 1) for m in moves]
    assert ranks == sorted(ranks)
    # (0,1) and (1,0) both have three onward moves; generation order breaks the tie
    assert moves.index(P(0, 1)) < moves.index(P(1, 0))


def test_dead_end_candidates_rank_last():
    size = BoardSize(3, 3)
    # (2,1) has no onward square left, (1,2) still reaches (2,0)
    reach = _on_board(size, taken={ORIGIN, P(0, 2)})
    assert possible_moves_count(P(2, 1), reach, 1) == 0
    moves = get_possible_moves(ORIGIN, reach, lookahead=1)
    assert moves == [P(1, 2), P(2, 1)]


def test_colour_counts_skip_off_board_dead():
    assert colour_counts(BoardSize(5, 5)) == (13, 12)
    assert colour_counts(BoardSize(5, 5), {ORIGIN, P(9, 9)}) == (12, 12)
    assert colour_counts(BoardSize(4, 4), {P(1, 0)}) == (8, 7)


def test_parity_closed_needs_balanced_colours():
    assert parity_feasible(BoardSize(6, 6), (), ORIGIN, closed=True)
    assert not parity_feasible(BoardSize(5, 5), (), ORIGIN, closed=True)
    assert parity_feasible(BoardSize(5, 5), {ORIGIN}, P(1, 0), closed=True)


def test_parity_open_tours():
    # odd board: start and end on the majority colour
    assert parity_feasible(BoardSize(5, 5), (), ORIGIN)
    assert not parity_feasible(BoardSize(5, 5), (), P(1, 0))
    assert parity_feasible(BoardSize(5, 5), (), ORIGIN, P(4, 4))
    assert not parity_feasible(BoardSize(5, 5), (), ORIGIN, P(0, 1))
    # even board: ends on opposite colours
    assert parity_feasible(BoardSize(4, 10), (), ORIGIN, P(0, 1))
    assert not parity_feasible(BoardSize(4, 10), (), ORIGIN, P(1, 1))
    # unbalanced even count can never be toured
    assert not parity_feasible(BoardSize(4, 4), {P(0, 0), P(1, 1)}, P(1, 0))


def test_parity_trivial_boards():
    assert parity_feasible(BoardSize(1, 1), (), ORIGIN)
    assert parity_feasible(BoardSize(1, 1), (), ORIGIN, closed=True)
    assert not parity_feasible(BoardSize(1, 1), {ORIGIN}, ORIGIN, closed=True)
