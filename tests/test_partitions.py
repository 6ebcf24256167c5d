import pytest

from models import BoardPos, BoardSize, Direction, ORIGIN, Sector
from solver.partitions import (
    ACROSS_SPLITS, CLOSED_SPLITS, NARROW_HEADS, OPEN_SPLITS, STRIP_LENGTH,
    partition_closed_sector, partition_narrow, partition_open_sector, partition_size,
    segment_length, split_length,
)

H, V = Direction.HORIZONTAL, Direction.VERTICAL


@pytest.mark.parametrize("length, expected", [(10, (4, 6)), (11, (5, 6)), (12, (6, 6)), (13, (7, 6)), (20, (10, 10))])
def test_split_length_keeps_second_part_even(length, expected):
    assert split_length(length) == expected


def test_segment_length_small_board_is_one_segment():
    assert segment_length(8, max_side=10) == [(0, 8)]


def test_segment_length_is_contiguous_and_sorted():
    for length in range(11, 60):
        segs = segment_length(length, max_side=10)
        assert [s[0] for s in segs] == sorted(s[0] for s in segs)
        assert segs[0][0] == 0
        for (off, ln), (nxt, _) in zip(segs, segs[1:]):
            assert off + ln == nxt
        assert sum(ln for _, ln in segs) == length
        assert all(ln <= 10 for _, ln in segs)


def test_segment_length_ignores_the_other_side():
    assert segment_length(8, max_side=10) == [(0, 8)]
    assert segment_length(10, max_side=10) == [(0, 10)]
    assert segment_length(11, max_side=10) == [(0, 5), (5, 6)]


@pytest.mark.parametrize(
    "size, expected",
    [
        (BoardSize(15, 10), [BoardSize(7, 10), BoardSize(4, 10), BoardSize(4, 10)]),
        (BoardSize(11, 5), [BoardSize(5, 5), BoardSize(6, 5)]),
        (BoardSize(10, 5), [BoardSize(10, 5)]),
    ],
)
def test_partition_size_splits_only_the_long_axis(size, expected):
    assert [s.size for s in partition_size(size)] == expected


def test_partition_size_covers_board_and_merges_onto_placed_tiles():
    size = BoardSize(23, 17)
    sectors = partition_size(size)
    assert sectors[0].offset == ORIGIN
    cells = set()
    for i, sector in enumerate(sectors):
        if i > 0:
            pos = sector.offset
            if sector.direction is H:
                seam = (BoardPos(pos.col - 2, pos.row), BoardPos(pos.col - 1, pos.row + 2))
            else:
                seam = (BoardPos(pos.col, pos.row - 2), BoardPos(pos.col + 2, pos.row - 1))
            assert set(seam) <= cells
        for col in range(sector.size.width):
            for row in range(sector.size.height):
                pos = BoardPos(sector.offset.col + col, sector.offset.row + row)
                assert pos not in cells
                cells.add(pos)
    assert len(cells) == size.area()


def test_partition_size_directions_follow_first_row_rule():
    for sector in partition_size(BoardSize(20, 20))[1:]:
        expected = H if sector.offset.row == 0 else V
        assert sector.direction is expected


def test_closed_sector_uses_fixed_splits():
    pieces = partition_closed_sector(ORIGIN, BoardSize(9, 10))
    assert [p.size for p in pieces] == [BoardSize(5, 10), BoardSize(4, 10)]
    assert pieces[1].offset == BoardPos(5, 0)
    assert pieces[1].direction is H

    wide = partition_closed_sector(ORIGIN, BoardSize(10, 9))
    assert [p.size for p in wide] == [BoardSize(10, 5), BoardSize(10, 4)]
    assert wide[1].offset == BoardPos(0, 5)
    assert wide[1].direction is V


def test_closed_sector_without_split_is_left_alone():
    assert partition_closed_sector(ORIGIN, BoardSize(6, 6)) == [Sector(ORIGIN, BoardSize(6, 6), H)]
    assert partition_closed_sector(ORIGIN, BoardSize(10, 5)) == [Sector(ORIGIN, BoardSize(10, 5), H)]


def test_open_sector_splits_along_merge_axis():
    pieces = partition_open_sector(BoardPos(10, 0), BoardSize(10, 8))
    assert [p.offset for p in pieces] == [BoardPos(10, 0), BoardPos(17, 0)]
    assert [p.size for p in pieces] == [BoardSize(7, 8), BoardSize(3, 8)]
    assert all(p.direction is H for p in pieces)

    below = partition_open_sector(BoardPos(0, 10), BoardSize(8, 10))
    assert [p.size for p in below] == [BoardSize(8, 7), BoardSize(8, 3)]
    assert all(p.direction is V for p in below)


def test_open_sector_splits_across_merge_axis():
    pieces = partition_open_sector(BoardPos(10, 0), BoardSize(6, 10))
    assert pieces == [
        Sector(BoardPos(10, 0), BoardSize(6, 6), H),
        Sector(BoardPos(10, 6), BoardSize(6, 4), V),
    ]

    below = partition_open_sector(BoardPos(0, 10), BoardSize(10, 6))
    assert below == [
        Sector(BoardPos(0, 10), BoardSize(6, 6), V),
        Sector(BoardPos(6, 10), BoardSize(4, 6), H),
    ]


def test_split_tables_sum_to_their_side():
    for (short, _), parts in CLOSED_SPLITS.items():
        assert sum(parts) == short
    for (_, merge_axis), parts in OPEN_SPLITS.items():
        assert sum(parts) == merge_axis
    for (non_merge_axis, _), parts in ACROSS_SPLITS.items():
        assert sum(parts) == non_merge_axis
    assert not set(OPEN_SPLITS) & set(ACROSS_SPLITS)


@pytest.mark.parametrize("length", range(11, 40))
def test_partition_narrow_is_a_head_and_strips(length):
    sectors = partition_narrow(BoardSize(length, 3))
    head = sectors[0]
    assert head.offset == ORIGIN
    assert head.size == BoardSize(NARROW_HEADS[length % STRIP_LENGTH], 3)
    run = head.size.width
    for sector in sectors[1:]:
        assert sector == Sector(BoardPos(run, 0), BoardSize(STRIP_LENGTH, 3), H)
        run += STRIP_LENGTH
    assert run == length


def test_partition_narrow_tall_board_runs_down():
    sectors = partition_narrow(BoardSize(3, 11))
    assert sectors == [
        Sector(ORIGIN, BoardSize(3, 7), V),
        Sector(BoardPos(0, 7), BoardSize(3, 4), V),
    ]


@pytest.mark.parametrize("size", [BoardSize(5, 12), BoardSize(4, 30), BoardSize(3, 6)])
def test_partition_narrow_rejects_other_boards(size):
    with pytest.raises(ValueError):
        partition_narrow(size)
