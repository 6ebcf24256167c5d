import pytest

from models import (
    Board, BoardPos, BoardSize, Direction, MAX_INDEX, Meta, ORIGIN, Sector, alphabetize,
)


def test_alphabetize_is_bijective_base_26():
    assert alphabetize(1) == "A"
    assert alphabetize(26) == "Z"
    assert alphabetize(27) == "AA"
    assert alphabetize(52) == "AZ"
    assert alphabetize(703) == "AAA"


def test_board_pos_display_uses_letters_and_one_based_rows():
    assert str(BoardPos(0, 0)) == "A-1"
    assert str(BoardPos(2, 11)) == "C-12"
    assert str(BoardPos(26, 0)) == "AA-1"


def test_translate_refuses_to_leave_index_range():
    assert BoardPos(1, 1).try_translate(-2, 0) is None
    assert BoardPos(MAX_INDEX, 0).try_translate(1, 0) is None
    assert BoardPos(1, 1).try_translate(2, -1) == BoardPos(3, 0)
    with pytest.raises(ValueError):
        BoardPos(0, 0).translate(-1, 0)
    with pytest.raises(ValueError):
        BoardPos(0, 1) - (0, 2)


def test_knight_move_and_flip():
    assert BoardPos(0, 0).is_knight_move(BoardPos(1, 2))
    assert BoardPos(3, 3).is_knight_move(BoardPos(1, 2))
    assert not BoardPos(0, 0).is_knight_move(BoardPos(2, 2))
    assert BoardPos(3, 7).flip() == BoardPos(7, 3)


def test_merge_direction_first_row_is_horizontal():
    assert BoardPos(5, 0).merge_direction() is Direction.HORIZONTAL
    assert BoardPos(0, 5).merge_direction() is Direction.VERTICAL
    assert BoardPos(5, 5).merge_direction() is Direction.VERTICAL
    assert Direction.HORIZONTAL.opposite() is Direction.VERTICAL


def test_board_size_helpers():
    size = BoardSize(12, 9)
    assert str(size) == "12x9"
    assert size.area() == 108
    assert size.flip() == BoardSize(9, 12)
    assert size.fits(BoardPos(11, 8))
    assert not size.fits(BoardPos(12, 0))
    assert size.contains(BoardSize(12, 1))
    assert not size.contains(BoardSize(13, 1))
    assert (size.short_side, size.long_side) == (9, 12)
    assert Sector(ORIGIN, size, Direction.HORIZONTAL).is_origin


def test_board_order_and_unvisited():
    board = Board(3, 1, [2, 0, 1], dead={BoardPos(1, 0)})
    assert board.order() == [BoardPos(2, 0), BoardPos(0, 0)]
    assert board.unvisited() == []
    assert board.move_count == 2

    board.dead = set()
    assert board.unvisited() == [BoardPos(1, 0)]


def test_meta_template_vars_formats_elapsed():
    out = Meta(engine="warnsdorff", elapsed_sec=61.5, board_label="8x8").template_vars(ok=True)
    assert out["elapsed_str"] == "1m 1.500s"
    assert out["engine"] == "warnsdorff"
    assert out["ok"] is True
