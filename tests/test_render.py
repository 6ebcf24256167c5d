from models import Board
from render import render_svg, render_text
from solver.move_graph import MoveGraph


def test_render_text_draws_a_bordered_grid():
    board = Board(5, 2, [1, 2, 3, 4, 5, 6, 7, 8, 9, 10])
    border = "+----" * 5 + "+\n"
    assert render_text(board) == (
        border
        + "|  1 |  2 |  3 |  4 |  5 |\n"
        + border
        + "|  6 |  7 |  8 |  9 | 10 |\n"
        + border
    )


def test_render_svg_draws_one_line_per_move():
    graph = MoveGraph.from_order(4, 3, [(0, 0), (2, 1), (0, 2)])
    svg = render_svg(graph, 1.25, cell=10)
    assert svg.startswith("<svg")
    assert svg.count("<line ") == 2
    assert "Elapsed time: 1.250 seconds" in svg
    # first move runs between the centres of A-1 and C-2
    assert 'x1="15" y1="25" x2="35" y2="35"' in svg


def test_render_svg_minimum_width():
    svg = render_svg(MoveGraph.new(1, 1), 0.0)
    assert 'width="250"' in svg
