import pytest

pytest.importorskip("ortools")

from config import CFG
from models import BoardPos, BoardSize, ORIGIN
from solver.cp_sat import try_tour_exact
from solver.orchestrator import solve_cp_sat, solve_orchestrator


def _is_path(order):
    return all(BoardPos(*a).is_knight_move(BoardPos(*b)) for a, b in zip(order, order[1:]))


def test_open_tour_from_start():
    ok, order, reason = try_tour_exact(5, 5, start=(0, 0), max_seconds=20)
    assert ok, reason
    assert order[0] == (0, 0)
    assert len(set(order)) == 25
    assert _is_path(order)


def test_open_tour_with_fixed_end():
    ok, witness, reason = try_tour_exact(5, 5, max_seconds=20)
    assert ok, reason
    end = witness[-1]
    ok, order, reason = try_tour_exact(5, 5, start=(0, 0), end=end, max_seconds=20)
    assert ok, reason
    assert (order[0], order[-1]) == ((0, 0), end)
    assert _is_path(order)


def test_closed_tour():
    ok, order, reason = try_tour_exact(6, 6, closed=True, max_seconds=20)
    assert ok, reason
    assert len(order) == 36
    assert _is_path(order + order[:1])


def test_infeasible_and_bad_input():
    assert try_tour_exact(3, 3, max_seconds=5) == (False, [], "No tour exists")
    assert try_tour_exact(3, 4, closed=True, max_seconds=5) == (False, [], "No tour exists")
    ok, _, reason = try_tour_exact(3, 3, dead=[(0, 0)], start=(0, 0))
    assert not ok and reason.startswith("Bad input")


def test_trivial_and_oversized_boards(monkeypatch):
    assert try_tour_exact(1, 1) == (True, [(0, 0)], None)
    monkeypatch.setattr(CFG, "CP_SAT_MAX_SQUARES", 10)
    ok, _, reason = try_tour_exact(4, 4)
    assert not ok and reason.startswith("Model too large")
    graph, reason = solve_cp_sat(BoardSize(4, 4))
    assert graph is None and "too large" in reason


def test_orchestrator_cp_sat_engine_in_process(monkeypatch):
    monkeypatch.setattr(CFG, "CP_SAT_ISOLATE", False)
    monkeypatch.setattr(CFG, "CP_SAT_MAX_SECONDS", 20)
    dead = {BoardPos(2, 2)}
    ok, graph, _, strategy, reason, _ = solve_orchestrator((5, 5), dead, BoardPos(1, 0), engine="cp_sat")
    if not ok:
        assert reason == "No tour exists"
        return
    assert strategy == "cp_sat"
    board = graph.to_board(dead)
    assert board.unvisited() == []
    assert board.order()[0] == BoardPos(1, 0)


def test_orchestrator_cp_sat_closed(monkeypatch):
    monkeypatch.setattr(CFG, "CP_SAT_ISOLATE", False)
    ok, graph, _, strategy, _, _ = solve_orchestrator((6, 6), engine="cp_sat", closed=True)
    assert ok and strategy == "cp_sat"
    assert graph.node(ORIGIN).prev is not None
    assert graph.node(ORIGIN).prev != ORIGIN


def test_isolated_run_returns_an_order():
    from solver.cp_isolate import run_cp_sat_isolated

    ok, order, reason, crash = run_cp_sat_isolated(5, 5, [], (0, 0), None, False, 20)
    assert crash is None
    assert ok, reason
    assert len(order) == 25
