# app.py: knight's tour form, solve, result and progress routes
from __future__ import annotations
import os
import time
from typing import Any, Dict, Optional, Set, Tuple

from flask import Flask, request, render_template, send_from_directory, jsonify, url_for

from board_shapes import (
    corner_dead_squares, dead_squares_from_lines, parse_board_pos, parse_board_size,
)
from config import CFG
from io_files import write_tour, write_layout_view_html
from models import BoardPos, BoardSize, Meta
from render import render_svg, render_text
from solver.orchestrator import ENGINES, solve_orchestrator

from progress import (
    reset as progress_reset,
    as_json as progress_json,
    start_timer as progress_start,
    set_status, set_phase, set_attempt, set_grid,
    set_elapsed, set_progress_pct, set_done, set_result_url,
)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _resolve_output_paths(configured: str, fallback: str) -> Tuple[str, str, str]:
    name = (configured or "").strip() or fallback
    if os.path.isabs(name):
        full_path = name
    else:
        full_path = os.path.abspath(os.path.join(BASE_DIR, name))
    directory = os.path.dirname(full_path) or BASE_DIR
    filename = os.path.basename(full_path) or fallback
    return full_path, directory, filename


_TOUR_FULL_PATH, TOUR_DIR, TOUR_FILENAME = _resolve_output_paths(
    CFG.TOUR_OUT, "tour.txt"
)
_LAYOUT_FULL_PATH, LAYOUT_DIR, LAYOUT_FILENAME = _resolve_output_paths(
    CFG.LAYOUT_HTML, "tour_view.html"
)

LAST_RESULT: Dict[str, Any] = {
    "ok": False,
    "strategy": "error",
    "reason": "",
    "board_label": "",
    "squares": 0,
    "move_count": 0,
    "elapsed_str": "0s",
    "engine": "",
    "svg": "",
    "text": "",
    "unvisited": [],
    "tour_filename": TOUR_FILENAME,
    "layout_filename": LAYOUT_FILENAME,
}

app = Flask(__name__, static_folder=".", template_folder="templates")


@app.after_request
def _no_cache_progress(resp):
    if request.path == "/progress3":
        resp.headers["Cache-Control"] = "no-store, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
    return resp


@app.route("/")
def index():
    return render_template("tour_form.html", engines=ENGINES, default_size=CFG.DEFAULT_SIZE)


@app.route("/result/latest")
def result_latest():
    return render_template("result.html", **LAST_RESULT)


def _fmt_elapsed(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    m, s = divmod(int(seconds), 60)
    if m == 0:
        return f"{s}s"
    h, m = divmod(m, 60)
    if h == 0:
        return f"{m}m {s}s"
    return f"{h}h {m}m {s}s"


def _merge_like_mapping() -> Dict[str, str]:
    """JSON body, form fields and query args flattened to first values."""
    merged: Dict[str, str] = {}
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        for k, v in payload.items():
            merged[k] = "" if v is None else str(v)
    for source in (request.form, request.args):
        for k in source.keys():
            merged.setdefault(k, source.get(k, ""))
    return merged


def _parse_board_request(like: Dict[str, str]) -> Tuple[BoardSize, Set[BoardPos], Optional[BoardPos], str]:
    """Raises ValueError with a user-facing message on bad input."""
    layout = (like.get("board_text") or "").strip("\n")
    if layout.strip():
        size, dead = dead_squares_from_lines(layout.splitlines())
    else:
        size = parse_board_size(like.get("size") or CFG.DEFAULT_SIZE)
        dead = set()
        radius = (like.get("corner_radius") or "").strip()
        if radius:
            dead = corner_dead_squares(size, radius)

    start_txt = (like.get("start") or "").strip()
    start = parse_board_pos(start_txt) if start_txt else None
    engine = (like.get("engine") or CFG.ENGINE or "auto").strip().lower()
    return size, dead, start, engine


def _store_failure(reason: str, t0: float, board_label: str = "") -> str:
    set_status("Error")
    set_done(False, reason=reason)
    LAST_RESULT.update({
        "ok": False,
        "strategy": "error",
        "reason": reason,
        "board_label": board_label,
        "squares": 0,
        "move_count": 0,
        "elapsed_str": _fmt_elapsed(time.time() - t0),
        "engine": "",
        "svg": "",
        "text": "",
        "unvisited": [],
        "tour_filename": TOUR_FILENAME,
        "layout_filename": LAYOUT_FILENAME,
    })
    set_result_url(url_for("result_latest"))
    return render_template("result.html", **LAST_RESULT)


@app.route("/solve", methods=["POST"])
def solve():
    progress_reset()
    progress_start()
    set_status("Solving")
    set_phase("setup")
    set_attempt("")
    set_progress_pct(0)

    t0 = time.time()
    like = _merge_like_mapping()
    try:
        size, dead, start, engine = _parse_board_request(like)
    except (ValueError, OSError) as e:
        return _store_failure(f"Bad board: {e}", t0)

    set_grid(str(size))

    try:
        ok, graph, elapsed, strategy, reason, meta = solve_orchestrator(
            size, dead, start, engine=engine
        )
    except Exception as e:
        return _store_failure(f"orchestrator exception: {type(e).__name__}: {e}", t0, str(size))

    if strategy == "error":
        return _store_failure(reason or "Bad request", t0, str(size))

    set_elapsed(time.time() - t0)
    board = graph.to_board(dead) if ok and graph is not None else None
    info = Meta(engine=strategy, elapsed_sec=elapsed, board_label=str(size))

    svg_markup = ""
    text = ""
    tour_name = TOUR_FILENAME
    layout_name = LAYOUT_FILENAME
    try:
        tour_name = os.path.basename(write_tour(board, BASE_DIR)) or TOUR_FILENAME
    except OSError:
        tour_name = TOUR_FILENAME
    if board is not None:
        svg_markup = render_svg(graph, elapsed)
        text = render_text(board)
        try:
            layout_path = write_layout_view_html(svg_markup, BASE_DIR, board_label=str(size))
            layout_name = os.path.basename(layout_path) or LAYOUT_FILENAME
        except OSError:
            layout_name = LAYOUT_FILENAME

    set_status("Solved" if ok else "Error")
    set_done(ok, reason=reason or "Tour found")

    LAST_RESULT.update(info.template_vars(
        ok=ok,
        strategy=strategy,
        reason=reason or "",
        squares=meta.get("squares", 0),
        move_count=board.move_count if board is not None else 0,
        svg=svg_markup,
        text=text,
        unvisited=[str(p) for p in board.unvisited()] if board is not None else [],
        tour_filename=tour_name,
        layout_filename=layout_name,
    ))
    set_result_url(url_for("result_latest"))
    return render_template("result.html", **LAST_RESULT)


@app.route("/download/tour")
def download_tour():
    return send_from_directory(TOUR_DIR, TOUR_FILENAME, as_attachment=True)


@app.route("/download/html")
def download_html():
    return send_from_directory(LAYOUT_DIR, LAYOUT_FILENAME, as_attachment=True)


@app.route("/progress3")
def progress3():
    return jsonify(progress_json())


if __name__ == "__main__":
    progress_start()
    app.run(debug=False)
