"""Helpers for writing solver outputs to disk."""

from __future__ import annotations

import os
from typing import Optional

from config import CFG
from models import Board
from render import render_text


def _resolve_output_path(base_dir: str, configured_name: str, fallback: str) -> str:
    """Return the absolute path where an output artifact should be written."""

    name = (configured_name or "").strip() or fallback
    if os.path.isabs(name):
        return name
    return os.path.join(base_dir, name)


def write_tour(board: Optional[Board], base_dir: str) -> str:
    """Write the numbered board (or a no-tour note) to the configured text file."""

    path = _resolve_output_path(base_dir, CFG.TOUR_OUT, "tour.txt")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        if board is None:
            f.write("No knight's tour possible for this board configuration.\n")
        else:
            f.write(render_text(board))
            missing = board.unvisited()
            if missing:
                f.write("Unvisited squares: " + ", ".join(str(p) for p in missing) + "\n")
    return path


def write_layout_view_html(svg: str, base_dir: str, board_label: Optional[str] = None) -> str:
    """Write the rendered SVG tour to the configured HTML file."""

    path = _resolve_output_path(base_dir, CFG.LAYOUT_HTML, "tour_view.html")
    os.makedirs(os.path.dirname(path), exist_ok=True)
    heading = f"Knight's Tour {board_label}" if board_label else "Knight's Tour"

    with open(path, "w", encoding="utf-8") as vf:
        vf.write(
            f"""<!doctype html>
<html><head><meta charset='utf-8'><title>{heading}</title></head>
<body class='container'>
<h1>{heading}</h1>
<section class='card'>{svg}</section>
</body></html>"""
        )
    return path


__all__ = ["write_tour", "write_layout_view_html"]
