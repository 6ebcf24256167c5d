from typing import List

from config import CFG
from models import Board
from solver.move_graph import AnyGraph

MARGIN = 10
TITLE_BAR = 20


def render_text(board: Board) -> str:
    """Bordered grid of move numbers, right-aligned; dead squares print 0."""
    width = len(str(board.width * board.height))
    border = ("+--" + "-" * width) * board.width + "+"
    lines: List[str] = [border]
    for row in range(board.height):
        cells = [
            f"| {board.cells[row * board.width + col]:>{width}} "
            for col in range(board.width)
        ]
        lines.append("".join(cells) + "|")
        lines.append(border)
    return "\n".join(lines) + "\n"


def render_svg(graph: AnyGraph, elapsed_sec: float, cell: int = None) -> str:
    """Grid background plus one line per tour move, elapsed time as title."""
    cell = int(cell or CFG.SVG_CELL_PX)
    half = cell // 2
    width = graph.width * cell + 1
    height = graph.height * cell + 1
    file_w = max(width + 2 * MARGIN, 250)
    file_h = height + MARGIN + TITLE_BAR

    lines = []
    for node in graph.iter_nodes():
        nxt = node.next
        if nxt is None:
            continue
        x1 = node.pos.col * cell + half + MARGIN
        y1 = node.pos.row * cell + half + TITLE_BAR
        x2 = nxt.col * cell + half + MARGIN
        y2 = nxt.row * cell + half + TITLE_BAR
        lines.append(
            f'<line x1="{x1}" y1="{y1}" x2="{x2}" y2="{y2}" stroke="black" stroke-width="1.5" />'
        )

    secs = int(elapsed_sec)
    millis = int(round((elapsed_sec - secs) * 1000)) % 1000
    title = f"Elapsed time: {secs}.{millis:03d} seconds"
    return (
        f'<svg class="layout-svg" xmlns="http://www.w3.org/2000/svg" '
        f'width="{file_w}" height="{file_h}" viewBox="0 0 {file_w} {file_h}">'
        f'<defs><pattern id="grid" width="{cell}" height="{cell}" patternUnits="userSpaceOnUse">'
        f'<path d="M {cell} 0 L 0 0 0 {cell}" fill="none" stroke="gray" stroke-width="1" />'
        f'</pattern></defs>'
        f'<text x="{MARGIN}" y="{MARGIN}" font-size="15" dominant-baseline="middle" '
        f'font-family="Arial" fill="black">{title}</text>'
        f'<rect x="{MARGIN}" y="{TITLE_BAR}" width="{width}" height="{height}" fill="url(#grid)" />'
        f'{"".join(lines)}</svg>'
    )
