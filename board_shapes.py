# board_shapes.py: board size / square / corner-radius parsing and shaped boards
from __future__ import annotations
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple, Union

from PIL import Image

from config import CFG
from models import BoardPos, BoardSize

_SIZE_RE = re.compile(r"^\s*(?P<w>\d+)\s*(?:[x×X]\s*(?P<h>\d+))?\s*$")
_POS_RE = re.compile(r"^\s*(?P<col>[A-Za-z]+)-?(?P<row>\d+)\s*$")
_CORNER_RE = re.compile(r"\(\s*(?P<v>\d+)\s*(?:,\s*|\s+)?(?P<h>\d+)?\s*\)|(?P<n>\d+)")

POS_ERR = (
    "Expected a string of the format <COLUMN>[-]<ROW>, "
    "with columns being letters and rows being numeric."
)


def parse_board_size(text: str) -> BoardSize:
    """``"12x9"`` -> 12 wide, 9 high; ``"23"`` -> 23x23."""
    m = _SIZE_RE.match(text or "")
    if not m:
        raise ValueError("Expected string of the form <width>x<height> or <length>")
    w = int(m.group("w"))
    h = int(m.group("h")) if m.group("h") is not None else w
    if w < 1 or h < 1:
        raise ValueError(f"Board sides must be positive: {w}x{h}")
    return BoardSize(w, h)


def parse_board_pos(text: str) -> BoardPos:
    """``"A1"`` / ``"a-1"`` / ``"AA-12"`` -> 0-based column and row."""
    m = _POS_RE.match(text or "")
    if not m:
        raise ValueError(POS_ERR)
    col = 0
    for ch in m.group("col").upper():
        col = col * 26 + (ord(ch) - ord("A") + 1)
    row = int(m.group("row"))
    if row < 1:
        raise ValueError("Invalid row: 0")
    return BoardPos(col - 1, row - 1)


# ---------------- corner radius ----------------

@dataclass(frozen=True)
class Corner:
    vertical: int
    horizontal: int


@dataclass(frozen=True)
class CornerRadius:
    top_left: Corner
    top_right: Corner
    bottom_right: Corner
    bottom_left: Corner

    def corners(self) -> Tuple[Corner, Corner, Corner, Corner]:
        return (self.top_left, self.top_right, self.bottom_right, self.bottom_left)

    def cuts(self, pos: BoardPos, size: BoardSize) -> bool:
        """True when ``pos`` lies outside the rounded outline."""
        if not size.fits(pos):
            return False
        w, h = size.width, size.height
        for sector, corner in enumerate(self.corners()):
            e_w, e_h = corner.horizontal, corner.vertical
            if e_w == 0 or e_h == 0:
                continue
            # ellipse centre sits (e_w - 1, e_h - 1) in from its corner
            cx = e_w - 1 if sector in (0, 3) else w - e_w
            cy = e_h - 1 if sector in (0, 1) else h - e_h
            dx = pos.col - cx
            dy = pos.row - cy
            beyond_x = dx < 0 if sector in (0, 3) else dx > 0
            beyond_y = dy < 0 if sector in (0, 1) else dy > 0
            if not (beyond_x and beyond_y):
                continue
            # scale the vertical axis onto the horizontal one, truncating like integer math
            dy_scaled = abs(dy) * e_w // e_h
            if dx * dx + dy_scaled * dy_scaled > e_w * e_w:
                return True
        return False


def _group_error(rest: str) -> str:
    inner = rest.strip()
    if not inner:
        return "Unexpected end of input"
    if not inner[0].isdigit():
        return "Expected digit or whitespace"
    return "Expected ')' or whitespace"


def parse_corner_radius(text: str) -> CornerRadius:
    """``"r"``, ``"a b c d"``, ``"a,b,c,d"`` or ``"(v h) ..."``; corners run
    top-left, top-right, bottom-right, bottom-left."""
    corners: List[Corner] = []
    pos = 0
    n = len(text)
    expecting = True
    pending_comma = False
    while True:
        while pos < n and text[pos].isspace():
            pos += 1
        if pos >= n:
            if pending_comma:
                raise ValueError("Unexpected end of input")
            break
        ch = text[pos]
        if not expecting:
            if ch == ",":
                pos += 1
                pending_comma = True
                expecting = True
                continue
            if ch == "(" or ch.isdigit():
                expecting = True
            else:
                raise ValueError("Expected whitespace or ','")
        m = _CORNER_RE.match(text, pos)
        if m is None:
            if ch == "(":
                raise ValueError(_group_error(text[pos + 1:]))
            raise ValueError(f"Invalid character in corner radius: {ch}")
        if m.group("n") is not None:
            v = h = int(m.group("n"))
        else:
            v = int(m.group("v"))
            h = int(m.group("h")) if m.group("h") is not None else v
        corners.append(Corner(v, h))
        pos = m.end()
        expecting = False
        pending_comma = False

    if len(corners) == 1:
        return CornerRadius(corners[0], corners[0], corners[0], corners[0])
    if len(corners) == 4:
        return CornerRadius(*corners)
    raise ValueError("Invalid number of corners - expected 1 or 4")


def corner_dead_squares(size: BoardSize, radius: Union[CornerRadius, str]) -> Set[BoardPos]:
    if isinstance(radius, str):
        radius = parse_corner_radius(radius)
    return {
        BoardPos(col, row)
        for col in range(size.width)
        for row in range(size.height)
        if radius.cuts(BoardPos(col, row), size)
    }


# ---------------- text board files ----------------

def _is_hole(ch: str) -> bool:
    return ch.isspace() or not ch.isprintable()


def dead_squares_from_lines(lines: Iterable[str]) -> Tuple[BoardSize, Set[BoardPos]]:
    """Any printable character is a square; blanks, control characters and
    the missing tail of short lines are dead."""
    rows = [line.rstrip("\r\n") for line in lines]
    width = max((len(r) for r in rows), default=0)
    dead: Set[BoardPos] = set()
    for row, line in enumerate(rows):
        for col in range(width):
            if col >= len(line) or _is_hole(line[col]):
                dead.add(BoardPos(col, row))
    return BoardSize(width, len(rows)), dead


def dead_squares_from_text(path: Union[str, Path]) -> Tuple[BoardSize, Set[BoardPos]]:
    with open(path, "r", encoding="utf-8") as fh:
        return dead_squares_from_lines(fh.read().splitlines())


# ---------------- image board files ----------------

IMAGE_MODES = ("luminance", "alpha", "black-white")
BOARD_FILE_FORMATS = ("text", "image")

_WHITE = (255, 255, 255, 255)
_BLACK = (0, 0, 0, 255)

BW_ERR = 'Only black and white pixels are supported. Try the mode "luminance" or "alpha" instead.'
FORMAT_ERR = "Unknown file type. Please provide the board file type explicitly."


def _pixel_is_dead(pixel: Tuple[int, int, int, int], mode: str, threshold: int) -> bool:
    if mode == "alpha":
        return pixel[3] >= threshold
    if mode == "black-white":
        if pixel == _WHITE:
            return False
        if pixel == _BLACK:
            return True
        raise ValueError(BW_ERR)
    if mode == "luminance":
        r, g, b, _ = pixel
        return (r * 30 + g * 59 + b * 11) // 100 >= threshold
    raise ValueError(f"Unknown image mode: {mode}")


def dead_squares_from_image(
    path: Union[str, Path],
    mode: str = "luminance",
    threshold: Optional[int] = None,
    invert: bool = False,
) -> Tuple[BoardSize, Set[BoardPos]]:
    """One square per pixel. Dark (luminance), opaque (alpha) or black
    (black-white) pixels are holes; ``invert`` swaps holes and squares."""
    threshold = CFG.IMAGE_THRESHOLD if threshold is None else int(threshold)
    with Image.open(path) as img:
        rgba = img.convert("RGBA")
    width, height = rgba.size
    pixels = rgba.load()
    dead: Set[BoardPos] = set()
    for row in range(height):
        for col in range(width):
            if _pixel_is_dead(tuple(pixels[col, row]), mode, threshold) != invert:
                dead.add(BoardPos(col, row))
    return BoardSize(width, height), dead


def board_file_format(path: Union[str, Path], explicit: Optional[str] = None) -> str:
    """``explicit`` when given, else guessed from the file extension."""
    if explicit:
        if explicit not in BOARD_FILE_FORMATS:
            raise ValueError(f"Unknown board file format: {explicit}")
        return explicit
    suffix = Path(path).suffix.lower()
    if suffix == ".txt":
        return "text"
    if suffix:
        if suffix in Image.registered_extensions():
            return "image"
    raise ValueError(FORMAT_ERR)


def shaped_board(
    size: Optional[BoardSize] = None,
    corner_radius: Optional[str] = None,
    board_file: Optional[Union[str, Path]] = None,
    *,
    file_format: Optional[str] = None,
    image_mode: str = "luminance",
    threshold: Optional[int] = None,
    invert_image: bool = False,
) -> Tuple[BoardSize, Set[BoardPos]]:
    """Resolve the board geometry: a layout file wins over a plain size."""
    if board_file:
        if board_file_format(board_file, file_format) == "image":
            return dead_squares_from_image(board_file, image_mode, threshold, invert_image)
        return dead_squares_from_text(board_file)
    if size is None:
        raise ValueError("A board size or a board file is required")
    dead: Set[BoardPos] = set()
    if corner_radius:
        dead = corner_dead_squares(size, corner_radius)
    return size, dead


__all__ = [
    "BOARD_FILE_FORMATS",
    "IMAGE_MODES",
    "board_file_format",
    "Corner",
    "CornerRadius",
    "corner_dead_squares",
    "dead_squares_from_image",
    "dead_squares_from_lines",
    "dead_squares_from_text",
    "parse_board_pos",
    "parse_board_size",
    "parse_corner_radius",
    "shaped_board",
]
