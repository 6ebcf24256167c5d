# solver/partitions.py: split a board into tiles the search can handle
from __future__ import annotations

from collections import deque
from typing import Dict, List, Optional, Tuple

from config import CFG
from models import BoardPos, BoardSize, Direction, ORIGIN, Sector

Segment = Tuple[int, int]  # (offset, length)

# Boards this narrow have no closed tour; they are covered by one open band.
NARROW_SIDE = 4
STRIP_LENGTH = 4

# Length of the head tile of a three-row band, by band length mod 4, so
# the rest divides into strips.
NARROW_HEADS: Dict[int, int] = {0: 8, 1: 9, 2: 10, 3: 7}

# Tiles the search handles badly get fixed sub-splits instead.
# Closed origin tile, keyed (short side, long side) -> pieces along the short side.
CLOSED_SPLITS: Dict[Tuple[int, int], Tuple[int, ...]] = {
    (9, 10): (5, 4),
}

# Stretched tiles, keyed (non-merge axis, merge axis) -> pieces along the merge axis.
OPEN_SPLITS: Dict[Tuple[int, int], Tuple[int, ...]] = {
    (5, 8): (4, 4),
    (5, 10): (6, 4),
    (6, 10): (6, 4),
    (8, 10): (7, 3),
    (10, 8): (4, 4),
}

# Stretched tiles, keyed (non-merge axis, merge axis) -> pieces across the
# merge axis. Later pieces are spliced onto the piece before them.
ACROSS_SPLITS: Dict[Tuple[int, int], Tuple[int, ...]] = {
    (10, 6): (6, 4),
}


def split_length(length: int) -> Tuple[int, int]:
    """Halve ``length`` so the second part is always even: even-length
    stretched tiles always have a tour, odd ones not necessarily."""
    half = (length // 4) * 2 + length % 2
    return half, length - half


def segment_length(length: int, max_side: Optional[int] = None) -> List[Segment]:
    """Cut one axis into segments no longer than the tile limit, ordered by offset."""
    limit = CFG.MAX_TILE_SIDE if max_side is None else int(max_side)
    if length <= limit:
        return [(0, length)]

    segments: List[Segment] = []
    queue = deque([(0, length)])
    while queue:
        offset, seg = queue.popleft()
        first, second = split_length(seg)
        for rel, val in ((0, first), (first, second)):
            if val > limit:
                queue.append((offset + rel, val))
            else:
                segments.append((offset + rel, val))
    segments.sort()
    return segments


def _pieces(pos: BoardPos, size: BoardSize, along_width: bool, parts, directions) -> List[Sector]:
    out: List[Sector] = []
    run = 0
    for part, direction in zip(parts, directions):
        if along_width:
            out.append(Sector(BoardPos(pos.col + run, pos.row), BoardSize(part, size.height), direction))
        else:
            out.append(Sector(BoardPos(pos.col, pos.row + run), BoardSize(size.width, part), direction))
        run += part
    return out


def partition_closed_sector(pos: BoardPos, size: BoardSize) -> List[Sector]:
    short, long_ = size.short_side, size.long_side
    parts = CLOSED_SPLITS.get((short, long_))
    if parts is None:
        return [Sector(pos, size, pos.merge_direction())]
    along_width = short == size.width
    # the follow-up pieces are spliced across the short side
    follow = Direction.HORIZONTAL if along_width else Direction.VERTICAL
    directions = [pos.merge_direction()] + [follow] * (len(parts) - 1)
    return _pieces(pos, size, along_width, parts, directions)


def partition_open_sector(pos: BoardPos, size: BoardSize) -> List[Sector]:
    direction = pos.merge_direction()
    if direction.is_horizontal:
        merge_axis, non_merge_axis = size.width, size.height
    else:
        merge_axis, non_merge_axis = size.height, size.width
    parts = OPEN_SPLITS.get((non_merge_axis, merge_axis))
    if parts is not None:
        return _pieces(pos, size, direction.is_horizontal, parts, [direction] * len(parts))
    parts = ACROSS_SPLITS.get((non_merge_axis, merge_axis))
    if parts is not None:
        directions = [direction] + [direction.opposite()] * (len(parts) - 1)
        return _pieces(pos, size, not direction.is_horizontal, parts, directions)
    return [Sector(pos, size, direction)]


def partition_sector_further(pos: BoardPos, size: BoardSize) -> List[Sector]:
    if pos == ORIGIN:
        return partition_closed_sector(pos, size)
    return partition_open_sector(pos, size)


def partition_narrow(size: BoardSize) -> List[Sector]:
    """Cover a three-row board with one open band: a head tile holding the
    origin, then strips of ``STRIP_LENGTH`` each spliced onto the one before."""
    size = BoardSize(*size)
    if size.short_side != 3:
        raise ValueError(f"Not a three-row board: {size}")
    horizontal = size.width >= size.height
    direction = Direction.HORIZONTAL if horizontal else Direction.VERTICAL
    head = NARROW_HEADS[size.long_side % STRIP_LENGTH]
    if head > size.long_side:
        raise ValueError(f"Board too short to split into strips: {size}")

    def sector(offset: int, length: int) -> Sector:
        if horizontal:
            return Sector(BoardPos(offset, 0), BoardSize(length, size.height), direction)
        return Sector(BoardPos(0, offset), BoardSize(size.width, length), direction)

    sectors = [sector(0, head)]
    for offset in range(head, size.long_side, STRIP_LENGTH):
        sectors.append(sector(offset, STRIP_LENGTH))
    return sectors


def partition_size(size: BoardSize) -> List[Sector]:
    """Row-major tiles covering ``size``; the first one holds the origin and
    every later one is merged onto a tile already placed."""
    size = BoardSize(*size)
    horizontal = segment_length(size.width)
    if size.width == size.height:
        vertical = list(horizontal)
    else:
        vertical = segment_length(size.height)

    sectors: List[Sector] = []
    for y, height in vertical:
        for x, width in horizontal:
            sectors.extend(partition_sector_further(BoardPos(x, y), BoardSize(width, height)))
    return sectors
