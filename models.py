from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Set

# Board indices are unsigned 32-bit in the wire/text formats; translation
# refuses to leave that range instead of wrapping.
MAX_INDEX = 2**32 - 1


def alphabetize(val: int) -> str:
    """1-based column number -> bijective base-26 letters (1 -> A, 27 -> AA)."""
    letters: List[str] = []
    while val > 0:
        val -= 1
        val, rem = divmod(val, 26)
        letters.append(chr(ord("A") + rem))
    if not letters:
        letters.append("A")
    return "".join(reversed(letters))


class Direction(Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    def opposite(self) -> "Direction":
        return Direction.VERTICAL if self is Direction.HORIZONTAL else Direction.HORIZONTAL

    @property
    def is_horizontal(self) -> bool:
        return self is Direction.HORIZONTAL


class BoardPos(NamedTuple):
    col: int
    row: int

    def try_translate(self, dcol: int, drow: int) -> Optional["BoardPos"]:
        col = self.col + dcol
        row = self.row + drow
        if col < 0 or row < 0 or col > MAX_INDEX or row > MAX_INDEX:
            return None
        return BoardPos(col, row)

    def translate(self, dcol: int, drow: int) -> "BoardPos":
        moved = self.try_translate(dcol, drow)
        if moved is None:
            raise ValueError(f"cannot translate {self} by ({dcol}, {drow})")
        return moved

    def __add__(self, other) -> "BoardPos":  # type: ignore[override]
        return BoardPos(self.col + other[0], self.row + other[1])

    def __sub__(self, other) -> "BoardPos":
        return self.translate(-other[0], -other[1])

    def flip(self) -> "BoardPos":
        return BoardPos(self.row, self.col)

    def is_knight_move(self, other: "BoardPos") -> bool:
        d = (abs(self.col - other.col), abs(self.row - other.row))
        return d == (1, 2) or d == (2, 1)

    def merge_direction(self) -> Direction:
        # Tiles in the first row are spliced onto their left neighbour, all
        # others onto the tile above.
        return Direction.HORIZONTAL if self.row == 0 else Direction.VERTICAL

    def __str__(self) -> str:
        return f"{alphabetize(self.col + 1)}-{self.row + 1}"


ORIGIN = BoardPos(0, 0)


class BoardSize(NamedTuple):
    width: int
    height: int

    def area(self) -> int:
        return int(self.width) * int(self.height)

    def fits(self, pos: BoardPos) -> bool:
        return 0 <= pos.col < self.width and 0 <= pos.row < self.height

    def contains(self, other: "BoardSize") -> bool:
        return other.width <= self.width and other.height <= self.height

    def flip(self) -> "BoardSize":
        return BoardSize(self.height, self.width)

    def with_width(self, width: int) -> "BoardSize":
        return BoardSize(width, self.height)

    def with_height(self, height: int) -> "BoardSize":
        return BoardSize(self.width, height)

    @property
    def short_side(self) -> int:
        return min(self.width, self.height)

    @property
    def long_side(self) -> int:
        return max(self.width, self.height)

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class Sector:
    offset: BoardPos
    size: BoardSize
    direction: Direction

    @property
    def is_origin(self) -> bool:
        return self.offset == ORIGIN


@dataclass
class Board:
    """Tour materialised as move numbers: 1..N in visiting order, 0 elsewhere."""

    width: int
    height: int
    cells: List[int]
    dead: Set[BoardPos] = field(default_factory=set)

    @classmethod
    def empty(cls, width: int, height: int) -> "Board":
        return cls(width, height, [0] * (width * height))

    @property
    def size(self) -> BoardSize:
        return BoardSize(self.width, self.height)

    def at(self, pos: BoardPos) -> int:
        return self.cells[pos.row * self.width + pos.col]

    def set(self, pos: BoardPos, value: int) -> None:
        self.cells[pos.row * self.width + pos.col] = value

    @property
    def move_count(self) -> int:
        return max(self.cells, default=0)

    def order(self) -> List[BoardPos]:
        """Squares in visiting order."""
        numbered: Dict[int, BoardPos] = {}
        for idx, val in enumerate(self.cells):
            if val:
                row, col = divmod(idx, self.width)
                numbered[val] = BoardPos(col, row)
        return [numbered[i] for i in sorted(numbered)]

    def unvisited(self) -> List[BoardPos]:
        """Live squares the tour never reached."""
        missing: List[BoardPos] = []
        for col in range(self.width):
            for row in range(self.height):
                pos = BoardPos(col, row)
                if pos not in self.dead and self.at(pos) == 0:
                    missing.append(pos)
        return missing


@dataclass
class Meta:
    engine: str
    elapsed_sec: float
    board_label: str

    def template_vars(self, **kw):
        elapsed = f"{int(self.elapsed_sec // 60)}m {self.elapsed_sec % 60:.3f}s"
        return dict(elapsed_str=elapsed, engine=self.engine, board_label=self.board_label, **kw)
