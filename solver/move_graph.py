# solver/move_graph.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, NoReturn, Optional, Set, Tuple, Union

from models import Board, BoardPos, BoardSize, Direction, ORIGIN
from solver.knight import knight_edges


class ReadOnlyGraphError(TypeError):
    """Mutation was attempted through a non-owning graph view."""


class DimensionMismatchError(ValueError):
    """Two graphs (or a graph and a target region) do not line up."""


@dataclass(eq=False)
class Node:
    pos: BoardPos
    edges: Tuple[BoardPos, ...] = ()
    next: Optional[BoardPos] = None
    prev: Optional[BoardPos] = None

    @property
    def is_root(self) -> bool:
        return self.prev == self.pos

    @property
    def is_unlinked(self) -> bool:
        return self.next is None and self.prev is None

    def reverse_in_place(self) -> None:
        self.next, self.prev = self.prev, self.next

    def reversed(self) -> "Node":
        return Node(self.pos, self.edges, self.prev, self.next)

    def clone_with_offset(self, offset: BoardPos) -> "Node":
        return Node(
            self.pos + offset,
            tuple(e + offset for e in self.edges),
            None if self.next is None else self.next + offset,
            None if self.prev is None else self.prev + offset,
        )


class NodeRef:
    """Read-only window on a node as seen through a view.

    Reversal swaps next/prev; a section origin shifts every reported position
    into the section's local frame (links that leave the section read as unset).
    """

    __slots__ = ("_node", "_reversed", "_origin", "_size")

    def __init__(
        self,
        node: Node,
        reversed_: bool = False,
        origin: BoardPos = ORIGIN,
        size: Optional[BoardSize] = None,
    ):
        self._node = node
        self._reversed = reversed_
        self._origin = origin
        self._size = size

    def _local(self, pos: Optional[BoardPos]) -> Optional[BoardPos]:
        if pos is None:
            return None
        if self._origin == ORIGIN and self._size is None:
            return pos
        local = pos.try_translate(-self._origin.col, -self._origin.row)
        if local is None or (self._size is not None and not self._size.fits(local)):
            return None
        return local

    @property
    def pos(self) -> BoardPos:
        return self._local(self._node.pos)  # type: ignore[return-value]

    @property
    def edges(self) -> Tuple[BoardPos, ...]:
        return tuple(p for p in (self._local(e) for e in self._node.edges) if p is not None)

    @property
    def next(self) -> Optional[BoardPos]:
        return self._local(self._node.prev if self._reversed else self._node.next)

    @property
    def prev(self) -> Optional[BoardPos]:
        return self._local(self._node.next if self._reversed else self._node.prev)

    @property
    def is_root(self) -> bool:
        return self.prev is not None and self.prev == self.pos

    @property
    def is_unlinked(self) -> bool:
        return self.next is None and self.prev is None

    def reverse(self) -> "NodeRef":
        return NodeRef(self._node, not self._reversed, self._origin, self._size)

    def clone_with_offset(self, offset: BoardPos) -> Node:
        return Node(self.pos, self.edges, self.next, self.prev).clone_with_offset(offset)

    def __repr__(self) -> str:
        return f"NodeRef({self.pos}: {self.prev} -> {self.next})"


class _GraphBase:
    """Read API shared by owning graphs and views."""

    width: int
    height: int

    @property
    def size(self) -> BoardSize:
        return BoardSize(self.width, self.height)

    def node(self, pos: BoardPos) -> NodeRef:  # pragma: no cover - abstract
        raise NotImplementedError

    def positions(self) -> Iterator[BoardPos]:
        for row in range(self.height):
            for col in range(self.width):
                yield BoardPos(col, row)

    def iter_nodes(self) -> Iterator[NodeRef]:
        for pos in self.positions():
            yield self.node(pos)

    def link_table(self) -> List[Tuple[BoardPos, Optional[BoardPos], Optional[BoardPos]]]:
        """``(pos, prev, next)`` for every square, row-major."""
        return [(n.pos, n.prev, n.next) for n in self.iter_nodes()]

    # ---- view algebra ----

    def view(self) -> "GraphView":
        raise NotImplementedError  # pragma: no cover - abstract

    def reversed_view(self) -> "GraphView":
        return self.view().reverse()  # type: ignore[return-value]

    def section(self, pos: BoardPos, size: BoardSize, *, reverse: bool = False) -> "GraphView":
        sec = self.view().section(pos, size)
        return sec.reverse() if reverse else sec  # type: ignore[return-value]

    # ---- materialising operations ----

    def copy(self) -> "MoveGraph":
        res = MoveGraph(self.width, self.height, populate=False)
        for ref in self.iter_nodes():
            res._nodes[res._index(ref.pos)] = ref.clone_with_offset(ORIGIN)
        return res

    def combine(self, other: "_GraphBase", direction: Direction) -> "MoveGraph":
        if direction.is_horizontal:
            if self.height != other.height:
                raise DimensionMismatchError(
                    f"Cannot merge graphs with different height: self = {self.height}, other = {other.height}"
                )
            size = BoardSize(self.width + other.width, self.height)
            offset = BoardPos(self.width, 0)
        else:
            if self.width != other.width:
                raise DimensionMismatchError(
                    f"Cannot merge graphs with different width: self = {self.width}, other = {other.width}"
                )
            size = BoardSize(self.width, self.height + other.height)
            offset = BoardPos(0, self.height)

        res = MoveGraph(size.width, size.height, populate=False)
        for ref in self.iter_nodes():
            res._nodes[res._index(ref.pos)] = ref.clone_with_offset(ORIGIN)
        for ref in other.iter_nodes():
            node = ref.clone_with_offset(offset)
            res._nodes[res._index(node.pos)] = node
        return res

    def flip(self) -> "MoveGraph":
        """Transpose: every position, edge and link swaps its axes."""
        res = MoveGraph(self.height, self.width, populate=False)
        for ref in self.iter_nodes():
            node = Node(
                ref.pos.flip(),
                tuple(e.flip() for e in ref.edges),
                None if ref.next is None else ref.next.flip(),
                None if ref.prev is None else ref.prev.flip(),
            )
            res._nodes[res._index(node.pos)] = node
        return res

    def to_board(self, dead: Optional[Iterable[BoardPos]] = None) -> Board:
        """Number the tour 1..N in visiting order.

        The walk starts at the first linked square (preferring the origin),
        backs up to the chain head (a root sentinel, an unset ``prev``, or the
        walk's own start for a cycle) and then follows ``next``.
        """
        board = Board.empty(self.width, self.height)
        if dead is None:
            board.dead = {n.pos for n in self.iter_nodes() if n.is_unlinked}
        else:
            board.dead = set(dead)

        start = self.node(ORIGIN) if self.width and self.height else None
        if start is None or start.is_unlinked:
            start = next((n for n in self.iter_nodes() if not n.is_unlinked), None)
        if start is None:
            return board

        head = start
        steps = 0
        limit = self.size.area()
        while True:
            prev = head.prev
            if prev is None or prev == head.pos:
                break
            if prev == start.pos:
                head = start
                break
            head = self.node(prev)
            steps += 1
            if steps > limit:
                raise ValueError(f"tour links starting at {start.pos} do not form a chain")

        board.set(head.pos, 1)
        i = 2
        node = head
        while node.next is not None:
            nxt = node.next
            if board.at(nxt) != 0:
                break
            board.set(nxt, i)
            node = self.node(nxt)
            i += 1
        return board

    def describe(self) -> str:
        """``prev -> next`` per square; the debug dump used in error reports."""
        cells = [(str(n.prev or ""), str(n.next or "")) for n in self.iter_nodes()]
        w = max((max(len(p), len(q)) for p, q in cells), default=1)
        lines: List[str] = []
        for row in range(self.height):
            parts = []
            for col in range(self.width):
                p, q = cells[row * self.width + col]
                arrow = " -> " if q else "    "
                parts.append(f"| {p:^{w}}{arrow}{q:^{w}} ")
            lines.append("".join(parts) + "|")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.width}x{self.height})"


class MoveGraph(_GraphBase):
    """Owning grid of nodes; the only variant that can be mutated."""

    def __init__(self, width: int, height: int, *, populate: bool = True):
        self.width = int(width)
        self.height = int(height)
        if populate:
            size = BoardSize(self.width, self.height)
            self._nodes: List[Node] = [
                Node(pos, knight_edges(pos, size)) for pos in self.positions()
            ]
        else:
            self._nodes = [Node(pos) for pos in self.positions()]

    @classmethod
    def new(cls, width: int, height: int) -> "MoveGraph":
        return cls(width, height)

    @classmethod
    def from_order(cls, width: int, height: int, order: Iterable[BoardPos], *, closed: bool = False) -> "MoveGraph":
        """Link squares in visiting order; the first one becomes the root
        unless ``closed`` joins the last square back to it."""
        graph = cls(width, height)
        squares = [BoardPos(*p) for p in order]
        if not squares:
            return graph
        graph.mark_root(squares[0])
        for a, b in zip(squares, squares[1:]):
            graph.link(a, b)
        if closed and len(squares) > 2:
            graph.link(squares[-1], squares[0])
        return graph

    def _index(self, pos: BoardPos) -> int:
        if not (0 <= pos.col < self.width and 0 <= pos.row < self.height):
            raise IndexError(f"Position out of bounds: {pos} ({pos.col}, {pos.row}) > {self.size}")
        return pos.row * self.width + pos.col

    def node(self, pos: BoardPos) -> NodeRef:
        return NodeRef(self._nodes[self._index(pos)])

    def node_mut(self, pos: BoardPos) -> Node:
        return self._nodes[self._index(pos)]

    def view(self) -> "GraphView":
        return GraphView(self)

    def link(self, frm: BoardPos, to: BoardPos) -> None:
        self.node_mut(frm).next = to
        self.node_mut(to).prev = frm

    def mark_root(self, pos: BoardPos) -> None:
        self.node_mut(pos).prev = pos

    def reverse(self) -> "MoveGraph":
        res = MoveGraph(self.width, self.height, populate=False)
        res._nodes = [n.reversed() for n in self._nodes]
        return res

    def insert_section(self, graph: _GraphBase, offset: BoardPos) -> None:
        """Copy the links (not the edges) of ``graph`` into this graph at ``offset``."""
        if not self.size.contains(BoardSize(graph.width + offset.col, graph.height + offset.row)):
            raise DimensionMismatchError(
                f"Section {graph.size} at {offset} does not fit into {self.size}"
            )
        for ref in graph.iter_nodes():
            target = self.node_mut(ref.pos + offset)
            target.next = None if ref.next is None else ref.next + offset
            target.prev = None if ref.prev is None else ref.prev + offset

    def reverse_section(self, pos: BoardPos, size: BoardSize) -> None:
        for col in range(pos.col, pos.col + size.width):
            for row in range(pos.row, pos.row + size.height):
                self.node_mut(BoardPos(col, row)).reverse_in_place()


class GraphView(_GraphBase):
    """Non-owning view: straight or reversed reference, optionally clipped
    to a rectangular section. Views of views collapse onto the owning graph."""

    def __init__(
        self,
        source: MoveGraph,
        *,
        reversed_: bool = False,
        origin: Optional[BoardPos] = None,
        size: Optional[BoardSize] = None,
    ):
        self._source = source
        self._reversed = reversed_
        self._origin = origin
        self._clip = size
        bounds = size if size is not None else source.size
        self.width = bounds.width
        self.height = bounds.height

    @property
    def source(self) -> MoveGraph:
        return self._source

    @property
    def is_reversed(self) -> bool:
        return self._reversed

    @property
    def is_section(self) -> bool:
        return self._origin is not None

    def node(self, pos: BoardPos) -> NodeRef:
        if self._origin is None:
            return NodeRef(self._source.node_mut(pos), self._reversed)
        if not self._clip.fits(pos):  # type: ignore[union-attr]
            raise IndexError(f"Position out of bounds: {pos} > {self._clip}")
        return NodeRef(
            self._source.node_mut(pos + self._origin),
            self._reversed,
            self._origin,
            self._clip,
        )

    def view(self) -> "GraphView":
        return GraphView(self._source, reversed_=self._reversed, origin=self._origin, size=self._clip)

    def reverse(self) -> "GraphView":
        return GraphView(self._source, reversed_=not self._reversed, origin=self._origin, size=self._clip)

    def section(self, pos: BoardPos, size: BoardSize, *, reverse: bool = False) -> "GraphView":
        if not self.size.contains(BoardSize(pos.col + size.width, pos.row + size.height)):
            raise DimensionMismatchError(f"Section {size} at {pos} exceeds {self.size}")
        origin = pos if self._origin is None else self._origin + pos
        return GraphView(
            self._source,
            reversed_=self._reversed != reverse,
            origin=origin,
            size=size,
        )

    # Views never mutate; these exist so misuse fails loudly.

    def node_mut(self, pos: BoardPos) -> NoReturn:
        raise ReadOnlyGraphError("Cannot mutate a reference to a MoveGraph")

    def insert_section(self, graph: _GraphBase, offset: BoardPos) -> NoReturn:
        raise ReadOnlyGraphError("Cannot mutate a reference to a MoveGraph")

    def reverse_section(self, pos: BoardPos, size: BoardSize) -> NoReturn:
        raise ReadOnlyGraphError("Cannot mutate a reference to a MoveGraph")


AnyGraph = Union[MoveGraph, GraphView]


def live_squares(size: BoardSize, dead: Set[BoardPos]) -> int:
    return size.area() - sum(1 for p in dead if size.fits(p))
