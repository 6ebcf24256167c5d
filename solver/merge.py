# solver/merge.py: splice a solved tile onto the tour assembled so far
from __future__ import annotations

from typing import Optional

from models import BoardPos, BoardSize, Direction
from solver.move_graph import MoveGraph, Node


class MergeError(RuntimeError):
    """A seam node did not hold the link the splice expected.

    Always a partitioning or search defect, never a "no tour" outcome.
    """

    def __init__(
        self,
        pos: BoardPos,
        prev: Optional[BoardPos],
        next_: Optional[BoardPos],
        old_target: Optional[BoardPos],
        new_target: BoardPos,
        direction: Direction,
        context: str = "",
    ):
        self.pos = pos
        self.prev = prev
        self.next = next_
        self.old_target = old_target
        self.new_target = new_target
        self.direction = direction
        self.context = context
        msg = (
            f"Invalid node: {pos} ({tuple(pos)}) [ {prev} -> {next_} ] "
            f"- {old_target} - {new_target} [{direction.value}]"
        )
        if context:
            msg = f"{msg}\n{context}"
        super().__init__(msg)


def seam_nodes(pos: BoardPos, direction: Direction):
    """``(first_start, first_end, second_start, second_end)`` around a seam at ``pos``."""
    if direction.is_horizontal:
        second_end = pos + (0, 1)
        first_end, first_start = pos - (2, 0), pos + (-1, 2)
    else:
        second_end = pos + (1, 0)
        first_end, first_start = pos - (0, 2), pos + (2, -1)
    return first_start, first_end, pos, second_end


def _update_node(node: Node, old_target: Optional[BoardPos], new_target: BoardPos, direction: Direction) -> None:
    # An unset link or the root sentinel both stand for "no partner yet".
    def _matches(link: Optional[BoardPos]) -> bool:
        return link == old_target or (old_target is None and link == node.pos)

    if _matches(node.prev):
        node.prev = new_target
    elif _matches(node.next):
        node.next = new_target
    else:
        raise MergeError(node.pos, node.prev, node.next, old_target, new_target, direction)


def merge(board: MoveGraph, pos: BoardPos, latter_size: BoardSize, direction: Direction) -> None:
    """Splice the tile at ``pos`` (already inserted into ``board``) onto the
    tour occupying the neighbouring region, in place.

    The edge ``first_start``-``first_end`` on the placed side is replaced by two
    edges crossing the seam to the tile's open ends. Only those four nodes
    change, plus the tile's own orientation when it has to be reversed.
    """
    first_start, first_end, second_start, second_end = seam_nodes(pos, direction)

    if board.node(first_end).next == first_start:
        board.reverse_section(pos, latter_size)

    try:
        _update_node(board.node_mut(first_start), first_end, second_start, direction)
        _update_node(board.node_mut(first_end), first_start, second_end, direction)
        _update_node(board.node_mut(second_start), None, first_start, direction)
        _update_node(board.node_mut(second_end), None, first_end, direction)
    except MergeError as exc:
        exc.context = (
            f"pos: {pos} latter_size: {latter_size}\n"
            f"first_start: {first_start}, first_end: {first_end}\n"
            f"second_start: {second_start}, second_end: {second_end}\n"
            f"{board.describe()}"
        )
        exc.args = (f"{exc.args[0]}\n{exc.context}",)
        raise
