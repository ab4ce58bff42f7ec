"""Side-effect-free Tâb legality rules.

Everything here is parameterised by the track graph and plain occupancy
data, so the piece/player object model and the server's flat cell array
share one implementation of row-entry gating, jumping and stacking.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .config import config
from .graph import TrackGraph
from .types import Cell, PieceState


@dataclass(frozen=True, slots=True)
class MoverContext:
    """What the rules need to know about the piece being moved and its owner."""

    start_row: int
    has_moved: bool
    reached_last_row: bool
    own_cells: frozenset[Cell]
    home_row_clear: bool

    @property
    def last_row(self) -> int:
        return last_row_for(self.start_row)


def last_row_for(start_row: int) -> int:
    return (config.ROWS - 1) - start_row


def home_row_clear(own_cells: Iterable[Cell], start_row: int) -> bool:
    return not any(row == start_row for row, _ in own_cells)


def is_extra_turn(roll: int | None) -> bool:
    return roll in config.EXTRA_TURN_ROLLS


def next_state(state: PieceState, new_row: int, start_row: int) -> PieceState:
    """Progress state of a piece after it lands on ``new_row``."""
    if new_row == last_row_for(start_row):
        return PieceState.LAST_ROW
    if state == PieceState.LAST_ROW:
        return state
    if new_row == start_row:
        return PieceState.FIRST_ROW
    return PieceState.MOVED


def legal_destinations(
    graph: TrackGraph, origin: Cell | tuple[int, int], roll: int, ctx: MoverContext
) -> list[Cell]:
    """Cells a piece at ``origin`` may land on with ``roll``.

    Row-entry rules prune edges while walking, so a forbidden row also blocks
    the paths that would continue through it. Only the landing cell is
    checked for occupancy.
    """
    if not ctx.has_moved and roll != config.FIRST_MOVE_ROLL:
        return []

    start_row = ctx.start_row
    last_row = ctx.last_row

    frontier = {graph.coord_to_id(*origin)}
    for _ in range(roll):
        nxt: set[int] = set()
        for node in frontier:
            from_row = node // graph.cols
            for neighbor in graph.neighbors(node):
                to_row = neighbor // graph.cols
                if to_row == start_row and from_row != start_row:
                    continue
                if to_row == last_row and from_row != last_row and ctx.reached_last_row:
                    continue
                nxt.add(neighbor)
        frontier = nxt
        if not frontier:
            return []

    out: list[Cell] = []
    for node in frontier:
        cell = graph.id_to_coord(node)
        if cell in ctx.own_cells:
            continue
        if cell.row == last_row and not ctx.home_row_clear:
            continue
        out.append(cell)
    out.sort()
    return out
