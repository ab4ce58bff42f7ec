"""Flat cell-array view of the board used by the multiplayer server.

Index ``i`` in ``0 .. 4*size-1`` counts each player's distance from their
own start: rows are numbered from the initial player's side and rows 0 and
2 run mirrored, so the index maps onto the same graph the local engine uses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from ..engine.board import Board
from ..engine.config import config
from ..engine.rules import MoverContext, home_row_clear, last_row_for, legal_destinations
from ..engine.types import Cell

BLUE = "Blue"
RED = "Red"
COLORS = (BLUE, RED)
# The initial player (Blue) starts on the bottom row
START_ROW = {BLUE: 3, RED: 0}


def index_to_cell(index: int, size: int) -> Cell:
    row = (config.ROWS - 1) - index // size
    offset = index % size
    col = size - 1 - offset if row in (0, 2) else offset
    return Cell(row, col)


def cell_to_index(row: int, col: int, size: int) -> int:
    offset = size - 1 - col if row in (0, 2) else col
    return ((config.ROWS - 1) - row) * size + offset


@dataclass(slots=True)
class ServerPiece:
    color: str
    in_motion: bool = False
    reached_last_row: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "color": self.color,
            "inMotion": self.in_motion,
            "reachedLastRow": self.reached_last_row,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ServerPiece":
        return cls(
            color=data["color"],
            in_motion=bool(data.get("inMotion", False)),
            reached_last_row=bool(data.get("reachedLastRow", False)),
        )


def init_pieces(size: int) -> List[Optional[ServerPiece]]:
    pieces: List[Optional[ServerPiece]] = [None] * (config.ROWS * size)
    for i in range(size):
        pieces[i] = ServerPiece(BLUE)
    for i in range(3 * size, 4 * size):
        pieces[i] = ServerPiece(RED)
    return pieces


def pieces_to_json(pieces: Iterable[Optional[ServerPiece]]) -> list:
    return [p.to_dict() if p is not None else None for p in pieces]


def pieces_from_json(data: Iterable[Optional[dict]]) -> List[Optional[ServerPiece]]:
    return [ServerPiece.from_dict(p) if p is not None else None for p in data]


class FlatBoard:
    """Legality and move application over a flat piece array (mutated in place)."""

    def __init__(self, pieces: List[Optional[ServerPiece]], size: int, layout: Optional[str] = None):
        if len(pieces) != config.ROWS * size:
            raise ValueError(f"expected {config.ROWS * size} cells, got {len(pieces)}")
        self.pieces = pieces
        self.size = size
        self.board = Board.for_size(size, layout)

    def cells_of(self, color: str) -> frozenset[Cell]:
        return frozenset(
            index_to_cell(i, self.size)
            for i, p in enumerate(self.pieces)
            if p is not None and p.color == color
        )

    def count(self, color: str) -> int:
        return sum(1 for p in self.pieces if p is not None and p.color == color)

    def _context(self, piece: ServerPiece) -> MoverContext:
        start_row = START_ROW[piece.color]
        own = self.cells_of(piece.color)
        return MoverContext(
            start_row=start_row,
            has_moved=piece.in_motion,
            reached_last_row=piece.reached_last_row,
            own_cells=own,
            home_row_clear=home_row_clear(own, start_row),
        )

    def destinations(self, from_index: int, roll: int, color: str) -> list[int]:
        piece = self.pieces[from_index]
        if piece is None or piece.color != color:
            return []
        cells = legal_destinations(
            self.board.graph, index_to_cell(from_index, self.size), roll, self._context(piece)
        )
        return sorted(cell_to_index(c.row, c.col, self.size) for c in cells)

    def has_any_move(self, color: str, roll: int) -> bool:
        return any(
            self.destinations(i, roll, color)
            for i, p in enumerate(self.pieces)
            if p is not None and p.color == color
        )

    def apply_move(self, from_index: int, to_index: int) -> Optional[ServerPiece]:
        """Move without validation; returns the captured piece, if any."""
        piece = self.pieces[from_index]
        if piece is None:
            raise ValueError(f"no piece at {from_index}")
        captured = self.pieces[to_index]
        self.pieces[to_index] = piece
        self.pieces[from_index] = None
        piece.in_motion = True
        if index_to_cell(to_index, self.size).row == last_row_for(START_ROW[piece.color]):
            piece.reached_last_row = True
        return captured
