from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Optional

from ..engine.board import Board
from ..engine.graph import TrackGraph
from ..engine.rules import (
    MoverContext,
    home_row_clear,
    is_extra_turn,
    legal_destinations,
    next_state,
)
from ..engine.types import Cell, PieceState

if TYPE_CHECKING:
    from ..engine.game import TabGame


@dataclass(frozen=True, slots=True)
class PiecePos:
    row: int
    col: int
    state: PieceState

    @property
    def cell(self) -> Cell:
        return Cell(self.row, self.col)


@dataclass(frozen=True, slots=True)
class PositionMove:
    piece_index: int
    dest: Cell


@dataclass(frozen=True, slots=True)
class Position:
    """Immutable snapshot of a game used by search.

    Every transition returns a new Position, so a search branch can never
    leave shared state half-updated.
    """

    columns: int
    layout: str
    start_rows: tuple[int, int]
    pieces: tuple[tuple[PiecePos, ...], tuple[PiecePos, ...]]
    to_move: int

    @classmethod
    def from_game(cls, game: "TabGame") -> "Position":
        return cls(
            columns=game.columns,
            layout=game.board.layout,
            start_rows=(game.players[0].start_row, game.players[1].start_row),
            pieces=tuple(
                tuple(PiecePos(p.row, p.col, p.state) for p in player.pieces)
                for player in game.players
            ),
            to_move=game.current_index,
        )

    @property
    def graph(self) -> TrackGraph:
        return Board.for_size(self.columns, self.layout).graph

    def winner(self) -> Optional[int]:
        if not self.pieces[0]:
            return 1
        if not self.pieces[1]:
            return 0
        return None

    def _context(self, player: int, piece: PiecePos) -> MoverContext:
        cells = frozenset(p.cell for p in self.pieces[player])
        start_row = self.start_rows[player]
        return MoverContext(
            start_row=start_row,
            has_moved=piece.state != PieceState.NOT_MOVED,
            reached_last_row=piece.state == PieceState.LAST_ROW,
            own_cells=cells,
            home_row_clear=home_row_clear(cells, start_row),
        )

    def legal_moves(self, roll: int) -> list[PositionMove]:
        mover = self.to_move
        graph = self.graph
        out: list[PositionMove] = []
        for idx, piece in enumerate(self.pieces[mover]):
            for dest in legal_destinations(graph, piece.cell, roll, self._context(mover, piece)):
                out.append(PositionMove(idx, dest))
        return out

    def _next_to_move(self, roll: int) -> int:
        return self.to_move if is_extra_turn(roll) else 1 - self.to_move

    def apply(self, move: PositionMove, roll: int) -> "Position":
        mover = self.to_move
        start_row = self.start_rows[mover]
        moved = self.pieces[mover][move.piece_index]
        landed = PiecePos(move.dest.row, move.dest.col, next_state(moved.state, move.dest.row, start_row))
        mine = tuple(
            landed if i == move.piece_index else p for i, p in enumerate(self.pieces[mover])
        )
        theirs = tuple(p for p in self.pieces[1 - mover] if p.cell != move.dest)
        pieces = (mine, theirs) if mover == 0 else (theirs, mine)
        return replace(self, pieces=pieces, to_move=self._next_to_move(roll))

    def skip(self, roll: int) -> "Position":
        return replace(self, to_move=self._next_to_move(roll))
