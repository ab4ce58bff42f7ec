from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from ..engine.types import Cell, MoveResult

if TYPE_CHECKING:
    from ..engine.game import TabGame
    from ..engine.piece import Piece


@dataclass(slots=True)
class SelectionState:
    """Click-to-select, click-to-move cache kept outside the rules engine."""

    piece: Optional["Piece"] = None
    _moves: List[Cell] = field(default_factory=list)
    last_move: Optional[MoveResult] = None

    @property
    def moves(self) -> List[Cell]:
        return list(self._moves)

    def clear(self) -> None:
        self.piece = None
        self._moves = []

    def select_piece_at(self, game: "TabGame", row: int, col: int) -> List[Cell]:
        piece = game.current_player.piece_at(row, col)
        if piece is None or game.stick_value is None:
            return []
        moves = game.possible_moves(piece, game.stick_value)
        if not moves:
            return []
        self.piece = piece
        self._moves = moves
        return self.moves

    def select_or_move_at(self, game: "TabGame", row: int, col: int) -> bool:
        """Select the mover's piece at (row, col), or move the selection there."""
        self.last_move = None
        if game.current_player.piece_at(row, col) is not None:
            return bool(self.select_piece_at(game, row, col))
        if self.piece is None or Cell(row, col) not in self._moves:
            return False
        if not game.move(self.piece, (row, col)):
            return False
        self.last_move = game.last_move
        self.clear()
        return True
