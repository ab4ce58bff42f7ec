from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .config import config
from .rules import last_row_for, next_state
from .types import Cell, PieceState

if TYPE_CHECKING:  # avoid a runtime cycle with player.py
    from .player import Player


@dataclass(slots=True, eq=False)
class Piece:
    """A playing piece: owner, grid position and progress state.

    Legal destinations are computed by the rules module, not here.
    """

    owner: "Player"
    row: int
    col: int
    state: PieceState = PieceState.NOT_MOVED

    @property
    def cell(self) -> Cell:
        return Cell(self.row, self.col)

    @property
    def last_row(self) -> int:
        """The opponent's start row, where this piece scores."""
        return last_row_for(self.owner.start_row)

    def move_to(self, row: int, col: int) -> None:
        self.row = row
        self.col = col
        self.state = next_state(self.state, row, self.owner.start_row)

    def has_been_in_last_row(self) -> bool:
        return self.state == PieceState.LAST_ROW

    def is_currently_in_last_row(self) -> bool:
        return self.row == self.last_row

    def can_move_first(self, roll: int) -> bool:
        return not (self.state == PieceState.NOT_MOVED and roll != config.FIRST_MOVE_ROLL)

    def __repr__(self) -> str:
        return f"Piece({self.owner.name} at {self.row},{self.col}: {self.state.value})"
