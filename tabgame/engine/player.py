from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .piece import Piece
from .rules import home_row_clear
from .types import Cell, PieceState, PlayerKind


@dataclass(slots=True, eq=False)
class Player:
    name: str
    start_row: int
    kind: PlayerKind = PlayerKind.HUMAN
    skin: str = ""
    pieces: List[Piece] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.start_row not in (0, 3):
            raise ValueError(f"start_row must be 0 or 3, got {self.start_row}")

    @classmethod
    def with_pieces(
        cls, name: str, start_row: int, columns: int, kind: PlayerKind = PlayerKind.HUMAN, skin: str = ""
    ) -> "Player":
        player = cls(name=name, start_row=start_row, kind=kind, skin=skin)
        for col in range(columns):
            player.add_piece(Piece(player, start_row, col))
        return player

    @property
    def is_cpu(self) -> bool:
        return self.kind == PlayerKind.CPU

    def add_piece(self, piece: Piece) -> None:
        self.pieces.append(piece)

    def remove_piece(self, piece: Piece) -> None:
        if piece in self.pieces:
            self.pieces.remove(piece)

    def piece_at(self, row: int, col: int) -> Optional[Piece]:
        return next((p for p in self.pieces if p.row == row and p.col == col), None)

    def pieces_by_state(self, state: PieceState) -> list[Piece]:
        return [p for p in self.pieces if p.state == state]

    def occupied_cells(self) -> frozenset[Cell]:
        return frozenset(p.cell for p in self.pieces)

    def home_row_clear(self) -> bool:
        """True once no piece of this player sits on its start row."""
        return home_row_clear(self.occupied_cells(), self.start_row)

    def has_lost(self) -> bool:
        return not self.pieces
