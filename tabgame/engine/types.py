from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, List, NamedTuple, Optional

if TYPE_CHECKING:
    from .piece import Piece
    from .player import Player


class Cell(NamedTuple):
    row: int
    col: int


class PieceState(str, Enum):
    NOT_MOVED = "not-moved"
    FIRST_ROW = "first-row"
    MOVED = "moved"
    LAST_ROW = "last-row"


class PlayerKind(str, Enum):
    HUMAN = "human"
    CPU = "cpu"


class OccupantOwner(str, Enum):
    ME = "me"
    OPPONENT = "opponent"


class TurnPhase(str, Enum):
    AWAITING_ROLL = "awaiting-roll"
    ROLLED = "rolled"
    WAITING_FOR_PASS = "waiting-for-pass"
    GAME_OVER = "game-over"


class Difficulty(IntEnum):
    EASY = 0
    MEDIUM = 1
    HARD = 2


@dataclass(slots=True)
class Occupant:
    piece: "Piece"
    owner: OccupantOwner


@dataclass(slots=True)
class PieceMoves:
    piece: "Piece"
    moves: List[Cell] = field(default_factory=list)


@dataclass(slots=True)
class MoveChoice:
    piece: "Piece"
    dest: Cell


@dataclass(slots=True)
class GameOverStatus:
    over: bool
    winner: Optional["Player"] = None


@dataclass(slots=True)
class MoveResult:
    moved: bool
    origin: Optional[Cell] = None
    dest: Optional[Cell] = None
    captured: Optional["Piece"] = None
    extra_turn: bool = False
    game_over: bool = False
