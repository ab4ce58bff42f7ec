from .board import Board
from .config import config, timing
from .game import TabGame, default_players
from .graph import TrackGraph
from .piece import Piece
from .player import Player
from .rules import MoverContext, is_extra_turn, legal_destinations
from .sticks import ROLL_NAMES, StickThrow, throw_sticks
from .types import (
    Cell,
    Difficulty,
    GameOverStatus,
    MoveChoice,
    MoveResult,
    Occupant,
    OccupantOwner,
    PieceMoves,
    PieceState,
    PlayerKind,
    TurnPhase,
)

__all__ = [
    "Board",
    "Cell",
    "config",
    "default_players",
    "Difficulty",
    "GameOverStatus",
    "is_extra_turn",
    "legal_destinations",
    "MoveChoice",
    "MoverContext",
    "MoveResult",
    "Occupant",
    "OccupantOwner",
    "Piece",
    "PieceMoves",
    "PieceState",
    "Player",
    "PlayerKind",
    "ROLL_NAMES",
    "StickThrow",
    "TabGame",
    "throw_sticks",
    "timing",
    "TrackGraph",
    "TurnPhase",
]
