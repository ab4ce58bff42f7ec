"""
Tâb
A race-and-capture board game on a 4 x N track: local rules engine,
CPU opponents and an authoritative multiplayer server.
"""

from tabgame.engine import (
    Board,
    Cell,
    Difficulty,
    Piece,
    PieceState,
    Player,
    PlayerKind,
    TabGame,
    TrackGraph,
)

__version__ = "0.1.0"

__all__ = [
    "Board",
    "Cell",
    "Difficulty",
    "Piece",
    "PieceState",
    "Player",
    "PlayerKind",
    "TabGame",
    "TrackGraph",
]
