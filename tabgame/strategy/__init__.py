from .base import BaseStrategy, cpu_move
from .expectiminimax import ExpectiminimaxStrategy, evaluate
from .heuristic import HeuristicStrategy
from .position import PiecePos, Position, PositionMove
from .random_strategy import RandomStrategy
from .registry import available, create, for_difficulty

__all__ = [
    "available",
    "BaseStrategy",
    "cpu_move",
    "create",
    "evaluate",
    "ExpectiminimaxStrategy",
    "for_difficulty",
    "HeuristicStrategy",
    "PiecePos",
    "Position",
    "PositionMove",
    "RandomStrategy",
]
