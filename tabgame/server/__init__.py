from .app import create_app
from .broadcast import BroadcastHub, format_sse
from .config import ServerConfig, server_config
from .errors import (
    AuthenticationError,
    IllegalMoveError,
    InvalidRequestError,
    OperationResult,
    SequenceError,
    TabServerError,
    TurnError,
    UnknownGameError,
)
from .flat_board import FlatBoard, ServerPiece, cell_to_index, index_to_cell, init_pieces
from .game_manager import Dice, GameManager, GameSession
from .move_fsm import MoveFSM, MoveStep
from .ranking import RankingBoard
from .storage import JsonStore
from .users import UserRegistry

__all__ = [
    "AuthenticationError",
    "BroadcastHub",
    "cell_to_index",
    "create_app",
    "Dice",
    "FlatBoard",
    "format_sse",
    "GameManager",
    "GameSession",
    "IllegalMoveError",
    "index_to_cell",
    "init_pieces",
    "InvalidRequestError",
    "JsonStore",
    "MoveFSM",
    "MoveStep",
    "OperationResult",
    "RankingBoard",
    "SequenceError",
    "server_config",
    "ServerConfig",
    "ServerPiece",
    "TabServerError",
    "TurnError",
    "UnknownGameError",
    "UserRegistry",
]
