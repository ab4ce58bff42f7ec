from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

import numpy as np

from ..engine.config import config
from ..engine.types import MoveChoice, PieceMoves, PieceState
from .base import BaseStrategy
from .position import Position, PositionMove

if TYPE_CHECKING:
    from ..engine.game import TabGame

WIN_SCORE = 10_000.0


def evaluate(position: Position, me: int) -> float:
    """Static score of ``position`` from player ``me``'s point of view."""
    winner = position.winner()
    if winner is not None:
        return WIN_SCORE if winner == me else -WIN_SCORE

    def progress(pieces) -> float:
        total = 0.0
        for piece in pieces:
            if piece.state == PieceState.LAST_ROW:
                total += 20.0
            elif piece.state != PieceState.NOT_MOVED:
                total += 5.0
        return total

    mine, theirs = position.pieces[me], position.pieces[1 - me]
    material = 100.0 * (len(mine) - len(theirs))
    return material + progress(mine) - progress(theirs)


@dataclass(slots=True)
class ExpectiminimaxStrategy(BaseStrategy):
    """Depth-limited expectiminimax over stick throws.

    Chance nodes average over the five roll values; choice nodes maximise on
    our turns and minimise on the opponent's. A roll of 1, 4 or 6 keeps the
    mover, so the same role plays the next layer.
    """

    name: ClassVar[str] = "expectiminimax"
    description: ClassVar[str] = "Hard: searches ahead over every stick throw"

    depth: int = config.SEARCH_DEPTH
    rng: random.Random = field(default_factory=random.Random, repr=False)
    nodes: int = field(default=0, init=False, repr=False)
    _rolls: tuple[int, ...] = field(default=(), init=False, repr=False)
    _probs: np.ndarray = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self._rolls = tuple(config.ROLL_PROBABILITIES)
        self._probs = np.array([config.ROLL_PROBABILITIES[r] for r in self._rolls], dtype=float)

    def select_move(self, game: "TabGame", legal: list[PieceMoves]) -> MoveChoice:
        root = Position.from_game(game)
        me = root.to_move
        roll = game.stick_value
        self.nodes = 0

        best_score = float("-inf")
        best: list[PositionMove] = []
        for move in root.legal_moves(roll):
            score = self._value(root.apply(move, roll), self.depth, me)
            if score > best_score:
                best_score, best = score, [move]
            elif score == best_score:
                best.append(move)

        chosen = self.rng.choice(best)
        piece = game.current_player.pieces[chosen.piece_index]
        return MoveChoice(piece, chosen.dest)

    def _value(self, position: Position, depth: int, me: int) -> float:
        self.nodes += 1
        if depth <= 0 or position.winner() is not None:
            return evaluate(position, me)

        maximizing = position.to_move == me
        values = np.empty(len(self._rolls), dtype=float)
        for i, roll in enumerate(self._rolls):
            moves = position.legal_moves(roll)
            if not moves:
                values[i] = self._value(position.skip(roll), depth - 1, me)
                continue
            children = [self._value(position.apply(m, roll), depth - 1, me) for m in moves]
            values[i] = max(children) if maximizing else min(children)
        return float(np.dot(self._probs, values))

