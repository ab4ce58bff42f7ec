from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from ..engine.types import MoveChoice, OccupantOwner, PieceState
from .base import BaseStrategy

if TYPE_CHECKING:
    from ..engine.game import TabGame


@dataclass(slots=True)
class HeuristicStrategy(BaseStrategy):
    """One-ply scorer: captures first, then waking pieces, then leaving home."""

    name: ClassVar[str] = "heuristic"
    description: ClassVar[str] = "Medium: greedy capture-first scoring"

    capture_weight: float = 10.0
    wake_bonus: float = 1.0
    leave_home_bonus: float = 0.5
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def _score_move(self, game: "TabGame", choice: MoveChoice) -> float:
        score = 0.0
        occupant = game.cell_occupant(*choice.dest)
        if occupant is not None and occupant.owner == OccupantOwner.OPPONENT:
            score += self.capture_weight
        piece = choice.piece
        if piece.state == PieceState.NOT_MOVED:
            score += self.wake_bonus
        if piece.row == piece.owner.start_row:
            score += self.leave_home_bonus
        return score
