from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from ..engine.types import MoveChoice, PieceMoves
from .base import BaseStrategy

if TYPE_CHECKING:
    from ..engine.game import TabGame


@dataclass(slots=True)
class RandomStrategy(BaseStrategy):
    """Uniform choice over every legal (piece, destination) pair."""

    name: ClassVar[str] = "random"
    description: ClassVar[str] = "Easy: plays any legal move"

    rng: random.Random = field(default_factory=random.Random, repr=False)

    def select_move(self, game: "TabGame", legal: list[PieceMoves]) -> MoveChoice:
        return self.rng.choice(self._flatten(legal))
