from __future__ import annotations

import random
from typing import TYPE_CHECKING, ClassVar, Optional

from loguru import logger

from ..engine.types import MoveChoice, PieceMoves

if TYPE_CHECKING:
    from ..engine.game import TabGame


class BaseStrategy:
    """Base class for CPU strategies with shared best-score move selection."""

    name: ClassVar[str] = "base"
    description: ClassVar[str] = ""

    rng: random.Random

    def choose(self, game: "TabGame") -> Optional[MoveChoice]:
        """Pick a move for the current player, or None when nothing is legal."""
        legal = game.legal_moves()
        if not legal:
            return None
        return self.select_move(game, legal)

    def select_move(self, game: "TabGame", legal: list[PieceMoves]) -> MoveChoice:
        scored = [(choice, self._score_move(game, choice)) for choice in self._flatten(legal)]
        best = max(score for _, score in scored)
        ties = [choice for choice, score in scored if score == best]
        return self.rng.choice(ties)

    def _score_move(
        self, game: "TabGame", choice: MoveChoice
    ) -> float:  # pragma: no cover - abstract
        raise NotImplementedError

    @staticmethod
    def _flatten(legal: list[PieceMoves]) -> list[MoveChoice]:
        return [MoveChoice(pm.piece, dest) for pm in legal for dest in pm.moves]


def cpu_move(game: "TabGame", strategy: BaseStrategy) -> bool:
    """Let ``strategy`` play the rolled turn: skip without moves, else move.

    Returns False only when there is nothing to do (no active roll).
    """
    if game.over or game.stick_value is None:
        return False
    choice = strategy.choose(game)
    if choice is None:
        return game.auto_skip_if_no_moves()
    if not game.apply_choice(choice):
        logger.warning(f"{strategy.name} chose an illegal move {choice}; skipping")
        return game.auto_skip_if_no_moves()
    return True
