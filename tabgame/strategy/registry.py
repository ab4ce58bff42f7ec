from __future__ import annotations

import random
from typing import Dict, Optional, Type

from ..engine.types import Difficulty
from .base import BaseStrategy
from .expectiminimax import ExpectiminimaxStrategy
from .heuristic import HeuristicStrategy
from .random_strategy import RandomStrategy

STRATEGY_REGISTRY: Dict[str, Type[BaseStrategy]] = {
    RandomStrategy.name: RandomStrategy,
    HeuristicStrategy.name: HeuristicStrategy,
    ExpectiminimaxStrategy.name: ExpectiminimaxStrategy,
}

DIFFICULTY_STRATEGY: Dict[Difficulty, str] = {
    Difficulty.EASY: RandomStrategy.name,
    Difficulty.MEDIUM: HeuristicStrategy.name,
    Difficulty.HARD: ExpectiminimaxStrategy.name,
}


def create(strategy_name: str, seed: Optional[int] = None, **kwargs) -> BaseStrategy:
    cls = STRATEGY_REGISTRY.get(strategy_name.lower())
    if cls is None:
        raise KeyError(f"Unknown strategy '{strategy_name}'.")
    return cls(rng=random.Random(seed), **kwargs)


def for_difficulty(level: Difficulty | int | str, seed: Optional[int] = None) -> BaseStrategy:
    """Strategy for a UI difficulty level (0/1/2 or easy/medium/hard)."""
    if isinstance(level, str) and not level.isdigit():
        difficulty = Difficulty[level.upper()]
    else:
        difficulty = Difficulty(int(level))
    return create(DIFFICULTY_STRATEGY[difficulty], seed=seed)


def available() -> Dict[str, Type[BaseStrategy]]:
    return dict(STRATEGY_REGISTRY)
