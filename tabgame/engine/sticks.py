from __future__ import annotations

import random
from dataclasses import dataclass

from .config import config

ROLL_NAMES = {
    1: "Tâb",
    2: "Itneyn",
    3: "Teláteh",
    4: "Arba'ah",
    6: "Sitteh",
}


@dataclass(frozen=True, slots=True)
class StickThrow:
    sticks: tuple[int, ...]
    value: int

    @property
    def name(self) -> str:
        return ROLL_NAMES[self.value]


def stick_value(sticks: tuple[int, ...] | list[int]) -> int:
    """All sticks down (sum 0) is the best throw and counts as 6."""
    total = sum(1 for s in sticks if s)
    return 6 if total == 0 else total


def throw_sticks(rng: random.Random | None = None) -> StickThrow:
    rng = rng or random
    sticks = tuple(1 if rng.random() < 0.5 else 0 for _ in range(config.NUM_STICKS))
    return StickThrow(sticks=sticks, value=stick_value(sticks))
