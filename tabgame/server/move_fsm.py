from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import SequenceError


class MoveStep(str, Enum):
    FROM = "from"
    TO = "to"


@dataclass(slots=True)
class MoveFSM:
    """Two-request move commit: pick a piece (FROM), then its destination (TO).

    Choosing the selected cell again cancels; a timeout or a turn change
    resets to FROM.
    """

    step: MoveStep = MoveStep.FROM
    selected: Optional[int] = None

    def select(self, cell: int) -> None:
        if self.step != MoveStep.FROM:
            raise SequenceError("A piece is already selected")
        self.step = MoveStep.TO
        self.selected = cell

    def cancel(self) -> None:
        if self.step != MoveStep.TO:
            raise SequenceError("No piece selected")
        self.reset()

    def commit(self) -> int:
        if self.step != MoveStep.TO or self.selected is None:
            raise SequenceError("No piece selected")
        origin = self.selected
        self.reset()
        return origin

    def reset(self) -> None:
        self.step = MoveStep.FROM
        self.selected = None

    def selected_list(self) -> list[int]:
        return [] if self.selected is None else [self.selected]
