from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Optional

from loguru import logger

from ..server.storage import JsonStore

LOCAL_NAMES = ("player1", "player2", "cpu")
DISPLAY_NAMES = {"player1": "Player 1", "player2": "Player 2", "cpu": "Computer"}


@dataclass(slots=True)
class ScoreLine:
    wins: int = 0
    losses: int = 0

    def ratio(self) -> float:
        if self.losses == 0:
            return float(self.wins)
        return self.wins / self.losses


class Scoreboard:
    """Local win/loss tally for player1, player2 and the CPU.

    Names that are not local seats (online nicks) are ignored.
    """

    def __init__(self, path: Optional[str | os.PathLike[str]] = None):
        self._store = JsonStore(path) if path is not None else None
        self.scores: Dict[str, ScoreLine] = {name: ScoreLine() for name in LOCAL_NAMES}
        if self._store is not None:
            for name, line in self._store.load().items():
                if name in self.scores:
                    self.scores[name] = ScoreLine(int(line.get("wins", 0)), int(line.get("losses", 0)))

    def record(self, winner: str, loser: str) -> bool:
        updated = False
        if winner in self.scores:
            self.scores[winner].wins += 1
            updated = True
        if loser in self.scores:
            self.scores[loser].losses += 1
            updated = True
        if updated:
            logger.debug(f"Scoreboard: {winner} beat {loser}")
            self.save()
        return updated

    def ratio(self, name: str) -> float:
        return self.scores[name].ratio()

    def rows(self) -> list[dict]:
        return [
            {
                "name": DISPLAY_NAMES[name],
                "wins": line.wins,
                "losses": line.losses,
                "ratio": round(line.ratio(), 2),
            }
            for name, line in self.scores.items()
        ]

    def save(self) -> None:
        if self._store is not None:
            self._store.save(
                {name: {"wins": s.wins, "losses": s.losses} for name, s in self.scores.items()}
            )
