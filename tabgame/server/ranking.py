from __future__ import annotations

from typing import Dict, List, Optional

from .storage import JsonStore


def ranking_key(group: int, size: int) -> str:
    return f"{group}-{size}"


class RankingBoard:
    """Per (group, size) tallies of games played and victories."""

    def __init__(self, store: Optional[JsonStore] = None, limit: int = 10):
        self._store = store
        self.limit = limit
        self._rankings: Dict[str, List[dict]] = store.load({}) if store is not None else {}

    def _entry(self, table: List[dict], nick: str) -> dict:
        for entry in table:
            if entry["nick"] == nick:
                return entry
        entry = {"nick": nick, "games": 0, "victories": 0}
        table.append(entry)
        return entry

    def record(self, group: int, size: int, winner: str, loser: str) -> None:
        table = self._rankings.setdefault(ranking_key(group, size), [])
        won = self._entry(table, winner)
        won["games"] += 1
        won["victories"] += 1
        self._entry(table, loser)["games"] += 1
        if self._store is not None:
            self._store.save(self._rankings)

    def ranking(self, group: int, size: int, limit: Optional[int] = None) -> List[dict]:
        table = self._rankings.get(ranking_key(group, size), [])
        ordered = sorted(table, key=lambda e: (-e["victories"], e["games"]))
        return [dict(e) for e in ordered[: limit or self.limit]]
