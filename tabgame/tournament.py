#!/usr/bin/env python3
"""
CPU vs CPU Tâb tournament.
Plays a series of games between two registered strategies, alternating who
starts, and reports win-rates, game lengths and captures.
"""

from __future__ import annotations

import argparse
import random
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
from loguru import logger

from tabgame.engine.config import config
from tabgame.engine.game import TabGame
from tabgame.engine.player import Player
from tabgame.engine.types import PlayerKind
from tabgame.strategy import BaseStrategy, available, cpu_move, create


@dataclass(slots=True)
class TournamentConfig:
    first: str
    second: str
    games: int
    size: int
    seed: Optional[int]
    max_turns: int
    depth: Optional[int] = None


@dataclass(slots=True)
class GameRecord:
    starter: str
    winner: Optional[str]
    turns: int
    captures: int
    winner_seat: Optional[int] = None


@dataclass(slots=True)
class TournamentSummary:
    first: str
    second: str
    records: List[GameRecord] = field(default_factory=list)

    def wins(self, name: str) -> int:
        return sum(1 for r in self.records if r.winner == name)

    @property
    def draws(self) -> int:
        return sum(1 for r in self.records if r.winner is None)

    def win_rate(self, name: str) -> float:
        return self.wins(name) / len(self.records) if self.records else 0.0

    def turn_stats(self) -> tuple[float, float]:
        turns = np.array([r.turns for r in self.records], dtype=float)
        if turns.size == 0:
            return 0.0, 0.0
        return float(turns.mean()), float(turns.std())

    def mean_captures(self) -> float:
        if not self.records:
            return 0.0
        return float(np.mean([r.captures for r in self.records]))


def build_parser() -> argparse.ArgumentParser:
    names = sorted(available())
    parser = argparse.ArgumentParser(description="Tâb CPU vs CPU tournament")
    parser.add_argument("--first", choices=names, default="heuristic")
    parser.add_argument("--second", choices=names, default="random")
    parser.add_argument("--games", type=int, default=100)
    parser.add_argument("--size", type=int, default=config.DEFAULT_COLUMNS)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--max-turns", type=int, default=config.MAX_TURNS)
    parser.add_argument("--depth", type=int, default=None, help="Search depth for expectiminimax")
    return parser


def parse_args(args: list[str] | None = None) -> TournamentConfig:
    ns = build_parser().parse_args(args=args)
    if ns.games <= 0:
        raise SystemExit("--games must be positive")
    return TournamentConfig(
        first=ns.first,
        second=ns.second,
        games=ns.games,
        size=ns.size,
        seed=ns.seed,
        max_turns=ns.max_turns,
        depth=ns.depth,
    )


def _make_strategy(name: str, seed: Optional[int], depth: Optional[int]) -> BaseStrategy:
    if name == "expectiminimax" and depth is not None:
        return create(name, seed=seed, depth=depth)
    return create(name, seed=seed)


def play_game(
    starter: BaseStrategy,
    other: BaseStrategy,
    size: int,
    rng: random.Random,
    max_turns: int = config.MAX_TURNS,
) -> GameRecord:
    """Play one game; ``starter`` takes the bottom row and moves first."""
    players = [
        Player.with_pieces(f"{starter.name}#0", 3, size, PlayerKind.CPU, skin="blue"),
        Player.with_pieces(f"{other.name}#1", 0, size, PlayerKind.CPU, skin="red"),
    ]
    game = TabGame(size, players=players, rng=rng)
    seats = [starter, other]

    turns = captures = 0
    while not game.over and turns < max_turns:
        game.start_turn()
        before = game.last_move
        cpu_move(game, seats[game.current_index])
        if game.last_move is not before and game.last_move.captured is not None:
            captures += 1
        turns += 1

    seat = game.players.index(game.winner) if game.winner is not None else None
    winner = seats[seat].name if seat is not None else None
    return GameRecord(starter.name, winner, turns, captures, seat)


def run_tournament(cfg: TournamentConfig) -> TournamentSummary:
    rng = random.Random(cfg.seed)
    first = _make_strategy(cfg.first, rng.randrange(2**32), cfg.depth)
    second = _make_strategy(cfg.second, rng.randrange(2**32), cfg.depth)
    # mirror matches need distinct labels
    labels = (cfg.first, cfg.second if cfg.second != cfg.first else f"{cfg.second}-2")

    summary = TournamentSummary(*labels)
    for i in range(cfg.games):
        swapped = i % 2 == 1
        starter, other = (second, first) if swapped else (first, second)
        record = play_game(starter, other, cfg.size, rng, cfg.max_turns)
        record.starter = labels[int(swapped)]
        if record.winner_seat is not None:
            record.winner = labels[record.winner_seat ^ int(swapped)]
        summary.records.append(record)
        logger.debug(f"Game {i + 1}: {record}")
    return summary


def report(summary: TournamentSummary) -> None:
    total = len(summary.records)
    logger.info(f"{summary.first} vs {summary.second}: {total} games")
    for name in (summary.first, summary.second):
        logger.info(f"  {name:<16} wins={summary.wins(name):>4}  rate={summary.win_rate(name):.1%}")
    if summary.draws:
        logger.warning(f"  {summary.draws} games hit the turn limit")
    mean_turns, std_turns = summary.turn_stats()
    logger.info(f"  turns/game {mean_turns:.1f} ± {std_turns:.1f}, captures/game {summary.mean_captures():.2f}")


def main(args: list[str] | None = None) -> None:
    report(run_tournament(parse_args(args)))


if __name__ == "__main__":
    main()
