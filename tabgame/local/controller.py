from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from loguru import logger

from ..engine.config import Timing, config, timing as default_timing
from ..engine.game import TabGame, default_players
from ..engine.player import Player
from ..engine.rules import is_extra_turn
from ..engine.sticks import ROLL_NAMES
from ..engine.types import Cell, Difficulty
from ..strategy import BaseStrategy, cpu_move, for_difficulty
from .scheduler import CallbackQueue, ImmediateScheduler, Scheduler
from .scoreboard import Scoreboard
from .selection import SelectionState


class MatchMode(str, Enum):
    PVC = "pvc"
    PVP = "pvp"


class MatchEventKind(str, Enum):
    START = "start"
    ROLL = "roll"
    SKIP = "skip"
    MOVE = "move"
    CAPTURE = "capture"
    PASS = "pass"
    TURN = "turn"
    GAME_OVER = "game_over"


@dataclass(slots=True)
class MatchEvent:
    kind: MatchEventKind
    player: str
    message: str = ""
    value: Optional[int] = None
    origin: Optional[Cell] = None
    dest: Optional[Cell] = None


Listener = Callable[[MatchEvent], None]

DISPLAY = {"player1": "Player 1", "player2": "Player 2", "cpu": "CPU"}


def display_name(name: str) -> str:
    return DISPLAY.get(name, name)


class LocalMatch:
    """Drives one local game (player vs CPU or hot-seat) without a UI.

    Animation and CPU "thinking" pauses go through ``scheduler``; the stick
    flip holds ``sticks`` busy so no second roll can start until it settles.
    Listeners receive a MatchEvent for everything a UI would render.
    """

    def __init__(
        self,
        mode: MatchMode = MatchMode.PVC,
        columns: int = config.DEFAULT_COLUMNS,
        difficulty: Difficulty | int = Difficulty.MEDIUM,
        first_player: Optional[str] = None,
        scheduler: Optional[Scheduler] = None,
        scoreboard: Optional[Scoreboard] = None,
        timing: Timing = default_timing,
        seed: Optional[int] = None,
        strategy: Optional[BaseStrategy] = None,
    ):
        self.mode = MatchMode(mode)
        rng = random.Random(seed)
        vs_cpu = self.mode == MatchMode.PVC
        self.game = TabGame(columns, players=default_players(columns, vs_cpu=vs_cpu), rng=rng)
        if first_player is not None:
            names = [p.name for p in self.game.players]
            if first_player not in names:
                raise ValueError(f"Unknown first player {first_player!r}; expected one of {names}")
            self.game.current_index = names.index(first_player)
        self.strategy: Optional[BaseStrategy] = None
        if vs_cpu:
            self.strategy = strategy or for_difficulty(difficulty, seed=seed)
        self.scheduler: Scheduler = scheduler or ImmediateScheduler()
        self.scoreboard = scoreboard
        self.timing = timing
        self.sticks = CallbackQueue()
        self.selection = SelectionState()
        self.cpu_busy = False
        self._listeners: List[Listener] = []

    # --- Events ---
    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _emit(
        self, kind: MatchEventKind, message: str = "", player: Optional[str] = None, **kwargs
    ) -> None:
        event = MatchEvent(kind, player or self.game.current_player.name, message, **kwargs)
        logger.debug(f"[{kind.value}] {message}")
        for listener in list(self._listeners):
            listener(event)

    # --- Helpers ---
    def _is_cpu_turn(self) -> bool:
        return self.mode == MatchMode.PVC and self.game.current_player.is_cpu

    def _flip(self, after: Callable[[], None]) -> None:
        self.sticks.begin()
        self.scheduler.call_later(self.timing.flip_anim_ms, self.sticks.settle)
        self.sticks.run_after_settle(after)

    def _announce_roll(self, value: int) -> None:
        name = display_name(self.game.current_player.name)
        self._emit(
            MatchEventKind.ROLL, f"{name} rolled a {ROLL_NAMES.get(value, value)} ({value})!", value=value
        )

    def _emit_move(self, mover: str) -> None:
        result = self.game.last_move
        if result is None:
            return
        shown = display_name(mover)
        self._emit(
            MatchEventKind.MOVE, f"{shown} moved", player=mover, origin=result.origin, dest=result.dest
        )
        if result.captured is not None:
            self._emit(MatchEventKind.CAPTURE, f"{shown} captured a piece", player=mover, dest=result.dest)

    def _finish(self) -> None:
        winner = self.game.winner
        loser = self.game.players[1 - self.game.players.index(winner)]
        self.cpu_busy = False
        self.selection.clear()
        if self.scoreboard is not None:
            self.scoreboard.record(winner.name, loser.name)
        self._emit(MatchEventKind.GAME_OVER, f"{display_name(winner.name)} wins the game!", player=winner.name)

    def _announce_turn(self) -> None:
        self._emit(MatchEventKind.TURN, f"{display_name(self.game.current_player.name)}'s turn")

    # --- Lifecycle ---
    def start(self) -> None:
        self._emit(MatchEventKind.START, f"Game started. {display_name(self.game.current_player.name)} goes first!")
        if self._is_cpu_turn():
            self.cpu_busy = True
            self.scheduler.call_later(self.timing.cpu_start_ms, self.maybe_cpu_turn)

    def can_roll(self) -> bool:
        game = self.game
        if game.over or self.sticks.busy or self.cpu_busy or game.waiting_for_pass:
            return False
        if self._is_cpu_turn():
            return False
        return game.stick_value is None

    def can_pass(self) -> bool:
        if self.game.over or self._is_cpu_turn():
            return False
        return self.game.waiting_for_pass

    # --- Human actions ---
    def roll(self, value: Optional[int] = None) -> Optional[int]:
        """Throw the sticks for the human to move; ``value`` forces the result."""
        if not self.can_roll():
            return None
        value = self.game.start_turn(value)
        self._flip(lambda: self._after_human_roll(value))
        return value

    def _after_human_roll(self, value: int) -> None:
        self._announce_roll(value)
        if self.game.has_any_legal_move():
            return
        if is_extra_turn(value):
            self._emit(MatchEventKind.SKIP, f"Bonus roll ({value}) but no moves. Roll again!", value=value)
            self.game.end_turn(True)
        else:
            # a human acknowledges an empty roll with an explicit pass
            self._emit(MatchEventKind.SKIP, "No moves. Pass turn.", value=value)
            self.game.waiting_for_pass = True

    def click(self, row: int, col: int) -> bool:
        """Select a piece or move the selected one; True if either happened."""
        game = self.game
        if game.over or self.sticks.busy or self._is_cpu_turn() or game.stick_value is None:
            return False
        mover = game.current_player.name
        if not self.selection.select_or_move_at(game, row, col):
            return False
        if self.selection.last_move is None:
            return True

        self._emit_move(mover)
        if game.over:
            self._finish()
        elif self._is_cpu_turn():
            self._announce_turn()
            self.cpu_busy = True
            self.scheduler.call_later(self.timing.human_to_cpu_ms, self.maybe_cpu_turn)
        elif game.stick_value is None and not game.waiting_for_pass:
            self._emit(MatchEventKind.TURN, f"{display_name(game.current_player.name)}, play again!")
        return True

    def pass_turn(self) -> bool:
        if not self.can_pass():
            return False
        passer = self.game.current_player.name
        if not self.game.pass_turn():
            return False
        self.selection.clear()
        self._emit(MatchEventKind.PASS, f"{display_name(passer)} passed", player=passer)
        self._announce_turn()
        if self._is_cpu_turn():
            self.cpu_busy = True
            self.scheduler.call_later(self.timing.human_to_cpu_ms, self.maybe_cpu_turn)
        return True

    def quit(self, quitter: Optional[Player] = None) -> None:
        """Abandon the match; it counts as a loss for the quitting human."""
        if self.game.over:
            return
        if quitter is None:
            quitter = self.game.players[0] if self.mode == MatchMode.PVC else self.game.current_player
        self.game.forfeit(quitter)
        self._finish()

    # --- CPU turns ---
    def maybe_cpu_turn(self) -> None:
        if self.game.over or not self._is_cpu_turn():
            self.cpu_busy = False
            return
        self.cpu_busy = True
        self.scheduler.call_later(self.timing.cpu_think_ms, self._cpu_roll)

    def _cpu_roll(self) -> None:
        if self.game.over or not self._is_cpu_turn():
            self.cpu_busy = False
            return
        value = self.game.start_turn()
        if value is None:
            self.cpu_busy = False
            return
        self._flip(lambda: self._cpu_play(value))

    def _cpu_play(self, value: int) -> None:
        game = self.game
        self._announce_roll(value)
        if not game.has_any_legal_move():
            game.auto_skip_if_no_moves()
            again = self._is_cpu_turn()
            message = "No possible moves. Throwing sticks again." if again else "No possible moves. Turn passed."
            self._emit(MatchEventKind.SKIP, message, value=value)
            if again:
                self.scheduler.call_later(
                    self.timing.skip_msg_delay_ms + self.timing.cpu_chain_ms, self.maybe_cpu_turn
                )
            else:
                self.scheduler.call_later(self.timing.skip_msg_delay_ms, self._hand_back)
            return

        mover = game.current_player.name
        cpu_move(game, self.strategy)
        self._emit_move(mover)
        if game.over:
            self._finish()
            return
        self.scheduler.call_later(self.timing.cpu_after_play_ms, self._after_cpu_play)

    def _after_cpu_play(self) -> None:
        if self._is_cpu_turn():
            self._emit(MatchEventKind.TURN, "CPU plays again.")
            self.scheduler.call_later(self.timing.cpu_chain_ms, self.maybe_cpu_turn)
        else:
            self._hand_back()

    def _hand_back(self) -> None:
        self.cpu_busy = False
        self._emit(MatchEventKind.TURN, "Your turn, Player 1!")
