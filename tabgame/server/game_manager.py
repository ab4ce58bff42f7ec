from __future__ import annotations

import functools
import hashlib
import random
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger

from ..engine.rules import is_extra_turn
from ..engine.sticks import throw_sticks
from .broadcast import BroadcastHub
from .errors import (
    IllegalMoveError,
    InvalidRequestError,
    OperationResult,
    SequenceError,
    TabServerError,
    TurnError,
    UnknownGameError,
)
from .flat_board import (
    BLUE,
    RED,
    FlatBoard,
    ServerPiece,
    init_pieces,
    pieces_from_json,
    pieces_to_json,
)
from .move_fsm import MoveFSM, MoveStep
from .ranking import RankingBoard
from .storage import JsonStore


@dataclass(slots=True)
class Dice:
    stick_values: List[bool]
    value: int
    keep_playing: bool

    def to_dict(self) -> dict[str, Any]:
        return {"stickValues": self.stick_values, "value": self.value, "keepPlaying": self.keep_playing}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["Dice"]:
        if data is None:
            return None
        return cls([bool(s) for s in data["stickValues"]], int(data["value"]), bool(data["keepPlaying"]))


@dataclass(slots=True)
class GameSession:
    id: str
    group: int
    size: int
    players: List[str]
    initial: str
    current_player: Optional[str]
    pieces: List[Optional[ServerPiece]]
    fsm: MoveFSM = field(default_factory=MoveFSM)
    dice: Optional[Dice] = None
    winner: Optional[str] = None
    must_pass: bool = False
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    last_move_time: float = field(default_factory=time.time)

    @property
    def step(self) -> MoveStep:
        return self.fsm.step

    @property
    def over(self) -> bool:
        return self.winner is not None

    @property
    def board(self) -> FlatBoard:
        return FlatBoard(self.pieces, self.size)

    def color_of(self, nick: str) -> str:
        return BLUE if nick == self.initial else RED

    def opponent_of(self, nick: str) -> str:
        return next(p for p in self.players if p != nick)

    def colors(self) -> dict[str, str]:
        return {nick: self.color_of(nick) for nick in self.players}

    def snapshot(self) -> dict[str, Any]:
        """Initial message for a new listener."""
        data = {
            "pieces": pieces_to_json(self.pieces),
            "initial": self.initial,
            "step": self.step.value,
            "turn": self.current_player,
            "players": self.colors(),
            "dice": self.dice.to_dict() if self.dice else None,
        }
        if self.winner is not None:
            data["winner"] = self.winner
        return data

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "group": self.group,
            "size": self.size,
            "players": list(self.players),
            "initial": self.initial,
            "currentPlayer": self.current_player,
            "step": self.step.value,
            "selected": self.fsm.selected_list(),
            "pieces": pieces_to_json(self.pieces),
            "dice": self.dice.to_dict() if self.dice else None,
            "winner": self.winner,
            "mustPass": self.must_pass,
            "createdAt": self.created_at,
            "lastMoveTime": self.last_move_time,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameSession":
        selected = data.get("selected") or []
        fsm = MoveFSM(MoveStep(data.get("step", "from")), selected[0] if selected else None)
        return cls(
            id=data["id"],
            group=int(data["group"]),
            size=int(data["size"]),
            players=list(data["players"]),
            initial=data["initial"],
            current_player=data.get("currentPlayer"),
            pieces=pieces_from_json(data["pieces"]),
            fsm=fsm,
            dice=Dice.from_dict(data.get("dice")),
            winner=data.get("winner"),
            must_pass=bool(data.get("mustPass", False)),
            created_at=data.get("createdAt", ""),
            last_move_time=float(data.get("lastMoveTime", 0.0)),
        )


def generate_game_id(group: int, size: int, players: List[str], now: float) -> str:
    data = f"{group}-{size}-{int(now * 1000)}-{'-'.join(sorted(players))}"
    return hashlib.md5(data.encode("utf-8")).hexdigest()


def operation(method: Callable[..., OperationResult]) -> Callable[..., OperationResult]:
    """Turn a raised TabServerError into a failed OperationResult."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs) -> OperationResult:
        try:
            return method(self, *args, **kwargs)
        except TabServerError as exc:
            logger.debug(f"{method.__name__} rejected: {exc}")
            return OperationResult.fail(exc)

    return wrapper


class GameManager:
    """Authoritative state for every online game, keyed by game id.

    Each operation re-validates turn ownership and game-over status,
    broadcasts its delta, and persists before returning.
    """

    def __init__(
        self,
        store: Optional[JsonStore] = None,
        rankings: Optional[RankingBoard] = None,
        hub: Optional[BroadcastHub] = None,
        inactivity_timeout_s: float = 120.0,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self.rankings = rankings or RankingBoard()
        self.hub = hub or BroadcastHub()
        self.inactivity_timeout_s = inactivity_timeout_s
        self.rng = rng or random.Random()
        self.clock = clock
        self.games: Dict[str, GameSession] = {}
        # (group, size) -> (nick, pending game id)
        self.waiting: Dict[Tuple[int, int], Tuple[str, str]] = {}
        self._load()

    # --- Persistence ---
    def _load(self) -> None:
        if self._store is None:
            return
        for game_id, data in self._store.load({}).items():
            try:
                self.games[game_id] = GameSession.from_dict(data)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning(f"Skipping unreadable game {game_id}: {exc}")
        logger.info(f"Loaded {len(self.games)} games")

    def save(self) -> None:
        if self._store is not None:
            self._store.save({gid: g.to_dict() for gid, g in self.games.items()})

    # --- Lookups ---
    def _game(self, game_id: str) -> GameSession:
        game = self.games.get(game_id)
        if game is None:
            raise UnknownGameError("Invalid game reference")
        return game

    def _active_turn(self, game_id: str, nick: str) -> GameSession:
        game = self._game(game_id)
        if game.over:
            raise TurnError("Game is over")
        if game.current_player != nick:
            raise TurnError("Not your turn to play")
        return game

    def is_pending(self, game_id: str) -> bool:
        return any(pending == game_id for _, pending in self.waiting.values())

    def knows(self, game_id: str) -> bool:
        return game_id in self.games or self.is_pending(game_id)

    def snapshot(self, game_id: str) -> dict[str, Any]:
        if self.is_pending(game_id) and game_id not in self.games:
            return {}
        return self._game(game_id).snapshot()

    def _publish(self, game: GameSession, message: dict[str, Any]) -> None:
        self.hub.publish(game.id, message)

    def _finish(self, game: GameSession, winner: str) -> None:
        loser = game.opponent_of(winner)
        game.winner = winner
        game.current_player = None
        game.dice = None
        game.must_pass = False
        game.fsm.reset()
        self.rankings.record(game.group, game.size, winner, loser)
        logger.info(f"Game {game.id}: {winner} beats {loser}")

    # --- Operations ---
    @operation
    def join(self, group: int, nick: str, size: int) -> OperationResult:
        key = (group, size)
        now = self.clock()
        pending = self.waiting.get(key)
        if pending is None:
            game_id = generate_game_id(group, size, [nick], now)
            self.waiting[key] = (nick, game_id)
            logger.info(f"{nick} waiting for an opponent in {group}-{size}")
            return OperationResult.ok(game=game_id)

        opponent, game_id = pending
        if opponent == nick:
            return OperationResult.ok(game=game_id)

        del self.waiting[key]
        game = GameSession(
            id=game_id,
            group=group,
            size=size,
            players=[opponent, nick],
            initial=opponent,
            current_player=opponent,
            pieces=init_pieces(size),
            last_move_time=now,
        )
        self.games[game_id] = game
        logger.info(f"Game {game_id} created: {opponent} vs {nick} (size {size})")
        self._publish(game, game.snapshot())
        self.save()
        return OperationResult.ok(game=game_id)

    @operation
    def roll_dice(self, game_id: str, nick: str) -> OperationResult:
        game = self._active_turn(game_id, nick)
        if game.dice is not None:
            if game.dice.keep_playing:
                raise SequenceError("You already rolled the dice but can roll it again")
            raise SequenceError("You already rolled the dice and have valid moves")

        throw = throw_sticks(self.rng)
        dice = Dice([bool(s) for s in throw.sticks], throw.value, is_extra_turn(throw.value))
        has_moves = game.board.has_any_move(game.color_of(nick), dice.value)
        game.must_pass = not has_moves and not dice.keep_playing
        # an extra-turn roll with nothing to move is simply rolled again
        game.dice = None if not has_moves and dice.keep_playing else dice
        game.last_move_time = self.clock()

        self._publish(game, {"dice": dice.to_dict(), "turn": game.current_player, "mustPass": game.must_pass})
        self.save()
        return OperationResult.ok(dice=dice.to_dict(), mustPass=game.must_pass)

    @operation
    def make_move(self, game_id: str, nick: str, cell: Any) -> OperationResult:
        game = self._active_turn(game_id, nick)
        if isinstance(cell, bool) or not isinstance(cell, int):
            if isinstance(cell, float) and cell.is_integer():
                cell = int(cell)
            else:
                raise InvalidRequestError("cell is not an integer")
        if cell < 0:
            raise InvalidRequestError("cell is negative")
        if cell >= 4 * game.size:
            raise InvalidRequestError("cell out of bounds")
        if game.dice is None:
            raise SequenceError("You must roll the dice first")

        board = game.board
        color = game.color_of(nick)
        roll = game.dice.value

        if game.fsm.step == MoveStep.FROM:
            if not board.destinations(cell, roll, color):
                raise IllegalMoveError("Invalid piece selection")
            game.fsm.select(cell)
            game.last_move_time = self.clock()
            self._publish(
                game, {"cell": cell, "selected": [cell], "step": MoveStep.TO.value, "turn": nick}
            )
            self.save()
            return OperationResult.ok()

        if cell == game.fsm.selected:
            game.fsm.cancel()
            game.last_move_time = self.clock()
            self._publish(game, {"cell": cell, "selected": [], "step": MoveStep.FROM.value, "turn": nick})
            self.save()
            return OperationResult.ok()

        if cell not in board.destinations(game.fsm.selected, roll, color):
            raise IllegalMoveError("Invalid move")

        origin = game.fsm.commit()
        captured = board.apply_move(origin, cell)
        game.last_move_time = self.clock()
        opponent = game.opponent_of(nick)

        if board.count(game.color_of(opponent)) == 0:
            self._finish(game, nick)
            self._publish(game, {"cell": cell, "selected": [origin, cell], "pieces": pieces_to_json(game.pieces)})
            self._publish(game, {"winner": nick})
            self.hub.close(game.id)
            self.save()
            return OperationResult.ok(captured=captured is not None, winner=nick)

        if not game.dice.keep_playing:
            game.current_player = opponent
        game.dice = None
        game.must_pass = False
        self._publish(
            game,
            {
                "cell": cell,
                "selected": [origin, cell],
                "pieces": pieces_to_json(game.pieces),
                "turn": game.current_player,
                "step": MoveStep.FROM.value,
                "dice": None,
            },
        )
        self.save()
        return OperationResult.ok(captured=captured is not None)

    @operation
    def pass_turn(self, game_id: str, nick: str) -> OperationResult:
        game = self._active_turn(game_id, nick)
        if game.dice is None:
            raise SequenceError("You must roll the dice first")
        if game.dice.keep_playing:
            raise SequenceError("You already rolled the dice but can roll it again")
        if game.board.has_any_move(game.color_of(nick), game.dice.value):
            raise SequenceError("You have valid moves and cannot pass")

        game.current_player = game.opponent_of(nick)
        game.dice = None
        game.must_pass = False
        game.fsm.reset()
        game.last_move_time = self.clock()
        self._publish(
            game, {"turn": game.current_player, "dice": None, "step": MoveStep.FROM.value, "mustPass": False}
        )
        self.save()
        return OperationResult.ok()

    @operation
    def leave_game(self, game_id: str, nick: str) -> OperationResult:
        for key, (waiting_nick, pending) in list(self.waiting.items()):
            if pending == game_id and waiting_nick == nick:
                del self.waiting[key]
                logger.info(f"{nick} stopped waiting in {key[0]}-{key[1]}")
                self.hub.close(game_id)
                return OperationResult.ok()

        game = self._game(game_id)
        if nick not in game.players:
            raise InvalidRequestError("Player not in game")
        if game.over:
            return OperationResult.ok()

        self._finish(game, game.opponent_of(nick))
        self._publish(game, {"winner": game.winner})
        self.hub.close(game.id)
        self.save()
        return OperationResult.ok()

    def sweep_timeouts(self, now: Optional[float] = None) -> List[str]:
        """Forfeit every game whose player to move has been idle too long."""
        now = self.clock() if now is None else now
        forfeited: List[str] = []
        for game in list(self.games.values()):
            if game.over or game.current_player is None:
                continue
            if now - game.last_move_time <= self.inactivity_timeout_s:
                continue
            idle = game.current_player
            self._finish(game, game.opponent_of(idle))
            logger.info(f"Game {game.id}: {idle} timed out")
            self._publish(game, {"winner": game.winner})
            self.hub.close(game.id)
            forfeited.append(game.id)
        if forfeited:
            self.save()
        return forfeited
