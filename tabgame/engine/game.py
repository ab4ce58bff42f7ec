from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import List, Optional

from loguru import logger

from .board import Board
from .config import config
from .piece import Piece
from .player import Player
from .rules import MoverContext, is_extra_turn, legal_destinations
from .sticks import throw_sticks
from .types import (
    Cell,
    GameOverStatus,
    MoveChoice,
    MoveResult,
    Occupant,
    OccupantOwner,
    PieceMoves,
    PieceState,
    PlayerKind,
    TurnPhase,
)


def default_players(columns: int, vs_cpu: bool = True) -> List[Player]:
    """Player 1 starts on row 3; the CPU (or player 2) starts on row 0."""
    first = Player.with_pieces("player1", 3, columns, PlayerKind.HUMAN, skin="blue")
    if vs_cpu:
        second = Player.with_pieces("cpu", 0, columns, PlayerKind.CPU, skin="red")
    else:
        second = Player.with_pieces("player2", 0, columns, PlayerKind.HUMAN, skin="red")
    return [first, second]


@dataclass(slots=True)
class TabGame:
    """Tâb rules engine: turn flow, dice, move legality, captures and win detection."""

    columns: int = config.DEFAULT_COLUMNS
    players: List[Player] = field(default_factory=list)
    layout: Optional[str] = None
    rng: random.Random = field(default_factory=random.Random, repr=False)
    board: Board = field(init=False, repr=False)
    current_index: int = field(default=0, init=False)
    stick_value: Optional[int] = field(default=None, init=False)
    last_stick_value: Optional[int] = field(default=None, init=False)
    last_sticks: tuple[int, ...] = field(default=(0, 0, 0, 0), init=False)
    over: bool = field(default=False, init=False)
    winner: Optional[Player] = field(default=None, init=False)
    waiting_for_pass: bool = field(default=False, init=False)
    last_move: Optional[MoveResult] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.columns < 1:
            raise ValueError(f"columns must be positive, got {self.columns}")
        self.board = Board.for_size(self.columns, self.layout)
        if not self.players:
            self.players = default_players(self.columns)
        if len(self.players) != 2:
            raise ValueError("Tâb is played by exactly two players")

    # --- Players ---
    @property
    def current_player(self) -> Player:
        return self.players[self.current_index]

    @property
    def opponent_player(self) -> Player:
        return self.players[1 - self.current_index]

    @property
    def phase(self) -> TurnPhase:
        if self.over:
            return TurnPhase.GAME_OVER
        if self.waiting_for_pass:
            return TurnPhase.WAITING_FOR_PASS
        if self.stick_value is None:
            return TurnPhase.AWAITING_ROLL
        return TurnPhase.ROLLED

    # --- Dice ---
    def throw_sticks(self) -> int:
        result = throw_sticks(self.rng)
        self.stick_value = result.value
        self.last_stick_value = result.value
        self.last_sticks = result.sticks
        return result.value

    def start_turn(self, value: Optional[int] = None) -> Optional[int]:
        """Roll for the current player, or inject ``value`` (tests, replays)."""
        if self.over or self.waiting_for_pass or self.stick_value is not None:
            return None
        if value is None:
            self.throw_sticks()
        else:
            if value not in config.ROLL_VALUES:
                raise ValueError(f"Impossible stick value {value}")
            self.stick_value = value
            self.last_stick_value = value
        logger.debug(f"{self.current_player.name} rolled {self.stick_value}")
        return self.stick_value

    def play_again(self) -> bool:
        # lastStickValue survives the turn-end reset of stick_value
        return is_extra_turn(self.last_stick_value)

    def end_turn(self, keep_turn: bool = False) -> None:
        if self.check_game_over().over:
            return
        self.stick_value = None
        self.waiting_for_pass = False
        if not keep_turn:
            self.current_index = 1 - self.current_index

    def pass_turn(self) -> bool:
        """Acknowledge the end of a human turn after a 2 or 3."""
        if self.over or not self.waiting_for_pass:
            return False
        self.end_turn(False)
        return True

    # --- Board queries ---
    def cell_occupant(self, row: int, col: int) -> Optional[Occupant]:
        mine = self.current_player.piece_at(row, col)
        if mine is not None:
            return Occupant(mine, OccupantOwner.ME)
        theirs = self.opponent_player.piece_at(row, col)
        if theirs is not None:
            return Occupant(theirs, OccupantOwner.OPPONENT)
        return None

    def can_use_last_row(self, player: Optional[Player] = None) -> bool:
        return (player or self.current_player).home_row_clear()

    def mover_context(self, piece: Piece) -> MoverContext:
        owner = piece.owner
        return MoverContext(
            start_row=owner.start_row,
            has_moved=piece.state != PieceState.NOT_MOVED,
            reached_last_row=piece.has_been_in_last_row(),
            own_cells=owner.occupied_cells(),
            home_row_clear=owner.home_row_clear(),
        )

    def possible_moves(self, piece: Piece, roll: Optional[int]) -> list[Cell]:
        if roll is None:
            return []
        return legal_destinations(self.board.graph, piece.cell, roll, self.mover_context(piece))

    def legal_moves(self) -> list[PieceMoves]:
        if self.stick_value is None or self.over:
            return []
        out: list[PieceMoves] = []
        for piece in self.current_player.pieces:
            if not piece.can_move_first(self.stick_value):
                continue
            dests = self.possible_moves(piece, self.stick_value)
            if dests:
                out.append(PieceMoves(piece, dests))
        return out

    def has_any_legal_move(self) -> bool:
        return bool(self.legal_moves())

    def auto_skip_if_no_moves(self) -> bool:
        """End the turn when the roll leaves nothing to move; extra-turn rolls roll again."""
        if self.stick_value is None or self.has_any_legal_move():
            return False
        keep = self.play_again()
        logger.debug(
            f"{self.current_player.name} has no move for {self.stick_value}; "
            f"{'rolling again' if keep else 'turn passes'}"
        )
        self.end_turn(keep)
        return True

    # --- Moves ---
    def move(self, piece: Piece, dest: Cell | tuple[int, int]) -> bool:
        """Move ``piece`` to ``dest`` if it is a legal destination for the current roll."""
        if self.over or self.waiting_for_pass or self.stick_value is None:
            return False
        if piece.owner is not self.current_player:
            return False
        dest = Cell(*dest)
        if dest not in self.possible_moves(piece, self.stick_value):
            return False

        origin = piece.cell
        captured = None
        occupant = self.cell_occupant(*dest)
        if occupant is not None and occupant.owner == OccupantOwner.OPPONENT:
            captured = occupant.piece
            self.handle_capture(captured)

        piece.move_to(*dest)
        status = self.check_game_over()
        extra = self.play_again()
        self.last_move = MoveResult(
            moved=True,
            origin=origin,
            dest=dest,
            captured=captured,
            extra_turn=extra and not status.over,
            game_over=status.over,
        )
        logger.debug(
            f"{piece.owner.name} moved {tuple(origin)} -> {tuple(dest)}"
            + (" capturing" if captured else "")
        )
        if status.over:
            return True

        if extra:
            self.end_turn(True)
        elif self.current_player.is_cpu:
            self.end_turn(False)
        else:
            self.stick_value = None
            self.waiting_for_pass = True
        return True

    def apply_choice(self, choice: MoveChoice) -> bool:
        return self.move(choice.piece, choice.dest)

    def handle_capture(self, captured: Piece) -> None:
        self.opponent_player.remove_piece(captured)
        self.check_game_over()

    def forfeit(self, loser: Player) -> GameOverStatus:
        """End the game in favour of ``loser``'s opponent (quit)."""
        if not self.over:
            self.over = True
            self.winner = self.players[1 - self.players.index(loser)]
            self.stick_value = None
            self.waiting_for_pass = False
            logger.info(f"{loser.name} forfeits; {self.winner.name} wins")
        return GameOverStatus(True, self.winner)

    def check_game_over(self) -> GameOverStatus:
        if self.over:
            return GameOverStatus(True, self.winner)
        p0_lost = self.players[0].has_lost()
        p1_lost = self.players[1].has_lost()
        if p0_lost or p1_lost:
            self.over = True
            self.winner = self.players[1] if p0_lost else self.players[0]
            self.stick_value = None
            self.waiting_for_pass = False
            logger.info(f"Game over: {self.winner.name} wins")
            return GameOverStatus(True, self.winner)
        return GameOverStatus(False, None)
