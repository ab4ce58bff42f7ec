from __future__ import annotations

import random
import unittest
from collections import deque

import pytest

from tabgame.server.broadcast import CLOSED, BroadcastHub
from tabgame.server.errors import AuthenticationError, InvalidRequestError
from tabgame.server.flat_board import BLUE, RED, ServerPiece, pieces_to_json
from tabgame.server.game_manager import GameManager, GameSession
from tabgame.server.move_fsm import MoveStep
from tabgame.server.ranking import RankingBoard
from tabgame.server.storage import JsonStore
from tabgame.server.users import UserRegistry


class FixedSticks(random.Random):
    """Throws the given stick values in order (a 6 is all sticks down)."""

    def __init__(self, *values: int):
        super().__init__(0)
        self._draws: deque[float] = deque()
        self.queue(*values)

    def queue(self, *values: int) -> None:
        for value in values:
            up = 0 if value == 6 else value
            self._draws.extend([0.1] * up + [0.9] * (4 - up))

    def random(self) -> float:
        return self._draws.popleft()


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def start_game(manager: GameManager, group: int = 1, size: int = 9) -> str:
    game_id = manager.join(group, "alice", size).data["game"]
    manager.join(group, "bob", size)
    return game_id


class TestJoin(unittest.TestCase):
    def setUp(self):
        self.manager = GameManager(rng=FixedSticks())

    def test_first_joiner_waits(self):
        result = self.manager.join(1, "alice", 9)
        self.assertTrue(result.success)
        game_id = result.data["game"]
        self.assertTrue(self.manager.is_pending(game_id))
        self.assertTrue(self.manager.knows(game_id))
        self.assertEqual(self.manager.snapshot(game_id), {})
        self.assertEqual(self.manager.join(1, "alice", 9).data["game"], game_id)

    def test_second_joiner_starts_the_game(self):
        game_id = start_game(self.manager)
        game = self.manager.games[game_id]
        self.assertFalse(self.manager.is_pending(game_id))
        self.assertEqual(game.players, ["alice", "bob"])
        self.assertEqual(game.initial, "alice")
        self.assertEqual(game.current_player, "alice")
        self.assertEqual(game.colors(), {"alice": BLUE, "bob": RED})
        snap = game.snapshot()
        self.assertEqual(snap["step"], "from")
        self.assertIsNone(snap["dice"])
        self.assertNotIn("winner", snap)

    def test_queues_are_per_group_and_size(self):
        a = self.manager.join(1, "alice", 9).data["game"]
        b = self.manager.join(1, "bob", 7).data["game"]
        c = self.manager.join(2, "carol", 9).data["game"]
        self.assertEqual(len({a, b, c}), 3)
        self.assertEqual(self.manager.games, {})

    def test_join_broadcasts_the_snapshot(self):
        game_id = self.manager.join(1, "alice", 9).data["game"]
        listener = self.manager.hub.subscribe(game_id, "alice")
        self.manager.join(1, "bob", 9)
        message = listener.queue.get_nowait()
        self.assertEqual(message["turn"], "alice")
        self.assertEqual(len(message["pieces"]), 36)


class TestTurns(unittest.TestCase):
    def setUp(self):
        self.rng = FixedSticks()
        self.manager = GameManager(rng=self.rng)
        self.game_id = start_game(self.manager)
        self.game = self.manager.games[self.game_id]

    def roll(self, value, nick="alice"):
        self.rng.queue(value)
        return self.manager.roll_dice(self.game_id, nick)

    def test_only_the_current_player_acts(self):
        result = self.roll(1, "bob")
        self.assertFalse(result.success)
        self.assertEqual(result.error, "Not your turn to play")
        self.assertFalse(self.manager.pass_turn(self.game_id, "bob").success)
        self.assertFalse(self.manager.make_move(self.game_id, "bob", 35).success)

    def test_unknown_game(self):
        result = self.manager.roll_dice("nope", "alice")
        self.assertEqual((result.error, result.status), ("Invalid game reference", 404))

    def test_plain_roll_without_moves_must_pass(self):
        result = self.roll(2)
        self.assertTrue(result.success)
        self.assertEqual(result.data["dice"]["value"], 2)
        self.assertEqual(result.data["dice"]["stickValues"], [True, True, False, False])
        self.assertTrue(result.data["mustPass"])

        again = self.manager.roll_dice(self.game_id, "alice")
        self.assertEqual(again.error, "You already rolled the dice and have valid moves")

        self.assertTrue(self.manager.pass_turn(self.game_id, "alice").success)
        self.assertEqual(self.game.current_player, "bob")
        self.assertIsNone(self.game.dice)

    def test_extra_turn_roll_without_moves_rolls_again(self):
        result = self.roll(4)
        self.assertTrue(result.data["dice"]["keepPlaying"])
        self.assertFalse(result.data["mustPass"])
        self.assertIsNone(self.game.dice)
        self.assertEqual(self.game.current_player, "alice")
        self.assertTrue(self.roll(6).success)

    def test_pass_needs_a_roll_and_no_moves(self):
        self.assertEqual(
            self.manager.pass_turn(self.game_id, "alice").error, "You must roll the dice first"
        )
        self.roll(1)
        self.assertEqual(
            self.manager.pass_turn(self.game_id, "alice").error,
            "You already rolled the dice but can roll it again",
        )
        self.assertEqual(
            self.manager.roll_dice(self.game_id, "alice").error,
            "You already rolled the dice but can roll it again",
        )

    def test_pass_is_refused_with_moves(self):
        self.game.pieces[8].in_motion = True
        self.roll(2)
        self.assertEqual(
            self.manager.pass_turn(self.game_id, "alice").error, "You have valid moves and cannot pass"
        )

    def test_opening_move(self):
        self.roll(1)
        self.assertTrue(self.manager.make_move(self.game_id, "alice", 8).success)
        self.assertEqual(self.game.step, MoveStep.TO)
        result = self.manager.make_move(self.game_id, "alice", 9)
        self.assertTrue(result.success)
        self.assertFalse(result.data["captured"])
        self.assertIsNone(self.game.pieces[8])
        self.assertTrue(self.game.pieces[9].in_motion)
        # a Tâb keeps the turn but needs a fresh roll
        self.assertEqual(self.game.current_player, "alice")
        self.assertIsNone(self.game.dice)
        self.assertEqual(self.game.step, MoveStep.FROM)

    def test_plain_move_hands_over(self):
        self.game.pieces[8].in_motion = True
        self.roll(3)
        self.manager.make_move(self.game_id, "alice", 8)
        self.assertTrue(self.manager.make_move(self.game_id, "alice", 11).success)
        self.assertEqual(self.game.current_player, "bob")

    def test_selecting_again_cancels(self):
        self.roll(1)
        pieces = pieces_to_json(self.game.pieces)
        dice = self.game.dice.to_dict()
        self.manager.make_move(self.game_id, "alice", 8)
        self.assertTrue(self.manager.make_move(self.game_id, "alice", 8).success)
        self.assertEqual(self.game.step, MoveStep.FROM)
        self.assertIsNone(self.game.fsm.selected)
        self.assertEqual(pieces_to_json(self.game.pieces), pieces)
        self.assertEqual(self.game.dice.to_dict(), dice)
        self.assertEqual(self.game.current_player, "alice")

    def test_move_requires_a_roll(self):
        result = self.manager.make_move(self.game_id, "alice", 8)
        self.assertEqual(result.error, "You must roll the dice first")

    def test_cell_validation(self):
        self.roll(1)
        self.assertEqual(self.manager.make_move(self.game_id, "alice", "8").error, "cell is not an integer")
        self.assertEqual(self.manager.make_move(self.game_id, "alice", 2.5).error, "cell is not an integer")
        self.assertEqual(self.manager.make_move(self.game_id, "alice", True).error, "cell is not an integer")
        self.assertEqual(self.manager.make_move(self.game_id, "alice", -1).error, "cell is negative")
        self.assertEqual(self.manager.make_move(self.game_id, "alice", 36).error, "cell out of bounds")
        self.assertTrue(self.manager.make_move(self.game_id, "alice", 8.0).success)

    def test_illegal_selection_and_destination(self):
        self.roll(1)
        self.assertEqual(self.manager.make_move(self.game_id, "alice", 0).error, "Invalid piece selection")
        self.assertEqual(self.manager.make_move(self.game_id, "alice", 35).error, "Invalid piece selection")
        self.manager.make_move(self.game_id, "alice", 8)
        self.assertEqual(self.manager.make_move(self.game_id, "alice", 10).error, "Invalid move")
        self.assertEqual(self.game.step, MoveStep.TO)


class TestEndings(unittest.TestCase):
    def setUp(self):
        self.rng = FixedSticks()
        self.clock = FakeClock()
        self.rankings = RankingBoard()
        self.manager = GameManager(rankings=self.rankings, rng=self.rng, clock=self.clock)
        self.game_id = start_game(self.manager)
        self.game = self.manager.games[self.game_id]

    def test_capturing_the_last_piece_wins(self):
        pieces = [None] * 36
        pieces[9] = ServerPiece(BLUE, in_motion=True)
        pieces[12] = ServerPiece(RED, in_motion=True)
        self.game.pieces = pieces
        listener = self.manager.hub.subscribe(self.game_id, "bob")

        self.rng.queue(3)
        self.manager.roll_dice(self.game_id, "alice")
        self.manager.make_move(self.game_id, "alice", 9)
        result = self.manager.make_move(self.game_id, "alice", 12)

        self.assertTrue(result.success)
        self.assertEqual(result.data, {"captured": True, "winner": "alice"})
        self.assertTrue(self.game.over)
        self.assertIsNone(self.game.current_player)
        self.assertEqual(self.manager.roll_dice(self.game_id, "alice").error, "Game is over")
        self.assertEqual(
            self.rankings.ranking(1, 9),
            [{"nick": "alice", "games": 1, "victories": 1}, {"nick": "bob", "games": 1, "victories": 0}],
        )

        messages = []
        while not listener.queue.empty():
            messages.append(listener.queue.get_nowait())
        self.assertEqual(messages[-2], {"winner": "alice"})
        self.assertIs(messages[-1], CLOSED)
        self.assertEqual(self.manager.hub.listeners(self.game_id), [])

    def test_leaving_forfeits(self):
        self.assertTrue(self.manager.leave_game(self.game_id, "bob").success)
        self.assertEqual(self.game.winner, "alice")
        self.assertEqual(self.game.snapshot()["winner"], "alice")
        # leaving a finished game is harmless
        self.assertTrue(self.manager.leave_game(self.game_id, "alice").success)
        self.assertEqual(self.rankings.ranking(1, 9)[0]["victories"], 1)

    def test_leave_errors(self):
        self.assertEqual(self.manager.leave_game(self.game_id, "mallory").error, "Player not in game")
        self.assertEqual(self.manager.leave_game("nope", "alice").status, 404)

    def test_leaving_the_queue(self):
        pending = self.manager.join(5, "carol", 9).data["game"]
        self.assertTrue(self.manager.leave_game(pending, "carol").success)
        self.assertFalse(self.manager.is_pending(pending))
        self.assertEqual(self.rankings.ranking(5, 9), [])

    def test_leaving_the_queue_closes_its_stream(self):
        pending = self.manager.join(5, "carol", 9).data["game"]
        listener = self.manager.hub.subscribe(pending, "carol")
        self.manager.leave_game(pending, "carol")
        self.assertIs(listener.queue.get_nowait(), CLOSED)
        self.assertEqual(self.manager.hub.listeners(pending), [])

    def test_idle_player_times_out(self):
        self.clock.now += 60
        self.assertEqual(self.manager.sweep_timeouts(), [])
        self.rng.queue(2)
        self.manager.roll_dice(self.game_id, "alice")
        self.clock.now += 121
        self.assertEqual(self.manager.sweep_timeouts(), [self.game_id])
        self.assertEqual(self.game.winner, "bob")
        self.assertEqual(self.manager.sweep_timeouts(self.clock.now + 1000), [])


def test_games_survive_a_restart(tmp_path):
    store = JsonStore(tmp_path / "games.json")
    rng = FixedSticks(1)
    manager = GameManager(store, rng=rng)
    game_id = start_game(manager)
    manager.roll_dice(game_id, "alice")
    manager.make_move(game_id, "alice", 8)

    reloaded = GameManager(JsonStore(tmp_path / "games.json"))
    game = reloaded.games[game_id]
    assert isinstance(game, GameSession)
    assert game.players == ["alice", "bob"]
    assert game.step == MoveStep.TO
    assert game.fsm.selected == 8
    assert game.dice.value == 1
    assert game.dice.keep_playing
    assert reloaded.make_move(game_id, "alice", 9).success


def test_corrupt_store_starts_empty(tmp_path):
    path = tmp_path / "games.json"
    path.write_text("{not json")
    assert GameManager(JsonStore(path)).games == {}


def test_users(tmp_path):
    users = UserRegistry(JsonStore(tmp_path / "users.json"))
    assert users.register("alice", "secret")
    assert not users.register("alice", "secret")
    with pytest.raises(AuthenticationError, match="different password"):
        users.register("alice", "other")
    users.authenticate("alice", "secret")

    reloaded = UserRegistry(JsonStore(tmp_path / "users.json"))
    assert "alice" in reloaded
    with pytest.raises(AuthenticationError, match="User not registered"):
        reloaded.authenticate("bob", "x")
    with pytest.raises(AuthenticationError, match="Invalid credentials") as excinfo:
        reloaded.authenticate("alice", "nope")
    assert excinfo.value.status == 401


@pytest.mark.parametrize("nick,password", [("", "x"), ("alice", "")])
def test_register_needs_both_fields(nick, password):
    with pytest.raises(InvalidRequestError):
        UserRegistry().register(nick, password)


def test_ranking_order_and_limit(tmp_path):
    board = RankingBoard(JsonStore(tmp_path / "rankings.json"), limit=2)
    board.record(1, 9, "alice", "bob")
    board.record(1, 9, "carol", "bob")
    board.record(1, 9, "carol", "alice")
    board.record(1, 7, "bob", "alice")
    top = board.ranking(1, 9)
    assert [e["nick"] for e in top] == ["carol", "alice"]
    assert top[0] == {"nick": "carol", "games": 2, "victories": 2}
    assert len(board.ranking(1, 9, limit=10)) == 3
    assert RankingBoard(JsonStore(tmp_path / "rankings.json")).ranking(1, 7)[0]["nick"] == "bob"


def test_stalled_listener_is_dropped():
    hub = BroadcastHub()
    listener = hub.subscribe("g", "alice")
    for n in range(listener.queue.maxsize):
        assert hub.publish("g", {"n": n}) == 1
    assert hub.publish("g", {"n": "overflow"}) == 0
    assert hub.listeners("g") == []
