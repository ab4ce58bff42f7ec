from __future__ import annotations

import random
import unittest

from tabgame.engine.game import TabGame, default_players
from tabgame.engine.piece import Piece
from tabgame.engine.player import Player
from tabgame.engine.types import Cell, OccupantOwner, PieceState, PlayerKind, TurnPhase


def make_player(name, start_row, cells, kind=PlayerKind.HUMAN, state=PieceState.MOVED):
    player = Player(name, start_row, kind)
    for row, col in cells:
        player.add_piece(Piece(player, row, col, state))
    return player


def make_game(blue_cells, red_cells, columns=9, layout="symmetric", red_kind=PlayerKind.HUMAN):
    players = [
        make_player("player1", 3, blue_cells),
        make_player("player2" if red_kind == PlayerKind.HUMAN else "cpu", 0, red_cells, red_kind),
    ]
    return TabGame(columns, players=players, layout=layout, rng=random.Random(0))


class TestOpening(unittest.TestCase):
    def setUp(self):
        self.game = TabGame(9, layout="symmetric", rng=random.Random(7))

    def test_default_players(self):
        blue, red = self.game.players
        self.assertEqual((blue.name, blue.start_row, blue.is_cpu), ("player1", 3, False))
        self.assertEqual((red.name, red.start_row, red.is_cpu), ("cpu", 0, True))
        self.assertEqual(len(blue.pieces), 9)
        self.assertTrue(all(p.state == PieceState.NOT_MOVED for p in blue.pieces))
        self.assertEqual(blue.pieces_by_state(PieceState.MOVED), [])
        self.assertEqual(default_players(5, vs_cpu=False)[1].name, "player2")

    def test_only_the_rightmost_piece_opens_with_a_tab(self):
        self.assertEqual(self.game.start_turn(1), 1)
        legal = self.game.legal_moves()
        self.assertEqual([(pm.piece.cell, pm.moves) for pm in legal], [(Cell(3, 8), [Cell(2, 8)])])

    def test_other_rolls_cannot_open(self):
        for value in (2, 3, 4, 6):
            game = TabGame(9)
            game.start_turn(value)
            self.assertFalse(game.has_any_legal_move(), value)

    def test_cannot_roll_twice(self):
        self.assertIsNotNone(self.game.start_turn())
        self.assertIsNone(self.game.start_turn())
        self.assertEqual(self.game.phase, TurnPhase.ROLLED)

    def test_impossible_value(self):
        with self.assertRaises(ValueError):
            self.game.start_turn(5)

    def test_random_roll_records_the_sticks(self):
        value = self.game.start_turn()
        self.assertIn(value, (1, 2, 3, 4, 6))
        self.assertEqual(self.game.last_stick_value, value)
        self.assertEqual(len(self.game.last_sticks), 4)

    def test_invalid_games(self):
        with self.assertRaises(ValueError):
            TabGame(0)
        with self.assertRaises(ValueError):
            TabGame(5, players=default_players(5)[:1])


class TestTurnFlow(unittest.TestCase):
    def setUp(self):
        self.game = TabGame(9, layout="symmetric", rng=random.Random(3))
        self.blue, self.red = self.game.players

    def test_tab_keeps_the_turn(self):
        self.game.start_turn(1)
        piece = self.blue.piece_at(3, 8)
        self.assertTrue(self.game.move(piece, (2, 8)))
        self.assertEqual(piece.state, PieceState.MOVED)
        self.assertTrue(self.game.last_move.extra_turn)
        self.assertIs(self.game.current_player, self.blue)
        self.assertIsNone(self.game.stick_value)
        self.assertEqual(self.game.phase, TurnPhase.AWAITING_ROLL)

    def test_human_waits_for_pass_after_a_plain_roll(self):
        self.game.start_turn(1)
        piece = self.blue.piece_at(3, 8)
        self.game.move(piece, (2, 8))
        self.game.start_turn(2)
        self.assertEqual(self.game.possible_moves(piece, 2), [Cell(2, 6)])
        self.assertTrue(self.game.move(piece, (2, 6)))
        self.assertTrue(self.game.waiting_for_pass)
        self.assertEqual(self.game.phase, TurnPhase.WAITING_FOR_PASS)
        self.assertIsNone(self.game.start_turn())
        self.assertIs(self.game.current_player, self.blue)

        self.assertTrue(self.game.pass_turn())
        self.assertIs(self.game.current_player, self.red)
        self.assertFalse(self.game.waiting_for_pass)
        self.assertFalse(self.game.pass_turn())

    def test_illegal_moves_are_rejected(self):
        piece = self.blue.piece_at(3, 8)
        self.assertFalse(self.game.move(piece, (2, 8)))  # no roll yet
        self.game.start_turn(1)
        self.assertFalse(self.game.move(piece, (2, 7)))
        self.assertFalse(self.game.move(self.blue.piece_at(3, 0), (3, 1)))
        self.assertFalse(self.game.move(self.red.piece_at(0, 0), (1, 0)))
        self.assertIsNone(self.game.last_move)

    def test_auto_skip_passes_a_plain_roll(self):
        self.game.start_turn(2)
        self.assertTrue(self.game.auto_skip_if_no_moves())
        self.assertIs(self.game.current_player, self.red)
        self.assertIsNone(self.game.stick_value)

    def test_auto_skip_keeps_an_extra_turn_roll(self):
        self.game.start_turn(4)
        self.assertTrue(self.game.auto_skip_if_no_moves())
        self.assertIs(self.game.current_player, self.blue)
        self.assertIsNone(self.game.stick_value)

    def test_auto_skip_does_nothing_with_moves(self):
        self.game.start_turn(1)
        self.assertFalse(self.game.auto_skip_if_no_moves())
        self.assertEqual(self.game.stick_value, 1)

    def test_cell_occupant(self):
        self.assertEqual(self.game.cell_occupant(3, 0).owner, OccupantOwner.ME)
        self.assertEqual(self.game.cell_occupant(0, 0).owner, OccupantOwner.OPPONENT)
        self.assertIsNone(self.game.cell_occupant(1, 4))


class TestCapturesAndEndgame(unittest.TestCase):
    def test_capture_of_last_piece_ends_the_game(self):
        game = make_game([(2, 3), (1, 0)], [(2, 1)])
        blue, red = game.players
        game.start_turn(2)
        self.assertTrue(game.move(blue.piece_at(2, 3), (2, 1)))
        self.assertTrue(game.over)
        self.assertIs(game.winner, blue)
        self.assertEqual(red.pieces, [])
        self.assertTrue(game.last_move.game_over)
        self.assertFalse(game.last_move.extra_turn)
        self.assertEqual(game.phase, TurnPhase.GAME_OVER)
        self.assertIsNone(game.start_turn())

    def test_game_over_is_idempotent(self):
        game = make_game([(2, 3), (1, 0)], [(2, 1)])
        blue, red = game.players
        game.start_turn(2)
        game.move(blue.piece_at(2, 3), (2, 1))
        for _ in range(3):
            status = game.check_game_over()
            self.assertTrue(status.over)
            self.assertIs(status.winner, blue)
        # the outcome is fixed even if the winner's pieces go too
        blue.pieces.clear()
        status = game.check_game_over()
        self.assertTrue(status.over)
        self.assertIs(status.winner, blue)
        self.assertIs(game.winner, blue)
        self.assertEqual(game.phase, TurnPhase.GAME_OVER)

    def test_capture_removes_only_the_landing_piece(self):
        game = make_game([(2, 3)], [(2, 2), (2, 1), (0, 0)])
        blue, red = game.players
        game.start_turn(2)
        game.move(blue.piece_at(2, 3), (2, 1))
        self.assertEqual(game.last_move.captured.cell, Cell(2, 1))
        self.assertEqual(sorted(p.cell for p in red.pieces), [Cell(0, 0), Cell(2, 2)])
        self.assertFalse(game.over)

    def test_cpu_turn_ends_without_a_pass(self):
        game = make_game([(3, 5)], [(2, 4), (0, 0)], red_kind=PlayerKind.CPU)
        game.current_index = 1
        game.start_turn(2)
        self.assertTrue(game.move(game.players[1].piece_at(2, 4), (2, 2)))
        self.assertFalse(game.waiting_for_pass)
        self.assertEqual(game.current_index, 0)

    def test_forfeit(self):
        game = TabGame(5)
        status = game.forfeit(game.players[0])
        self.assertTrue(status.over)
        self.assertIs(status.winner, game.players[1])
        self.assertIsNone(game.start_turn())


class TestRowGates(unittest.TestCase):
    def test_corner_waits_for_home_row(self):
        game = make_game([(1, 7)], [(0, 0)])
        blue = game.players[0]
        blue.add_piece(Piece(blue, 3, 0))
        piece = blue.piece_at(1, 7)
        self.assertEqual(game.possible_moves(piece, 2), [Cell(2, 8)])

        blue.remove_piece(blue.piece_at(3, 0))
        self.assertTrue(game.can_use_last_row())
        self.assertEqual(game.possible_moves(piece, 2), [Cell(0, 8), Cell(2, 8)])

    def test_reaching_last_row_is_permanent(self):
        game = make_game([(1, 7)], [(0, 0)])
        piece = game.players[0].piece_at(1, 7)
        game.start_turn(2)
        game.move(piece, (0, 8))
        self.assertEqual(piece.state, PieceState.LAST_ROW)
        self.assertTrue(piece.has_been_in_last_row())
        self.assertEqual(game.players[0].pieces_by_state(PieceState.LAST_ROW), [piece])
        piece.move_to(2, 5)
        self.assertEqual(piece.state, PieceState.LAST_ROW)
        self.assertFalse(piece.is_currently_in_last_row())

    def test_symmetric_layout_lets_row_zero_reach_row_three(self):
        game = make_game([(3, 0), (3, 5)], [(2, 1)], layout="symmetric")
        game.current_index = 1
        red = game.players[1]
        game.start_turn(2)
        self.assertEqual(game.possible_moves(red.piece_at(2, 1), 2), [Cell(1, 0), Cell(3, 0)])
        self.assertTrue(game.move(red.piece_at(2, 1), (3, 0)))
        self.assertIsNotNone(game.last_move.captured)
        self.assertEqual(red.pieces[0].state, PieceState.LAST_ROW)

    def test_single_layout_keeps_row_zero_off_row_three(self):
        game = make_game([(3, 0), (3, 5)], [(2, 1)], layout="single")
        game.current_index = 1
        self.assertEqual(game.possible_moves(game.players[1].piece_at(2, 1), 2), [Cell(1, 0)])


if __name__ == "__main__":
    unittest.main()
