"""Tests for the headless match loop."""
import numpy as np

from block_puzzle_bot.game.core import Action, BotMatch, GameConfig, apply_action
from block_puzzle_bot.game.grid import EMPTY, GARBAGE
from block_puzzle_bot.game.pieces import Piece, TetrominoType

from boards import board


def single_line_setup(match: BotMatch) -> None:
    match.grid.grid = board([".........#", "....######"])
    match.current_piece = Piece(TetrominoType.I, 0, 0, 0)


class TestActions:

    def test_apply_action(self):
        grid = board()
        piece = Piece.spawn(TetrominoType.T)
        assert apply_action(piece, Action.LEFT, grid).key == (2, 0, 0)
        assert apply_action(piece, Action.SOFT_DROP, grid).key == (3, 1, 0)
        assert apply_action(piece, Action.HARD_DROP, grid).key == (3, 20, 0)
        assert apply_action(piece, Action.NONE, grid) is piece
        assert apply_action(Piece(TetrominoType.T, 0, 0, 0), Action.LEFT, grid) is None


class TestBotMatch:

    def test_seeded_spawns_repeat(self):
        first = BotMatch(GameConfig(random_seed=5))
        second = BotMatch(GameConfig(random_seed=5))
        kinds_a, kinds_b = [], []
        for _ in range(5):
            kinds_a.append(first.current_piece.kind)
            kinds_b.append(second.current_piece.kind)
            first.step(Action.HARD_DROP)
            second.step(Action.HARD_DROP)
        assert kinds_a == kinds_b

    def test_moves_before_lock(self):
        match = BotMatch(GameConfig(random_seed=0))
        start = match.current_piece
        assert match.step(Action.LEFT) is None
        assert match.current_piece.x == start.x - 1
        result = match.step(Action.HARD_DROP)
        assert result is not None
        assert match.stats.pieces == 1

    def test_garbage_waits_for_lock(self):
        match = BotMatch(GameConfig(random_seed=1))
        match.receive_garbage(2)
        assert not match.grid.grid.any()
        assert match.pending_garbage == 2

        result = match.step(Action.HARD_DROP)
        assert not result.game_over
        assert match.pending_garbage == 0
        assert match.stats.garbage_received == 2
        for row in match.grid.grid[20:]:
            assert int(np.sum(row == GARBAGE)) == 9
            assert int(np.sum(row == EMPTY)) == 1
        # the locked piece was pushed up above the garbage
        assert match.grid.grid[:20].any()

    def test_chain_and_attack(self):
        match = BotMatch(GameConfig(random_seed=2))
        single_line_setup(match)
        first = match.step(Action.HARD_DROP)
        assert first.lines_cleared == 1
        assert first.garbage_sent == 0
        assert match.stats.chain == 1

        single_line_setup(match)
        second = match.step(Action.HARD_DROP)
        assert second.garbage_sent == 1
        assert match.stats.chain == 2
        assert match.stats.max_chain == 2
        assert match.stats.total_attack == 1

    def test_perfect_clear_attack(self):
        match = BotMatch(GameConfig(random_seed=3))
        match.grid.grid = board(["....######"])
        match.current_piece = Piece(TetrominoType.I, 0, 0, 0)
        result = match.step(Action.HARD_DROP)
        assert result.perfect_clear
        assert result.garbage_sent == 10

    def test_blocked_lock_is_game_over(self):
        match = BotMatch(GameConfig(random_seed=4))
        match.grid.grid = board(["#########."] * 21)
        match.current_piece = Piece.spawn(TetrominoType.T)
        result = match.step(Action.HARD_DROP)
        assert result.game_over
        assert match.game_over
        assert match.step(Action.LEFT) is None

    def test_lock_in_top_row_is_game_over(self):
        match = BotMatch(GameConfig(random_seed=4))
        match.grid.grid = board(["#########."] * 20)
        match.current_piece = Piece.spawn(TetrominoType.O)
        result = match.step(Action.HARD_DROP)
        assert result.game_over
        assert match.game_over

    def test_state_overlays_current_piece(self):
        match = BotMatch(GameConfig(random_seed=6))
        state = match.get_state()
        kind = int(match.current_piece.kind)
        assert int(np.sum(state == -kind)) == 4
        assert not match.grid.grid.any()

    def test_reset(self):
        match = BotMatch(GameConfig(random_seed=7))
        match.step(Action.HARD_DROP)
        match.receive_garbage(3)
        match.reset(7)
        assert not match.grid.grid.any()
        assert match.stats.pieces == 0
        assert match.pending_garbage == 0
