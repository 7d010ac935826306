"""Tests for the decision policy and weight loading."""
import random
from dataclasses import fields

import numpy as np
import pytest

from block_puzzle_bot.engine.policy import (
    DecisionContext,
    DecisionPolicy,
    PolicyConfig,
    choose_placement,
)
from block_puzzle_bot.engine.search import land
from block_puzzle_bot.engine.weights import CAMEL_CASE_NAMES, DEFAULT_WEIGHTS, Weights, WeightsError
from block_puzzle_bot.game.core import Action
from block_puzzle_bot.game.grid import GARBAGE, is_valid
from block_puzzle_bot.game.pieces import Piece, TetrominoType

from boards import board


ZERO_WEIGHTS = Weights(**{f.name: 0.0 for f in fields(Weights)})

ROUGH = [
    "#.........",
    "##...#...#",
    "###.##.###",
    "####.#####",
]


class FixedRng:
    """Always rolls below the error chance and picks the last candidate."""

    def random(self):
        return 0.0

    def randrange(self, n):
        return n - 1


class TestChoice:

    def test_ties_keep_enumeration_order(self):
        # with all-zero weights every O landing scores the same
        choices = [choose_placement(board(), Piece.spawn(TetrominoType.O), ZERO_WEIGHTS) for _ in range(5)]
        assert all(choice == choices[0] for choice in choices)
        assert choices[0].key == (0, 20, 0)
        assert list(choices[0].actions) == [Action.LEFT] * 4

    def test_repeat_penalty_avoids_previous_spot(self):
        choice = choose_placement(board(), Piece.spawn(TetrominoType.O), ZERO_WEIGHTS, previous=(0, 0))
        assert choice.key == (1, 20, 0)

    def test_deterministic_at_full_strength(self):
        grid = board(ROUGH)
        piece = Piece.spawn(TetrominoType.T)
        first = choose_placement(grid, piece, rng=random.Random(1))
        second = choose_placement(grid, piece, rng=random.Random(2))
        assert first == second

    def test_choice_is_first_best(self):
        grid = board(ROUGH)
        piece = Piece.spawn(TetrominoType.L)
        policy = DecisionPolicy()
        scored = policy.rank(grid, piece)
        best = max(item.score for item in scored)
        first_best = next(item for item in scored if item.score == best)
        assert policy.choose(grid, piece) == first_best.placement

    @pytest.mark.parametrize("kind", list(TetrominoType))
    def test_choice_is_a_legal_resting_pose(self, kind):
        grid = board(ROUGH)
        start = Piece.spawn(kind)
        choice = choose_placement(grid, start)
        assert is_valid(choice.piece, grid)
        assert not is_valid(choice.piece, grid, 0, 1)
        assert land(start, choice.actions, grid).key == choice.key

    def test_strength_override(self):
        grid = board(ROUGH)
        piece = Piece.spawn(TetrominoType.J)
        policy = DecisionPolicy(rng=FixedRng())
        scored = policy.rank(grid, piece)
        weak = policy.choose(grid, piece, DecisionContext(strength=0))
        assert weak == scored[-1].placement
        strong = policy.choose(grid, piece, DecisionContext(strength=100))
        assert strong == policy.choose(grid, piece)

    def test_no_legal_move(self):
        grid = np.full((22, 10), GARBAGE, dtype=np.int8)
        assert choose_placement(grid, Piece.spawn(TetrominoType.I)) is None

    def test_no_move_when_every_landing_sticks_out(self):
        # a square starting in the hidden row can only rest across the top edge
        grid = board(["#########."] * 21)
        assert choose_placement(grid, Piece.spawn(TetrominoType.O, y=-1), strength=0) is None

    def test_line_clear_preferred(self):
        grid = board(["####.#####", "####.#####", "####.#####", "####.#####"])
        choice = choose_placement(grid, Piece.spawn(TetrominoType.I))
        assert choice.key == (4, 21, 1)

    def test_offense_multiplier(self):
        policy = DecisionPolicy()
        assert policy.offense_multiplier(20) == 0.5
        assert policy.offense_multiplier(21) == 2.0


class TestBoundary:

    def test_wrong_grid_size(self):
        with pytest.raises(ValueError):
            choose_placement(np.zeros((20, 10), dtype=np.int8), Piece.spawn(TetrominoType.T))

    def test_other_board_sizes_by_config(self):
        config = PolicyConfig(board_shape=(20, 8))
        choice = choose_placement(np.zeros((20, 8), dtype=np.int8), Piece.spawn(TetrominoType.T), config=config)
        assert choice is not None

    @pytest.mark.parametrize("strength", [-1, 101])
    def test_strength_out_of_range(self, strength):
        with pytest.raises(ValueError):
            choose_placement(board(), Piece.spawn(TetrominoType.T), strength=strength)


class TestWeights:

    def test_missing_weights(self):
        mapping = DEFAULT_WEIGHTS.to_dict()
        del mapping["holes"]
        del mapping["tetris"]
        with pytest.raises(WeightsError) as excinfo:
            Weights.from_mapping(mapping)
        assert isinstance(excinfo.value, KeyError)
        assert "holes" in str(excinfo.value)
        assert "tetris" in str(excinfo.value)

    def test_camel_case_names(self):
        snake = DEFAULT_WEIGHTS.to_dict()
        camel = {camel: snake[name] for camel, name in CAMEL_CASE_NAMES.items()}
        camel["someOtherSetting"] = "ignored"
        assert Weights.from_mapping(camel) == DEFAULT_WEIGHTS
