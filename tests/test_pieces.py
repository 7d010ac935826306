"""Tests for tetromino geometry, spawning and wall kicks."""
import pytest

from block_puzzle_bot.game.pieces import (
    BASE_SHAPES,
    I_KICKS,
    NORMAL_KICKS,
    Piece,
    Rotation,
    TetrominoType,
    kick_table,
    oriented_offsets,
)
from block_puzzle_bot.game.grid import try_rotate

from boards import board


class TestGeometry:
    """Orientation transform and spawn poses."""

    def test_four_rotations_return_to_base(self):
        for kind, base in BASE_SHAPES.items():
            assert oriented_offsets(base, 4) == list(base)
            assert oriented_offsets(base, 0) == list(base)

    def test_vertical_i_extends_upward(self):
        cells = oriented_offsets(BASE_SHAPES[TetrominoType.I], 1)
        assert cells == [(0, 0), (0, -1), (0, -2), (0, -3)]

    def test_spawn_columns(self):
        assert Piece.spawn(TetrominoType.O).key == (4, 0, 0)
        for kind in (TetrominoType.I, TetrominoType.T, TetrominoType.S, TetrominoType.Z,
                     TetrominoType.J, TetrominoType.L):
            assert Piece.spawn(kind).key == (3, 0, 0)

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            Piece.spawn(9)

    def test_move_clears_rotation_marker(self):
        piece = Piece(TetrominoType.T, 3, 5, 1, last_rotate=True, last_kick=2)
        moved = piece.moved(1, 0)
        assert moved.key == (4, 5, 1)
        assert not moved.last_rotate
        assert moved.last_kick == 0
        # moving returns a new pose
        assert piece.last_rotate


class TestKicks:
    """Rotation with kick tests."""

    def test_tables_cover_every_rotation(self):
        for table in (NORMAL_KICKS, I_KICKS):
            assert len(table) == 8
            for (orientation, direction), kick in table.items():
                assert kick.target == (orientation + int(direction)) % 4
                assert len(kick.offsets) == 4

    def test_square_has_no_table(self):
        assert kick_table(TetrominoType.O) is None
        assert kick_table(TetrominoType.I) is I_KICKS
        assert kick_table(TetrominoType.T) is NORMAL_KICKS

    def test_square_rotation_is_noop(self):
        piece = Piece.spawn(TetrominoType.O)
        rotated = try_rotate(piece, Rotation.CW, board())
        assert rotated.key == piece.key
        assert rotated.last_rotate

    def test_in_place_rotation_first(self):
        rotated = try_rotate(Piece.spawn(TetrominoType.T), Rotation.CW, board())
        assert rotated.key == (3, 0, 1)
        assert rotated.last_rotate
        assert rotated.last_kick == 0

    def test_kick_order_near_wall_and_floor(self):
        # T resting on the floor against the left wall, rotated counter-clockwise:
        # in place and the first kick collide, the second kick (1, -1) fits
        piece = Piece(TetrominoType.T, 0, 20, 0)
        rotated = try_rotate(piece, Rotation.CCW, board())
        assert rotated.key == (1, 19, 3)
        assert rotated.last_kick == 2

    def test_rotation_fails_when_boxed_in(self):
        grid = board([
            "##########",
            "##.#######",
            "#...######",
        ])
        piece = Piece(TetrominoType.T, 1, 20, 0)
        assert try_rotate(piece, Rotation.CW, grid) is None
