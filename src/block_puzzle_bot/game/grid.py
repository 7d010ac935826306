from __future__ import annotations

import random
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Optional, Tuple

import numpy as np

from .pieces import Piece, Rotation, TetrominoType, kick_table, oriented_offsets

EMPTY = 0
GARBAGE = 8


class TSpin(IntEnum):
    NONE = 0
    MINI = 1
    FULL = 2


@dataclass
class PlacementResult:
    lines_cleared: int
    game_over: bool
    perfect_clear: bool = False


def create_grid(width: int = 10, height: int = 22) -> np.ndarray:
    return np.zeros((height, width), dtype=np.int8)


def validate_grid(grid: np.ndarray, width: Optional[int] = None, height: Optional[int] = None) -> np.ndarray:
    """Reject malformed boards at the engine boundary."""
    arr = np.asarray(grid)
    if arr.ndim != 2:
        raise ValueError(f"grid must be 2-dimensional, got shape {arr.shape}")
    h, w = arr.shape
    if (height is not None and h != height) or (width is not None and w != width):
        raise ValueError(f"grid must be {height}x{width}, got {h}x{w}")
    return arr


def is_valid(piece: Piece, grid: np.ndarray, dx: int = 0, dy: int = 0) -> bool:
    """True when every cell of ``piece`` shifted by (dx, dy) is free.

    Rows above the grid never collide by content, only by column bounds.
    """
    height, width = grid.shape
    for x, y in piece.cells_at(piece.x + dx, piece.y + dy):
        if x < 0 or x >= width or y >= height:
            return False
        if y >= 0 and grid[y, x] != EMPTY:
            return False
    return True


def hard_drop(piece: Piece, grid: np.ndarray) -> Piece:
    dy = 0
    while is_valid(piece, grid, 0, dy + 1):
        dy += 1
    if dy == 0:
        return piece
    return piece.moved(0, dy)


def try_rotate(piece: Piece, direction: Rotation, grid: np.ndarray) -> Optional[Piece]:
    """Rotate ``piece`` with wall-kicks, or return None when every test collides.

    The in-place rotation is tried first, then the kick offsets in table order.
    The square piece always succeeds and keeps its pose.
    """
    table = kick_table(piece.kind)
    if table is None:
        return replace(piece, last_rotate=True, last_kick=0)
    kick = table[(piece.orientation, Rotation(direction))]
    rotated = replace(piece, orientation=kick.target, last_rotate=True, last_kick=0)
    if is_valid(rotated, grid):
        return rotated
    for index, (dx, dy) in enumerate(kick.offsets, start=1):
        if is_valid(rotated, grid, dx, dy):
            return replace(rotated, x=piece.x + dx, y=piece.y + dy, last_kick=index)
    return None


def merge(piece: Piece, grid: np.ndarray) -> np.ndarray:
    """Copy of ``grid`` with the piece's in-bounds cells written in."""
    height, width = grid.shape
    merged = grid.copy()
    value = int(piece.kind)
    for x, y in piece.cells():
        if 0 <= y < height and 0 <= x < width:
            merged[y, x] = value
    return merged


def clear_lines(grid: np.ndarray) -> Tuple[np.ndarray, int]:
    """Remove every full row at once and pad with empty rows on top."""
    full_rows = np.where(np.all(grid != EMPTY, axis=1))[0]
    if full_rows.size == 0:
        return grid, 0
    num = int(full_rows.size)
    remaining = np.delete(grid, full_rows, axis=0)
    new_rows = np.zeros((num, grid.shape[1]), dtype=grid.dtype)
    return np.vstack((new_rows, remaining)), num


def is_perfect_clear(grid: np.ndarray) -> bool:
    return not np.any(grid != EMPTY)


def _corner_occupied(grid: np.ndarray, x: int, y: int) -> bool:
    height, width = grid.shape
    if x < 0 or x >= width or y >= height:
        return True
    if y < 0:
        return False
    return grid[y, x] != EMPTY


def detect_tspin(piece: Piece, grid: np.ndarray) -> TSpin:
    """Classify a T piece resting in ``grid`` (before it is merged).

    Only applies when the last action was a rotation. Three of the four
    diagonal corners around the T's center must be occupied; with exactly
    three, the orientation-specific pattern decides whether it is a mini.
    Downward-facing T pieces (orientation 2) are never minis.
    """
    if piece.kind != TetrominoType.T or not piece.last_rotate:
        return TSpin.NONE
    (cx, cy), = oriented_offsets(((1, 1),), piece.orientation)
    cx += piece.x
    cy += piece.y
    # top-left, top-right, bottom-left, bottom-right
    tl, tr, bl, br = (
        _corner_occupied(grid, cx + ddx, cy + ddy)
        for ddx, ddy in ((-1, -1), (1, -1), (-1, 1), (1, 1))
    )
    filled = sum((tl, tr, bl, br))
    if filled < 3:
        return TSpin.NONE
    if filled == 3 and piece.last_kick < 4:
        if piece.orientation == 0 and bl and br and (tl != tr):
            return TSpin.MINI
        if piece.orientation == 1 and tl and bl and (tr != br):
            return TSpin.MINI
        if piece.orientation == 3 and tr and br and (tl != bl):
            return TSpin.MINI
    return TSpin.FULL


def garbage_rows(count: int, width: int, rng: random.Random) -> np.ndarray:
    rows = np.full((count, width), GARBAGE, dtype=np.int8)
    for row in rows:
        row[rng.randrange(width)] = EMPTY
    return rows


def add_garbage(grid: np.ndarray, count: int, rng: random.Random) -> np.ndarray:
    """Push ``count`` garbage rows in from the bottom, dropping the top rows."""
    if count <= 0:
        return grid
    height, width = grid.shape
    count = min(count, height)
    return np.vstack((grid[count:], garbage_rows(count, width, rng)))


class GameGrid:
    """Board owned by a single player.

    The grid uses 0 for empty cells, tetromino values 1..7 for locked pieces
    and ``GARBAGE`` for rows received from opponents.
    """

    def __init__(self, width: int, height: int) -> None:
        self.width = int(width)
        self.height = int(height)
        self.grid = create_grid(self.width, self.height)

    def reset(self) -> None:
        self.grid.fill(EMPTY)

    def can_place(self, piece: Piece) -> bool:
        return is_valid(piece, self.grid)

    def place(self, piece: Piece) -> PlacementResult:
        """Lock ``piece``, clear lines and return the result."""
        if not is_valid(piece, self.grid):
            return PlacementResult(lines_cleared=0, game_over=True)
        merged = merge(piece, self.grid)
        self.grid, lines = clear_lines(merged)
        return PlacementResult(
            lines_cleared=lines,
            game_over=False,
            perfect_clear=lines > 0 and is_perfect_clear(self.grid),
        )

    def receive_garbage(self, count: int, rng: random.Random) -> None:
        self.grid = add_garbage(self.grid, count, rng)

    def top_row_filled(self) -> bool:
        return bool(np.any(self.grid[0] != EMPTY))

    def clone_state(self) -> np.ndarray:
        return self.grid.copy()
