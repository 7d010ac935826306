from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

import numpy as np

from .grid import GameGrid, PlacementResult, TSpin, detect_tspin, hard_drop, is_valid, try_rotate
from .pieces import Piece, Rotation, TetrominoType
from .rules import DEFAULT_RULES, GarbageRules

logger = logging.getLogger(__name__)


class Action(IntEnum):
    LEFT = 0
    RIGHT = 1
    ROTATE_CW = 2
    ROTATE_CCW = 3
    SOFT_DROP = 4
    HARD_DROP = 5
    NONE = 6


def apply_action(piece: Piece, action: Action, grid: np.ndarray) -> Optional[Piece]:
    """Result of one primitive action, or None when it is illegal."""
    if action == Action.LEFT:
        return piece.moved(-1, 0) if is_valid(piece, grid, -1, 0) else None
    if action == Action.RIGHT:
        return piece.moved(1, 0) if is_valid(piece, grid, 1, 0) else None
    if action == Action.SOFT_DROP:
        return piece.moved(0, 1) if is_valid(piece, grid, 0, 1) else None
    if action == Action.ROTATE_CW:
        return try_rotate(piece, Rotation.CW, grid)
    if action == Action.ROTATE_CCW:
        return try_rotate(piece, Rotation.CCW, grid)
    if action == Action.HARD_DROP:
        return hard_drop(piece, grid)
    if action == Action.NONE:
        return piece
    raise ValueError(f"unknown action {action!r}")


@dataclass
class GameConfig:
    width: int = 10
    height: int = 22
    random_seed: Optional[int] = None


@dataclass
class LockResult:
    piece: Piece
    lines_cleared: int
    tspin: TSpin
    perfect_clear: bool
    garbage_sent: int
    game_over: bool


@dataclass
class MatchStats:
    pieces: int = 0
    lines_cleared: int = 0
    total_attack: int = 0
    chain: int = 0
    max_chain: int = 0
    tspins: int = 0
    garbage_received: int = 0


class BotMatch:
    """Single-player side of a versus match, without transport or timing.

    Incoming garbage is queued with ``receive_garbage`` and only merged after
    a piece locks, so a decision always sees a stable board.
    """

    def __init__(self, config: Optional[GameConfig] = None, rules: Optional[GarbageRules] = None) -> None:
        self.config = config or GameConfig()
        self.rules = rules or DEFAULT_RULES
        self.rng = random.Random(self.config.random_seed)
        self.grid = GameGrid(self.config.width, self.config.height)
        self.stats = MatchStats()
        self.pending_garbage = 0
        self.game_over = False
        self.current_piece: Optional[Piece] = None
        self.reset()

    def reset(self, seed: Optional[int] = None) -> None:
        if seed is not None:
            self.rng.seed(seed)
        self.grid.reset()
        self.stats = MatchStats()
        self.pending_garbage = 0
        self.game_over = False
        self._spawn_piece()

    def _random_piece(self) -> Piece:
        kind = self.rng.choice(list(TetrominoType))
        return Piece.spawn(kind)

    def _spawn_piece(self) -> None:
        self.current_piece = self._random_piece()
        if not self.grid.can_place(self.current_piece):
            logger.debug("spawn of %s blocked, game over", self.current_piece.kind.name)
            self.game_over = True

    def receive_garbage(self, lines: int) -> None:
        self.pending_garbage += max(0, int(lines))

    def _apply_pending_garbage(self) -> None:
        if self.pending_garbage <= 0:
            return
        self.grid.receive_garbage(self.pending_garbage, self.rng)
        self.stats.garbage_received += self.pending_garbage
        self.pending_garbage = 0

    def step(self, action: Action) -> Optional[LockResult]:
        """Apply one input; returns the lock result when the piece locks."""
        if self.game_over or self.current_piece is None:
            return None
        if action == Action.HARD_DROP:
            return self.lock()
        moved = apply_action(self.current_piece, action, self.grid.grid)
        if moved is not None:
            self.current_piece = moved
        return None

    def lock(self) -> LockResult:
        assert self.current_piece is not None
        piece = hard_drop(self.current_piece, self.grid.grid)
        tspin = detect_tspin(piece, self.grid.grid)
        result: PlacementResult = self.grid.place(piece)
        lines = result.lines_cleared

        self.stats.pieces += 1
        self.stats.lines_cleared += lines
        self.stats.chain = self.stats.chain + 1 if lines else 0
        self.stats.max_chain = max(self.stats.max_chain, self.stats.chain)
        if tspin != TSpin.NONE and lines:
            self.stats.tspins += 1
        sent = self.rules.garbage_lines(lines, tspin, self.stats.chain, result.perfect_clear)
        self.stats.total_attack += sent

        game_over = result.game_over or self.grid.top_row_filled()
        if not game_over:
            self._apply_pending_garbage()
            self._spawn_piece()
            game_over = self.game_over
        self.game_over = game_over
        return LockResult(
            piece=piece,
            lines_cleared=lines,
            tspin=tspin,
            perfect_clear=result.perfect_clear,
            garbage_sent=sent,
            game_over=game_over,
        )

    def get_state(self) -> np.ndarray:
        """Board copy with the falling piece drawn as negative kind values."""
        state = self.grid.clone_state()
        piece = self.current_piece
        if piece is None or self.game_over:
            return state
        height, width = state.shape
        for x, y in piece.cells():
            if 0 <= x < width and 0 <= y < height:
                state[y, x] = -int(piece.kind)
        return state
