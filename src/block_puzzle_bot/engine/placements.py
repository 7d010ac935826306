from __future__ import annotations

from dataclasses import dataclass
from typing import List

import numpy as np

from block_puzzle_bot.game.grid import TSpin, detect_tspin, hard_drop, is_valid
from block_puzzle_bot.game.pieces import Piece


DEFAULT_OVERHANG = 3


@dataclass(frozen=True)
class Candidate:
    """A landed pose found by sweeping orientations and columns."""

    piece: Piece
    preliminary_tspin: TSpin = TSpin.NONE

    @property
    def key(self):
        return self.piece.key


def enumerate_placements(grid: np.ndarray, piece: Piece, overhang: int = DEFAULT_OVERHANG) -> List[Candidate]:
    """Every hard-drop landing of ``piece``, ordered by orientation then column.

    Orientations are reached geometrically, not through kicks; reachability is
    checked afterwards by the move search. Landings with a cell above row 0
    would not fit the board once merged and are skipped.
    """
    width = grid.shape[1]
    candidates: List[Candidate] = []
    for orientation in range(4):
        rotated = orientation != piece.orientation
        for x in range(-overhang, width + overhang):
            start = Piece(piece.kind, x=x, y=piece.y, orientation=orientation, last_rotate=rotated)
            if not is_valid(start, grid):
                continue
            landed = hard_drop(start, grid)
            if any(y < 0 for _, y in landed.cells()):
                continue
            # keep the rotation marker for the geometric T-spin estimate
            landed = Piece(landed.kind, landed.x, landed.y, landed.orientation, last_rotate=rotated)
            candidates.append(Candidate(landed, detect_tspin(landed, grid)))
    return candidates
