"""Board evaluation for candidate placements.

Every function here is pure: it reads the grid and the weights and returns a
number, so the same arguments always give the same score.
"""

from __future__ import annotations

from typing import Dict

import numpy as np

from block_puzzle_bot.game.grid import EMPTY, TSpin
from block_puzzle_bot.game.pieces import Piece
from block_puzzle_bot.game.rules import DEFAULT_RULES, GarbageRules

from .weights import Weights


UPPER_ROWS = 4
ACCESSIBLE_HOLE = -0.5
SEALED_HOLE = 1.0


def column_heights(grid: np.ndarray) -> np.ndarray:
    rows = grid.shape[0]
    occ = grid != EMPTY
    first_occ = np.where(occ.any(axis=0), np.argmax(occ, axis=0), rows)
    return rows - first_occ


def _holes_mask(grid: np.ndarray) -> np.ndarray:
    occ = grid != EMPTY
    # a cell is covered once any filled cell appears above it (or in it)
    covered = np.logical_or.accumulate(occ, axis=0)
    return covered & ~occ


def bumpiness(heights: np.ndarray) -> float:
    return float(np.sum(np.abs(np.diff(heights))))


def count_holes(grid: np.ndarray) -> int:
    return int(np.sum(_holes_mask(grid)))


def hole_penalty(grid: np.ndarray, weights: Weights) -> float:
    """Depth-weighted hole penalty with extras for low and stacked holes."""
    holes = _holes_mask(grid)
    rows = grid.shape[0]
    lower_start = rows * 3 // 4
    penalty = 0.0
    run = np.zeros(grid.shape[1], dtype=np.int32)
    for i in range(rows):
        row_holes = holes[i]
        run = np.where(row_holes, run + 1, 0)
        n = int(np.count_nonzero(row_holes))
        if n == 0:
            continue
        penalty += weights.hole_depth_factor * i * n
        if i >= lower_start:
            penalty += weights.lower_hole_factor * (i - lower_start + 1) * n
        stacked = run[row_holes] - 1
        penalty += weights.contiguous_hole_factor * float(np.sum(stacked[stacked > 0]))
    return penalty


def height_risk(heights: np.ndarray, weights: Weights) -> float:
    """Average height plus a penalty that grows exponentially with the tallest column."""
    return float(np.mean(heights)) + float(np.exp(float(np.max(heights)) * weights.max_height_penalty_factor))


def well_depth_sum(grid: np.ndarray) -> int:
    occ = grid != EMPTY
    rows, cols = occ.shape
    padded = np.pad(occ, ((0, 0), (1, 1)), constant_values=True)
    wells = ~occ & padded[:, :-2] & padded[:, 2:]
    # empty_run[i, j]: empty cells from row i downward before the first filled one
    empty_run = np.zeros((rows + 1, cols), dtype=np.int32)
    for i in range(rows - 1, -1, -1):
        empty_run[i] = np.where(occ[i], 0, empty_run[i + 1] + 1)
    return int(np.sum(empty_run[:rows][wells]))


def upper_risk(grid: np.ndarray, upper_rows: int = UPPER_ROWS) -> int:
    occ = grid[:upper_rows] != EMPTY
    row_weights = upper_rows - np.arange(occ.shape[0])
    return int(np.sum(occ.sum(axis=1) * row_weights))


def middle_open_rows(grid: np.ndarray) -> int:
    """Rows in the top half whose two central cells are both empty."""
    rows, cols = grid.shape
    center = grid[: rows // 2, cols // 2 - 1: cols // 2 + 1]
    return int(np.sum(np.all(center == EMPTY, axis=1)))


def hole_accessibility(grid: np.ndarray) -> float:
    """+1 per sealed hole, -0.5 per hole with an empty horizontal neighbour."""
    holes = _holes_mask(grid)
    empty = grid == EMPTY
    padded = np.pad(empty, ((0, 0), (1, 1)), constant_values=False)
    accessible = padded[:, :-2] | padded[:, 2:]
    return float(np.sum(np.where(accessible[holes], ACCESSIBLE_HOLE, SEALED_HOLE)))


def score(grid: np.ndarray, weights: Weights) -> float:
    """Weighted evaluation of a board that already has the placement merged and cleared."""
    heights = column_heights(grid)
    total = 0.0
    total += weights.aggregate_height * float(np.sum(heights))
    total += weights.bumpiness * bumpiness(heights) * weights.bumpiness_factor
    total += weights.holes * hole_penalty(grid, weights)
    total += weights.upper_risk * upper_risk(grid)
    total += weights.middle_open * middle_open_rows(grid)
    total += weights.well_factor * well_depth_sum(grid)
    total -= height_risk(heights, weights)
    total -= hole_accessibility(grid)
    return total


def placement_bonus(piece: Piece, width: int, weights: Weights) -> float:
    """Reward low resting rows, penalize cells near the top or on the edge columns."""
    cells = piece.cells()
    bonus = 0.0
    for x, y in cells:
        if y < UPPER_ROWS:
            bonus += weights.upper_placement
        if x == 0 or x == width - 1:
            bonus += weights.edge_penalty
    mean_row = sum(y for _, y in cells) / len(cells)
    return bonus + weights.lower_placement * mean_row


def offense(lines: int, tspin: TSpin, chain: int, perfect_clear: bool, dangerous: bool,
            weights: Weights, rules: GarbageRules = DEFAULT_RULES) -> float:
    """Estimated attack value of a placement.

    A perfect clear short-circuits to the maximum bonus. Risky bonuses
    (T-spin, tetris, combo) are halved on a dangerous board.
    """
    if perfect_clear:
        return weights.garbage * rules.perfect_clear
    bonus = 0.0
    if tspin != TSpin.NONE:
        tspin_bonus = weights.tspin * (1 + lines)
        if tspin == TSpin.MINI:
            tspin_bonus *= 0.5
        if dangerous:
            tspin_bonus *= 0.5
        bonus += tspin_bonus
    if 1 <= lines <= 3:
        bonus += weights.line_clear * lines
    elif lines >= 4:
        bonus += weights.tetris * (0.5 if dangerous else 1.0)
    if chain > 1:
        bonus += weights.combo * (chain - 1) * (0.5 if dangerous else 1.0)
    bonus += weights.garbage * rules.garbage_lines(lines, tspin, chain)
    return bonus


def board_features(grid: np.ndarray) -> Dict[str, float]:
    heights = column_heights(grid)
    return {
        "aggregate_height": float(np.sum(heights)),
        "max_height": float(np.max(heights)),
        "avg_height": float(np.mean(heights)),
        "bumpiness": bumpiness(heights),
        "holes": float(count_holes(grid)),
        "wells": float(well_depth_sum(grid)),
        "upper_risk": float(upper_risk(grid)),
        "middle_open_rows": float(middle_open_rows(grid)),
        "hole_accessibility": hole_accessibility(grid),
    }
