from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .grid import EMPTY, TSpin


PERFECT_CLEAR_GARBAGE = 10


@dataclass
class GarbageRules:
    """Lines sent to the opponent for a clear."""

    tspin_lines: tuple[int, int, int] = (1, 4, 6)
    clear_lines: tuple[int, int, int, int] = (0, 1, 2, 4)
    perfect_clear: int = PERFECT_CLEAR_GARBAGE

    def base_for_clear(self, lines: int, tspin: TSpin = TSpin.NONE) -> int:
        if lines <= 0:
            return 0
        if tspin == TSpin.MINI:
            return 0
        if tspin == TSpin.FULL:
            return self.tspin_lines[min(lines, 3) - 1]
        return self.clear_lines[min(lines, 4) - 1]

    @staticmethod
    def combo_bonus(chain: int) -> int:
        """Tiered bonus for ``chain`` consecutive clearing placements."""
        if chain >= 9:
            return 10
        if chain >= 6:
            return 3
        if chain >= 4:
            return 2
        if chain >= 2:
            return 1
        return 0

    def garbage_lines(self, lines: int, tspin: TSpin = TSpin.NONE, chain: int = 0,
                      perfect_clear: bool = False) -> int:
        if perfect_clear:
            return self.perfect_clear
        if lines <= 0:
            return 0
        return self.base_for_clear(lines, tspin) + self.combo_bonus(chain)


DEFAULT_RULES = GarbageRules()


def garbage_lines(lines: int, tspin: TSpin = TSpin.NONE, chain: int = 0, perfect_clear: bool = False) -> int:
    return DEFAULT_RULES.garbage_lines(lines, tspin, chain, perfect_clear)


def is_dangerous(grid: np.ndarray, top_rows: int = 5, aggregate_limit: int = 50) -> bool:
    """Anything in the top rows, or a stack whose total height passes the limit."""
    occ = grid != EMPTY
    if np.any(occ[:top_rows]):
        return True
    height = grid.shape[0]
    first = np.where(occ.any(axis=0), np.argmax(occ, axis=0), height)
    return int(np.sum(height - first)) > aggregate_limit
