from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Dict, Iterable, List, Optional, Tuple

import numpy as np

from block_puzzle_bot.game.core import Action, apply_action
from block_puzzle_bot.game.grid import hard_drop, is_valid
from block_puzzle_bot.game.pieces import Piece

logger = logging.getLogger(__name__)

StateKey = Tuple[int, int, int]

MOVES: Tuple[Action, ...] = (
    Action.LEFT,
    Action.RIGHT,
    Action.SOFT_DROP,
    Action.ROTATE_CW,
    Action.ROTATE_CCW,
)

# How far above the top of the grid the search may climb through kicks.
CEILING_ROWS = 2


class MoveSearch:
    """Breadth-first search over (x, y, orientation) from a live pose.

    One search records, for every landing spot, the first state whose hard
    drop lands there. BFS expands states in non-decreasing path length, so
    that first path is a shortest one, and the visiting order does not depend
    on which landing is asked for afterwards.
    """

    def __init__(self, grid: np.ndarray, start: Piece, ceiling_rows: int = CEILING_ROWS) -> None:
        self.grid = grid
        self.start = start
        self.min_row = min(start.y, 0) - ceiling_rows
        self._parents: Dict[StateKey, Tuple[Optional[StateKey], Optional[Action]]] = {}
        self._landings: Dict[StateKey, StateKey] = {}
        if is_valid(start, grid):
            self._search()

    def _search(self) -> None:
        queue: Deque[Piece] = deque([self.start])
        self._parents[self.start.key] = (None, None)
        while queue:
            piece = queue.popleft()
            landing = hard_drop(piece, self.grid).key
            self._landings.setdefault(landing, piece.key)
            for action in MOVES:
                nxt = apply_action(piece, action, self.grid)
                if nxt is None or nxt.y < self.min_row:
                    continue
                if nxt.key in self._parents:
                    continue
                self._parents[nxt.key] = (piece.key, action)
                queue.append(nxt)
        logger.debug(
            "search from %s visited %d states, %d landings",
            self.start.key, len(self._parents), len(self._landings),
        )

    @property
    def visited(self) -> int:
        return len(self._parents)

    def landings(self) -> Iterable[StateKey]:
        return self._landings.keys()

    def path_to(self, target: Piece) -> Optional[List[Action]]:
        """Shortest action list whose final hard drop lands on ``target``."""
        state = self._landings.get(target.key)
        if state is None:
            return None
        path: List[Action] = []
        parent, action = self._parents[state]
        while parent is not None:
            path.append(action)
            state = parent
            parent, action = self._parents[state]
        path.reverse()
        return path


def find_move_sequence(start: Piece, target: Piece, grid: np.ndarray) -> Optional[List[Action]]:
    return MoveSearch(grid, start).path_to(target)


def replay(start: Piece, actions: Iterable[Action], grid: np.ndarray) -> Piece:
    """Apply ``actions`` from ``start``; raises ValueError on an illegal step."""
    piece = start
    for step, action in enumerate(actions):
        nxt = apply_action(piece, action, grid)
        if nxt is None:
            raise ValueError(f"action {action.name} at step {step} is illegal from {piece.key}")
        piece = nxt
    return piece


def land(start: Piece, actions: Iterable[Action], grid: np.ndarray) -> Piece:
    """Replay ``actions`` then hard drop; the resulting pose is what locks."""
    return hard_drop(replay(start, actions, grid), grid)
