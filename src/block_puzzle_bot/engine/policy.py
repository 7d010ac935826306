from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from block_puzzle_bot.game.core import Action
from block_puzzle_bot.game.grid import (
    TSpin,
    clear_lines,
    detect_tspin,
    is_perfect_clear,
    merge,
    validate_grid,
)
from block_puzzle_bot.game.pieces import Piece
from block_puzzle_bot.game.rules import DEFAULT_RULES, GarbageRules, is_dangerous

from .evaluation import offense, placement_bonus, score
from .placements import DEFAULT_OVERHANG, enumerate_placements
from .search import MoveSearch, land
from .weights import DEFAULT_WEIGHTS, Weights

logger = logging.getLogger(__name__)


@dataclass
class PolicyConfig:
    board_shape: Tuple[int, int] = (22, 10)
    attack_threshold: int = 20
    aggressive_multiplier: float = 2.0
    passive_multiplier: float = 0.5
    repeat_penalty: float = 1.0
    tspin_bonus: float = 2.0
    overhang: int = DEFAULT_OVERHANG


@dataclass(frozen=True)
class TerminalPlacement:
    """Final pose plus the inputs that reach it from the live piece."""

    piece: Piece
    actions: Tuple[Action, ...]
    tspin: TSpin = TSpin.NONE

    @property
    def is_tspin(self) -> bool:
        return self.tspin != TSpin.NONE

    @property
    def key(self) -> Tuple[int, int, int]:
        return self.piece.key


@dataclass
class DecisionContext:
    """Per-decision inputs owned by the caller."""

    strength: int = 100
    total_attack: int = 0
    previous: Optional[Tuple[int, int]] = None  # (column, orientation)
    combo: int = 0


@dataclass
class ScoredPlacement:
    placement: TerminalPlacement
    score: float
    lines_cleared: int
    perfect_clear: bool


def terminal_placements(grid: np.ndarray, piece: Piece, overhang: int = DEFAULT_OVERHANG) -> List[TerminalPlacement]:
    """Landings of ``piece`` that a legal input sequence actually reaches.

    Geometric landings the search cannot reach are dropped, and repeated
    landings are only kept once, in enumeration order.
    """
    search = MoveSearch(grid, piece)
    placements: List[TerminalPlacement] = []
    seen = set()
    for candidate in enumerate_placements(grid, piece, overhang):
        if candidate.key in seen:
            continue
        seen.add(candidate.key)
        path = search.path_to(candidate.piece)
        if path is None:
            logger.debug("dropping unreachable landing %s for %s", candidate.key, piece.kind.name)
            continue
        landed = land(piece, path, grid)
        placements.append(TerminalPlacement(landed, tuple(path), detect_tspin(landed, grid)))
    return placements


class DecisionPolicy:
    def __init__(self, weights: Weights = DEFAULT_WEIGHTS, config: Optional[PolicyConfig] = None,
                 rules: GarbageRules = DEFAULT_RULES, rng: Optional[random.Random] = None) -> None:
        self.weights = weights
        self.config = config or PolicyConfig()
        self.rules = rules
        self.rng = rng or random.Random()

    def _check_inputs(self, grid: np.ndarray, piece: Piece, context: DecisionContext) -> np.ndarray:
        height, width = self.config.board_shape
        grid = validate_grid(grid, width=width, height=height)
        if not isinstance(piece, Piece):
            raise TypeError(f"expected a Piece, got {type(piece).__name__}")
        if not 0 <= context.strength <= 100:
            raise ValueError(f"strength must be within [0, 100], got {context.strength}")
        return grid

    def offense_multiplier(self, total_attack: int) -> float:
        if total_attack > self.config.attack_threshold:
            return self.config.aggressive_multiplier
        return self.config.passive_multiplier

    def evaluate(self, grid: np.ndarray, placement: TerminalPlacement, context: DecisionContext) -> ScoredPlacement:
        after, lines = clear_lines(merge(placement.piece, grid))
        perfect = lines > 0 and is_perfect_clear(after)
        chain = context.combo + 1 if lines else 0
        attack = offense(
            lines, placement.tspin, chain, perfect, is_dangerous(after), self.weights, self.rules,
        )
        total = score(after, self.weights)
        total += placement_bonus(placement.piece, grid.shape[1], self.weights)
        total += attack * self.offense_multiplier(context.total_attack)
        if placement.is_tspin:
            total += self.config.tspin_bonus
        if context.previous is not None and (placement.piece.x, placement.piece.orientation) == tuple(context.previous):
            total -= self.config.repeat_penalty
        return ScoredPlacement(placement, total, lines, perfect)

    def rank(self, grid: np.ndarray, piece: Piece, context: Optional[DecisionContext] = None) -> List[ScoredPlacement]:
        """Scored reachable placements in enumeration order."""
        context = context or DecisionContext()
        grid = self._check_inputs(grid, piece, context)
        placements = terminal_placements(grid, piece, self.config.overhang)
        return [self.evaluate(grid, p, context) for p in placements]

    def select(self, scored: List[ScoredPlacement], strength: int = 100) -> int:
        """Index of the chosen entry in ``scored``.

        The strictly highest total wins, so ties keep the earliest candidate.
        Below full strength a uniformly random candidate replaces the best one
        with probability ``(100 - strength) / 400``.
        """
        best = 0
        for i in range(1, len(scored)):
            if scored[i].score > scored[best].score:
                best = i
        if self.rng.random() < (100 - strength) / 400:
            pick = self.rng.randrange(len(scored))
            logger.debug("strength %d override: %s instead of %s",
                         strength, scored[pick].placement.key, scored[best].placement.key)
            return pick
        return best

    def choose(self, grid: np.ndarray, piece: Piece, context: Optional[DecisionContext] = None) -> Optional[TerminalPlacement]:
        """Best placement for ``piece``, or None when no legal move exists."""
        context = context or DecisionContext()
        scored = self.rank(grid, piece, context)
        if not scored:
            logger.debug("no legal placement for %s", piece.kind.name)
            return None
        chosen = scored[self.select(scored, context.strength)]
        logger.debug(
            "%s: %d candidates, chose %s score=%.3f actions=%d",
            piece.kind.name, len(scored), chosen.placement.key, chosen.score, len(chosen.placement.actions),
        )
        return chosen.placement


def choose_placement(grid: np.ndarray, piece: Piece, weights: Weights = DEFAULT_WEIGHTS, strength: int = 100,
                     total_attack: int = 0, previous: Optional[Tuple[int, int]] = None, combo: int = 0,
                     rng: Optional[random.Random] = None,
                     config: Optional[PolicyConfig] = None) -> Optional[TerminalPlacement]:
    context = DecisionContext(strength=strength, total_attack=total_attack, previous=previous, combo=combo)
    return DecisionPolicy(weights, config, rng=rng).choose(grid, piece, context)
