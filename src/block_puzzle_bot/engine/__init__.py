"""Decision engine: candidate landings, move search, evaluation and choice."""

from .weights import DEFAULT_WEIGHTS, Weights, WeightsError
from .placements import Candidate, enumerate_placements
from .search import MoveSearch, find_move_sequence
from .evaluation import board_features, score
from .policy import (
    DecisionContext,
    DecisionPolicy,
    PolicyConfig,
    TerminalPlacement,
    choose_placement,
    terminal_placements,
)

__all__ = [
    "DEFAULT_WEIGHTS",
    "Weights",
    "WeightsError",
    "Candidate",
    "enumerate_placements",
    "MoveSearch",
    "find_move_sequence",
    "board_features",
    "score",
    "DecisionContext",
    "DecisionPolicy",
    "PolicyConfig",
    "TerminalPlacement",
    "choose_placement",
    "terminal_placements",
]
