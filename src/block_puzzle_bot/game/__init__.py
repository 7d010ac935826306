"""Game module for the puzzle bot.

Exports the board model and the rules the engine plays by:
- Piece, TetrominoType: tetromino poses with rotation and wall kicks
- GameGrid: board storage, locking and line clearing
- GarbageRules: lines sent for clears, combos and perfect clears
- BotMatch: headless single-player match loop with incoming garbage
"""

from .pieces import Piece, Rotation, TetrominoType
from .grid import GameGrid, TSpin, detect_tspin
from .rules import GarbageRules, garbage_lines, is_dangerous
from .core import Action, BotMatch, GameConfig, LockResult

__all__ = [
    "Piece",
    "Rotation",
    "TetrominoType",
    "GameGrid",
    "TSpin",
    "detect_tspin",
    "GarbageRules",
    "garbage_lines",
    "is_dangerous",
    "Action",
    "BotMatch",
    "GameConfig",
    "LockResult",
]
