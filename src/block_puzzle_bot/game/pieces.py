from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Dict, List, Optional, Tuple


class TetrominoType(IntEnum):
    I = 1
    O = 2
    T = 3
    S = 4
    Z = 5
    J = 6
    L = 7


class Rotation(IntEnum):
    CW = 1
    CCW = -1


Offset = Tuple[int, int]

BASE_SHAPES: Dict[TetrominoType, Tuple[Offset, ...]] = {
    TetrominoType.I: ((0, 0), (1, 0), (2, 0), (3, 0)),
    TetrominoType.J: ((0, 0), (0, 1), (1, 1), (2, 1)),
    TetrominoType.L: ((2, 0), (0, 1), (1, 1), (2, 1)),
    TetrominoType.O: ((0, 0), (1, 0), (0, 1), (1, 1)),
    TetrominoType.S: ((1, 0), (2, 0), (0, 1), (1, 1)),
    TetrominoType.T: ((1, 0), (0, 1), (1, 1), (2, 1)),
    TetrominoType.Z: ((0, 0), (1, 0), (1, 1), (2, 1)),
}

SPAWN_COLUMNS: Dict[TetrominoType, int] = {kind: 3 for kind in TetrominoType}
SPAWN_COLUMNS[TetrominoType.O] = 4


@dataclass(frozen=True)
class Kick:
    target: int
    offsets: Tuple[Offset, ...]


# (orientation, direction) -> target orientation and ordered (dcol, drow) tests.
# Priority order matters: the first valid offset wins.
NORMAL_KICKS: Dict[Tuple[int, Rotation], Kick] = {
    (0, Rotation.CCW): Kick(3, ((1, 0), (1, -1), (0, 2), (1, 2))),
    (0, Rotation.CW): Kick(1, ((-1, 0), (-1, -1), (0, 2), (-1, 2))),
    (1, Rotation.CCW): Kick(0, ((1, 0), (1, 1), (0, -2), (1, -2))),
    (1, Rotation.CW): Kick(2, ((1, 0), (1, 1), (0, -2), (1, -2))),
    (2, Rotation.CCW): Kick(1, ((-1, 0), (-1, -1), (0, 2), (-1, 2))),
    (2, Rotation.CW): Kick(3, ((1, 0), (1, -1), (0, 2), (1, 2))),
    (3, Rotation.CCW): Kick(2, ((-1, 0), (-1, 1), (0, -2), (-1, -2))),
    (3, Rotation.CW): Kick(0, ((-1, 0), (-1, 1), (0, -2), (-1, -2))),
}

I_KICKS: Dict[Tuple[int, Rotation], Kick] = {
    (0, Rotation.CCW): Kick(3, ((-1, 0), (2, 0), (-1, -2), (2, 1))),
    (0, Rotation.CW): Kick(1, ((-2, 0), (1, 0), (-2, 1), (1, -2))),
    (1, Rotation.CCW): Kick(0, ((2, 0), (-1, 0), (2, -1), (-1, 2))),
    (1, Rotation.CW): Kick(2, ((-1, 0), (2, 0), (-1, -2), (2, 1))),
    (2, Rotation.CCW): Kick(1, ((1, 0), (-2, 0), (1, 2), (-2, -1))),
    (2, Rotation.CW): Kick(3, ((2, 0), (-1, 0), (2, -1), (-1, 2))),
    (3, Rotation.CCW): Kick(2, ((1, 0), (-2, 0), (-2, 1), (1, -2))),
    (3, Rotation.CW): Kick(0, ((2, 0), (1, 0), (1, 2), (-2, -1))),
}


def kick_table(kind: TetrominoType) -> Optional[Dict[Tuple[int, Rotation], Kick]]:
    """Kick table for ``kind``; the square piece has none."""
    if kind == TetrominoType.O:
        return None
    if kind == TetrominoType.I:
        return I_KICKS
    return NORMAL_KICKS


def oriented_offsets(base: Tuple[Offset, ...], orientation: int) -> List[Offset]:
    """Apply (x, y) -> (y, -x) ``orientation`` times to every base offset."""
    cells = [(int(x), int(y)) for x, y in base]
    for _ in range(orientation % 4):
        cells = [(y, -x) for x, y in cells]
    return cells


# Every (kind, orientation) footprint, computed once.
ORIENTED_SHAPES: Dict[Tuple[TetrominoType, int], Tuple[Offset, ...]] = {
    (kind, orientation): tuple(oriented_offsets(base, orientation))
    for kind, base in BASE_SHAPES.items()
    for orientation in range(4)
}


@dataclass(frozen=True)
class Piece:
    """A pose: kind, position and orientation of a falling piece.

    ``last_rotate`` and ``last_kick`` describe the most recent successful
    action and feed T-spin detection. ``last_kick`` is 0 for an in-place
    rotation and 1..4 for the kick test that succeeded.
    """

    kind: TetrominoType
    x: int = 0
    y: int = 0
    orientation: int = 0
    last_rotate: bool = False
    last_kick: int = 0

    @classmethod
    def spawn(cls, kind: TetrominoType, y: int = 0) -> "Piece":
        return cls(kind=TetrominoType(kind), x=SPAWN_COLUMNS[TetrominoType(kind)], y=y)

    @property
    def key(self) -> Tuple[int, int, int]:
        return (self.x, self.y, self.orientation)

    def offsets(self, orientation: Optional[int] = None) -> List[Offset]:
        if orientation is None:
            orientation = self.orientation
        return list(ORIENTED_SHAPES[(self.kind, orientation % 4)])

    def cells_at(self, origin_x: int, origin_y: int, orientation: Optional[int] = None) -> List[Offset]:
        return [(origin_x + dx, origin_y + dy) for dx, dy in self.offsets(orientation)]

    def cells(self) -> List[Offset]:
        return self.cells_at(self.x, self.y)

    def moved(self, dx: int, dy: int) -> "Piece":
        return replace(self, x=self.x + dx, y=self.y + dy, last_rotate=False, last_kick=0)

    def with_orientation(self, orientation: int) -> "Piece":
        return replace(self, orientation=orientation % 4)
