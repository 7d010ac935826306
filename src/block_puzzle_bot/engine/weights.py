from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping


class WeightsError(KeyError):
    """Raised when a weight mapping is missing required coefficients."""


# Parameter names used by stored bot parameter files.
CAMEL_CASE_NAMES: Dict[str, str] = {
    "weightAggregateHeight": "aggregate_height",
    "weightBumpiness": "bumpiness",
    "weightHoles": "holes",
    "weightUpperRisk": "upper_risk",
    "weightMiddleOpen": "middle_open",
    "weightLowerPlacement": "lower_placement",
    "weightUpperPlacement": "upper_placement",
    "weightEdgePenalty": "edge_penalty",
    "holeDepthFactor": "hole_depth_factor",
    "lowerHoleFactor": "lower_hole_factor",
    "contiguousHoleFactor": "contiguous_hole_factor",
    "maxHeightPenaltyFactor": "max_height_penalty_factor",
    "bumpinessFactor": "bumpiness_factor",
    "wellFactor": "well_factor",
    "weightLineClear": "line_clear",
    "weightTetris": "tetris",
    "weightTSpin": "tspin",
    "weightCombo": "combo",
    "weightGarbage": "garbage",
}


@dataclass(frozen=True)
class Weights:
    # board shape
    aggregate_height: float
    bumpiness: float
    holes: float
    upper_risk: float
    middle_open: float
    # placement
    lower_placement: float
    upper_placement: float
    edge_penalty: float
    # shaping factors
    hole_depth_factor: float
    lower_hole_factor: float
    contiguous_hole_factor: float
    max_height_penalty_factor: float
    bumpiness_factor: float
    well_factor: float
    # offense
    line_clear: float
    tetris: float
    tspin: float
    combo: float
    garbage: float

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "Weights":
        """Build weights from snake_case or stored camelCase names.

        Unknown keys are ignored. Missing coefficients raise ``WeightsError``
        instead of being defaulted.
        """
        names = [f.name for f in fields(cls)]
        values: Dict[str, float] = {}
        for key, value in mapping.items():
            name = CAMEL_CASE_NAMES.get(key, key)
            if name in names:
                values[name] = float(value)
        missing = [name for name in names if name not in values]
        if missing:
            raise WeightsError(f"missing weights: {', '.join(missing)}")
        return cls(**{name: values[name] for name in names})

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


DEFAULT_WEIGHTS = Weights(
    aggregate_height=-0.8,
    bumpiness=-0.2,
    holes=-3.0,
    upper_risk=-1.0,
    middle_open=1.9,
    lower_placement=0.7,
    upper_placement=-0.5,
    edge_penalty=-0.2,
    hole_depth_factor=0.3,
    lower_hole_factor=0.5,
    contiguous_hole_factor=0.5,
    max_height_penalty_factor=0.1,
    bumpiness_factor=1.0,
    well_factor=-0.7,
    line_clear=1.0,
    tetris=8.0,
    tspin=2.0,
    combo=3.5,
    garbage=10.0,
)
